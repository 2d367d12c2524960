"""
Checklist editing session

Ties together template, storage provider, answer codec and debounced save for
one inspector editing one object:

- open(): load saved answers and merge them into the template
- set_answer() / set_value(): validate, update live items, schedule a save
- close(): stop autosave timers when the editing view goes away

User and provider are passed in explicitly; a session never reaches for
process-wide state.
"""
import asyncio
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Union

from app.core.config import (
    ANSWER_SCHEMA_VERSION,
    ERROR_DISPLAY_SECONDS,
    SAVE_QUIET_PERIOD_SECONDS,
    SAVED_DISPLAY_SECONDS,
)
from app.models.schemas import CHOICE_OPTIONS, AnswerRecord, ChecklistItem, ChoiceItem, InputItem, SaveStatus
from app.services.answer_codec import create_answer_record, merge_answers
from app.services.answer_storage.base import AnswerStorageProvider
from app.services.debounced_save import DebouncedSaveController, StatusListener

logger = logging.getLogger(__name__)


class ChecklistValidationError(ValueError):
    """
    Invalid edit; reported to the caller immediately, nothing is saved
    """
    def __init__(self, item_id: str, message: str):
        super().__init__(message)
        self.item_id = item_id
        self.message = message


def parse_input_value(item: InputItem, raw: Union[str, int, float, None]) -> Union[str, int, float, None]:
    """
    Convert raw user input for an input item; empty input clears the value

    Raises:
        ChecklistValidationError: Number item with non-numeric input
    """
    if raw is None or raw == "":
        return None

    if item.value_format == "text":
        return str(raw)

    if isinstance(raw, bool):
        raise ChecklistValidationError(item.id, "Please enter a number.")
    if isinstance(raw, (int, float)):
        number = raw
    else:
        text = str(raw).strip().replace(",", ".")
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise ChecklistValidationError(item.id, "Please enter a number.") from None

    if isinstance(number, float) and not math.isfinite(number):
        raise ChecklistValidationError(item.id, "Please enter a number.")
    return number


class ChecklistSession:
    def __init__(
        self,
        provider: AnswerStorageProvider,
        user: str,
        subject_id: str,
        template: Sequence[ChecklistItem],
        schema_version: str = ANSWER_SCHEMA_VERSION,
        quiet_period: float = SAVE_QUIET_PERIOD_SECONDS,
        saved_display: float = SAVED_DISPLAY_SECONDS,
        error_display: float = ERROR_DISPLAY_SECONDS,
        on_status_change: Optional[StatusListener] = None,
    ):
        self.provider = provider
        self.user = user
        self.subject_id = subject_id
        self.template = tuple(template)
        self.schema_version = schema_version
        self.items: List[ChecklistItem] = list(self.template)
        self.controller: DebouncedSaveController[AnswerRecord] = DebouncedSaveController(
            self._persist,
            quiet_period=quiet_period,
            saved_display=saved_display,
            error_display=error_display,
            on_status_change=on_status_change,
        )

    @property
    def status(self) -> SaveStatus:
        return self.controller.status

    @property
    def error(self) -> Optional[str]:
        return self.controller.error

    async def open(self) -> List[ChecklistItem]:
        """
        Load saved answers and merge them into the template
        """
        record = await self.provider.load(self.user, self.subject_id)
        self.items = merge_answers(self.template, record)
        return self.items

    def _find(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        raise ChecklistValidationError(item_id, f"Unknown checklist item: {item_id}")

    def _replace(self, index: int, item: ChecklistItem):
        items = list(self.items)
        items[index] = item
        self.items = items
        self.controller.schedule(create_answer_record(self.subject_id, self.items, self.schema_version))

    def set_answer(self, item_id: str, answer: Optional[str]):
        """
        Select an option for a choice item (None clears the selection)
        """
        index = self._find(item_id)
        item = self.items[index]
        if not isinstance(item, ChoiceItem):
            raise ChecklistValidationError(item_id, f"{item_id} is not a choice item")
        if answer is not None and answer not in CHOICE_OPTIONS:
            raise ChecklistValidationError(item_id, f"Invalid option: {answer}")
        self._replace(index, item.model_copy(update={"answer": answer}))

    def set_value(self, item_id: str, raw: Union[str, int, float, None]):
        """
        Enter a value for an input item ('' or None clears the value)
        """
        index = self._find(item_id)
        item = self.items[index]
        if not isinstance(item, InputItem):
            raise ChecklistValidationError(item_id, f"{item_id} is not an input item")
        value = parse_input_value(item, raw)
        self._replace(index, item.model_copy(update={"value": value}))

    async def _persist(self, record: AnswerRecord):
        await self.provider.save(self.user, self.subject_id, record)

    async def flush(self):
        """Wait for scheduled and in-flight saves to finish"""
        await self.controller.drain()

    def close(self):
        self.controller.close()


async def load_saved_answers(
    provider: AnswerStorageProvider,
    user: str,
    subject_ids: Iterable[str],
) -> Dict[str, AnswerRecord]:
    """
    Load saved answers for many objects concurrently

    Objects without saved answers are left out. A failing load for one object
    does not affect the others.
    """
    subject_ids = list(subject_ids)
    results = await asyncio.gather(
        *(provider.load(user, subject_id) for subject_id in subject_ids),
        return_exceptions=True,
    )

    saved: Dict[str, AnswerRecord] = {}
    for subject_id, result in zip(subject_ids, results):
        if isinstance(result, Exception):
            logger.warning(f"[Checklist] Loading answers for {subject_id} failed: {result!r}")
        elif result is not None:
            saved[subject_id] = result
    return saved
