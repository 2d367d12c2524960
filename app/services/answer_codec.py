"""
Answer codec

Converts between checklist items and the sparse answers map persisted in an
AnswerRecord. Both directions are pure; absence of an entry means "unanswered".
"""
from typing import Dict, List, Optional, Sequence

from app.core.config import ANSWER_SCHEMA_VERSION
from app.models.schemas import AnswerRecord, AnswerValue, ChecklistItem, ChoiceItem, InputItem


def _has_value(item: InputItem) -> bool:
    return item.value is not None and item.value != ""


def extract_answers(items: Sequence[ChecklistItem]) -> Dict[str, AnswerValue]:
    """
    Build the answers map from the current item state

    Args:
        items: Live checklist items

    Returns:
        Item id -> AnswerValue for every item that carries an answer
    """
    answers: Dict[str, AnswerValue] = {}
    for item in items:
        if isinstance(item, ChoiceItem) and item.answer is not None:
            answers[item.id] = AnswerValue(answer=item.answer)
        elif isinstance(item, InputItem) and _has_value(item):
            answers[item.id] = AnswerValue(value=item.value)
    return answers


def merge_answers(template: Sequence[ChecklistItem], record: Optional[AnswerRecord]) -> List[ChecklistItem]:
    """
    Overlay saved answers onto a checklist template

    Template order and all non-answer fields are kept. A stored entry whose shape
    does not match the item variant (e.g. the item changed from input to choice
    between template revisions) is ignored.

    Args:
        template: Canonical checklist items (not modified)
        record: Previously saved answers, or None

    Returns:
        New list of items with answers applied
    """
    if record is None:
        return list(template)

    merged: List[ChecklistItem] = []
    for item in template:
        saved = record.answers.get(item.id)
        if saved is None:
            merged.append(item)
        elif isinstance(item, ChoiceItem) and saved.answer is not None:
            merged.append(item.model_copy(update={"answer": saved.answer}))
        elif isinstance(item, InputItem) and saved.value is not None:
            merged.append(item.model_copy(update={"value": saved.value}))
        else:
            merged.append(item)
    return merged


def create_answer_record(
    subject_id: str,
    items: Sequence[ChecklistItem],
    schema_version: str = ANSWER_SCHEMA_VERSION,
) -> AnswerRecord:
    """
    Create a fresh AnswerRecord for the current item state (new lastModified)
    """
    return AnswerRecord(
        schema_version=schema_version,
        subject_id=subject_id,
        answers=extract_answers(items),
    )
