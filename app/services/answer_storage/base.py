"""
Answer storage provider contract
"""
from typing import Optional, Protocol

from app.models.schemas import AnswerRecord


class AnswerStorageError(Exception):
    """
    Raised when answers could not be persisted

    The message is short and human-readable; it is shown in the save status.
    """


class AnswerStorageProvider(Protocol):
    async def load(self, user: str, subject_id: str) -> Optional[AnswerRecord]:
        """Saved answers, or None when nothing (valid) is stored"""
        ...

    async def save(self, user: str, subject_id: str, record: AnswerRecord) -> None:
        """Persist the full record, replacing any previous one; raises AnswerStorageError"""
        ...

    async def clear(self, user: str, subject_id: str) -> None:
        """Remove saved answers; idempotent, never raises"""
        ...
