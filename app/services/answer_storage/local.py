"""
Local answer storage

Persists answer records in a durable key-value store on this installation.
Keys are scoped by schema version, user and subject so they never collide:

    {namespace}:{schema_version}:{user}:ovm:{subject_id}

Records written before answers were scoped per user live under

    {namespace}:ovm:{schema_version}:{subject_id}

and are moved over once with migrate() / migrate_all().
"""
import logging
from typing import List, Optional, Tuple

from pydantic import ValidationError

from app.core.config import ANSWER_SCHEMA_VERSION, STORAGE_NAMESPACE
from app.database.kv_store import JsonFileKeyValueStore
from app.models.schemas import AnswerRecord
from app.services.answer_storage.base import AnswerStorageError

logger = logging.getLogger(__name__)


class LocalStorageProvider:
    def __init__(
        self,
        store: JsonFileKeyValueStore,
        namespace: str = STORAGE_NAMESPACE,
        schema_version: str = ANSWER_SCHEMA_VERSION,
    ):
        self.store = store
        self.namespace = namespace
        self.schema_version = schema_version

    def storage_key(self, user: str, subject_id: str) -> str:
        return f"{self.namespace}:{self.schema_version}:{user}:ovm:{subject_id}"

    @property
    def legacy_prefix(self) -> str:
        return f"{self.namespace}:ovm:"

    def _parse_legacy_key(self, legacy_key: str) -> Optional[Tuple[str, str]]:
        """
        Split a legacy key into (schema_version, subject_id), None if it is not one
        """
        if not legacy_key.startswith(self.legacy_prefix):
            return None
        schema_version, sep, subject_id = legacy_key[len(self.legacy_prefix):].partition(":")
        if not sep or not schema_version or not subject_id:
            return None
        return schema_version, subject_id

    async def load(self, user: str, subject_id: str) -> Optional[AnswerRecord]:
        key = self.storage_key(user, subject_id)
        try:
            raw = self.store.get(key)
        except OSError as e:
            logger.error(f"[Answer Storage] Failed to read {key}: {e}")
            return None

        if raw is None:
            return None

        try:
            record = AnswerRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[Answer Storage] Discarding malformed record at {key}: {e.error_count()} error(s)")
            return None

        if record.subject_id != subject_id:
            logger.warning(f"[Answer Storage] Discarding record at {key}: stored for subject {record.subject_id}")
            return None

        return record

    async def save(self, user: str, subject_id: str, record: AnswerRecord) -> None:
        key = self.storage_key(user, subject_id)
        try:
            self.store.set(key, record.to_json())
        except OSError as e:
            logger.error(f"[Answer Storage] Failed to write {key}: {e}")
            raise AnswerStorageError("Local save failed") from e

    async def clear(self, user: str, subject_id: str) -> None:
        key = self.storage_key(user, subject_id)
        try:
            self.store.remove(key)
        except OSError as e:
            logger.error(f"[Answer Storage] Failed to delete {key}: {e}")

    def list_legacy_keys(self) -> List[str]:
        """
        Keys written by the pre-user-scoping key scheme
        """
        try:
            keys = self.store.keys(self.legacy_prefix)
        except OSError as e:
            logger.error(f"[Answer Storage] Failed to list legacy keys: {e}")
            return []
        return [key for key in keys if self._parse_legacy_key(key) is not None]

    def migrate(self, legacy_key: str, user: str) -> bool:
        """
        Move a legacy entry under the user-scoped key

        The stored bytes are copied unchanged and the legacy entry is removed.
        An existing user-scoped entry is newer and is kept. Failures are logged,
        never raised.

        Returns:
            True if an entry was moved
        """
        parsed = self._parse_legacy_key(legacy_key)
        if parsed is None:
            logger.warning(f"[Answer Storage] Not a legacy key: {legacy_key}")
            return False
        schema_version, subject_id = parsed
        new_key = f"{self.namespace}:{schema_version}:{user}:ovm:{subject_id}"

        try:
            raw = self.store.get(legacy_key)
            if raw is None:
                return False
            if self.store.get(new_key) is None:
                self.store.set(new_key, raw)
                moved = True
            else:
                logger.info(f"[Answer Storage] {new_key} already exists, dropping legacy entry {legacy_key}")
                moved = False
            self.store.remove(legacy_key)
        except OSError as e:
            logger.error(f"[Answer Storage] Migration of {legacy_key} failed: {e}")
            return False

        if moved:
            logger.info(f"[Answer Storage] Migrated {legacy_key} -> {new_key}")
        return moved

    def migrate_all(self, user: str) -> int:
        """Migrate every legacy entry to the given user, returns number moved"""
        return sum(1 for key in self.list_legacy_keys() if self.migrate(key, user))
