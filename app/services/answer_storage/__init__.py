"""
Answer storage providers

Local (default) or remote with local fallback, selected once at startup.
"""
import logging
from typing import Optional

from app.core import config
from app.database.kv_store import JsonFileKeyValueStore, get_key_value_store
from app.services.answer_storage.base import AnswerStorageError, AnswerStorageProvider
from app.services.answer_storage.local import LocalStorageProvider
from app.services.answer_storage.remote import RemoteStorageProvider

logger = logging.getLogger(__name__)


def get_storage_provider(
    use_remote: Optional[bool] = None,
    store: Optional[JsonFileKeyValueStore] = None,
) -> AnswerStorageProvider:
    """
    Build the configured answer storage provider

    Args:
        use_remote: Override USE_REMOTE_ANSWER_STORAGE
        store: Key-value store for the local provider (defaults to the shared store at LOCAL_STORE_PATH)
    """
    if use_remote is None:
        use_remote = config.USE_REMOTE_ANSWER_STORAGE
    local = LocalStorageProvider(store or get_key_value_store(config.LOCAL_STORE_PATH))

    if use_remote:
        logger.info(f"[Answer Storage] Remote provider enabled ({config.ANSWER_STORAGE_URL})")
        return RemoteStorageProvider(local)

    logger.info("[Answer Storage] Local provider enabled")
    return local


__all__ = [
    "AnswerStorageError",
    "AnswerStorageProvider",
    "LocalStorageProvider",
    "RemoteStorageProvider",
    "get_storage_provider",
]
