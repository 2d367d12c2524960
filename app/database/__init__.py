"""
Database module

Server-side JSON file storage and the client-side key-value store.
"""

# Export storage functions for convenience
from app.database.storage import (
    read_json,
    write_json,
    save_answer_record,
    get_answer_record,
    delete_answer_record,
    save_image,
    list_images,
    get_image_path,
    delete_image,
)
from app.database.kv_store import JsonFileKeyValueStore, get_key_value_store

# Also export as 'storage' module
from app.database import storage

__all__ = [
    # Storage functions
    "read_json",
    "write_json",
    "save_answer_record",
    "get_answer_record",
    "delete_answer_record",
    "save_image",
    "list_images",
    "get_image_path",
    "delete_image",
    # Client-side store
    "JsonFileKeyValueStore",
    "get_key_value_store",
    # Storage module
    "storage",
]
