"""
Simple JSON file storage

- Using JSON files to avoid database setup complexity
- Answer records stored per user and object: {DATA_DIR}/answers/{user}/{object_id}.json
- Object photos stored as plain files: {UPLOADS_DIR}/{object_id}/{filename}
- Locations are read from config on every call so they can be redirected
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.core import config

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp'}


def read_json(filepath: str) -> List[Dict[str, Any]]:
    """
    Read JSON file, return empty list if not found
    """
    path = Path(filepath)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return []


def write_json(filepath: str, data: List[Dict[str, Any]]):
    """
    Write data to JSON file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def _answers_path(user: str, object_id: str) -> Path:
    return Path(config.DATA_DIR) / "answers" / user / f"{object_id}.json"


def save_answer_record(user: str, object_id: str, record: Dict[str, Any]):
    """
    Save answer record for a user and object (replaces existing)
    """
    write_json(str(_answers_path(user, object_id)), [record])


def get_answer_record(user: str, object_id: str) -> Optional[Dict[str, Any]]:
    """
    Get answer record for a user and object
    """
    records = read_json(str(_answers_path(user, object_id)))
    return records[0] if records else None


def delete_answer_record(user: str, object_id: str) -> bool:
    """
    Delete answer record for a user and object

    Returns:
        True if a record existed
    """
    path = _answers_path(user, object_id)
    if path.exists():
        path.unlink()
        return True
    return False


def object_images_dir(object_id: str) -> Path:
    return Path(config.UPLOADS_DIR) / object_id


def save_image(object_id: str, filename: str, content: bytes) -> Path:
    """
    Save an uploaded image for an object
    """
    image_dir = object_images_dir(object_id)
    image_dir.mkdir(parents=True, exist_ok=True)
    path = image_dir / filename
    with open(path, 'wb') as f:
        f.write(content)
    return path


def list_images(object_id: str) -> List[str]:
    """
    List image filenames for an object, empty if none uploaded yet
    """
    image_dir = object_images_dir(object_id)
    if not image_dir.is_dir():
        return []
    return sorted(
        p.name for p in image_dir.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def get_image_path(object_id: str, filename: str) -> Optional[Path]:
    """
    Path of a stored image, None if it does not exist
    """
    path = object_images_dir(object_id) / filename
    if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS:
        return path
    return None


def delete_image(object_id: str, filename: str) -> bool:
    """
    Delete an image of an object

    Returns:
        True if the image existed
    """
    path = object_images_dir(object_id) / filename
    if path.is_file():
        path.unlink()
        return True
    return False
