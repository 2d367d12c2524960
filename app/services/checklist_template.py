"""
Checklist template service

Loads the bundled rent-index checklist for a schema version and groups items
by section for display.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import List, Sequence, Tuple

from pydantic import TypeAdapter

from app.core.config import ANSWER_SCHEMA_VERSION
from app.models.schemas import ChecklistItem, ChecklistSection

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "data"

# Shown in the object master data instead (living area, address, year, listed status)
EXCLUDED_BASE_FIELD_IDS = frozenset({"OVM-1", "OVM-2", "OVM-3", "OVM-4"})

_ITEMS_ADAPTER = TypeAdapter(List[ChecklistItem])


def filter_base_fields(items: Sequence[ChecklistItem]) -> List[ChecklistItem]:
    """
    Remove base fields from a checklist
    """
    return [item for item in items if item.id not in EXCLUDED_BASE_FIELD_IDS]


@lru_cache(maxsize=None)
def load_checklist_template(schema_version: str = ANSWER_SCHEMA_VERSION) -> Tuple[ChecklistItem, ...]:
    """
    Load the checklist template for a schema version

    Args:
        schema_version: Template revision (e.g. 'ms-2024.1')

    Returns:
        Immutable, ordered template items without base fields

    Raises:
        FileNotFoundError: No template bundled for this schema version
    """
    path = TEMPLATE_DIR / f"rent_index_checklist_{schema_version}.json"
    with open(path, 'r', encoding='utf-8') as f:
        raw = json.load(f)
    return tuple(filter_base_fields(_ITEMS_ADAPTER.validate_python(raw)))


def group_items_by_section(items: Sequence[ChecklistItem]) -> List[ChecklistSection]:
    """
    Group items by section, keeping first-seen section order and item order
    """
    grouped = {}
    for item in items:
        grouped.setdefault(item.section, []).append(item)
    return [ChecklistSection(section=section, items=section_items) for section, section_items in grouped.items()]
