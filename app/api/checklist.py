"""
Checklist endpoints
"""
from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from app.api.utils import require_safe_segment, require_user_slug
from app.core import config
from app.database import storage as database
from app.models.schemas import AnswerRecord, ChecklistItem, ChecklistTemplateResponse
from app.services.answer_codec import merge_answers
from app.services.checklist_template import group_items_by_section, load_checklist_template

router = APIRouter()


@router.get("/checklist", response_model=ChecklistTemplateResponse)
async def get_checklist_template():
    """
    Get the rent-index checklist template grouped by section
    """
    template = load_checklist_template(config.ANSWER_SCHEMA_VERSION)
    return ChecklistTemplateResponse(
        schema_version=config.ANSWER_SCHEMA_VERSION,
        sections=group_items_by_section(template),
    )


@router.get("/checklist/{user}/{object_id}", response_model=List[ChecklistItem])
async def get_object_checklist(user: str, object_id: str):
    """
    Get the checklist for an object with the user's saved answers filled in

    Unanswered template items are returned as-is; saved answers that are
    malformed are ignored.
    """
    require_user_slug(user)
    require_safe_segment(object_id, "object id")

    try:
        template = load_checklist_template(config.ANSWER_SCHEMA_VERSION)
    except FileNotFoundError:
        raise HTTPException(status_code=500, detail="Checklist template not available")

    record = None
    data = database.get_answer_record(user, object_id)
    if data is not None:
        try:
            record = AnswerRecord.model_validate(data)
        except ValidationError:
            record = None

    return merge_answers(template, record)
