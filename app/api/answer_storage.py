"""
Answer storage endpoints

Server side of the remote answer storage provider. One record per user and
object, last write wins.
"""
import logging

from fastapi import APIRouter, Body, HTTPException, Response
from pydantic import ValidationError

from app.api.utils import require_safe_segment, require_user_slug
from app.database import storage as database
from app.models.schemas import AnswerRecord

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ovm-storage/{user}/{object_id}")
async def get_answers(user: str, object_id: str):
    """
    Get saved answers for a user and object

    Returns 404 when nothing has been saved yet.
    """
    require_user_slug(user)
    require_safe_segment(object_id, "object id")

    data = database.get_answer_record(user, object_id)
    if data is None:
        raise HTTPException(status_code=404, detail="No answers found")

    try:
        record = AnswerRecord.model_validate(data)
    except ValidationError:
        logger.warning(f"[Answer Storage API] Discarding malformed record for {user}/{object_id}")
        raise HTTPException(status_code=404, detail="No answers found")

    return record.to_wire()


@router.put("/ovm-storage/{user}/{object_id}")
async def put_answers(user: str, object_id: str, payload: dict = Body(...)):
    """
    Save answers for a user and object (replaces existing)
    """
    require_user_slug(user)
    require_safe_segment(object_id, "object id")

    try:
        record = AnswerRecord.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False))

    if record.subject_id != object_id:
        raise HTTPException(status_code=400, detail="subjectId does not match object id")

    database.save_answer_record(user, object_id, record.to_wire())
    return record.to_wire()


@router.delete("/ovm-storage/{user}/{object_id}", status_code=204)
async def delete_answers(user: str, object_id: str):
    """
    Delete saved answers for a user and object; deleting nothing is not an error
    """
    require_user_slug(user)
    require_safe_segment(object_id, "object id")

    database.delete_answer_record(user, object_id)
    return Response(status_code=204)
