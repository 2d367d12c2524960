"""
Checklist and answer data models

- Checklist items are a tagged union on answer_kind ('choice' / 'input')
- Items are frozen: edits produce copies, the template is never mutated
- AnswerRecord is the persisted, sparse answer blob for one (user, subject)
- Pydantic provides the structural validation at the storage boundary
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


ChoiceAnswer = Literal["yes", "no", "not observed"]
CHOICE_OPTIONS: Tuple[str, ...] = ("yes", "no", "not observed")

InputValue = Union[int, float, str]


class ChoiceItem(BaseModel):
    """
    Checklist item answered by picking one of three fixed options
    """
    model_config = ConfigDict(frozen=True)

    answer_kind: Literal["choice"]   = Field("choice", description="Discriminator for choice items")
    id: str                          = Field(..., description="Stable item identifier (e.g. 'OVM-7')")
    section: str                     = Field(..., description="Grouping key (checklist section heading)")
    title: str                       = Field(..., description="Question / feature text")
    hint: Optional[str]              = Field(None, description="Optional hint shown below the title")
    options: Tuple[ChoiceAnswer, ...] = Field(CHOICE_OPTIONS, description="Always yes / no / not observed")
    answer: Optional[ChoiceAnswer]   = Field(None, description="Selected option, None when unanswered")

    @field_validator("options")
    @classmethod
    def validate_options(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if tuple(value) != CHOICE_OPTIONS:
            raise ValueError("options must be exactly ('yes', 'no', 'not observed')")
        return value


class InputItem(BaseModel):
    """
    Checklist item answered with a free number or text value
    """
    model_config = ConfigDict(frozen=True)

    answer_kind: Literal["input"]      = Field("input", description="Discriminator for input items")
    id: str                            = Field(..., description="Stable item identifier (e.g. 'OVM-12')")
    section: str                       = Field(..., description="Grouping key (checklist section heading)")
    title: str                         = Field(..., description="Question / feature text")
    hint: Optional[str]                = Field(None, description="Optional hint shown below the title")
    value_format: Literal["number", "text"] = Field(..., description="Expected input format")
    value: Optional[InputValue]        = Field(None, description="Entered value, None when unanswered")
    unit: Optional[str]                = Field(None, description="Optional unit (e.g. 'm²')")


ChecklistItem = Annotated[Union[ChoiceItem, InputItem], Field(discriminator="answer_kind")]


class AnswerValue(BaseModel):
    """
    Stored answer for a single item: 'value' for input items, 'answer' for choice items
    """
    model_config = ConfigDict(extra="forbid")

    value: Optional[InputValue]    = None
    answer: Optional[ChoiceAnswer] = None

    @model_validator(mode="after")
    def validate_single_shape(self) -> "AnswerValue":
        if "value" in self.model_fields_set and "answer" in self.model_fields_set:
            raise ValueError("an answer entry carries either 'value' or 'answer', never both")
        return self


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnswerRecord(BaseModel):
    """
    Persisted answers for one (user, subject) pair

    Wire format uses camelCase keys (schemaVersion, subjectId, lastModified, answers).
    Older records stored the subject under 'objectId'; both are accepted on read.
    """
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("schemaVersion", "schema_version"),
        serialization_alias="schemaVersion",
    )
    subject_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("subjectId", "objectId", "subject_id"),
        serialization_alias="subjectId",
    )
    last_modified: datetime = Field(
        default_factory=_utc_now,
        validation_alias=AliasChoices("lastModified", "last_modified"),
        serialization_alias="lastModified",
    )
    answers: Dict[str, AnswerValue] = Field(...)

    def to_wire(self) -> dict:
        """
        JSON-ready dict in wire format; unset answer fields are left out
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class ChecklistSection(BaseModel):
    section: str
    items: List[ChecklistItem]


class ChecklistTemplateResponse(BaseModel):
    schema_version: str = Field(..., serialization_alias="schemaVersion")
    sections: List[ChecklistSection]


class ImageInfo(BaseModel):
    filename: str
    url: str


class ImageListResponse(BaseModel):
    images: List[ImageInfo]


class ImageUploadResponse(BaseModel):
    success: bool
    imageUrl: str
    filename: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
