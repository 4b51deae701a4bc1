"""
Wire models for word items.

Both stores exchange words using the spreadsheet's camelCase column names.
Responses are validated here once; downstream code only sees domain Cards.
"""

from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from wordloop.domain.constants import DEFAULT_EASE_FACTOR, FIRST_STAGE
from wordloop.domain.models import Card


def parse_wire_date(v: Any) -> date | None:
    """Accept YYYY-MM-DD, full ISO timestamps, or blank cells."""
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    text = str(v).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if "T" in text or " " in text:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


class WordItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    content: str = ""
    type: str = "vocabulary"
    chinese_explain: str = ""
    phonics: str | None = None
    eng_explain: str | None = None
    tags: str | None = None
    supplementary: str | None = None
    example: str | None = None
    synonyms: str | None = None
    antonyms: str | None = None
    note: str | None = None
    status: str | None = None
    lesson_date: date | None = None
    created_date: date | None = None

    review_stage: int = FIRST_STAGE
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    last_review: date | None = None
    next_review: date | None = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> str:
        # Sheet rows often come back with numeric ids.
        return str(v)

    @field_validator(
        "lesson_date", "created_date", "last_review", "next_review", mode="before"
    )
    @classmethod
    def coerce_date(cls, v: Any) -> date | None:
        return parse_wire_date(v)

    @field_validator(
        "phonics",
        "eng_explain",
        "tags",
        "supplementary",
        "example",
        "synonyms",
        "antonyms",
        "note",
        "status",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("review_stage", "ease_factor", "interval_days", mode="before")
    @classmethod
    def blank_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        # Empty spreadsheet cells mean "never scheduled".
        if v is None or (isinstance(v, str) and not v.strip()):
            return cls.model_fields[info.field_name].default
        return v

    @property
    def is_deleted(self) -> bool:
        return (self.status or "").lower() == "deleted"

    def to_card(self) -> Card:
        return Card(**self.model_dump())

    @classmethod
    def from_card(cls, card: Card) -> "WordItem":
        return cls(**asdict(card))


class StoreSuccess(BaseModel):
    ok: Literal[True]
    result: Any = None


class StoreFailure(BaseModel):
    ok: Literal[False]
    error: str = Field(default="unknown error")


StoreResponse = StoreSuccess | StoreFailure
