"""Data models for generated articles and revision verdicts."""

import os
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

Language = Literal["en", "es"]
SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "es")


def new_identifier() -> str:
    """Return a fresh opaque token for articles and sections."""
    return os.urandom(16).hex()


class EditKind(str, Enum):
    """Kind of edit a reader proposes."""

    FIX = "fix"
    ADD = "add"


class ArticleSection(BaseModel):
    section_id: str = Field(..., min_length=1)
    heading: str
    body: str


class QuizQuestion(BaseModel):
    """Multiple-choice question; `correct_option_index` points into `options`."""

    question: str
    options: List[str] = Field(..., min_length=1)
    correct_option_index: int

    @model_validator(mode="after")
    def _check_index(self) -> "QuizQuestion":
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError(
                f"correct_option_index {self.correct_option_index} is outside "
                f"0..{len(self.options) - 1}"
            )
        return self

    def is_correct(self, option_index: int) -> bool:
        return option_index == self.correct_option_index


class Article(BaseModel):
    """A generated encyclopedia article, the unit of display and history."""

    identifier: str = Field(..., frozen=True)
    topic: str
    summary: str
    sections: List[ArticleSection] = Field(..., min_length=1)
    image_prompts: List[str] = Field(default_factory=list)
    generated_image: Optional[str] = Field(
        None, description="data: URI, present only when image synthesis succeeded."
    )
    primary_image_url: Optional[str] = None
    secondary_image_url: Optional[str] = None
    original_style_snippet: str = Field(
        ..., description="Old-encyclopedia style paragraph shown for comparison."
    )
    last_updated: str
    change_log: str
    fun_fact: str
    study_tips: List[str] = Field(default_factory=list)
    quiz: List[QuizQuestion] = Field(default_factory=list)
    related_topics: List[str] = Field(default_factory=list)
    language: Language

    @model_validator(mode="after")
    def _check_unique_sections(self) -> "Article":
        seen: set[str] = set()
        for section in self.sections:
            if section.section_id in seen:
                raise ValueError(f"duplicate section_id: {section.section_id}")
            seen.add(section.section_id)
        return self


class RevisionVerdict(BaseModel):
    """Accept/reject decision for a proposed edit.

    `new_content` may be present on a rejected verdict; callers ignore it then.
    """

    accepted: bool
    new_content: Optional[str] = None
    reasoning: str
