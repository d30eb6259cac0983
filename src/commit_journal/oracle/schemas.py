"""Pydantic schemas for the structured output of the oracles.

Models answer in camelCase or snake_case depending on the prompt they
half-remember; both are accepted.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .normalize import normalize_callout_type, normalize_impact

DEFAULT_DESCRIPTION = "Core file component"
DEFAULT_SUMMARY = "Evolutionary architecture analysis"


def _list_or_empty(value: Any) -> Any:
    return [] if value is None else value


class JourneyPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: str = DEFAULT_DESCRIPTION
    is_hotspot: bool = Field(
        default=False, validation_alias=AliasChoices("is_hotspot", "isHotspot")
    )
    evolutionary_lessons: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("evolutionary_lessons", "evolutionaryLessons"),
    )
    reinforcement: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_DESCRIPTION
        return value

    @field_validator("evolutionary_lessons", mode="before")
    @classmethod
    def _lessons(cls, value: Any) -> Any:
        return _list_or_empty(value)


class LessonPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = ""
    lesson: str = ""
    impact: str = "medium"
    affected_files: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("affected_files", "affectedFiles"),
    )

    @field_validator("impact", mode="before")
    @classmethod
    def _impact(cls, value: Any) -> str:
        return normalize_impact(value)

    @field_validator("affected_files", mode="before")
    @classmethod
    def _files(cls, value: Any) -> Any:
        return _list_or_empty(value)


class NamedPiecePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    description: str = ""
    files: list[str] = Field(default_factory=list)

    @field_validator("files", mode="before")
    @classmethod
    def _files(cls, value: Any) -> Any:
        return _list_or_empty(value)


class SynthesisPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: str = DEFAULT_SUMMARY
    named_pieces: list[NamedPiecePayload] = Field(
        default_factory=list,
        validation_alias=AliasChoices("named_pieces", "namedPieces"),
    )
    architectural_lessons: list[LessonPayload] = Field(
        default_factory=list,
        validation_alias=AliasChoices("architectural_lessons", "architecturalLessons"),
    )

    @field_validator("summary", mode="before")
    @classmethod
    def _default_summary(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_SUMMARY
        return value

    @field_validator("named_pieces", "architectural_lessons", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return _list_or_empty(value)


class CalloutPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "learning"
    title: str = ""
    description: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> str:
        return normalize_callout_type(value)


class CommitAnalysisPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: str = Field(
        default="", validation_alias=AliasChoices("summary", "aiSummary", "ai_summary")
    )
    key_decisions: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("key_decisions", "keyDecisions"),
    )
    architectural_callouts: list[CalloutPayload] = Field(
        default_factory=list,
        validation_alias=AliasChoices("architectural_callouts", "architecturalCallouts"),
    )

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("key_decisions", mode="before")
    @classmethod
    def _decisions(cls, value: Any) -> Any:
        # Models sometimes answer with one string or a list of objects.
        if not isinstance(value, list):
            return []
        return [item if isinstance(item, str) else json.dumps(item) for item in value if item]

    @field_validator("architectural_callouts", mode="before")
    @classmethod
    def _callouts(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]
