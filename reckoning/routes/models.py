"""Pydantic request bodies for API endpoints."""

from typing import Any, Literal

from pydantic import BaseModel


class ClassifyBody(BaseModel):
    content: str
    fallback: bool = False


class ResolveEvolutionBody(BaseModel):
    status: Literal["approved", "edited", "refused"]
    dm_notes: str | None = None
    changes: dict[str, Any] | None = None


class UpdateEvolutionBody(BaseModel):
    trait: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    dimension: str | None = None
    old_value: float | None = None
    new_value: float | None = None
    reason: str | None = None
    dm_notes: str | None = None


class NotesBody(BaseModel):
    dm_notes: str | None = None
