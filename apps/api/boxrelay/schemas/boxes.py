"""Data contracts for box messages and endpoints."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class JoinMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Literal["join"] = "join"
    box_id: str = Field(..., alias="boxId", description="Box to attach this connection to")


class TextUpdateMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["textUpdate"] = "textUpdate"
    text: str = Field(..., description="Full replacement text for the box")


class UserCountMessage(BaseModel):
    type: Literal["userCount"] = "userCount"
    count: int = Field(..., ge=0, description="Connections currently viewing the box")


class BoxTextResponse(BaseModel):
    text: str


class BoxNotFoundResponse(BaseModel):
    error: str = "Textbox not found"
