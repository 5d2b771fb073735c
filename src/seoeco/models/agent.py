"""Agent data models."""

from __future__ import annotations

from pydantic import BaseModel


class AgentDescriptor(BaseModel):
    id: str
    name: str
    description: str
    category: str = "core"
    required: bool = False


class AgentCategory(BaseModel):
    key: str
    name: str
    color: str = "white"
