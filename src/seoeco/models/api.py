"""Backend API data models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    email: str


class AuthResponse(BaseModel):
    token: str
    user: User


class ResultItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    version: int
    artifact_url: str = Field(alias="cloudinaryUrl")
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class ResultsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    results: list[ResultItem] = []
    url: Optional[str] = None


class BlogRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    keywords: list[str] = []
    target_length: int = Field(default=1500, alias="targetLength")
    tone: str = "professional"
    target_audience: str = Field(default="general", alias="targetAudience")
    background: str = ""
    include_intro: bool = Field(default=True, alias="includeIntro")
    include_conclusion: bool = Field(default=True, alias="includeConclusion")
    include_faq: bool = Field(default=False, alias="includeFAQ")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


BLOG_TONES = ["professional", "casual", "friendly", "authoritative", "conversational"]
BLOG_AUDIENCES = ["general", "beginners", "intermediate", "experts", "business"]
