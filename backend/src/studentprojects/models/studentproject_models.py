from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PublicationState(str, Enum):
    draft = "draft"
    public = "public"
    deleted = "deleted"
    unknown_legacy = "unknown-legacy"


class ProjectRecord(BaseModel):
    id: str
    name: str
    type: str
    topic_en: Optional[str] = None
    topic_de: Optional[str] = None
    location: List[List[str]] = Field(default_factory=list)
    thumbnail: str = ""
    authors: List[str] = Field(default_factory=list)
    credit: str = ""
    # Explicit meta values are kept verbatim, so this is not the enum.
    published: str = PublicationState.public.value
    parent: str = ""
    # Reserved for nested projects; the crawl never fills it.
    children: Dict[str, Any] = Field(default_factory=dict)


class ContentBlock(BaseModel):
    block_id: str
    type: str
    content: Optional[str] = None
    formatted_content: str = ""
    error: Optional[str] = None


class ProjectContent(BaseModel):
    content: Dict[str, ContentBlock] = Field(default_factory=dict)
    formatted_content: str = ""


class ProjectView(ProjectRecord):
    content: Dict[str, ContentBlock] = Field(default_factory=dict)
    formatted_content: str = ""
