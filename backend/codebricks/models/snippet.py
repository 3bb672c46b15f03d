"""
Snippet Models - saved code plus metadata owned by one user.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def _dedupe_tags(tags: List[str]) -> List[str]:
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class SnippetFields(BaseModel):
    """Fields supplied by the user when saving a snippet."""
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, value: List[str]) -> List[str]:
        return _dedupe_tags(value)


class SnippetCreate(SnippetFields):
    """Snippet to be written to the store on behalf of ``owner_id``."""
    owner_id: str = ""


class SavedSnippet(SnippetFields):
    """Snippet as returned by the store, with store-assigned id and timestamp."""
    id: str
    owner_id: str
    created_at: datetime
