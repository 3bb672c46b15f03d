"""
Snippet API endpoints - save, list, fetch and delete the caller's snippets.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from ..models import SavedSnippet, SnippetCreate, SnippetFields
from ..storage import SnippetStore
from ..utils.auth import get_current_user_id, get_snippet_store

router = APIRouter(prefix="/snippets", tags=["snippets"])


class SnippetCreated(BaseModel):
    id: str


@router.post("", response_model=SnippetCreated, status_code=status.HTTP_201_CREATED)
async def create_snippet(
    snippet: SnippetFields,
    user_id: str = Depends(get_current_user_id),
    store: SnippetStore = Depends(get_snippet_store),
):
    """Save a snippet owned by the caller."""
    snippet_id = await store.create(
        SnippetCreate(**snippet.model_dump(), owner_id=user_id),
        caller_id=user_id,
    )
    return SnippetCreated(id=snippet_id)


@router.get("", response_model=List[SavedSnippet])
async def list_snippets(
    owner_id: Optional[str] = Query(None, description="Owner to list, defaults to the caller"),
    user_id: str = Depends(get_current_user_id),
    store: SnippetStore = Depends(get_snippet_store),
):
    """List snippets newest first."""
    return await store.list_for_owner(owner_id or user_id, caller_id=user_id)


@router.get("/{snippet_id}", response_model=SavedSnippet)
async def get_snippet(
    snippet_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SnippetStore = Depends(get_snippet_store),
):
    snippet = await store.get_by_id(snippet_id, caller_id=user_id)
    if snippet is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Snippet not found"
        )
    return snippet


@router.delete("/{snippet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_snippet(
    snippet_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SnippetStore = Depends(get_snippet_store),
):
    """Delete a snippet. Unknown ids succeed silently."""
    await store.delete_by_id(snippet_id, caller_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
