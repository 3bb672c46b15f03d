"""
Snippet Store - per-user saved snippets on top of StorageInterface.

Documents live under snippets/<owner_id>/<snippet_id>.json, so listing an
owner's snippets only ever reads that owner's partition. An id -> owner index
resolves lookups and deletes by id. Every operation checks that the caller is
the owner before touching the partition.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .interface import StorageInterface
from ..core.errors import CodeBricksError, InputValidationError, PermissionDeniedError
from ..models.snippet import SavedSnippet, SnippetCreate

logger = logging.getLogger(__name__)


class SnippetStore:
    """CRUD for saved snippets, scoped by owner id and ordered by creation time."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.snippets_dir = "snippets"
        self._index_path = f"{self.snippets_dir}/owner_index.json"
        self._index_lock = asyncio.Lock()

    def _snippet_path(self, owner_id: str, snippet_id: str) -> str:
        return f"{self.snippets_dir}/{owner_id}/{snippet_id}.json"

    async def _load_index(self) -> Dict[str, str]:
        content = await self.storage.load(self._index_path)
        if content is None:
            return {}
        return json.loads(content.decode('utf-8'))

    async def _save_index(self, index: Dict[str, str]) -> None:
        if not await self.storage.save(self._index_path, json.dumps(index, indent=2)):
            raise CodeBricksError("Could not update the snippet index.", title="Storage error")

    @staticmethod
    def _authorize(owner_id: str, caller_id: Optional[str]) -> None:
        if not caller_id or caller_id != owner_id:
            raise PermissionDeniedError("Missing or insufficient permissions.")

    async def create(self, snippet: SnippetCreate, caller_id: str) -> str:
        """
        Save a new snippet.

        Args:
            snippet: Snippet fields including the owner id
            caller_id: Authenticated user performing the write

        Returns:
            str: The new snippet id

        Raises:
            InputValidationError: If the owner id is missing
            PermissionDeniedError: If the caller is not the owner
        """
        owner_id = (snippet.owner_id or "").strip()
        if not owner_id:
            raise InputValidationError("User ID is required to save a snippet.")
        self._authorize(owner_id, caller_id)

        snippet_id = uuid.uuid4().hex
        saved = SavedSnippet(
            id=snippet_id,
            owner_id=owner_id,
            created_at=datetime.now(timezone.utc),
            **snippet.model_dump(exclude={"owner_id"}),
        )

        async with self._index_lock:
            ok = await self.storage.save(
                self._snippet_path(owner_id, snippet_id), saved.model_dump_json(indent=2)
            )
            if not ok:
                raise CodeBricksError("Could not save snippet to storage.", title="Save Failed")
            index = await self._load_index()
            index[snippet_id] = owner_id
            await self._save_index(index)

        logger.info(
            "Snippet created",
            extra={"extra_fields": {"snippet_id": snippet_id, "owner_id": owner_id}}
        )
        return snippet_id

    async def list_for_owner(self, owner_id: str, caller_id: str) -> List[SavedSnippet]:
        """
        List an owner's snippets, newest first.

        Returns:
            List[SavedSnippet]: Possibly empty

        Raises:
            PermissionDeniedError: If the caller is not that owner
        """
        self._authorize(owner_id, caller_id)

        snippets = []
        for path in await self.storage.list(f"{self.snippets_dir}/{owner_id}", pattern="*.json"):
            content = await self.storage.load(path)
            if content is None:
                # deleted between list and load
                continue
            snippet = SavedSnippet.model_validate_json(content)
            if snippet.owner_id == owner_id:
                snippets.append(snippet)

        snippets.sort(key=lambda s: (s.created_at, s.id), reverse=True)
        return snippets

    async def get_by_id(self, snippet_id: str, caller_id: str) -> Optional[SavedSnippet]:
        """Get one snippet, or None if it does not exist."""
        owner_id = (await self._load_index()).get(snippet_id)
        if owner_id is None:
            return None
        self._authorize(owner_id, caller_id)

        content = await self.storage.load(self._snippet_path(owner_id, snippet_id))
        if content is None:
            return None
        return SavedSnippet.model_validate_json(content)

    async def delete_by_id(self, snippet_id: str, caller_id: str) -> None:
        """
        Delete a snippet. Deleting an id that no longer exists is a no-op.

        Raises:
            PermissionDeniedError: If the caller is not the owner
        """
        async with self._index_lock:
            index = await self._load_index()
            owner_id = index.get(snippet_id)
            if owner_id is None:
                logger.debug(f"Delete of unknown snippet {snippet_id} ignored")
                return
            self._authorize(owner_id, caller_id)

            await self.storage.delete(self._snippet_path(owner_id, snippet_id))
            del index[snippet_id]
            await self._save_index(index)

        logger.info(
            "Snippet deleted",
            extra={"extra_fields": {"snippet_id": snippet_id, "owner_id": owner_id}}
        )
