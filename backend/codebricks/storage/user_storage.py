"""
User Storage - Persistent storage for user accounts using StorageInterface.
"""

import asyncio
import json
import logging
from typing import Optional, Dict
from datetime import datetime, timezone

from .interface import StorageInterface
from ..core.errors import CodeBricksError, InputValidationError

logger = logging.getLogger(__name__)


class UserStorage:
    """
    Manages persistent storage of user data.
    Uses one JSON file per user in the users/ directory plus a username index.
    """

    def __init__(self, storage: StorageInterface):
        """
        Initialize user storage.

        Args:
            storage: StorageInterface implementation (typically LocalStorage)
        """
        self.storage = storage
        self.users_dir = "users"
        self._username_index_path = f"{self.users_dir}/username_index.json"
        self._index_lock = asyncio.Lock()

    def _user_path(self, user_id: str) -> str:
        return f"{self.users_dir}/{user_id}.json"

    async def _load_username_index(self) -> Dict[str, str]:
        """Load username to user_id index mapping."""
        content = await self.storage.load(self._username_index_path)
        if content is None:
            return {}
        return json.loads(content.decode('utf-8'))

    async def get_user(self, user_id: str) -> Optional[Dict]:
        """
        Get user by user_id.

        Returns:
            Optional[Dict]: User data or None if not found
        """
        content = await self.storage.load(self._user_path(user_id))
        if content is None:
            return None

        user_data = json.loads(content.decode('utf-8'))
        for key in ('created_at', 'updated_at'):
            if key in user_data:
                user_data[key] = datetime.fromisoformat(user_data[key])
        return user_data

    async def get_user_by_username(self, username: str) -> Optional[Dict]:
        """Get user by username, or None if not registered."""
        index = await self._load_username_index()
        user_id = index.get(username)
        if user_id is None:
            return None
        return await self.get_user(user_id)

    async def create_user(
        self,
        user_id: str,
        username: str,
        hashed_password: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Dict:
        """
        Create a new user.

        Raises:
            InputValidationError: If the username is already registered
            CodeBricksError: If the user record or the username index could not be written

        Returns:
            Dict: Created user data
        """
        now = datetime.now(timezone.utc)
        user_data = {
            "user_id": user_id,
            "username": username,
            "email": email,
            "display_name": display_name,
            "photo_url": photo_url,
            "hashed_password": hashed_password,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
            "is_active": True,
        }

        async with self._index_lock:
            index = await self._load_username_index()
            if username in index:
                raise InputValidationError("Username already registered")

            content = json.dumps(user_data, indent=2, ensure_ascii=False)
            if not await self.storage.save(self._user_path(user_id), content):
                raise CodeBricksError("Could not save the user record.", title="Registration failed")

            index[username] = user_id
            if not await self.storage.save(self._username_index_path, json.dumps(index, indent=2)):
                await self.storage.delete(self._user_path(user_id))
                raise CodeBricksError("Could not update the username index.", title="Registration failed")

        logger.info("User created", extra={"extra_fields": {"user_id": user_id}})

        user_data['created_at'] = now
        user_data['updated_at'] = now
        return user_data
