"""Storage module - provides interface and implementations for data persistence."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .user_storage import UserStorage
from .snippet_store import SnippetStore

__all__ = ['StorageInterface', 'LocalStorage', 'UserStorage', 'SnippetStore']
