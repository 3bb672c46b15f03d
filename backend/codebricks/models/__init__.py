"""Models module."""

from .user import User, UserCreate, UserIdentity, LoginRequest, Token, TokenData
from .snippet import SnippetFields, SnippetCreate, SavedSnippet
from .chat import ChatMessage
from .catalog import (
    AIModel,
    Catalog,
    CatalogOption,
    OptimizationGoal,
    TestingFramework,
    PROGRAMMING_LANGUAGES,
    normalize_language,
)

__all__ = [
    'User', 'UserCreate', 'UserIdentity', 'LoginRequest', 'Token', 'TokenData',
    'SnippetFields', 'SnippetCreate', 'SavedSnippet',
    'ChatMessage',
    'AIModel', 'Catalog', 'CatalogOption', 'OptimizationGoal', 'TestingFramework',
    'PROGRAMMING_LANGUAGES', 'normalize_language',
]
