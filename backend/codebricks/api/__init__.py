"""API module."""

from .auth import router as auth_router
from .catalog import router as catalog_router
from .chat import router as chat_router
from .flows import router as flows_router
from .snippets import router as snippets_router

__all__ = ['auth_router', 'catalog_router', 'chat_router', 'flows_router', 'snippets_router']
