"""
Auth Session - who is signed in, and the interactive sign-in flow.

The session delegates identity and persistence to an ``IdentityProvider`` and
turns every failure into a ``Notification`` instead of raising to the caller.
"""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Tuple

from .api_client import CodeBricksClient
from ..core.errors import AuthFlowError, AuthFlowReason, CodeBricksError, Notification
from ..models import UserIdentity

logger = logging.getLogger(__name__)

CredentialsPrompt = Callable[[], Awaitable[Optional[Tuple[str, str]]]]


class IdentityProvider(ABC):
    """Source of the signed-in identity."""

    @abstractmethod
    async def current_user(self) -> Optional[UserIdentity]:
        """Resolve the persisted identity, if any."""
        pass

    @abstractmethod
    async def sign_in_with_popup(self) -> UserIdentity:
        """
        Run the interactive sign-in.

        Raises:
            AuthFlowError: With the reason the sign-in failed
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass


class ApiIdentityProvider(IdentityProvider):
    """
    Identity provider backed by the CodeBricks ``/auth`` endpoints.

    The "popup" is an async credentials prompt that returns
    ``(username, password)``, or None when the user closes it.
    """

    def __init__(self, client: CodeBricksClient, prompt: CredentialsPrompt):
        self.client = client
        self.prompt = prompt

    async def current_user(self) -> Optional[UserIdentity]:
        if not self.client.token:
            return None
        try:
            return await self.client.me()
        except AuthFlowError:
            # expired or revoked token
            self.client.token = None
            return None

    async def sign_in_with_popup(self) -> UserIdentity:
        credentials = await self.prompt()
        if credentials is None:
            raise AuthFlowError(AuthFlowReason.POPUP_CLOSED)

        username, password = credentials
        await self.client.login(username, password)
        return await self.client.me()

    async def sign_out(self) -> None:
        if self.client.token:
            await self.client.logout()


class AuthSession:
    """
    Client-side auth state: the current identity and a loading flag.

    ``loading`` is True while the identity is first resolved and during an
    explicit sign-in or sign-out.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        notify: Optional[Callable[[Notification], None]] = None,
    ):
        self.provider = provider
        self.notify = notify
        self.user: Optional[UserIdentity] = None
        self.loading = True
        self.last_error: Optional[Notification] = None
        self._sign_in_pending = False

    def _emit(self, notification: Notification) -> None:
        if notification.variant == "destructive":
            self.last_error = notification
        if self.notify:
            self.notify(notification)

    async def initialize(self) -> Optional[UserIdentity]:
        """Resolve the persisted identity once at startup."""
        self.loading = True
        try:
            self.user = await self.provider.current_user()
        except CodeBricksError as e:
            logger.warning(f"Could not resolve the current user: {e}")
            self.user = None
            self._emit(Notification.from_error(e))
        finally:
            self.loading = False
        return self.user

    async def sign_in(self) -> Optional[UserIdentity]:
        """
        Run the interactive sign-in.

        Returns:
            The signed-in identity, or None if sign-in failed or was cancelled
        """
        if self._sign_in_pending:
            self._emit(Notification.from_error(
                AuthFlowError(AuthFlowReason.CANCELLED_POPUP_REQUEST)
            ))
            return None

        self._sign_in_pending = True
        self.loading = True
        self.last_error = None
        try:
            self.user = await self.provider.sign_in_with_popup()
        except CodeBricksError as e:
            reason = getattr(e, "reason", None)
            logger.info(
                "Sign-in failed",
                extra={"extra_fields": {"reason": reason.value if reason else e.code}}
            )
            self._emit(Notification.from_error(e))
            return None
        finally:
            self._sign_in_pending = False
            self.loading = False

        self._emit(Notification(title="Signed in successfully!"))
        return self.user

    async def sign_out(self) -> None:
        """Sign out. The local identity is cleared even if the request fails."""
        self.loading = True
        try:
            await self.provider.sign_out()
        except CodeBricksError as e:
            self._emit(Notification.from_error(e).model_copy(update={"title": "Sign Out Failed"}))
        else:
            self._emit(Notification(title="Signed out successfully."))
        finally:
            self.user = None
            self.loading = False
