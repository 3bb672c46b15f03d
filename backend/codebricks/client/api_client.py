"""
CodeBricks API Client - async HTTP client for the CodeBricks service.

Flow input is validated locally before any request is sent, and every error
response is rebuilt into the matching ``CodeBricksError`` subclass.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..core.errors import CodeBricksError, error_from_payload
from ..flows import CODE_FLOWS, chat_flow, ChatWithAiInput, ChatWithAiOutput
from ..models import AIModel, Catalog, SavedSnippet, SnippetFields, UserIdentity

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class CodeBricksClient:
    """
    Client for the CodeBricks HTTP API.

    Usage:
        async with CodeBricksClient("http://localhost:8000") as client:
            await client.login("alice", "secret")
            result = await client.run_flow("explain-code", {...})
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        origin: Optional[str] = None,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Service URL
            token: Bearer token from a previous login
            origin: Origin header sent with sign-in requests
            timeout: Request timeout in seconds
            transport: Custom httpx transport (e.g. ``httpx.ASGITransport`` in tests)
        """
        self.token = token
        self.origin = origin
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "CodeBricksClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.origin:
            headers["Origin"] = self.origin
        return headers

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        if not response.is_error:
            return
        try:
            payload = response.json()
        except json.JSONDecodeError:
            payload = {"description": response.text or response.reason_phrase}
        if not isinstance(payload, dict):
            payload = {"description": str(payload)}
        raise error_from_payload(payload, response.status_code)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Request {method} {path} failed: {e}")
            raise CodeBricksError(
                f"Could not reach the CodeBricks service: {e}", title="Network error"
            ) from e
        self._raise_for_error(response)
        return response

    async def _request_model(self, model: Type[ModelT], method: str, path: str, **kwargs) -> ModelT:
        response = await self._request(method, path, **kwargs)
        return model.model_validate(response.json())

    # Auth

    async def register(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        response = await self._request("POST", "/auth/register", json={
            "username": username,
            "password": password,
            "email": email,
            "display_name": display_name,
        })
        return response.json()

    async def login(self, username: str, password: str) -> str:
        """Sign in and keep the access token for later requests."""
        response = await self._request(
            "POST", "/auth/login", json={"username": username, "password": password}
        )
        self.token = response.json()["access_token"]
        return self.token

    async def me(self) -> UserIdentity:
        return await self._request_model(UserIdentity, "GET", "/auth/me")

    async def logout(self) -> None:
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self.token = None

    # Flows

    async def catalog(self) -> Catalog:
        return await self._request_model(Catalog, "GET", "/catalog")

    @staticmethod
    def _model_params(ai_model: Optional[AIModel]) -> Dict[str, str]:
        return {"ai_model": AIModel(ai_model).value} if ai_model else {}

    async def run_flow(
        self,
        name: str,
        data: Any,
        ai_model: Optional[AIModel] = None,
    ) -> BaseModel:
        """
        Run a code flow on the service.

        Args:
            name: Flow name, e.g. "fix-bugs"
            data: Flow input as a dict or input model
            ai_model: Model to run on, defaults to the service default

        Returns:
            The flow's output model

        Raises:
            InputValidationError: Invalid input, before any request is sent
            ProviderError: The model failed or is unavailable
        """
        flow = CODE_FLOWS.get(name)
        if flow is None:
            raise ValueError(f"Unknown flow: {name}")
        flow_input = flow.validate_input(data)
        return await self._request_model(
            flow.output_model,
            "POST",
            f"/flows/{name}",
            json=flow_input.model_dump(mode="json", by_alias=True),
            params=self._model_params(ai_model),
        )

    async def chat(self, data: Any, ai_model: Optional[AIModel] = None) -> ChatWithAiOutput:
        chat_input: ChatWithAiInput = chat_flow.validate_input(data)
        return await self._request_model(
            ChatWithAiOutput,
            "POST",
            "/chat/message",
            json=chat_input.model_dump(mode="json", by_alias=True, exclude_none=True),
            params=self._model_params(ai_model),
        )

    # Snippets

    async def create_snippet(self, snippet: SnippetFields) -> str:
        response = await self._request(
            "POST", "/snippets", json=snippet.model_dump(mode="json")
        )
        return response.json()["id"]

    async def list_snippets(self, owner_id: Optional[str] = None) -> List[SavedSnippet]:
        params = {"owner_id": owner_id} if owner_id else {}
        response = await self._request("GET", "/snippets", params=params)
        return [SavedSnippet.model_validate(item) for item in response.json()]

    async def get_snippet(self, snippet_id: str) -> Optional[SavedSnippet]:
        try:
            response = await self._client.get(f"/snippets/{snippet_id}", headers=self._headers())
        except httpx.HTTPError as e:
            raise CodeBricksError(
                f"Could not reach the CodeBricks service: {e}", title="Network error"
            ) from e
        if response.status_code == 404:
            return None
        self._raise_for_error(response)
        return SavedSnippet.model_validate(response.json())

    async def delete_snippet(self, snippet_id: str) -> None:
        await self._request("DELETE", f"/snippets/{snippet_id}")
