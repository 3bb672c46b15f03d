"""
Shared test fixtures and configuration.
"""

import asyncio
import json
import os
from typing import Callable, List, Optional

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/codebricks_test_data")
os.environ.setdefault("LOG_FILE_ENABLED", "false")

from fastapi.testclient import TestClient  # noqa: E402

from codebricks.client.recorder import Microphone, MicrophonePermissionError, MicrophoneStream  # noqa: E402
from codebricks.config import Settings  # noqa: E402
from codebricks.llm.base import LLMMessage, LLMProvider, LLMResponse  # noqa: E402
from codebricks.main import create_app  # noqa: E402
from codebricks.utils.media import encode_data_uri  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 17
PNG_DATA_URI = encode_data_uri(PNG_BYTES, "image/png")
AUDIO_BYTES = b"\x1aE\xdf\xa3" + b"voice-chunk" * 8
AUDIO_DATA_URI = encode_data_uri(AUDIO_BYTES, "audio/webm")


class FakeProvider(LLMProvider):
    """In-memory provider returning a canned reply and recording calls."""

    def __init__(
        self,
        content: str = "",
        name: str = "gemini",
        supports_images: bool = True,
        supports_audio: bool = True,
        error: Optional[Exception] = None,
    ):
        super().__init__(api_key="test-key", model="fake-model")
        self.name = name
        self.supports_images = supports_images
        self.supports_audio = supports_audio
        self.content = content
        self.error = error
        self.calls: List[dict] = []

    def reply_with(self, payload: dict) -> "FakeProvider":
        self.content = json.dumps(payload)
        return self

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_output: bool = False,
        **kwargs
    ) -> LLMResponse:
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "json_output": json_output,
        })
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.content, model=self.model, usage={"total_tokens": 42})


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        secret_key="test-secret-key-for-testing",
        local_storage_path=str(tmp_path / "data"),
        log_file_enabled=False,
        log_console_enabled=False,
        gemini_api_key=None,
        deepseek_api_key=None,
        openai_api_key=None,
    )


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def app(settings, fake_provider):
    application = create_app(settings)
    application.state.llm_providers = {"gemini": fake_provider, "deepseek": None}
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register_and_login(client: TestClient, username: str, password: str = "testpass123") -> dict:
    response = client.post(
        "/auth/register",
        json={"username": username, "password": password, "display_name": username.title()},
    )
    assert response.status_code == 201, response.text
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    """Register a test user and return auth headers."""
    return register_and_login(client, "testuser")


class FakeStream(MicrophoneStream):
    mime_type = "audio/webm"

    def __init__(self, final_chunk: bytes = b"", stop_error: Optional[Exception] = None):
        self.on_chunk: Optional[Callable[[bytes], None]] = None
        self.final_chunk = final_chunk
        self.stop_error = stop_error
        self.stopped = False
        self.released = False

    def start(self, on_chunk):
        self.on_chunk = on_chunk

    def emit(self, chunk: bytes):
        self.on_chunk(chunk)

    async def stop(self):
        if self.stop_error is not None:
            raise self.stop_error
        if self.final_chunk:
            self.on_chunk(self.final_chunk)
        self.stopped = True

    def release(self):
        self.released = True


class FakeMicrophone(Microphone):

    def __init__(self, granted: bool = True, final_chunk: bytes = b"tail", stop_error: Optional[Exception] = None):
        self.granted = granted
        self.final_chunk = final_chunk
        self.stop_error = stop_error
        self.gate: Optional[asyncio.Event] = None
        self.streams: List[FakeStream] = []

    async def open(self):
        if self.gate is not None:
            await self.gate.wait()
        if not self.granted:
            raise MicrophonePermissionError("Permission denied by the user.")
        stream = FakeStream(self.final_chunk, self.stop_error)
        self.streams.append(stream)
        return stream
