"""Client module - API client and the session state behind the UI."""

from .api_client import CodeBricksClient
from .auth_session import ApiIdentityProvider, AuthSession, IdentityProvider
from .chat_session import ChatSession
from .recorder import (
    AudioRecorder,
    Microphone,
    MicrophonePermissionError,
    MicrophoneStream,
    RecordingState,
)

__all__ = [
    'CodeBricksClient',
    'ApiIdentityProvider', 'AuthSession', 'IdentityProvider',
    'ChatSession',
    'AudioRecorder', 'Microphone', 'MicrophonePermissionError', 'MicrophoneStream',
    'RecordingState',
]
