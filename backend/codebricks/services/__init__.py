"""Services module - provides external service integrations."""

from .transcription import TranscriptionService

__all__ = ['TranscriptionService']
