"""
Chat Session - the in-memory conversation behind the chat view.

Messages are never persisted. A failed send leaves the conversation, the
draft and the attachments untouched so the user can retry.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .recorder import AudioRecorder, RecordingState
from ..core.errors import CodeBricksError, Notification
from ..flows import ChatHistoryItem, ChatWithAiInput, ChatWithAiOutput
from ..flows.base import format_validation_errors
from ..models import ChatMessage
from ..utils.media import ALLOWED_IMAGE_TYPES, encode_data_uri

logger = logging.getLogger(__name__)

ChatHandler = Callable[[ChatWithAiInput], Awaitable[ChatWithAiOutput]]


class ChatSession:
    """
    Conversation state plus the send action.

    Args:
        handler: Coroutine that runs the chat flow, e.g. ``CodeBricksClient.chat``
        recorder: Optional voice recorder
        notify: Callback receiving user-facing notifications
    """

    def __init__(
        self,
        handler: ChatHandler,
        recorder: Optional[AudioRecorder] = None,
        notify: Optional[Callable[[Notification], None]] = None,
    ):
        self.handler = handler
        self.recorder = recorder
        self.notify = notify
        self.messages: List[ChatMessage] = []
        self.draft = ""
        self.pending_image: Optional[str] = None
        self.busy = False

    def _emit(self, notification: Notification) -> Notification:
        if self.notify:
            self.notify(notification)
        return notification

    def attach_image(self, content: bytes, mime_type: str) -> Optional[Notification]:
        """Attach an image to the next message. Returns a notification if rejected."""
        mime_type = mime_type.lower()
        if mime_type not in ALLOWED_IMAGE_TYPES:
            return self._emit(Notification(
                title="Invalid File Type",
                description="Please select an image file (JPEG, PNG, WebP or GIF).",
                variant="destructive",
            ))
        if not content:
            return self._emit(Notification(
                title="Invalid File",
                description="The selected image is empty.",
                variant="destructive",
            ))
        self.pending_image = encode_data_uri(content, mime_type)
        return None

    def remove_image(self) -> None:
        self.pending_image = None

    def _history(self) -> List[ChatHistoryItem]:
        return [
            ChatHistoryItem(sender=m.sender, text=m.text, image_data_uri=m.image_data_uri)
            for m in self.messages
        ]

    async def send(self, text: Optional[str] = None) -> Optional[Notification]:
        """
        Send the draft with any attached image and recorded audio.

        Sending while recording stops the recording and does not send; the
        clip is then attached and the user sends again.

        Returns:
            None on success, otherwise the notification shown to the user
        """
        if self.busy:
            return None
        if text is not None:
            self.draft = text

        recorder = self.recorder
        if recorder is not None:
            if recorder.state == RecordingState.RECORDING:
                try:
                    await recorder.stop()
                except Exception as e:
                    logger.error(f"Stopping the recording failed: {e}")
                    return self._emit(Notification(
                        title="Recording failed",
                        description="The voice message could not be saved. Please record it again.",
                        variant="destructive",
                    ))
                return self._emit(Notification(
                    title="Recording stopped",
                    description="Your voice message is attached. Press send again to send it.",
                ))
            if recorder.state == RecordingState.REQUESTING_PERMISSION:
                return self._emit(Notification(
                    title="Microphone not ready",
                    description="Waiting for microphone access.",
                ))
        audio = recorder.audio_data_uri if recorder is not None else None

        message = self.draft.strip()
        if not message and not self.pending_image and not audio:
            return self._emit(Notification(
                title="Empty message",
                description="Type a message, attach an image or record audio.",
                variant="destructive",
            ))

        try:
            chat_input = ChatWithAiInput(
                history=self._history(),
                message=message or None,
                image_data_uri=self.pending_image,
                audio_data_uri=audio,
            )
        except PydanticValidationError as e:
            return self._emit(Notification(
                title="Invalid input",
                description=format_validation_errors(e),
                variant="destructive",
            ))

        self.busy = True
        try:
            result = await self.handler(chat_input)
        except CodeBricksError as e:
            logger.warning(f"Chat request failed: {e.description}")
            notification = Notification.from_error(e)
            return self._emit(notification.model_copy(update={"title": "AI Chat Error"}))
        finally:
            self.busy = False

        self.messages.append(ChatMessage(
            sender="user",
            text=message or None,
            image_data_uri=self.pending_image,
            audio_data_uri=audio,
        ))
        self.messages.append(ChatMessage(sender="assistant", text=result.response))

        self.draft = ""
        self.pending_image = None
        if recorder is not None:
            recorder.discard_audio()
        return None

    def close(self) -> None:
        if self.recorder is not None:
            self.recorder.close()
