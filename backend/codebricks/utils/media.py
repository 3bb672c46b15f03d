"""
Data URI helpers for inline image and audio attachments.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

from ..core.errors import InputValidationError

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>[A-Za-z0-9+/=\s]*)$",
    re.DOTALL,
)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}


@dataclass(frozen=True)
class MediaPart:
    """A single inline media attachment."""
    mime_type: str
    data: str  # base64 payload without the data: prefix

    @property
    def kind(self) -> str:
        return self.mime_type.split("/", 1)[0]

    @property
    def subtype(self) -> str:
        return self.mime_type.split("/", 1)[1]

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def encode_data_uri(content: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


def parse_data_uri(uri: str, expected_kind: Optional[str] = None) -> MediaPart:
    """
    Parse a base64 data URI.

    Args:
        uri: ``data:<mime>;base64,<payload>`` string
        expected_kind: Optional top-level media type the URI must have ("image", "audio")

    Returns:
        MediaPart with the mime type and base64 payload

    Raises:
        InputValidationError: If the URI is malformed or of the wrong kind
    """
    match = _DATA_URI_RE.match(uri.strip()) if uri else None
    if match is None:
        raise InputValidationError("Attachment must be a base64 data URI (data:<mime>;base64,...).")

    mime_type = match.group("mime").lower()
    data = re.sub(r"\s+", "", match.group("data"))
    if not data:
        raise InputValidationError("Attachment data URI is empty.")
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise InputValidationError("Attachment data URI is not valid base64.")

    part = MediaPart(mime_type=mime_type, data=data)
    if expected_kind and part.kind != expected_kind:
        raise InputValidationError(f"Expected an {expected_kind} attachment, got {mime_type}.")
    return part


def decode_data_uri(uri: str) -> bytes:
    """Return the raw bytes of a data URI."""
    return base64.b64decode(parse_data_uri(uri).data)
