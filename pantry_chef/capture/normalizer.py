"""Input normalization for raw capture state.

Combines the capture primitives the user produced (typed text, a captured or
selected image, a recorded voice clip) into exactly one AnalysisRequest:

- text only            -> TextRequest
- image (+ text)       -> ImageRequest
- audio                -> AudioRequest
- nothing              -> None (refusal, not an error)

Image media types are taken from the caller, the data URL prefix, or the
image's magic bytes, in that order. They are never assumed. Audio is always
tagged with the fixed clip type of the classifier contract.

Nothing in this module touches the network.
"""

import base64
import binascii
import re
from pathlib import Path
from typing import Optional

import filetype

from pantry_chef.models.models import (
    AnalysisRequest,
    AudioRequest,
    CaptureDeviceError,
    ImageRequest,
    InvalidCaptureError,
    TextRequest,
)
from pantry_chef.utils.config import config
from pantry_chef.utils.logger import logger

_DATA_URL_PATTERN = re.compile(r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+)?(?:;[\w=-]+)*?;base64,(?P<data>.*)$", re.DOTALL)


def decode_data_url(data_url: str) -> tuple[Optional[str], bytes]:
    """Split a ``data:[<mediatype>];base64,<data>`` URL into media type and bytes.

    Raises:
        InvalidCaptureError: If the URL is not base64 data or does not decode.
    """
    match = _DATA_URL_PATTERN.match(data_url.strip())
    if not match:
        raise InvalidCaptureError("Image data URL must be base64-encoded")
    return match.group("media_type"), _b64decode(match.group("data"), "image")


def _b64decode(data: str, what: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidCaptureError(f"Could not decode {what} data: {e}") from e


def detect_media_type(data: bytes) -> Optional[str]:
    """Guess the MIME type from magic bytes; None when unknown."""
    kind = filetype.guess(data)
    return kind.mime if kind is not None else None


def _check_size(data: bytes, limit_mb: int, what: str) -> None:
    size_mb = len(data) / (1024 * 1024)
    if size_mb > limit_mb:
        raise InvalidCaptureError(f"{what.capitalize()} too large ({size_mb:.2f}MB). Maximum size is {limit_mb}MB")


def _resolve_image(image: bytes | str, media_type: Optional[str]) -> tuple[bytes, str]:
    url_media_type = None
    if isinstance(image, str):
        if not image.startswith("data:"):
            raise InvalidCaptureError("Image must be raw bytes or a base64 data URL")
        url_media_type, image_bytes = decode_data_url(image)
    else:
        image_bytes = image

    if not image_bytes:
        raise InvalidCaptureError("Image capture is empty")

    resolved = media_type or url_media_type or detect_media_type(image_bytes)
    if not resolved:
        raise InvalidCaptureError("Unable to determine image media type")
    resolved = resolved.lower()
    if not resolved.startswith("image/"):
        raise InvalidCaptureError(f"Unsupported image media type: {resolved}")

    _check_size(image_bytes, config.MAX_IMAGE_SIZE_MB, "image")
    return image_bytes, resolved


def _resolve_audio(audio: bytes | str) -> bytes:
    audio_bytes = _b64decode(audio, "audio") if isinstance(audio, str) else audio
    if not audio_bytes:
        raise InvalidCaptureError("Audio capture is empty")
    _check_size(audio_bytes, config.MAX_AUDIO_SIZE_MB, "audio")
    return audio_bytes


def normalize_capture(
    text: Optional[str] = None,
    image: bytes | str | None = None,
    media_type: Optional[str] = None,
    audio: bytes | str | None = None,
) -> Optional[AnalysisRequest]:
    """Normalize raw capture state into one AnalysisRequest.

    Args:
        text: Typed ingredients. Blank text counts as absent.
        image: Raw image bytes or a ``data:image/...;base64,`` URL.
        media_type: Concrete image media type, when the capture source knows it.
        audio: Recorded clip as raw bytes or plain base64.

    Returns:
        The request, or None when no modality is present.

    Raises:
        InvalidCaptureError: Image and audio together, audio with text, an
            undeterminable image type, an oversize payload or over-long text.
    """
    text = text.strip() if text else None
    has_image = bool(image)
    has_audio = bool(audio)

    if not text and not has_image and not has_audio:
        logger.debug("Capture is empty, nothing to analyze")
        return None

    if has_image and has_audio:
        raise InvalidCaptureError("Image and audio cannot be submitted together")
    if has_audio and text:
        raise InvalidCaptureError("Voice queries cannot carry typed text")
    if text and len(text) > config.MAX_TEXT_LENGTH:
        raise InvalidCaptureError(f"Text exceeds {config.MAX_TEXT_LENGTH} characters")

    if has_image:
        image_bytes, resolved_type = _resolve_image(image, media_type)
        logger.debug(f"Normalized image capture: {len(image_bytes) / 1024:.1f}KB {resolved_type}")
        return ImageRequest(text=text, image=image_bytes, media_type=resolved_type)

    if has_audio:
        audio_bytes = _resolve_audio(audio)
        logger.debug(f"Normalized voice capture: {len(audio_bytes) / 1024:.1f}KB")
        return AudioRequest(audio=audio_bytes)

    return TextRequest(text=text)


def read_capture_file(path: str | Path) -> bytes:
    """Read a captured photo or recording from disk.

    Raises:
        CaptureDeviceError: If the file is missing or unreadable.
    """
    capture_path = Path(path)
    try:
        return capture_path.read_bytes()
    except OSError as e:
        raise CaptureDeviceError(f"Capture source unavailable: {capture_path} ({e.strerror or e})") from e
