import io
import base64
import asyncio
import logging
from typing import Optional

from PIL import Image

from healthai.config import (
    ACCEPTED_IMAGE_TYPES, FILE_READ_ERROR_MESSAGE, MAX_IMAGE_SIZE_BYTES, PREVIEW_SIZE, RASTER_IMAGE_TYPES,
)
from healthai.models import ErrorCode, FieldError

logger = logging.getLogger(__name__)

IMAGE_FIELD = "medicalImage"


class ImageIntakeError(Exception):
    """Rejection of a selected medical image, bound to the image field only."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def field(self) -> str:
        return IMAGE_FIELD

    @property
    def notify(self) -> bool:
        # Read failures are I/O problems, not user mistakes, so they also get a toast.
        return self.code == ErrorCode.FILE_READ_ERROR

    def to_field_error(self) -> FieldError:
        return FieldError(code=self.code, message=self.message)


class AcceptedImage:
    """Token for an image that passed size/type checks. Holds raw bytes only."""

    def __init__(self, filename: str, media_type: str, content: bytes):
        self.filename = filename
        self.media_type = media_type
        self.content = content

    @property
    def size(self) -> int:
        return len(self.content)

    def __repr__(self):
        return f"AcceptedImage({self.filename!r}, {self.media_type!r}, {self.size} bytes)"


class ImageIntakeValidator:
    """
    Gates the optional medical image.

    Runs on file-selection events, independently of the form validator, so the user gets
    feedback before submitting. Size is checked before type. Encoding to a data URI is
    deferred to submission time; selection only produces a preview.
    """

    def __init__(self, max_size: int = MAX_IMAGE_SIZE_BYTES, accepted_types=None):
        self.max_size = max_size
        self.accepted_types = list(accepted_types or ACCEPTED_IMAGE_TYPES)

    def check(self, size: int, media_type: Optional[str]) -> None:
        if size > self.max_size:
            raise ImageIntakeError(
                ErrorCode.FILE_TOO_LARGE,
                f"Max image size is {self.max_size // (1024 * 1024)}MB.",
            )
        if (media_type or "").lower() not in self.accepted_types:
            raise ImageIntakeError(
                ErrorCode.UNSUPPORTED_FILE_TYPE,
                "Invalid file type. Please upload an image (JPEG, PNG, WEBP) or DICOM file.",
            )

    async def read_preview(self, image: AcceptedImage) -> Optional[str]:
        """Decodes the image into a previewable data URI off the event loop."""
        return await asyncio.to_thread(self.build_preview, image)

    def build_preview(self, image: AcceptedImage) -> Optional[str]:
        if not image.content:
            raise ImageIntakeError(ErrorCode.FILE_READ_ERROR, FILE_READ_ERROR_MESSAGE)

        if image.media_type.lower() not in RASTER_IMAGE_TYPES:
            # DICOM is not decodable by Pillow. No preview; the client shows a placeholder.
            return None

        try:
            with Image.open(io.BytesIO(image.content)) as img:
                img.load()
                thumb = img.convert("RGB")
                thumb.thumbnail(PREVIEW_SIZE)

                buf = io.BytesIO()
                thumb.save(buf, format="JPEG")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to decode preview for {image.filename}: {e}")
            raise ImageIntakeError(ErrorCode.FILE_READ_ERROR, FILE_READ_ERROR_MESSAGE) from e

        img_b64 = base64.b64encode(buf.getvalue()).decode("utf-8")
        return f"data:image/jpeg;base64,{img_b64}"

    def encode(self, image: AcceptedImage) -> str:
        """Self-describing encoding sent to the inference gateway."""
        if not image.content:
            raise ValueError(f"Image {image.filename!r} has no content")
        payload = base64.b64encode(image.content).decode("utf-8")
        return f"data:{image.media_type};base64,{payload}"


image_intake = ImageIntakeValidator()
