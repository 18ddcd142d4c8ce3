import logging
from typing import List, Optional

from healthai.config import IMAGE_PROCESSING_ERROR_MESSAGE
from healthai.models import AnalyzeSymptomsInput, MedicalHistory
from healthai.services.form_validator import ValidatedForm
from healthai.services.image_intake import AcceptedImage, ImageIntakeValidator, image_intake

logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    """Aborts a submission before the inference call. `user_message` is safe to display."""

    def __init__(self, user_message: str):
        super().__init__(user_message)
        self.user_message = user_message


def split_history(text: Optional[str]) -> List[str]:
    """Splits comma-separated history text into trimmed, non-empty entries."""
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


class RequestNormalizer:
    def __init__(self, intake: ImageIntakeValidator = image_intake):
        self.intake = intake

    def normalize(self, form: ValidatedForm, image: Optional[AcceptedImage] = None) -> AnalyzeSymptomsInput:
        """
        Builds the canonical inference request from a validated form.

        The image, if any, is encoded here rather than at selection time so that payloads
        are never held for images the user later removes.
        """
        image_data_uri = None
        if image is not None:
            try:
                image_data_uri = self.intake.encode(image)
            except Exception as e:
                logger.error(f"Failed to encode {image!r} for submission: {e}")
                raise SubmissionError(IMAGE_PROCESSING_ERROR_MESSAGE) from e

        profile = form.profile
        return AnalyzeSymptomsInput(
            name=profile.name,
            age=profile.age,
            gender=profile.gender,
            weight=profile.weight,
            height=profile.height,
            symptoms=list(form.symptoms),
            medical_history=MedicalHistory(
                past_conditions=split_history(form.past_conditions),
                current_medications=split_history(form.current_medications),
            ),
            image_data_uri=image_data_uri,
        )


request_normalizer = RequestNormalizer()
