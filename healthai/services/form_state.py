"""
Session form state as an explicit reducer.

Every user interaction is an event; `reduce(state, event)` returns a new FormState and never
mutates the old one. The HTTP layer dispatches events through the session store, which keeps
the rules testable without a browser.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from healthai.models import DiagnosisReport, FieldError, FormSnapshot, ImageInfo, RawForm, RawSymptom
from healthai.services.form_validator import FormValidator, form_validator
from healthai.services.image_intake import AcceptedImage

logger = logging.getLogger(__name__)


def _initial_form() -> RawForm:
    return RawForm(symptoms=[RawSymptom(name="", severity="")])


@dataclass(frozen=True)
class FormState:
    raw: RawForm = field(default_factory=_initial_form)
    # Messages from the last field change; empty until the user edits the form.
    field_errors: Dict[str, List[str]] = field(default_factory=dict)
    image: Optional[AcceptedImage] = None
    preview: Optional[str] = None
    image_error: Optional[FieldError] = None
    # Bumped by every selection/removal; a decode only commits if it still matches.
    image_generation: int = field(default=0, compare=False)
    submitting: bool = False
    report: Optional[DiagnosisReport] = None
    submit_error: Optional[str] = None

    @property
    def can_submit(self) -> bool:
        if self.submitting or self.field_errors or self.image_error is not None:
            return False
        return form_validator.validate(self.raw).is_valid

    def snapshot(self) -> FormSnapshot:
        image_info = None
        if self.image is not None:
            image_info = ImageInfo(
                filename=self.image.filename,
                media_type=self.image.media_type,
                size=self.image.size,
                preview=self.preview,
            )
        return FormSnapshot(
            form=self.raw,
            errors=self.field_errors,
            image=image_info,
            image_error=self.image_error,
            submitting=self.submitting,
            can_submit=self.can_submit,
            report=self.report,
            submit_error=self.submit_error,
        )


# --- Events ---

@dataclass(frozen=True)
class FieldsChanged:
    raw: RawForm


@dataclass(frozen=True)
class SymptomAdded:
    pass


@dataclass(frozen=True)
class SymptomRemoved:
    index: int


@dataclass(frozen=True)
class ImageSelected:
    pass


@dataclass(frozen=True)
class ImageDecoded:
    generation: int
    image: AcceptedImage
    preview: Optional[str]


@dataclass(frozen=True)
class ImageDecodeFailed:
    generation: int
    error: FieldError


@dataclass(frozen=True)
class ImageRejected:
    error: FieldError


@dataclass(frozen=True)
class ImageCleared:
    pass


@dataclass(frozen=True)
class SubmitStarted:
    pass


@dataclass(frozen=True)
class SubmitSucceeded:
    report: DiagnosisReport


@dataclass(frozen=True)
class SubmitFailed:
    message: str


def _with_symptoms(state: FormState, symptoms: List[RawSymptom], validator: FormValidator) -> FormState:
    raw = state.raw.model_copy(update={"symptoms": symptoms})
    return replace(state, raw=raw, field_errors=validator.validate(raw).messages())


def _clear_image(state: FormState, **changes) -> FormState:
    return replace(
        state,
        image=None,
        preview=None,
        image_generation=state.image_generation + 1,
        **changes,
    )


def reduce(state: FormState, event, validator: FormValidator = form_validator) -> FormState:
    if isinstance(event, FieldsChanged):
        return replace(state, raw=event.raw, field_errors=validator.validate(event.raw).messages())

    if isinstance(event, SymptomAdded):
        symptoms = list(state.raw.symptoms or []) + [RawSymptom(name="", severity="")]
        return _with_symptoms(state, symptoms, validator)

    if isinstance(event, SymptomRemoved):
        symptoms = list(state.raw.symptoms or [])
        # The last remaining row cannot be removed.
        if len(symptoms) <= 1 or not 0 <= event.index < len(symptoms):
            return state
        del symptoms[event.index]
        return _with_symptoms(state, symptoms, validator)

    if isinstance(event, ImageSelected):
        return _clear_image(state, image_error=None)

    if isinstance(event, ImageDecoded):
        if event.generation != state.image_generation:
            logger.info(f"Ignoring stale decode of {event.image!r} (generation {event.generation})")
            return state
        return replace(state, image=event.image, preview=event.preview, image_error=None)

    if isinstance(event, ImageDecodeFailed):
        if event.generation != state.image_generation:
            return state
        return replace(state, image=None, preview=None, image_error=event.error)

    if isinstance(event, ImageRejected):
        return _clear_image(state, image_error=event.error)

    if isinstance(event, ImageCleared):
        return _clear_image(state, image_error=None)

    if isinstance(event, SubmitStarted):
        return replace(state, submitting=True, report=None, submit_error=None)

    if isinstance(event, SubmitSucceeded):
        return replace(state, submitting=False, report=event.report, submit_error=None)

    if isinstance(event, SubmitFailed):
        return replace(state, submitting=False, report=None, submit_error=event.message)

    raise TypeError(f"Unknown form event: {event!r}")
