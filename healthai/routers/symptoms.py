import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from healthai.config import (
    ANALYSIS_ERROR_MESSAGE, FILE_READ_ERROR_MESSAGE, FILE_READ_ERROR_TITLE, FORM_INVALID_MESSAGE,
)
from healthai.dal.form_repo import form_repo
from healthai.models import DiagnosisReport, ErrorCode, FormSnapshot, RawForm
from healthai.services.form_state import (
    FieldsChanged, ImageCleared, ImageDecodeFailed, ImageDecoded, ImageRejected, ImageSelected,
    SubmitFailed, SubmitStarted, SubmitSucceeded, SymptomAdded, SymptomRemoved,
)
from healthai.services.form_validator import form_validator
from healthai.services.image_intake import IMAGE_FIELD, AcceptedImage, ImageIntakeError, image_intake
from healthai.services.inference_gateway import inference_gateway
from healthai.services.request_normalizer import SubmissionError, request_normalizer
from healthai.services.result_renderer import result_renderer

router = APIRouter(prefix="/api", tags=["symptoms"])

logger = logging.getLogger(__name__)


def get_session_id(request: Request) -> str:
    session_id = getattr(request.state, "session_id", None) or request.cookies.get("session_id")
    if not session_id:
        raise HTTPException(status_code=400, detail="No session found - reload page")
    return session_id


def _image_error_detail(e: ImageIntakeError) -> dict:
    detail = {
        "field": e.field,
        "code": e.code.value,
        "message": e.message,
        # The client clears its file input so the same file can be re-selected.
        "reset_input": True,
    }
    if e.notify:
        detail["notification"] = {
            "variant": "destructive",
            "title": FILE_READ_ERROR_TITLE,
            "description": e.message,
        }
    return detail


@router.get("/form", response_model=FormSnapshot)
async def get_form(request: Request):
    session_id = get_session_id(request)
    return form_repo.get(session_id).snapshot()


@router.put("/form", response_model=FormSnapshot)
async def update_form(request: Request, payload: RawForm):
    """Stores the current field values and returns them with any validation messages."""
    session_id = get_session_id(request)
    return form_repo.dispatch(session_id, FieldsChanged(payload)).snapshot()


@router.delete("/form")
async def reset_form(request: Request):
    session_id = get_session_id(request)
    form_repo.clear_session(session_id)
    return {"status": "cleared", "message": "Form reset"}


@router.post("/form/symptoms", response_model=FormSnapshot)
async def add_symptom(request: Request):
    session_id = get_session_id(request)
    return form_repo.dispatch(session_id, SymptomAdded()).snapshot()


@router.delete("/form/symptoms/{index}", response_model=FormSnapshot)
async def remove_symptom(index: int, request: Request):
    session_id = get_session_id(request)
    return form_repo.dispatch(session_id, SymptomRemoved(index)).snapshot()


@router.post("/form/image", response_model=FormSnapshot)
async def select_image(request: Request, file: Optional[UploadFile] = File(None)):
    session_id = get_session_id(request)

    # 1. Nothing selected: clear field and preview
    if file is None or not file.filename:
        return form_repo.dispatch(session_id, ImageCleared()).snapshot()

    # 2./3. Size and type gate. Spooled uploads know their size, so oversized files are never read.
    try:
        if file.size is not None:
            image_intake.check(file.size, file.content_type)
        content = await file.read()
        image_intake.check(len(content), file.content_type)
    except ImageIntakeError as e:
        logger.info(f"Rejected image {file.filename}: {e.code.value}")
        form_repo.dispatch(session_id, ImageRejected(e.to_field_error()))
        raise HTTPException(status_code=400, detail=_image_error_detail(e))
    except OSError as e:
        logger.error(f"Failed to read upload {file.filename}: {e}")
        error = ImageIntakeError(ErrorCode.FILE_READ_ERROR, FILE_READ_ERROR_MESSAGE)
        form_repo.dispatch(session_id, ImageRejected(error.to_field_error()))
        raise HTTPException(status_code=422, detail=_image_error_detail(error))

    # 4. Decode a preview; only the latest selection may commit
    generation = form_repo.dispatch(session_id, ImageSelected()).image_generation
    image = AcceptedImage(file.filename, file.content_type.lower(), content)
    try:
        preview = await image_intake.read_preview(image)
    except ImageIntakeError as e:
        state = form_repo.dispatch(session_id, ImageDecodeFailed(generation, e.to_field_error()))
        if state.image_generation != generation:
            return state.snapshot()
        raise HTTPException(status_code=422, detail=_image_error_detail(e))

    state = form_repo.dispatch(session_id, ImageDecoded(generation, image, preview))
    logger.info(f"Accepted image {image!r} for session {session_id}")
    return state.snapshot()


@router.delete("/form/image", response_model=FormSnapshot)
async def remove_image(request: Request):
    session_id = get_session_id(request)
    return form_repo.dispatch(session_id, ImageCleared()).snapshot()


@router.post("/analyze", response_model=DiagnosisReport)
async def analyze_symptoms(request: Request, payload: RawForm):
    session_id = get_session_id(request)

    if form_repo.get(session_id).submitting:
        raise HTTPException(status_code=409, detail="An analysis is already in progress")

    state = form_repo.dispatch(session_id, FieldsChanged(payload))
    result = form_validator.validate(payload)
    if not result.is_valid or state.image_error is not None:
        errors = {
            path: [e.model_dump(mode="json") for e in errs]
            for path, errs in result.errors.items()
        }
        if state.image_error is not None:
            errors[IMAGE_FIELD] = [state.image_error.model_dump(mode="json")]
        raise HTTPException(status_code=422, detail={"message": FORM_INVALID_MESSAGE, "errors": errors})

    form_repo.dispatch(session_id, SubmitStarted())
    try:
        analysis_input = request_normalizer.normalize(result.value, state.image)
        output = await inference_gateway.analyze(analysis_input)
    except SubmissionError as e:
        form_repo.dispatch(session_id, SubmitFailed(e.user_message))
        raise HTTPException(status_code=502, detail=e.user_message)
    except Exception as e:
        # Never disclose the underlying error; the form stays intact for a retry.
        logger.error(f"Analysis failed: {e}")
        form_repo.dispatch(session_id, SubmitFailed(ANALYSIS_ERROR_MESSAGE))
        raise HTTPException(status_code=502, detail=ANALYSIS_ERROR_MESSAGE)
    except asyncio.CancelledError:
        # A cancelled request must not leave the session locked.
        logger.warning(f"Analysis cancelled for session {session_id}")
        form_repo.dispatch(session_id, SubmitFailed(ANALYSIS_ERROR_MESSAGE))
        raise

    report = result_renderer.render(output)
    form_repo.dispatch(session_id, SubmitSucceeded(report))
    logger.info(f"Analysis complete for session {session_id}: {len(report.items)} conditions")
    return report
