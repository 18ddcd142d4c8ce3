import logging
import uuid
import os
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from healthai.config import ACCEPTED_IMAGE_TYPES, FORM_INVALID_MESSAGE, HEIGHT_UNITS, MAX_IMAGE_SIZE_BYTES, WEIGHT_UNITS
from healthai.dal.form_repo import form_repo
from healthai.models import ErrorCode, Gender, Severity
from healthai.routers.symptoms import router as symptoms_router
from healthai.routers.api import router as api_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="HealthAI Assistant",
    description="Symptom intake and AI-assisted analysis of potential conditions",
    version="1.0.0"
)

# Simple Session Middleware
class SessionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        session_id = request.cookies.get("session_id")
        created_new = False
        if not session_id:
            session_id = str(uuid.uuid4())
            created_new = True

        # Endpoints read the id from request state, so the very first request has a session too.
        request.state.session_id = session_id

        response = await call_next(request)

        if created_new:
            # Set cookie for 1 day
            response.set_cookie(key="session_id", value=session_id, max_age=86400)

        return response

app.add_middleware(SessionMiddleware)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Reports malformed request bodies in the same per-field shape as form validation."""
    errors = {}
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"][1:]) or "form"
        errors.setdefault(path, []).append({"code": ErrorCode.INVALID_TYPE.value, "message": error["msg"]})
    logger.info(f"Malformed request to {request.url.path}: {list(errors)}")
    return JSONResponse(status_code=422, content={"detail": {"message": FORM_INVALID_MESSAGE, "errors": errors}})

app.include_router(symptoms_router)
app.include_router(api_router)

# Mount static files
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))

@app.get("/", response_class=HTMLResponse)
async def read_root(request: Request):
    """Serve the symptom checker page with the session's current form state."""
    state = form_repo.get(request.state.session_id)
    return templates.TemplateResponse(request, "index.html", {
        "state": state.snapshot(),
        "genders": [g.value for g in Gender],
        "severities": [s.value for s in Severity],
        "weight_units": WEIGHT_UNITS,
        "height_units": HEIGHT_UNITS,
        "accepted_image_types": ",".join(ACCEPTED_IMAGE_TYPES),
        "max_image_mb": MAX_IMAGE_SIZE_BYTES // (1024 * 1024),
    })
