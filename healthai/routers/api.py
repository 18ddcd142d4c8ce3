from fastapi import APIRouter
from healthai.models import HealthCheckResponse
from healthai.services.inference_gateway import inference_gateway

router = APIRouter(prefix="/api")

@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check endpoint."""
    return HealthCheckResponse(
        status="OK",
        inference_configured=inference_gateway.is_configured
    )
