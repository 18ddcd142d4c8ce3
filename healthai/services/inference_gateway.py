import os
import base64
import logging
from typing import List, Optional, Tuple

from google import genai
from google.genai import types
from pydantic import ValidationError

from healthai.config import DEFAULT_GEMINI_MODEL, INFERENCE_TEMPERATURE
from healthai.models import AnalyzeSymptomsInput, AnalyzeSymptomsOutput

logger = logging.getLogger(__name__)


class InferenceError(Exception):
    """Any transport, provider or output failure of the inference call."""


def _join_or_none(items: List[str]) -> str:
    return ", ".join(items) if items else "None reported"


def split_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """data:<media-type>;base64,<payload> -> (media_type, raw bytes)"""
    header, sep, payload = data_uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URI")
    media_type = header[len("data:"):-len(";base64")]
    return media_type, base64.b64decode(payload, validate=True)


class InferenceGateway:
    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        if api_key is None:
            api_key = os.environ.get("GOOGLE_GENAI_API_KEY") or os.environ.get("GOOGLE_API_KEY", "")
        self.api_key = api_key
        self.model_name = model_name or os.environ.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"Gemini client initialized for model {self.model_name}")
        return self._client

    def build_prompt(self, request: AnalyzeSymptomsInput) -> str:
        lines = [
            f"Based on the following information for {request.name}, "
            "provide a list of possible diagnoses ranked by likelihood.",
            "",
            "Profile:",
            f"- Age: {request.age}",
            f"- Gender: {request.gender.value}",
        ]
        if request.weight:
            lines.append(f"- Weight: {request.weight.magnitude:g} {request.weight.unit}")
        if request.height:
            lines.append(f"- Height: {request.height.magnitude:g} {request.height.unit}")

        lines += ["", "Symptoms:"]
        lines += [f"- {s.name} (Severity: {s.severity.value})" for s in request.symptoms]

        history = request.medical_history
        lines += [
            "",
            "Medical History:",
            f"- Past Conditions: {_join_or_none(history.past_conditions)}",
            f"- Current Medications: {_join_or_none(history.current_medications)}",
        ]
        if request.image_data_uri:
            lines += ["", "A medical image is attached; take it into account."]

        lines += [
            "",
            "For each diagnosis give the condition name and a confidence of High, Medium or Low.",
            "",
            "Diagnoses:",
        ]
        return "\n".join(lines)

    def build_contents(self, request: AnalyzeSymptomsInput) -> list:
        contents = [self.build_prompt(request)]
        if request.image_data_uri:
            media_type, data = split_data_uri(request.image_data_uri)
            contents.append(types.Part.from_bytes(data=data, mime_type=media_type))
        return contents

    async def analyze(self, request: AnalyzeSymptomsInput) -> AnalyzeSymptomsOutput:
        if not self.is_configured:
            raise InferenceError("Inference service is not configured (missing GOOGLE_GENAI_API_KEY)")

        try:
            contents = self.build_contents(request)
            logger.info(
                f"Calling Gemini: {self.model_name} "
                f"({len(request.symptoms)} symptoms, image={'yes' if request.image_data_uri else 'no'})"
            )
            response = await self._get_client().aio.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=types.GenerateContentConfig(
                    temperature=INFERENCE_TEMPERATURE,
                    response_mime_type="application/json",
                    response_schema=AnalyzeSymptomsOutput,
                ),
            )
        except Exception as e:
            logger.error(f"Inference call failed: {e}")
            raise InferenceError(str(e)) from e

        return self._parse_response(response)

    def _parse_response(self, response) -> AnalyzeSymptomsOutput:
        parsed = getattr(response, "parsed", None)
        if isinstance(parsed, AnalyzeSymptomsOutput):
            return parsed

        text = getattr(response, "text", None)
        if not text:
            raise InferenceError("Inference service returned an empty response")
        try:
            return AnalyzeSymptomsOutput.model_validate_json(text)
        except ValidationError as e:
            logger.error(f"Malformed inference output: {e}")
            raise InferenceError("Inference service returned malformed output") from e


inference_gateway = InferenceGateway()
