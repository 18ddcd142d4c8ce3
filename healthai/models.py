from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HealthCheckResponse(BaseModel):
    status: str
    inference_configured: bool


class Severity(str, Enum):
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"
    VERY_SEVERE = "Very Severe"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"
    UNDISCLOSED = "Prefer not to say"


class ErrorCode(str, Enum):
    # Field validation
    REQUIRED_FIELD = "required_field"
    INVALID_TYPE = "invalid_type"
    INVALID_CHOICE = "invalid_choice"
    OUT_OF_RANGE = "out_of_range"
    REQUIRED_COLLECTION = "required_collection"
    UNIT_REQUIRED = "unit_required"
    # Medical image intake
    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_FILE_TYPE = "unsupported_file_type"
    FILE_READ_ERROR = "file_read_error"


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: ErrorCode
    message: str


# --- Raw form state (as typed by the user, loosely typed) ---

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RawSymptom(_CamelModel):
    name: Optional[str] = None
    severity: Optional[str] = None


class RawMedicalHistory(_CamelModel):
    past_conditions: Optional[str] = None  # comma-separated
    current_medications: Optional[str] = None  # comma-separated


class RawForm(_CamelModel):
    name: Optional[str] = None
    age: Any = None  # coerced by the validator
    gender: Optional[str] = None
    weight: Any = None
    weight_unit: Optional[str] = None
    height: Any = None
    height_unit: Optional[str] = None
    symptoms: Optional[List[RawSymptom]] = None
    medical_history: RawMedicalHistory = Field(default_factory=RawMedicalHistory)


# --- Canonical request ---

class Measurement(BaseModel):
    model_config = ConfigDict(frozen=True)

    magnitude: float
    unit: str


class Symptom(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    severity: Severity


class PatientProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    age: int
    gender: Gender
    weight: Optional[Measurement] = None
    height: Optional[Measurement] = None


class MedicalHistory(_CamelModel):
    model_config = ConfigDict(frozen=True)

    past_conditions: List[str] = []
    current_medications: List[str] = []


class AnalyzeSymptomsInput(_CamelModel):
    """The only object handed to the inference gateway."""
    model_config = ConfigDict(frozen=True)

    name: str
    age: int
    gender: Gender
    weight: Optional[Measurement] = None
    height: Optional[Measurement] = None
    symptoms: List[Symptom]
    medical_history: MedicalHistory
    image_data_uri: Optional[str] = None  # data:<media-type>;base64,<payload>

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation: camelCase keys, absent optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Inference output ---

class Diagnosis(BaseModel):
    condition: str = Field(description="The name of the diagnosed condition.")
    confidence: str = Field(description="The confidence level of the diagnosis (High, Medium or Low).")


class AnalyzeSymptomsOutput(BaseModel):
    diagnoses: List[Diagnosis] = Field(
        default_factory=list,
        description="A list of possible diagnoses, ranked by likelihood.",
    )


# --- Rendering ---

class ConfidenceTier(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    UNKNOWN = "Unknown"


class ReportStatus(str, Enum):
    RESULTS = "results"
    NO_CONDITIONS = "no_conditions"


class RenderedDiagnosis(BaseModel):
    rank: int
    condition: str
    confidence: str  # label as returned by the gateway
    tier: ConfidenceTier
    severity: str  # positive / caution / unknown
    color_hint: str
    icon: str
    badge_variant: str


class DiagnosisReport(BaseModel):
    status: ReportStatus
    title: str
    message: str
    items: List[RenderedDiagnosis] = []
    disclaimer: str


# --- Session form snapshot ---

class ImageInfo(BaseModel):
    filename: str
    media_type: str
    size: int
    preview: Optional[str] = None


class FormSnapshot(BaseModel):
    form: RawForm
    errors: Dict[str, List[str]] = {}
    image: Optional[ImageInfo] = None
    image_error: Optional[FieldError] = None
    submitting: bool = False
    can_submit: bool = False
    report: Optional[DiagnosisReport] = None
    submit_error: Optional[str] = None
