"""
Configuration settings for the HealthAI Assistant application.
Contains intake limits, form option lists, result presentation tables and user-facing messages.
"""


# --- Stage 1: Form Options ---

# Severity and gender choices come from the Severity and Gender enums in healthai.models.
# Units are offered as choices in the UI but accepted as free text by the API.
WEIGHT_UNITS = ["kg", "lbs"]
HEIGHT_UNITS = ["cm", "in", "ft"]


# --- Stage 2: Medical Image Intake ---

# Maximum accepted upload size (10 MiB).
MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024

# Declared media types accepted for the optional medical image.
# Browsers report DICOM inconsistently, so both spellings are listed.
ACCEPTED_IMAGE_TYPES = [
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/dicom",
    "application/dicom",
]

# Subset of ACCEPTED_IMAGE_TYPES that Pillow can decode into a thumbnail.
RASTER_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

# Bounding box of the preview thumbnail shown next to the upload button.
PREVIEW_SIZE = (160, 160)


# --- Stage 3: Result Presentation ---

# Visual treatment for every confidence tier returned by the inference gateway.
# Anything the gateway sends outside High/Medium/Low falls back to "Unknown".
CONFIDENCE_PRESENTATION = {
    "High": {"severity": "positive", "color_hint": "green", "icon": "check-circle", "badge_variant": "default"},
    "Medium": {"severity": "caution", "color_hint": "yellow", "icon": "alert-triangle", "badge_variant": "secondary"},
    "Low": {"severity": "caution", "color_hint": "orange", "icon": "help-circle", "badge_variant": "outline"},
    "Unknown": {"severity": "unknown", "color_hint": "gray", "icon": "help-circle", "badge_variant": "outline"},
}

RESULTS_TITLE = "Potential Conditions"
RESULTS_MESSAGE = (
    "Based on your symptoms and medical history. "
    "This is not a substitute for professional medical advice."
)
NO_CONDITIONS_TITLE = "Analysis Complete"
NO_CONDITIONS_MESSAGE = (
    "No potential conditions identified based on the provided information. "
    "If symptoms persist or worsen, please consult a healthcare professional."
)
DISCLAIMER = (
    "HealthAI Assistant provides informational suggestions and does not constitute medical advice. "
    "Always consult with a qualified healthcare provider for any health concerns or before making "
    "any decisions related to your health or treatment."
)


# --- Error Messages ---

FORM_INVALID_MESSAGE = "Please fix the errors in the form before submitting."
IMAGE_PROCESSING_ERROR_MESSAGE = "Failed to process the uploaded image. Please try again."
ANALYSIS_ERROR_MESSAGE = (
    "An error occurred while analyzing symptoms. Please ensure the image is clear and relevant, "
    "or try removing it. If the problem persists, contact support."
)
FILE_READ_ERROR_TITLE = "File Read Error"
FILE_READ_ERROR_MESSAGE = "Could not read the selected image file."


# --- Model Configuration ---

# Default Gemini model used by the inference gateway; override with GEMINI_MODEL.
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

# Sampling temperature for the diagnosis prompt.
INFERENCE_TEMPERATURE = 0.2
