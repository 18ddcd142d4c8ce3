import math
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from healthai.models import (
    ErrorCode, FieldError, Gender, Measurement, PatientProfile, RawForm, Severity, Symptom,
)

logger = logging.getLogger(__name__)


class _InvalidNumber(ValueError):
    pass


class ValidatedForm:
    """Typed form contents produced by a successful validation."""

    def __init__(self, profile: PatientProfile, symptoms: List[Symptom],
                 past_conditions: Optional[str], current_medications: Optional[str]):
        self.profile = profile
        self.symptoms = symptoms
        # History stays as raw text; splitting belongs to the request normalizer.
        self.past_conditions = past_conditions
        self.current_medications = current_medications


class ValidationResult:
    def __init__(self, value: Optional[ValidatedForm] = None,
                 errors: Optional[Dict[str, List[FieldError]]] = None):
        self.value = value
        self.errors = errors or {}

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def messages(self) -> Dict[str, List[str]]:
        return {path: [e.message for e in errs] for path, errs in self.errors.items()}

    def codes(self, path: str) -> List[ErrorCode]:
        return [e.code for e in self.errors.get(path, [])]


class FormValidator:
    """
    Validates the raw symptom-intake form.

    Responsibilities:
    1. Per-field checks on the profile (name, age, gender, optional weight/height).
    2. Cross-field unit checks, run after the per-field checks, reported on the unit field.
    3. Symptom list checks: at least one entry, each with a name and a known severity.

    Validation is total: every rule runs and every failure is reported, keyed by field path
    (e.g. "age", "weightUnit", "symptoms.2.severity").
    """

    def validate(self, raw: RawForm) -> ValidationResult:
        errors: Dict[str, List[FieldError]] = {}

        def fail(path: str, code: ErrorCode, message: str):
            errors.setdefault(path, []).append(FieldError(code=code, message=message))

        # Rule 1: Per-field profile checks
        name = _clean(raw.name)
        if not name:
            fail("name", ErrorCode.REQUIRED_FIELD, "Name is required.")

        age = self._check_age(raw.age, fail)
        gender = self._check_choice("gender", raw.gender, Gender, "Gender", fail)
        weight = self._check_magnitude("weight", "Weight", raw.weight, fail)
        height = self._check_magnitude("height", "Height", raw.height, fail)

        # Rule 2: Cross-field unit pairs
        weight_unit = _clean(raw.weight_unit)
        height_unit = _clean(raw.height_unit)
        if _is_present(raw.weight) and not weight_unit:
            fail("weightUnit", ErrorCode.UNIT_REQUIRED, "Weight unit is required if weight is provided.")
        if _is_present(raw.height) and not height_unit:
            fail("heightUnit", ErrorCode.UNIT_REQUIRED, "Height unit is required if height is provided.")

        # Rule 3: Symptoms
        symptoms = self._check_symptoms(raw, fail)

        if errors:
            logger.debug(f"Form validation failed on {sorted(errors)}")
            return ValidationResult(errors=errors)

        profile = PatientProfile(
            name=name,
            age=age,
            gender=gender,
            weight=Measurement(magnitude=weight, unit=weight_unit) if weight is not None else None,
            height=Measurement(magnitude=height, unit=height_unit) if height is not None else None,
        )
        return ValidationResult(value=ValidatedForm(
            profile=profile,
            symptoms=symptoms,
            past_conditions=raw.medical_history.past_conditions,
            current_medications=raw.medical_history.current_medications,
        ))

    def _check_age(self, value: Any, fail) -> Optional[int]:
        if not _is_present(value):
            fail("age", ErrorCode.REQUIRED_FIELD, "Age is required.")
            return None
        try:
            number = _to_number(value)
        except _InvalidNumber:
            fail("age", ErrorCode.INVALID_TYPE, "Age must be a whole number.")
            return None
        if not number.is_integer():
            fail("age", ErrorCode.INVALID_TYPE, "Age must be a whole number.")
            return None
        if number <= 0:
            fail("age", ErrorCode.OUT_OF_RANGE, "Age must be a positive number.")
            return None
        return int(number)

    def _check_magnitude(self, path: str, label: str, value: Any, fail) -> Optional[float]:
        """Optional positive number; blank means absent."""
        if not _is_present(value):
            return None
        try:
            number = _to_number(value)
        except _InvalidNumber:
            fail(path, ErrorCode.INVALID_TYPE, f"{label} must be a number.")
            return None
        if number <= 0:
            fail(path, ErrorCode.OUT_OF_RANGE, f"{label} must be positive.")
            return None
        return number

    def _check_choice(self, path: str, value: Optional[str], choices: Type[Enum], label: str, fail):
        cleaned = _clean(value)
        if not cleaned:
            fail(path, ErrorCode.REQUIRED_FIELD, f"{label} is required.")
            return None
        for choice in choices:
            if choice.value.lower() == cleaned.lower():
                return choice
        allowed = ", ".join(c.value for c in choices)
        fail(path, ErrorCode.INVALID_CHOICE, f"{label} must be one of: {allowed}.")
        return None

    def _check_symptoms(self, raw: RawForm, fail) -> List[Symptom]:
        if not raw.symptoms:
            fail("symptoms", ErrorCode.REQUIRED_COLLECTION, "Please add at least one symptom.")
            return []

        symptoms = []
        for i, item in enumerate(raw.symptoms):
            name = _clean(item.name)
            if not name:
                fail(f"symptoms.{i}.name", ErrorCode.REQUIRED_FIELD, "Symptom name is required.")
            severity = self._check_choice(f"symptoms.{i}.severity", item.severity, Severity, "Severity", fail)
            if name and severity:
                symptoms.append(Symptom(name=name, severity=severity))
        return symptoms


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _to_number(value: Any) -> float:
    """Coerces form input (number or numeric string) to a finite float."""
    # bool is an int subclass; a checkbox value is never a valid number here
    if isinstance(value, bool):
        raise _InvalidNumber(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise _InvalidNumber(value)
    else:
        raise _InvalidNumber(value)
    if not math.isfinite(number):
        raise _InvalidNumber(value)
    return number


# Global singleton instance
form_validator = FormValidator()
