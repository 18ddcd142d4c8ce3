import pytest
from healthai.models import ErrorCode, Gender, RawForm, Severity
from healthai.services.form_validator import form_validator

def make_form(**overrides):
    data = {
        "name": "Jane Doe",
        "age": "34",
        "gender": "Female",
        "symptoms": [{"name": "Headache", "severity": "Moderate"}],
    }
    data.update(overrides)
    return RawForm.model_validate(data)

def test_valid_form_produces_typed_profile():
    result = form_validator.validate(make_form(weight="62.5", weightUnit="kg"))
    assert result.is_valid
    profile = result.value.profile
    assert profile.name == "Jane Doe"
    assert profile.age == 34
    assert profile.gender == Gender.FEMALE
    assert profile.weight.magnitude == 62.5
    assert profile.weight.unit == "kg"
    assert profile.height is None
    assert result.value.symptoms[0].severity == Severity.MODERATE

def test_age_negative_is_out_of_range():
    result = form_validator.validate(make_form(age=-1))
    assert not result.is_valid
    assert result.codes("age") == [ErrorCode.OUT_OF_RANGE]
    assert result.value is None

def test_age_zero_is_out_of_range():
    result = form_validator.validate(make_form(age="0"))
    assert result.codes("age") == [ErrorCode.OUT_OF_RANGE]

@pytest.mark.parametrize("age", ["abc", "34.5", 12.7, True, "nan", "inf"])
def test_age_not_an_integer_is_invalid_type(age):
    result = form_validator.validate(make_form(age=age))
    assert result.codes("age") == [ErrorCode.INVALID_TYPE]

@pytest.mark.parametrize("age", [None, "", "   "])
def test_age_missing_is_required(age):
    result = form_validator.validate(make_form(age=age))
    assert result.codes("age") == [ErrorCode.REQUIRED_FIELD]

def test_age_numeric_forms_are_coerced():
    assert form_validator.validate(make_form(age=" 41 ")).value.profile.age == 41
    assert form_validator.validate(make_form(age=41.0)).value.profile.age == 41

def test_blank_name_and_gender_are_required():
    result = form_validator.validate(make_form(name="   ", gender=""))
    assert result.codes("name") == [ErrorCode.REQUIRED_FIELD]
    assert result.codes("gender") == [ErrorCode.REQUIRED_FIELD]

def test_gender_outside_options_is_invalid_choice():
    result = form_validator.validate(make_form(gender="Robot"))
    assert result.codes("gender") == [ErrorCode.INVALID_CHOICE]

def test_choices_match_case_insensitively():
    result = form_validator.validate(make_form(
        gender="prefer NOT to say",
        symptoms=[{"name": "Cough", "severity": "very severe"}],
    ))
    assert result.is_valid
    assert result.value.profile.gender == Gender.UNDISCLOSED
    assert result.value.symptoms[0].severity == Severity.VERY_SEVERE

def test_weight_without_unit_flags_the_unit_field():
    result = form_validator.validate(make_form(weight="70"))
    assert result.codes("weightUnit") == [ErrorCode.UNIT_REQUIRED]
    assert "weight" not in result.errors

def test_height_without_unit_flags_the_unit_field():
    result = form_validator.validate(make_form(height=180, heightUnit="  "))
    assert result.codes("heightUnit") == [ErrorCode.UNIT_REQUIRED]
    assert "height" not in result.errors

def test_unit_without_magnitude_is_dropped():
    result = form_validator.validate(make_form(weightUnit="kg", heightUnit="cm"))
    assert result.is_valid
    assert result.value.profile.weight is None
    assert result.value.profile.height is None

def test_non_positive_magnitude_is_out_of_range():
    result = form_validator.validate(make_form(weight="-3", weightUnit="kg", height=0, heightUnit="cm"))
    assert result.codes("weight") == [ErrorCode.OUT_OF_RANGE]
    assert result.codes("height") == [ErrorCode.OUT_OF_RANGE]

def test_non_numeric_magnitude_is_invalid_type():
    result = form_validator.validate(make_form(height="tall", heightUnit="cm"))
    assert result.codes("height") == [ErrorCode.INVALID_TYPE]

def test_empty_symptoms_is_required_collection():
    result = form_validator.validate(make_form(symptoms=[]))
    assert result.codes("symptoms") == [ErrorCode.REQUIRED_COLLECTION]
    assert result.messages()["symptoms"] == ["Please add at least one symptom."]

def test_missing_symptoms_is_required_collection():
    result = form_validator.validate(make_form(symptoms=None))
    assert result.codes("symptoms") == [ErrorCode.REQUIRED_COLLECTION]

def test_each_symptom_is_checked_independently():
    result = form_validator.validate(make_form(symptoms=[
        {"name": "Headache", "severity": "Mild"},
        {"name": "", "severity": "Moderate"},
        {"name": "Nausea", "severity": ""},
        {"name": "Rash", "severity": "Unbearable"},
    ]))
    assert result.codes("symptoms.1.name") == [ErrorCode.REQUIRED_FIELD]
    assert result.codes("symptoms.2.severity") == [ErrorCode.REQUIRED_FIELD]
    assert result.codes("symptoms.3.severity") == [ErrorCode.INVALID_CHOICE]
    assert "symptoms.0.name" not in result.errors
    assert "symptoms.0.severity" not in result.errors

def test_all_errors_are_reported_together():
    raw = RawForm.model_validate({
        "name": "",
        "age": "-5",
        "gender": "",
        "weight": "-1",
        "height": "175",
        "symptoms": [],
    })
    result = form_validator.validate(raw)
    assert set(result.errors) == {"name", "age", "gender", "weight", "weightUnit", "heightUnit", "symptoms"}
    # Cross-field rule still fires even though the magnitude itself is invalid
    assert result.codes("weightUnit") == [ErrorCode.UNIT_REQUIRED]
