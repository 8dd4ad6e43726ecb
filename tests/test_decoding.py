"""Unit tests for response decoding and validation."""

from typing import List

import pytest

from cognisim.decoding import (
    ModelValidator,
    Validator,
    decode,
    decode_envelope,
    strip_code_fences,
    validate,
)
from cognisim.errors import DecodeFailure, ValidationFailure
from cognisim.schemas import Experience


def test_strip_code_fences_handles_tagged_and_bare_blocks():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n[1, 2]\n```') == "[1, 2]"
    assert strip_code_fences('Sure!\n```json\n{"a": 1}\n```\nDone.') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_backticks_inside_json_strings_are_not_fences():
    text = '{"thought": "I will write ```code``` on the board"}'

    assert strip_code_fences(text) == text
    assert decode(text) == {"thought": "I will write ```code``` on the board"}
    fenced = "```json\n" + text + "\n```"
    assert decode(fenced)["thought"] == "I will write ```code``` on the board"


def test_decode_rejects_empty_and_invalid_text():
    with pytest.raises(DecodeFailure):
        decode("")
    with pytest.raises(DecodeFailure) as excinfo:
        decode("not json at all")
    assert excinfo.value.text == "not json at all"


def test_decode_envelope_requires_key():
    assert decode_envelope('{"goals": []}', "goals") == []
    with pytest.raises(ValidationFailure):
        decode_envelope('{"plans": []}', "goals")
    with pytest.raises(ValidationFailure):
        decode_envelope("[1, 2, 3]", "goals")


def test_experience_batch_is_all_or_nothing():
    batch = ModelValidator(List[Experience], name="experience batch")
    good = {"type": "speech", "content": "hello", "timestamp": 1000}
    bad = {"type": "speech", "content": "bye", "timestamp": 0}

    assert len(validate([good], batch)) == 1
    with pytest.raises(ValidationFailure) as excinfo:
        validate([good, bad], batch)
    assert any(issue.startswith("1.timestamp") for issue in excinfo.value.issues)


def test_experience_rules_are_strict():
    validator = ModelValidator(Experience)

    with pytest.raises(ValidationFailure):
        validator.validate({"type": "speech", "content": "", "timestamp": 5})
    with pytest.raises(ValidationFailure):
        validator.validate({"type": "speech", "content": "hi", "timestamp": "5"})
    with pytest.raises(ValidationFailure):
        validator.validate({"type": "dream", "content": "hi", "timestamp": 5})


def test_validation_failure_lists_issues():
    validator = ModelValidator(Experience)

    with pytest.raises(ValidationFailure) as excinfo:
        validator.validate({"type": "speech", "timestamp": 5})

    message = str(excinfo.value)
    assert "content" in message
    assert "\n- " in message


def test_model_validator_is_a_validator():
    validator = ModelValidator(Experience)

    assert isinstance(validator, Validator)
    assert "properties" in validator.json_schema()
