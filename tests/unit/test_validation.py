"""
Tests for validation error formatting and upload checks.
"""

from io import BytesIO

import pytest
from starlette.datastructures import UploadFile

from cyberbiz.api.errors import ValidationFailedError, format_validation_errors
from cyberbiz.api.forms import validate_image, validate_upload


def make_upload(name: str, size: int = 10) -> UploadFile:
    return UploadFile(file=BytesIO(b"x" * size), filename=name, size=size)


def test_format_validation_errors_groups_by_field():
    errors = [
        {"loc": ("body", "email"), "msg": "Value error, The email is invalid."},
        {"loc": ("body", "email"), "msg": "Field required"},
        {"loc": ("query", "page"), "msg": "Input should be greater than or equal to 1"},
        {"loc": ("body", "skills", 0), "msg": "String should have at most 100 characters"},
        {"loc": ("body",), "msg": "Invalid JSON"},
    ]

    assert format_validation_errors(errors) == {
        "email": ["The email is invalid.", "Field required"],
        "page": ["Input should be greater than or equal to 1"],
        "skills.0": ["String should have at most 100 characters"],
        "body": ["Invalid JSON"],
    }


def test_validation_failed_for_field():
    error = ValidationFailedError.for_field("slug", "The slug has already been taken.")

    assert error.status_code == 422
    assert error.message == "Validation failed"
    assert error.errors == {"slug": ["The slug has already been taken."]}


def test_validate_upload_missing_file():
    assert validate_upload(None, "cv", ("pdf",), 10) is None

    with pytest.raises(ValidationFailedError) as exc_info:
        validate_upload(None, "cv", ("pdf",), 10, required=True)
    assert exc_info.value.errors == {"cv": ["The cv field is required."]}


def test_validate_upload_extension():
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_upload(make_upload("cv.exe"), "cv", ("pdf", "docx"), 10)
    assert exc_info.value.errors == {"cv": ["The cv must be a file of type: pdf, docx."]}


def test_validate_upload_size():
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_upload(make_upload("cv.pdf", size=2048), "cv", ("pdf",), 1)
    assert exc_info.value.errors == {"cv": ["The cv may not be greater than 1 kilobytes."]}


def test_validate_upload_any_type():
    upload = make_upload("lesson.mp4")
    assert validate_upload(upload, "file", None, 10) is upload


def test_validate_image():
    assert validate_image(make_upload("photo.WEBP"), "image") is not None

    with pytest.raises(ValidationFailedError):
        validate_image(make_upload("photo.svg"), "image")
