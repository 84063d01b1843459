"""
Request Payloads
Reads JSON or multipart bodies into one shape and validates uploads.

Admin screens submit the same fields either as JSON or as multipart form
data (when a file is attached), so endpoints that accept uploads read the
body through read_payload() and validate it with a pydantic model.
Empty strings are treated as null, for both JSON and form bodies.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Type, TypeVar

from fastapi import Request, UploadFile
from pydantic import BaseModel
from starlette.datastructures import UploadFile as StarletteUploadFile

from .errors import ValidationFailedError
from .services.storage import file_extension

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

IMAGE_EXTENSIONS = ("jpeg", "png", "jpg", "gif", "webp")
IMAGE_MAX_KB = 5120


@dataclass
class Payload:
    """Parsed request body: scalar fields plus uploaded files."""

    data: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, UploadFile] = field(default_factory=dict)

    def file(self, name: str) -> Optional[UploadFile]:
        return self.files.get(name)

    def validate(self, model: Type[ModelT]) -> ModelT:
        """Validate scalar fields; pydantic errors become 422 responses."""
        return model.model_validate(self.data)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    if isinstance(value, list):
        return [_blank_to_none(v) for v in value]
    return value


async def read_payload(request: Request) -> Payload:
    """
    Read a JSON, urlencoded or multipart body.

    Multipart keys ending in `[]` are collected into lists.
    """
    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        payload = Payload()
        for key, value in form.multi_items():
            if isinstance(value, StarletteUploadFile):
                if value.filename:
                    payload.files[key] = value
                continue
            if key == "_method":
                continue
            if key.endswith("[]"):
                payload.data.setdefault(key[:-2], []).append(_blank_to_none(value))
            else:
                payload.data[key] = _blank_to_none(value)
        return payload

    body = await request.body()
    if not body:
        return Payload()

    try:
        data = json.loads(body)
    except ValueError:
        raise ValidationFailedError.for_field("body", "Malformed JSON body.")

    if not isinstance(data, dict):
        raise ValidationFailedError.for_field("body", "Request body must be a JSON object.")

    return Payload(data={k: _blank_to_none(v) for k, v in data.items()})


def upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, 2)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def validate_upload(
    upload: Optional[UploadFile],
    field_name: str,
    extensions: Optional[Sequence[str]],
    max_kb: int,
    required: bool = False,
) -> Optional[UploadFile]:
    """
    Check extension and size of an uploaded file.

    Args:
        upload: The file (None when absent)
        field_name: Form field, used in error messages
        extensions: Allowed lowercase extensions (None accepts any type)
        max_kb: Maximum size in kilobytes
        required: Reject a missing file

    Raises:
        ValidationFailedError: 422 with a message for `field_name`
    """
    if upload is None:
        if required:
            raise ValidationFailedError.for_field(field_name, f"The {field_name} field is required.")
        return None

    if extensions is not None and file_extension(upload.filename) not in extensions:
        raise ValidationFailedError.for_field(
            field_name, f"The {field_name} must be a file of type: {', '.join(extensions)}."
        )

    if upload_size(upload) > max_kb * 1024:
        raise ValidationFailedError.for_field(
            field_name, f"The {field_name} may not be greater than {max_kb} kilobytes."
        )

    return upload


def validate_image(upload: Optional[UploadFile], field_name: str) -> Optional[UploadFile]:
    return validate_upload(upload, field_name, IMAGE_EXTENSIONS, IMAGE_MAX_KB)
