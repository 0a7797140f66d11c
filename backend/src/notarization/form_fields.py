"""Decoding of JSON-encoded multipart sub-fields.

Multipart requests cannot carry nested objects, so clients send
``notarizationService``, ``notarizationField`` and ``requesterInfo`` as JSON
strings. They are decoded here, before schema validation, so the workflow
code only ever sees structured input.
"""

import json
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import ValidationError

from errors import BadRequestError
from .schemas import DocumentCreate

JSON_FORM_FIELDS = ("notarizationService", "notarizationField", "requesterInfo")

INVALID_JSON_MESSAGE = "Invalid JSON input"


def decode_json_fields(form: Mapping[str, Any], fields: Iterable[str] = JSON_FORM_FIELDS) -> Dict[str, Any]:
    """Return a copy of ``form`` with the named string fields JSON-decoded.

    Absent fields are passed through untouched; values that are already
    structured are kept as-is.

    Raises:
        BadRequestError: A present field is not valid JSON

    Example:
        >>> decode_json_fields({"requesterInfo": '{"email": "a@b.vn"}'})
        {'requesterInfo': {'email': 'a@b.vn'}}
    """
    decoded = dict(form)
    for name in fields:
        value = decoded.get(name)
        if not isinstance(value, str):
            continue
        try:
            decoded[name] = json.loads(value)
        except json.JSONDecodeError:
            raise BadRequestError(INVALID_JSON_MESSAGE)
    return decoded


def format_validation_errors(exc: ValidationError) -> str:
    """Join pydantic errors into a single readable message."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return ", ".join(parts)


def parse_document_form(
    notarization_service: Optional[str],
    notarization_field: Optional[str],
    requester_info: Optional[str],
) -> DocumentCreate:
    """Decode and validate the form fields of a document upload.

    Raises:
        BadRequestError: Invalid JSON or a body that fails validation
    """
    raw = {
        "notarizationService": notarization_service,
        "notarizationField": notarization_field,
        "requesterInfo": requester_info,
    }
    decoded = decode_json_fields({k: v for k, v in raw.items() if v is not None})
    try:
        return DocumentCreate.model_validate(decoded)
    except ValidationError as e:
        raise BadRequestError(format_validation_errors(e))
