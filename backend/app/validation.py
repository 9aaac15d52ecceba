"""
Portcullis Backend - Schema Validation Adapter
===============================================

What:  Turns Pydantic validation failures into the 422 envelope.
How:   A validation outcome is a `ValidationResult`: either parsed data, or
       an ordered list of `ValidationIssue(path, message)`. On failure the
       messages are grouped under their dot-joined path:

           [ValidationIssue(("email",), "Invalid"),
            ValidationIssue(("email",), "Required")]
           → {"success": false, "message": "Validation Errors",
              "errors": {"email": ["Invalid", "Required"]}}

       Order is preserved and duplicates are kept.
Who:   `request_validation_handler` is registered for FastAPI's
       RequestValidationError, the single hook between request parsing and
       the endpoint. `safe_parse` runs a model without raising (used by the
       auth guard).
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.constants import VALIDATION_ERRORS

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

# Leading loc segments FastAPI adds to say which part of the request failed
_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}

# Pydantic prepends this to messages raised as ValueError in validators
_VALUE_ERROR_PREFIX = "Value error, "


class ValidationIssue(NamedTuple):
    path: Tuple[Any, ...]
    message: str


@dataclass
class ValidationResult(Generic[T]):
    """Discriminated outcome: `data` when success, `issues` otherwise."""

    success: bool
    data: Optional[T] = None
    issues: List[ValidationIssue] = field(default_factory=list)


def issues_from_errors(errors: Iterable[Mapping[str, Any]]) -> List[ValidationIssue]:
    """
    Convert Pydantic/FastAPI error dicts (`loc`, `msg`, `type`) into issues.

    Unparseable JSON is reported under `body`; its loc holds a byte offset,
    not a field.
    """
    issues = []
    for error in errors:
        loc = tuple(error.get("loc", ()))
        kind = error.get("type")
        message = error.get("msg", "Invalid value")

        if kind == "json_invalid":
            loc = ("body",)
        elif loc and loc[0] in _REQUEST_PARTS:
            loc = loc[1:]
        if kind == "value_error" and message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]

        issues.append(ValidationIssue(path=loc, message=message))
    return issues


def safe_parse(model: Type[M], payload: Any) -> ValidationResult[M]:
    """Validate `payload` against `model` without raising."""
    try:
        return ValidationResult(success=True, data=model.model_validate(payload))
    except PydanticValidationError as exc:
        return ValidationResult(success=False, issues=issues_from_errors(exc.errors()))


def group_issues(issues: Sequence[ValidationIssue]) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for issue in issues:
        key = ".".join(str(part) for part in issue.path)
        grouped.setdefault(key, []).append(issue.message)
    return grouped


def validation_error_response(result: ValidationResult) -> Optional[JSONResponse]:
    """
    422 envelope for a failed result; None when validation succeeded.

    Returning None means "carry on": the caller proceeds with `result.data`.
    """
    if result.success:
        return None
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": VALIDATION_ERRORS,
            "errors": group_issues(result.issues),
        },
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    result: ValidationResult = ValidationResult(
        success=False, issues=issues_from_errors(exc.errors())
    )
    return validation_error_response(result)
