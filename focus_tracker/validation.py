"""Schema validation with coercion that returns a result instead of raising.

``parse_input`` runs a pydantic schema over raw request data (a JSON body or
the query string) and returns either ``Parsed`` with the typed model or
``Invalid`` with an ordered list of field issues. Routes turn ``Invalid``
into a 422 response with ``invalid_response``.
"""
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

# Location prefixes FastAPI puts in front of the field path
_SOURCES = {"body", "query", "path", "header", "cookie"}


class ValidationIssue(BaseModel):
    field: str
    message: str


@dataclass(frozen=True)
class Parsed(Generic[ModelT]):
    value: ModelT


@dataclass(frozen=True)
class Invalid:
    issues: list[ValidationIssue]


def format_issues(errors: Iterable[Mapping[str, Any]]) -> list[ValidationIssue]:
    """Flatten pydantic/FastAPI error dicts into ``{field, message}`` issues."""
    issues = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in _SOURCES:
            loc = loc[1:]
        issues.append(ValidationIssue(field=".".join(loc), message=error.get("msg", "Invalid value")))
    return issues


def parse_input(schema: type[ModelT], raw: Any) -> Parsed[ModelT] | Invalid:
    try:
        value = schema.model_validate(raw)
    except ValidationError as exc:
        return Invalid(issues=format_issues(exc.errors()))
    return Parsed(value=value)


def invalid_response(result: Invalid) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"message": [issue.model_dump() for issue in result.issues]},
    )
