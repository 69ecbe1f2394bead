"""
Parsing of structured (JSON) model output.

Model responses are untrusted text. They are unwrapped (code fences and
surrounding prose removed), decoded, then validated against a schema.
The outcome is always one of:

- Parsed(value): the validated object
- ParseFailure(reason, raw_excerpt): why the text could not be used
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Generic, Optional, Type, TypeVar, Union, get_origin

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from meeting_intel.core.exceptions import ParseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE = re.compile(r"```(?:json|JSON)?\s*\n?")

EXCERPT_CHARS = 200


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    raw_excerpt: str

    def to_error(self) -> ParseError:
        return ParseError(self.reason, raw_excerpt=self.raw_excerpt)


ParseResult = Union[Parsed[T], ParseFailure]


def unwrap_json(raw: str, opener: str = "{", closer: str = "}") -> Optional[str]:
    """
    Strip markdown fences and trim to the outermost JSON value.

    Returns None when no opener/closer pair exists in the text.
    """
    text = _FENCE.sub("", raw).strip()
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def parse_model_json(raw: str, schema: Type[T]) -> ParseResult:
    """
    Decode and validate a model response against `schema`.

    `schema` may be a pydantic model or any type TypeAdapter understands
    (e.g. List[str]); a list schema unwraps to the outermost [...].
    """
    excerpt = (raw or "")[:EXCERPT_CHARS]
    adapter = TypeAdapter(schema)

    is_array = get_origin(schema) is list
    candidate = unwrap_json(raw or "", "[", "]") if is_array else unwrap_json(raw or "")
    if candidate is None:
        return ParseFailure("Model response contains no JSON value", excerpt)

    try:
        decoded: Any = json.loads(candidate)
    except json.JSONDecodeError as e:
        return ParseFailure(f"Model response is not valid JSON: {e.msg}", excerpt)

    try:
        return Parsed(adapter.validate_python(decoded))
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        return ParseFailure(f"Model response has the wrong shape at {location}: {first['msg']}", excerpt)


def parse_or_raise(raw: str, schema: Type[T]) -> T:
    """Like parse_model_json, but raises ParseError on failure."""
    result = parse_model_json(raw, schema)
    if isinstance(result, ParseFailure):
        logger.warning(f"Could not parse model output: {result.reason}")
        raise result.to_error()
    return result.value
