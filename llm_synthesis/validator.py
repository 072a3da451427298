"""Turns raw model text into a validated narrative schema instance.

Models are asked for a bare JSON object but often wrap it in a markdown
fence or a sentence of preamble; both are tolerated. Keys the target schema
does not declare are dropped before validation, so one response can serve
several schemas.
"""

import json
import re
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class ValidationStage:
    JSON_PARSE = "json_parse"
    SCHEMA = "schema"


class LLMOutputValidationError(Exception):
    """Raised when model output cannot be decoded or does not fit the schema.

    Attributes:
        stage: ``ValidationStage.JSON_PARSE`` or ``ValidationStage.SCHEMA``.
        errors: Human-readable problems, one per entry.
        raw_response: The untouched model output.
    """

    def __init__(self, stage: str, errors: List[str], raw_response: str) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        super().__init__(f"LLM output rejected at {stage}: {'; '.join(errors)}")


def extract_json_text(text: str) -> str:
    """Return the JSON payload inside ``text``.

    A surrounding code fence is removed. When the remainder does not start
    with ``{`` or ``[``, the span from the first ``{`` to the last ``}`` is
    used instead.
    """
    body = text.strip()
    fenced = _FENCE_RE.match(body)
    if fenced:
        body = fenced.group(1).strip()
    if body[:1] in ("{", "["):
        return body
    start, end = body.find("{"), body.rfind("}")
    if start != -1 and end > start:
        return body[start : end + 1]
    return body


def _decode(raw_response: str) -> Any:
    try:
        return json.loads(extract_json_text(raw_response or ""))
    except (json.JSONDecodeError, TypeError) as exc:
        raise LLMOutputValidationError(ValidationStage.JSON_PARSE, [str(exc)], raw_response) from exc


def _project_to_fields(data: Dict[str, Any], output_model: Type[BaseModel]) -> Dict[str, Any]:
    """Keep only keys the output model declares (by alias first, then name)."""
    projected: Dict[str, Any] = {}
    for name, info in output_model.model_fields.items():
        for key in (info.alias, name):
            if key and key in data:
                projected[key] = data[key]
                break
    return projected


def _describe(exc: ValidationError) -> List[str]:
    return [".".join(str(part) for part in error["loc"]) + f": {error['msg']}" for error in exc.errors()]


def validate_llm_output(raw_response: str, output_model: Type[M]) -> M:
    """Decode ``raw_response`` and validate it as ``output_model``.

    Args:
        raw_response: Text returned by the LLM adapter.
        output_model: Pydantic model the response must satisfy.

    Returns:
        A validated ``output_model`` instance.

    Raises:
        LLMOutputValidationError: The text is not JSON, is not an object,
            or fails schema validation.
    """
    data = _decode(raw_response)
    if not isinstance(data, dict):
        raise LLMOutputValidationError(
            ValidationStage.SCHEMA, ["top-level JSON must be an object"], raw_response
        )
    try:
        return output_model.model_validate(_project_to_fields(data, output_model))
    except ValidationError as exc:
        raise LLMOutputValidationError(ValidationStage.SCHEMA, _describe(exc), raw_response) from exc
