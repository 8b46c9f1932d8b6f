"""Response Parser - Turns raw chat-model replies into validated flow outputs."""

import json
import re
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import GenerationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_THINKING_BLOCK = re.compile(r"<(?:think|thinking)>.*?</(?:think|thinking)>", re.DOTALL | re.IGNORECASE)
_JSON_FENCE = re.compile(r"```(?:json)?\s*\n(?P<body>[\s\S]*?)```", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_content(response) -> str:
    """Safely extract text from a LangChain message (or anything else)."""
    content = getattr(response, "content", response)
    if isinstance(content, list):
        content = "\n".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return strip_thinking_tokens(str(content))


def strip_thinking_tokens(text: str) -> str:
    """Strip <think>...</think> blocks emitted by reasoning models."""
    return _THINKING_BLOCK.sub("", text).strip()


def find_json_object(text: str) -> Optional[dict]:
    """Locate the JSON object in a reply that may be fenced or chatty."""
    candidates = [m.group("body") for m in _JSON_FENCE.finditer(text)]
    outer = _JSON_OBJECT.search(text)
    if outer:
        candidates.append(outer.group())

    for candidate in candidates:
        try:
            data = json.loads(candidate.strip(), strict=False)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def parse_model_reply(text: str, model: Type[ModelT], fallback_field: Optional[str] = None) -> ModelT:
    """
    Validate a model reply against a pydantic schema.

    Args:
        text: Reply text with thinking tokens already removed.
        model: Schema the reply must satisfy.
        fallback_field: If the reply holds no JSON, put the whole text in
            this field instead of failing. Used by free-text flows.

    Raises:
        GenerationError: The reply cannot be turned into ``model``.
    """
    data = find_json_object(text)
    if data is None:
        if fallback_field and text.strip():
            return model(**{fallback_field: text.strip()})
        raise GenerationError(f"Model reply for {model.__name__} contained no JSON object")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise GenerationError(f"Model reply did not match {model.__name__}: {e.error_count()} field error(s)") from e
