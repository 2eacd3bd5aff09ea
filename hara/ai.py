# hara/ai.py
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from openai import NotFoundError, OpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hara.settings import Settings

log = logging.getLogger("hara")

T = TypeVar("T")

SUMMARY_INPUT_CHARS = 12000
HAZARD_INPUT_CHARS = 20000
METADATA_INPUT_CHARS = 16000

# Families that typically DO NOT support custom temperature
_NO_TEMP_PREFIXES = ("gpt-5", "o1", "o3", "o4")


def get_client(settings: Settings) -> Optional[OpenAI]:
    if not settings.openai_api_key:
        return None
    return OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)


def _supports_temperature(model_id: str) -> bool:
    m = (model_id or "").lower().strip()
    return not any(m.startswith(p) for p in _NO_TEMP_PREFIXES)


def _chat_call(
    client: OpenAI,
    model_id: str,
    messages: List[Dict[str, Any]],
    want_tokens: int,
    temp: float,
    json_mode: bool = False,
):
    """
    Call chat.completions with best-guess params, then transparently retry
    if the model rejects temperature or a token-parameter name.
    """
    kwargs: Dict[str, Any] = dict(model=model_id, messages=messages, max_completion_tokens=want_tokens)
    if _supports_temperature(model_id):
        kwargs["temperature"] = temp
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        return client.chat.completions.create(**kwargs)
    except OpenAIError as e:
        msg = str(e).lower()

        # If temperature is not supported: remove it and retry
        if "param': 'temperature" in msg or "unsupported value: 'temperature'" in msg:
            kwargs.pop("temperature", None)
            try:
                return client.chat.completions.create(**kwargs)
            except OpenAIError as e2:
                msg = str(e2).lower()
                e = e2

        # If 'max_completion_tokens' is not supported, try 'max_tokens'
        if "param': 'max_completion_tokens" in msg or "unsupported parameter: 'max_completion_tokens" in msg:
            kwargs.pop("max_completion_tokens", None)
            kwargs["max_tokens"] = want_tokens
            return client.chat.completions.create(**kwargs)

        raise e


def _content(rsp) -> str:
    try:
        return (rsp.choices[0].message.content or "").strip()
    except (AttributeError, IndexError):
        return ""


# --- model fallback -------------------------------------------------------------

class AttemptStatus(str, Enum):
    SUCCESS = "success"
    SKIP = "skip"


@dataclass(frozen=True)
class Attempt(Generic[T]):
    status: AttemptStatus
    payload: Optional[T] = None
    reason: str = ""

    @classmethod
    def success(cls, payload: T) -> "Attempt[T]":
        return cls(AttemptStatus.SUCCESS, payload)

    @classmethod
    def skip(cls, reason: str) -> "Attempt[T]":
        return cls(AttemptStatus.SKIP, None, reason)


def is_model_not_found(err: Exception) -> bool:
    if isinstance(err, NotFoundError):
        return True
    if getattr(err, "status_code", None) == 404:
        return True
    return "model_not_found" in str(err).lower()


def try_models(models: List[str], attempt: Callable[[str], Attempt[T]]) -> Optional[T]:
    """
    Run `attempt` per model in order and return the first success payload.
    "Model not found" errors skip to the next model; any other error propagates.
    """
    for model_id in models:
        try:
            result = attempt(model_id)
        except OpenAIError as e:
            if not is_model_not_found(e):
                raise
            log.warning("Model %s not found, trying next candidate", model_id)
            continue
        if result.status is AttemptStatus.SUCCESS:
            return result.payload
        log.info("Model %s skipped: %s", model_id, result.reason)
    return None


# --- payload schemas ------------------------------------------------------------

class ProposedHazard(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1, max_length=40)
    malfunction_behavior: str = Field(min_length=3, alias="malfunctionBehavior")
    operational_situation: str = Field(min_length=3, alias="operationalSituation")
    hazard_description: str = Field(min_length=3, alias="hazardDescription")
    s: int = Field(ge=0, le=3)
    e: int = Field(ge=0, le=4)
    c: int = Field(ge=0, le=3)
    safety_goal: str = Field(min_length=3, alias="safetyGoal")


class LlmItemMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_name: str = Field(min_length=2, alias="itemName")
    item_id: str = Field("N/A", min_length=1, alias="itemId")


def _parse_json(content: str) -> Optional[Any]:
    try:
        return json.loads(content)
    except ValueError:
        return None


# --- collaborators --------------------------------------------------------------

def summarize_item_from_pdf_text(text: str, settings: Settings, client: Optional[OpenAI] = None) -> Optional[str]:
    client = client or get_client(settings)
    if client is None:
        return None

    prompt = (
        "You are an ISO 26262 safety engineer. "
        "Summarize the item definition and functional description from the following PDF text. "
        "Focus on: purpose, system context, key functions, operating domain, dependencies, "
        "and any safety-relevant constraints. Return 5-8 concise bullet points only."
    )
    messages = [
        {"role": "system", "content": "You are a helpful assistant."},
        {"role": "user", "content": f"{prompt}\n\nPDF Text:\n\n{text[:SUMMARY_INPUT_CHARS]}"},
    ]

    def attempt(model_id: str) -> Attempt[str]:
        content = _content(_chat_call(client, model_id, messages, want_tokens=2000, temp=0.15))
        return Attempt.success(content) if content else Attempt.skip("empty completion")

    return try_models(settings.model_candidates, attempt)


def propose_additional_hazards(
    text: str, settings: Settings, client: Optional[OpenAI] = None
) -> Optional[List[ProposedHazard]]:
    client = client or get_client(settings)
    if client is None:
        return None

    system = (
        "You are an ISO 26262 safety engineer specializing in HARA for LKAS systems. "
        "Propose additional hazardous events beyond the three canonical examples. "
        'Output must be STRICT JSON only, shaped as {"items": [...]}. No markdown, no commentary. '
        "Fields per item: id, malfunctionBehavior, operationalSituation, hazardDescription, s, e, c, safetyGoal. "
        "IDs should be unique and follow the pattern H-AI-###. "
        "s in [0..3], e in [0..4], c in [0..3]. "
        "Ensure the proposals are grounded in the PDF text (domain, functions, ODD)."
    )
    messages = [
        {"role": "system", "content": system},
        {"role": "user", "content": f"PDF Text (truncated):\n\n{text[:HAZARD_INPUT_CHARS]}"},
    ]

    def attempt(model_id: str) -> Attempt[List[ProposedHazard]]:
        content = _content(_chat_call(client, model_id, messages, want_tokens=4000, temp=0.2, json_mode=True))
        if not content:
            return Attempt.skip("empty completion")
        raw = _parse_json(content)
        if raw is None:
            return Attempt.skip("invalid JSON")
        items = raw.get("items") if isinstance(raw, dict) else raw
        if not isinstance(items, list):
            return Attempt.skip("no hazard list in response")

        parsed: List[ProposedHazard] = []
        for item in items:
            try:
                parsed.append(ProposedHazard.model_validate(item))
            except ValidationError:
                continue
        return Attempt.success(parsed) if parsed else Attempt.skip("no valid hazards")

    return try_models(settings.model_candidates, attempt)


def extract_item_metadata_llm(text: str, settings: Settings, client: Optional[OpenAI] = None) -> Optional[LlmItemMeta]:
    client = client or get_client(settings)
    if client is None:
        return None

    system = (
        "Extract the Item Name and Item ID from the following automotive Item Definition text. "
        "If Item ID is not explicitly present, return 'N/A'. "
        "Return STRICT JSON with keys: itemName, itemId."
    )
    messages = [
        {"role": "system", "content": system},
        {"role": "user", "content": f"TEXT (truncated):\n\n{text[:METADATA_INPUT_CHARS]}"},
    ]

    def attempt(model_id: str) -> Attempt[LlmItemMeta]:
        content = _content(_chat_call(client, model_id, messages, want_tokens=500, temp=0.1, json_mode=True))
        obj = _parse_json(content) if content else None
        if obj is None:
            return Attempt.skip("invalid JSON")
        try:
            return Attempt.success(LlmItemMeta.model_validate(obj))
        except ValidationError:
            return Attempt.skip("schema validation failed")

    return try_models(settings.model_candidates, attempt)
