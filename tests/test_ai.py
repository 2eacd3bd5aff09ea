import json
from types import SimpleNamespace

import httpx
import pytest
from openai import NotFoundError, RateLimitError

from hara import ai
from hara.ai import Attempt, ProposedHazard, try_models
from hara.settings import Settings


def _api_error(cls, status):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return cls(f"error {status}", response=response, body=None)


class FakeCompletions:
    """Scripted chat.completions: one entry per call, either a string or an exception."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(dict(kwargs))
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        message = SimpleNamespace(content=item)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(*script):
    completions = FakeCompletions(script)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


SETTINGS = Settings(openai_api_key="sk-test", openai_model="custom-model")

HAZARD = {
    "id": "H-AI-001",
    "malfunctionBehavior": "Oscillating steering torque",
    "operationalSituation": "Highway curve at 110 km/h",
    "hazardDescription": "Vehicle weaves within the lane",
    "s": 2, "e": 3, "c": 2,
    "safetyGoal": "SG-5: Limit torque oscillation",
}


def test_model_candidates_are_ordered_and_unique():
    assert SETTINGS.model_candidates == ["custom-model", "gpt-4o", "gpt-4o-mini"]
    assert Settings(openai_model="gpt-4o").model_candidates == ["gpt-4o", "gpt-4o-mini"]


def test_no_api_key_means_no_llm():
    settings = Settings()
    assert ai.summarize_item_from_pdf_text("text", settings) is None
    assert ai.propose_additional_hazards("text", settings) is None
    assert ai.extract_item_metadata_llm("text", settings) is None


def test_try_models_skips_not_found_then_succeeds():
    seen = []

    def attempt(model_id):
        seen.append(model_id)
        if model_id == "a":
            raise _api_error(NotFoundError, 404)
        return Attempt.success(model_id)

    assert try_models(["a", "b", "c"], attempt) == "b"
    assert seen == ["a", "b"]


def test_try_models_propagates_other_errors():
    def attempt(model_id):
        raise _api_error(RateLimitError, 429)

    with pytest.raises(RateLimitError):
        try_models(["a", "b"], attempt)


def test_try_models_all_skipped_returns_none():
    assert try_models(["a", "b"], lambda m: Attempt.skip("nope")) is None


def test_summary_uses_first_model_that_answers():
    client, completions = _client(_api_error(NotFoundError, 404), "- bullet one\n- bullet two")
    out = ai.summarize_item_from_pdf_text("x" * 50000, SETTINGS, client=client)
    assert out == "- bullet one\n- bullet two"
    assert [c["model"] for c in completions.calls] == ["custom-model", "gpt-4o"]
    content = completions.calls[1]["messages"][1]["content"]
    assert "x" * 12000 in content and "x" * 12001 not in content


def test_hazards_skip_invalid_json_and_validate_items():
    bad_item = dict(HAZARD, id="H-AI-002", s=7)
    client, completions = _client(
        "not json at all",
        json.dumps({"items": [HAZARD, bad_item]}),
    )
    out = ai.propose_additional_hazards("pdf text", SETTINGS, client=client)
    assert [h.id for h in out] == ["H-AI-001"]
    assert out[0].malfunction_behavior == "Oscillating steering torque"
    assert completions.calls[0]["response_format"] == {"type": "json_object"}


def test_hazards_accept_bare_array():
    client, _ = _client(json.dumps([HAZARD]))
    out = ai.propose_additional_hazards("pdf text", SETTINGS, client=client)
    assert len(out) == 1 and out[0].e == 3


def test_hazards_all_models_fail_returns_none():
    client, completions = _client("{}", json.dumps({"items": [{"id": "x"}]}), "")
    assert ai.propose_additional_hazards("pdf text", SETTINGS, client=client) is None
    assert len(completions.calls) == 3


def test_metadata_defaults_item_id():
    client, _ = _client(json.dumps({"itemName": "Lane Keeping Assist System"}))
    meta = ai.extract_item_metadata_llm("text", SETTINGS, client=client)
    assert meta.item_name == "Lane Keeping Assist System"
    assert meta.item_id == "N/A"


def test_metadata_schema_failure_moves_to_next_model():
    client, _ = _client(json.dumps({"itemName": "X"}), json.dumps({"itemName": "Brake Assist", "itemId": "BA-7"}))
    meta = ai.extract_item_metadata_llm("text", SETTINGS, client=client)
    assert (meta.item_name, meta.item_id) == ("Brake Assist", "BA-7")


def test_chat_call_retries_with_max_tokens():
    client, completions = _client(
        ai.OpenAIError("Unsupported parameter: 'max_completion_tokens' is not supported with this model."),
        "ok",
    )
    rsp = ai._chat_call(client, "legacy-model", [], want_tokens=100, temp=0.2)
    assert rsp.choices[0].message.content == "ok"
    assert "max_completion_tokens" not in completions.calls[1]
    assert completions.calls[1]["max_tokens"] == 100


def test_hazard_ratings_accept_integral_floats():
    hazard = ProposedHazard.model_validate(dict(HAZARD, s=3.0, e=4.0, c=0.0))
    assert (hazard.s, hazard.e, hazard.c) == (3, 4, 0)
    with pytest.raises(ValueError):
        ProposedHazard.model_validate(dict(HAZARD, s=2.5))
