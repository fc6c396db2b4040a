import asyncio
import json

import pytest

from risk_portal.config import Settings
from risk_portal.errors import NarrativeUnavailable
from risk_portal.schemas import RiskLevel
from risk_portal.utils.narrative_utils import (
    FALLBACK_RECOMMENDATIONS, NarrativeGenerator, build_prompt, fallback_narrative, parse_narrative,
)

from conftest import FakeGroq, good_payload


def generate(narrator):
    return asyncio.run(narrator.generate(84, RiskLevel.LOW, 81, 71, 100))


def test_fallback_text():
    narrative = fallback_narrative(42, RiskLevel.HIGH)
    assert narrative.summary == "Automated assessment: Performance Score 42%. Risk Level: HIGH."
    assert narrative.recommendations == FALLBACK_RECOMMENDATIONS
    assert narrative.recommendations is not FALLBACK_RECOMMENDATIONS

def test_prompt_carries_computed_values():
    prompt = build_prompt(84, RiskLevel.LOW, 81, 71, 100)
    assert "Calculated Performance Score: 84/100" in prompt
    assert "Risk Level: LOW" in prompt
    assert "(81 + 71 + 100) / 3 = 84" in prompt

def test_well_formed_response():
    client = FakeGroq(content=good_payload())
    narrative = generate(NarrativeGenerator(client=client, model="test-model"))
    assert narrative.summary.startswith("Solid")
    assert len(narrative.recommendations) == 3
    call = client.completions.calls[0]
    assert call["model"] == "test-model"
    assert call["response_format"] == {"type": "json_object"}

def test_echoed_numbers_are_ignored():
    narrative = parse_narrative(good_payload(riskLevel="HIGH", performanceScore=10))
    assert not hasattr(narrative, "riskLevel")
    assert set(narrative.model_dump()) == {"summary", "recommendations"}

def test_extra_recommendations_are_truncated():
    content = json.dumps({"summary": "ok", "recommendations": ["a", "b", "c", "d", "e"]})
    assert parse_narrative(content).recommendations == ["a", "b", "c"]

@pytest.mark.parametrize("content", [
    None,
    "",
    "not json at all",
    "[1, 2, 3]",
    json.dumps({"summary": "only a summary"}),
    json.dumps({"recommendations": ["a", "b", "c"]}),
    json.dumps({"summary": "   ", "recommendations": ["a", "b", "c"]}),
    json.dumps({"summary": "short list", "recommendations": ["a", "b"]}),
    json.dumps({"summary": "blank items", "recommendations": ["a", " ", ""]}),
    json.dumps({"summary": "wrong type", "recommendations": "do better"}),
])
def test_malformed_responses_raise(content):
    with pytest.raises(NarrativeUnavailable):
        parse_narrative(content)

def test_client_exception_is_wrapped():
    narrator = NarrativeGenerator(client=FakeGroq(exc=ConnectionError("down")))
    with pytest.raises(NarrativeUnavailable, match="down"):
        generate(narrator)

def test_unconfigured_generator_is_unavailable():
    narrator = NarrativeGenerator(client=None)
    assert not narrator.available
    with pytest.raises(NarrativeUnavailable):
        generate(narrator)

def test_from_settings_without_key_has_no_client():
    narrator = NarrativeGenerator.from_settings(Settings(GROQ_API_KEY=None, NARRATIVE_MODEL="m"))
    assert narrator.client is None
    assert narrator.model == "m"

def test_default_model_comes_from_settings(monkeypatch):
    monkeypatch.setattr(
        "risk_portal.utils.narrative_utils.get_settings",
        lambda: Settings(NARRATIVE_MODEL="configured-model"),
    )
    assert NarrativeGenerator(client=None).model == "configured-model"
