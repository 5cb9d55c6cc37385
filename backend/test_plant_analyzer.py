from types import SimpleNamespace

import pytest
from google.api_core import exceptions as google_exceptions

import plant_analyzer
from config import load_settings
from conftest import FakeModel
from plant_analyzer import (
    PlantAnalyzer, ANALYSIS_PROMPT, AnalysisError, UpstreamTimeout, AnalyzerUnavailable,
)


def test_prompt_asks_for_plain_text():
    for topic in ("species", "health", "care recommendations", "characteristics", "interesting facts"):
        assert topic in ANALYSIS_PROMPT
    assert "without using any markdown" in ANALYSIS_PROMPT


def test_analyze_sends_prompt_and_inline_image():
    model = FakeModel(text="Species: Ficus...")
    analyzer = PlantAnalyzer(model, timeout=12)

    assert analyzer.analyze(b"\xff\xd8jpeg", "image/jpeg") == "Species: Ficus..."
    (contents, request_options), = model.calls
    assert contents == [ANALYSIS_PROMPT, {"mime_type": "image/jpeg", "data": b"\xff\xd8jpeg"}]
    assert request_options == {"timeout": 12}


def test_analyze_without_timeout():
    model = FakeModel()
    PlantAnalyzer(model, timeout=None).analyze(b"x", "image/png")
    assert model.calls[0][1] == {}


@pytest.mark.parametrize("error", [
    google_exceptions.DeadlineExceeded("deadline"),
    TimeoutError("read timed out"),
])
def test_timeouts_become_upstream_timeout(error):
    analyzer = PlantAnalyzer(FakeModel(error=error), timeout=3, model_name="gemini-test")
    with pytest.raises(UpstreamTimeout, match="gemini-test did not answer within 3s"):
        analyzer.analyze(b"x", "image/png")


def test_other_errors_propagate():
    analyzer = PlantAnalyzer(FakeModel(error=RuntimeError("API key not valid")))
    with pytest.raises(RuntimeError, match="API key not valid"):
        analyzer.analyze(b"x", "image/png")


@pytest.mark.parametrize("text", ["", "   \n", None])
def test_empty_answer_is_an_error(text):
    with pytest.raises(AnalysisError, match="empty"):
        PlantAnalyzer(FakeModel(text=text)).analyze(b"x", "image/png")


def test_blocked_answer_is_an_error():
    class Blocked:
        @property
        def text(self):
            raise ValueError("response was blocked")

    model = SimpleNamespace(generate_content=lambda contents, request_options=None: Blocked())
    with pytest.raises(AnalysisError, match="blocked"):
        PlantAnalyzer(model).analyze(b"x", "image/png")


def test_from_settings_requires_key():
    with pytest.raises(AnalyzerUnavailable):
        PlantAnalyzer.from_settings(load_settings({"GEMINI_API_KEY": None}))


def test_from_settings_builds_gemini_model(monkeypatch):
    configured = {}
    monkeypatch.setattr(plant_analyzer.genai, "configure", lambda **kw: configured.update(kw))
    monkeypatch.setattr(plant_analyzer.genai, "GenerativeModel", lambda name: SimpleNamespace(model_name=name))

    settings = load_settings({"GEMINI_API_KEY": "k-123", "GEMINI_MODEL": "gemini-1.5-flash", "GEMINI_TIMEOUT": 30})
    analyzer = PlantAnalyzer.from_settings(settings)

    assert configured == {"api_key": "k-123"}
    assert analyzer.model.model_name == "gemini-1.5-flash"
    assert analyzer.timeout == 30
    assert analyzer.model_name == "gemini-1.5-flash"
