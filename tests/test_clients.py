from types import SimpleNamespace

import pytest

from rewiki.clients import (
    OpenAIImageGenerator,
    OpenAITextGenerator,
    ServiceCapabilities,
    _response_text_or_raise,
    build_capabilities,
    default_capabilities,
)
from rewiki import clients
from rewiki.config import Settings
from rewiki.models import EditKind
from rewiki.revision import analyze_revision


class FakeResponses:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return self.response


class FakeImages:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


def _client(text_response=None, image_response=None):
    return SimpleNamespace(
        responses=FakeResponses(text_response),
        images=FakeImages(image_response),
    )


def test_text_generator_sends_system_prompt_and_web_search_tool():
    client = _client(SimpleNamespace(output_text='{"ok": true}'))
    generator = OpenAITextGenerator(
        client, "test-model", system_prompt="Be terse.", web_search_tool="web_search"
    )

    text = generator.generate("Write it", web_search=True)

    assert text == '{"ok": true}'
    call = client.responses.calls[0]
    assert call["model"] == "test-model"
    assert call["input"][0] == {"role": "system", "content": "Be terse."}
    assert call["input"][1] == {"role": "user", "content": "Write it"}
    assert call["tools"] == [{"type": "web_search"}]


def test_text_generator_omits_tools_without_web_search():
    client = _client(SimpleNamespace(output_text="hello"))
    OpenAITextGenerator(client, "m").generate("hi")
    call = client.responses.calls[0]
    assert "tools" not in call
    assert call["input"] == [{"role": "user", "content": "hi"}]


def test_response_text_or_raise_reports_incomplete():
    response = SimpleNamespace(
        output_text="",
        status="incomplete",
        incomplete_details=SimpleNamespace(reason="max_output_tokens"),
    )
    with pytest.raises(RuntimeError) as excinfo:
        _response_text_or_raise(response, step="Article generator")
    assert "max_output_tokens" in str(excinfo.value)


def test_response_text_or_raise_reports_missing_text():
    with pytest.raises(RuntimeError) as excinfo:
        _response_text_or_raise(SimpleNamespace(output_text=None), step="Revision analyzer")
    assert "missing output text" in str(excinfo.value)


def test_image_generator_returns_data_uri():
    client = _client(image_response=SimpleNamespace(data=[SimpleNamespace(b64_json="QUJD")]))
    generator = OpenAIImageGenerator(client, "image-model", size="1024x1024")

    result = generator.generate("a nebula")

    assert result == "data:image/png;base64,QUJD"
    call = client.images.calls[0]
    assert call["model"] == "image-model"
    assert call["size"] == "1024x1024"
    assert "a nebula" in call["prompt"]


def test_image_generator_returns_none_without_data():
    client = _client(image_response=SimpleNamespace(data=[]))
    assert OpenAIImageGenerator(client, "image-model").generate("x") is None


def test_build_capabilities_shares_client_and_uses_settings():
    client = _client()
    settings = Settings(
        article_model="writer", revision_model="judge", image_model="painter"
    )

    caps = build_capabilities(settings, client=client)

    assert isinstance(caps, ServiceCapabilities)
    assert caps.article.client is client
    assert caps.revision.client is client
    assert caps.image.client is client
    assert caps.article.model == "writer"
    assert caps.revision.model == "judge"
    assert caps.image.model == "painter"


def test_build_capabilities_tolerates_missing_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    caps = build_capabilities(Settings(_env_file=None))
    assert caps.article is not None


def test_default_capabilities_are_built_once(monkeypatch):
    built = []

    def fake_build():
        caps = ServiceCapabilities(
            article=SimpleNamespace(),
            revision=SimpleNamespace(generate=lambda prompt, web_search=False: "not json"),
        )
        built.append(caps)
        return caps

    monkeypatch.setattr(clients, "build_capabilities", fake_build)
    default_capabilities.cache_clear()
    try:
        first = analyze_revision("ctx", "", "Fix", "en", EditKind.FIX, context_chars=50)
        second = analyze_revision("ctx", "", "Fix", "en", EditKind.FIX, context_chars=50)
        assert default_capabilities() is built[0]
    finally:
        default_capabilities.cache_clear()

    assert len(built) == 1
    assert first.accepted is False
    assert second.accepted is False
