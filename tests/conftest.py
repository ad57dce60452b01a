import pytest

from storyframe import config as config_module
from storyframe import upstream as upstream_module

ENV_VARS = (
    "OPENAI_BASE_URL",
    "OPENAI_API_KEY",
    "STORYFRAME_API_MODE",
    "STORYFRAME_DEFAULT_MODEL",
    "STORYFRAME_TIMEOUT",
)


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else ""

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("not json")
        return self._body


class FakeUpstream:
    """Stands in for requests.post inside storyframe.upstream."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def reply(self, *responses):
        self.responses.extend(responses)
        return self

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def image_response(url="https://x.test/a.png"):
    return FakeResponse(200, {"created": 1, "data": [{"url": url}]})


def chat_response(text):
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": text}}]})


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "CONFIG_DIR", tmp_path)
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "config.json")
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setenv("OPENAI_BASE_URL", "https://api.test/v1/")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-1234567890")


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream()
    monkeypatch.setattr(upstream_module.requests, "post", fake.post)
    return fake
