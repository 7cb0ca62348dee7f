from datetime import datetime

import httpx
import pytest

from scommit.changes import ChangeStatus, FileChange, classify
from scommit.commit import CommitGenerator, compose
from scommit.config import Config
from scommit.exceptions import LLMError
from scommit.llm import LLMClient
from scommit.providers.openai_driver import OpenAIDriver
from scommit.stats import aggregate


class _Resp:
    def __init__(self, status_code=200, payload=None, raise_json=False):
        self.status_code = status_code
        self._payload = payload
        self._raise_json = raise_json

    def json(self):  # noqa: D401
        if self._raise_json:
            raise ValueError("not json")
        return self._payload


def _install_post(monkeypatch, response=None, exc=None):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None, **_kw):
        calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if exc is not None:
            raise exc
        return response

    monkeypatch.setattr(httpx, "post", fake_post)
    return calls


@pytest.fixture
def config(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    return Config(model="gpt-test", llm_endpoint="https://api.example.test/v1/")


def _chat(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_invoke_sends_json_mode_request(monkeypatch, config):
    calls = _install_post(monkeypatch, _Resp(payload=_chat('{"subject": "x"}')))
    driver = OpenAIDriver(config)
    messages = [{"role": "user", "content": "hi"}]

    content = driver.invoke_messages(messages)

    assert content == '{"subject": "x"}'
    call = calls[0]
    assert call["url"] == "https://api.example.test/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["timeout"] == 20.0
    assert call["json"] == {
        "model": "gpt-test",
        "messages": messages,
        "response_format": {"type": "json_object"},
        "temperature": 0.25,
        "max_tokens": 480,
    }


def test_invoke_model_override(monkeypatch, config):
    calls = _install_post(monkeypatch, _Resp(payload=_chat("{}")))
    OpenAIDriver(config).invoke_messages([], model="other-model")
    assert calls[0]["json"]["model"] == "other-model"


def test_invoke_http_error_status(monkeypatch, config):
    _install_post(monkeypatch, _Resp(status_code=500, payload={}))
    with pytest.raises(LLMError, match="OpenAI API error: 500"):
        OpenAIDriver(config).invoke_messages([])


def test_invoke_network_error(monkeypatch, config):
    _install_post(monkeypatch, exc=httpx.ConnectTimeout("timed out"))
    with pytest.raises(LLMError, match="calling OpenAI API"):
        OpenAIDriver(config).invoke_messages([])


@pytest.mark.parametrize(
    "exc",
    [
        httpx.InvalidURL("Invalid port: ':1'"),
        UnicodeEncodeError("ascii", "sk-t\xe9st", 4, 5, "ordinal not in range(128)"),
    ],
)
def test_invoke_request_build_errors(monkeypatch, config, exc):
    _install_post(monkeypatch, exc=exc)
    with pytest.raises(LLMError, match="calling OpenAI API"):
        OpenAIDriver(config).invoke_messages([])


def test_invalid_endpoint_falls_back_to_heuristic_message(monkeypatch, config, capsys):
    _install_post(monkeypatch, exc=httpx.InvalidURL("Invalid port: ':1'"))
    changes = [
        FileChange(
            path="docs/guide.md",
            status=ChangeStatus.MODIFIED,
            added=3,
            deleted=1,
            category=classify("docs/guide.md"),
        )
    ]
    stats = aggregate(changes)
    now = datetime(2024, 1, 2, 3, 4)

    result = CommitGenerator(config=config).generate(changes, stats, now=now)

    assert (result.subject, result.body) == compose(changes, stats, now)
    assert result.source == "heuristic"
    assert "Invalid port" in capsys.readouterr().err


def test_invoke_unparseable_body(monkeypatch, config):
    _install_post(monkeypatch, _Resp(raise_json=True))
    with pytest.raises(LLMError, match="parsing OpenAI response"):
        OpenAIDriver(config).invoke_messages([])


@pytest.mark.parametrize(
    "payload",
    [
        {"choices": []},
        {},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"finish_reason": "length"}]},
    ],
)
def test_invoke_without_content_returns_none(monkeypatch, config, payload):
    _install_post(monkeypatch, _Resp(payload=payload))
    assert OpenAIDriver(config).invoke_messages([]) is None


def test_invoke_joins_fragment_content(monkeypatch, config):
    payload = _chat([{"type": "text", "text": '{"subject": '}, {"text": '"x"}'}])
    _install_post(monkeypatch, _Resp(payload=payload))
    assert OpenAIDriver(config).invoke_messages([]) == '{"subject": "x"}'


def test_invoke_requires_credential(monkeypatch):
    calls = _install_post(monkeypatch, _Resp(payload=_chat("{}")))
    with pytest.raises(LLMError, match="OPENAI_API_KEY"):
        OpenAIDriver(Config()).invoke_messages([])
    assert calls == []


def test_debug_output(monkeypatch, config, capsys):
    _install_post(monkeypatch, _Resp(payload=_chat('{"subject": "x"}')))
    OpenAIDriver(config, debug=True).invoke_messages([])
    out = capsys.readouterr().out
    assert "DEBUG(Driver:OpenAI): invoke" in out


def test_http_500_falls_back_to_heuristic_message(monkeypatch, config, capsys):
    # Given the model endpoint fails
    _install_post(monkeypatch, _Resp(status_code=500, payload={"error": "boom"}))
    changes = [
        FileChange(
            path="a.rs",
            status=ChangeStatus.MODIFIED,
            added=5,
            deleted=20,
            category=classify("a.rs"),
        )
    ]
    stats = aggregate(changes)
    now = datetime(2024, 1, 2, 3, 4)

    # When a message is generated
    generator = CommitGenerator(config=config, llm_client=LLMClient(config))
    result = generator.generate(changes, stats, now=now)

    # Then it is exactly the heuristic one
    assert (result.subject, result.body) == compose(changes, stats, now)
    assert "falling back to heuristic" in capsys.readouterr().err


def test_end_to_end_ai_refinement(monkeypatch, config):
    reply = '```json\n{"subject": "Tighten parser", "body": ["drop dead code"]}\n```'
    _install_post(monkeypatch, _Resp(payload=_chat(reply)))
    changes = [
        FileChange(
            path="a.rs",
            status=ChangeStatus.MODIFIED,
            added=5,
            deleted=20,
            category=classify("a.rs"),
        )
    ]
    result = CommitGenerator(config=config).generate(changes, aggregate(changes))
    assert (result.subject, result.body, result.source) == (
        "Tighten parser",
        "- drop dead code",
        "ai",
    )
