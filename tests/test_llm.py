from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from generation.llm import (
    ChatModel,
    EditReply,
    IntakeReply,
    LLMError,
    MalformedReplyError,
    MissingReplyKeyError,
    decode_reply,
    user_message,
)

COMPLETIONS_URL = "https://openrouter.ai/api/v1/chat/completions"


def _completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


@pytest.fixture
def model():
    chat = ChatModel("sk-or-test", model="anthropic/claude-sonnet-4", referer="https://builder.example")
    chat.client = MagicMock()
    return chat


# --- decode_reply ---

def test_decode_plain_json():
    reply = decode_reply('{"explanation": "Made it blue", "code": "<div/>"}', EditReply)
    assert reply == EditReply(explanation="Made it blue", code="<div/>")


def test_decode_fenced_json():
    text = '```json\n{"action": "continue", "reply": "Tell me more"}\n```'
    reply = decode_reply(text, IntakeReply)
    assert reply.action == "continue"
    assert reply.creativeBrief is None


def test_decode_not_json():
    with pytest.raises(MalformedReplyError):
        decode_reply("Sure! Here's the updated component.", EditReply)


def test_decode_json_array():
    with pytest.raises(MalformedReplyError, match="not an object"):
        decode_reply('["code"]', EditReply)


def test_decode_missing_key():
    with pytest.raises(MissingReplyKeyError) as exc_info:
        decode_reply('{"explanation": "done"}', EditReply)
    assert exc_info.value.keys == ["code"]


def test_decode_invalid_value():
    with pytest.raises(MalformedReplyError):
        decode_reply('{"action": "finish", "reply": "bye"}', IntakeReply)


# --- user_message ---

def test_text_only_message():
    assert user_message("hello") == {"role": "user", "content": "hello"}


def test_images_come_before_text():
    message = user_message("like this", ["data:image/png;base64,AAA"])
    assert message["content"] == [
        {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAA"}},
        {"type": "text", "text": "like this"},
    ]


# --- ChatModel ---

def test_ask_sends_system_and_user(model):
    model.client.chat.completions.create.return_value = _completion("export default {}")

    assert model.ask("system prompt", "user prompt", max_tokens=100) == "export default {}"
    kwargs = model.client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "anthropic/claude-sonnet-4"
    assert kwargs["max_tokens"] == 100
    assert kwargs["messages"] == [
        {"role": "system", "content": "system prompt"},
        {"role": "user", "content": "user prompt"},
    ]


def test_converse_replays_history(model):
    model.client.chat.completions.create.return_value = _completion('{"explanation": "ok", "code": "x"}')
    history = [{"role": "user", "content": "make it red"}, {"role": "assistant", "content": "done"}]

    reply = model.converse("sys", history, user_message("now blue"), EditReply)

    assert reply.code == "x"
    messages = model.client.chat.completions.create.call_args.kwargs["messages"]
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[-1]["content"] == "now blue"


def test_empty_completion_is_error(model):
    model.client.chat.completions.create.return_value = _completion("")
    with pytest.raises(LLMError, match="Empty response"):
        model.ask("s", "u")


def test_status_error_wrapped(model):
    request = httpx.Request("POST", COMPLETIONS_URL)
    response = httpx.Response(429, request=request, text="rate limited")
    model.client.chat.completions.create.side_effect = openai.APIStatusError(
        "rate limited", response=response, body=None
    )

    with pytest.raises(LLMError) as exc_info:
        model.ask("s", "u")
    assert exc_info.value.status_code == 429
    assert "rate limited" in str(exc_info.value)


def test_connection_error_wrapped(model):
    model.client.chat.completions.create.side_effect = openai.APIConnectionError(
        request=httpx.Request("POST", COMPLETIONS_URL)
    )
    with pytest.raises(LLMError, match="OpenRouter request failed"):
        model.ask("s", "u")


def test_client_configured_for_openrouter():
    chat = ChatModel("sk-or-test", title="Site Builder Editor", referer="https://builder.example")
    assert str(chat.client.base_url).startswith("https://openrouter.ai/api/v1")
    assert chat.client.max_retries == 0
