import json
import logging
from typing import Literal, Optional, Type, TypeVar

from openai import APIError, APIStatusError, OpenAI
from pydantic import BaseModel, ValidationError

from .files import strip_fences

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "anthropic/claude-sonnet-4"


class LLMError(Exception):
    """The completion call failed or returned something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class MalformedReplyError(LLMError):
    """Reply was expected to be a JSON object and is not."""


class MissingReplyKeyError(LLMError):
    """Reply is a JSON object but lacks a required key."""

    def __init__(self, keys: list[str]):
        self.keys = keys
        super().__init__(f"Model reply is missing required key(s): {', '.join(keys)}")


# --- structured replies ---

class EditReply(BaseModel):
    explanation: str
    code: str


class IntakeReply(BaseModel):
    action: Literal["continue", "brief_complete"]
    reply: str
    creativeBrief: Optional[dict] = None


ReplyT = TypeVar("ReplyT", bound=BaseModel)


def decode_reply(text: str, model: Type[ReplyT]) -> ReplyT:
    """Validate a JSON reply against `model`, with a distinct error per failure kind."""
    try:
        payload = json.loads(strip_fences(text))
    except ValueError as exc:
        raise MalformedReplyError(f"Model reply is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedReplyError(f"Model reply is JSON but not an object: {type(payload).__name__}")

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        missing = [".".join(str(p) for p in err["loc"]) for err in exc.errors() if err["type"] == "missing"]
        if missing:
            raise MissingReplyKeyError(missing) from exc
        raise MalformedReplyError(f"Model reply has invalid fields: {exc}") from exc


def user_message(text: str, images: Optional[list[str]] = None) -> dict:
    """A user turn; images (data or http URLs) go first as image_url blocks."""
    if not images:
        return {"role": "user", "content": text}
    blocks = [{"type": "image_url", "image_url": {"url": url}} for url in images]
    blocks.append({"type": "text", "text": text})
    return {"role": "user", "content": blocks}


class ChatModel:
    """Chat completions through OpenRouter's OpenAI-compatible endpoint."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, title: str = "Site Builder", referer: Optional[str] = None):
        self.model = model
        headers = {"X-Title": title}
        if referer:
            headers["HTTP-Referer"] = referer
        # no SDK-level retries: a failed completion is reported, not replayed
        self.client = OpenAI(
            api_key=api_key,
            base_url=OPENROUTER_BASE_URL,
            max_retries=0,
            timeout=120,
            default_headers=headers,
        )

    def complete(self, messages: list[dict], max_tokens: int = 8192) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=messages,
            )
        except APIStatusError as exc:
            raise LLMError(
                f"OpenRouter API error: {exc.status_code}: {exc.response.text}",
                status_code=exc.status_code,
                body=exc.response.text,
            ) from exc
        except APIError as exc:
            raise LLMError(f"OpenRouter request failed: {exc}") from exc

        text = response.choices[0].message.content if response.choices else None
        if not text:
            raise LLMError("Empty response from OpenRouter API")
        return text

    def ask(self, system_prompt: str, user_prompt: str, max_tokens: int = 8192) -> str:
        """Single-turn completion returning raw text."""
        return self.complete(
            [{"role": "system", "content": system_prompt}, {"role": "user", "content": user_prompt}],
            max_tokens=max_tokens,
        )

    def converse(
        self,
        system_prompt: str,
        history: list[dict],
        message: dict,
        reply_model: Type[ReplyT],
        max_tokens: int = 4096,
    ) -> ReplyT:
        """Multi-turn completion decoded into `reply_model`."""
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": turn["role"], "content": turn["content"]} for turn in history)
        messages.append(message)
        return decode_reply(self.complete(messages, max_tokens=max_tokens), reply_model)
