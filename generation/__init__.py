from .llm import ChatModel, EditReply, IntakeReply, LLMError, MalformedReplyError, MissingReplyKeyError
from .sections import resolve_file_path

__all__ = [
    "ChatModel", "EditReply", "IntakeReply", "LLMError", "MalformedReplyError",
    "MissingReplyKeyError", "resolve_file_path",
]
