import os

from dotenv import load_dotenv

from generation.llm import DEFAULT_MODEL
from .errors import ConfigError

# picks up a local .env when present; existing environment variables win
load_dotenv()

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
AUTH_TOKEN_TTL = int(os.getenv("AUTH_TOKEN_TTL_SECONDS", "60"))

LLM_MODEL = os.getenv("LLM_MODEL", DEFAULT_MODEL)
APP_URL = os.getenv("APP_URL")                          # sent to OpenRouter as HTTP-Referer
GITHUB_TEMPLATE_REPO = os.getenv("GITHUB_TEMPLATE_REPO", "astro-client-starter")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

_DEFAULT_ORIGINS = ["http://localhost:8080"]


def get_env(key: str) -> str:
    """Required setting; raises ConfigError when unset or empty."""
    value = os.getenv(key)
    if not value:
        raise ConfigError(f"Missing environment variable: {key}")
    return value


def allowed_origins() -> list[str]:
    extra = os.getenv("CORS_ALLOWED_ORIGINS", "")
    return _DEFAULT_ORIGINS + [o.strip() for o in extra.split(",") if o.strip()]
