from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field, field_validator

NonEmpty = Annotated[str, Field(min_length=1)]


def ok(data=None, message: Optional[str] = None, **extra) -> dict:
    """Success envelope."""
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


class HealthResponse(BaseModel):
    status: str
    token_store: str        # "redis" | "memory"


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


# --- auth ---

class SignInRequest(BaseModel):
    email: NonEmpty
    password: NonEmpty


class LoginTokenRequest(BaseModel):
    supabaseToken: NonEmpty


# --- brief ---

class IntakeRequest(BaseModel):
    message: NonEmpty
    conversationHistory: list[ConversationTurn] = []
    referenceImages: Optional[list[str]] = None


# --- scraping ---

class ClientRequest(BaseModel):
    client_id: NonEmpty


class ScrapePageRequest(BaseModel):
    url: NonEmpty
    client_slug: NonEmpty

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v


# --- generation ---

class GeneratePageRequest(BaseModel):
    client_id: NonEmpty
    file_path: NonEmpty
    site_config_content: NonEmpty


class GeneratedFile(BaseModel):
    path: NonEmpty
    content: str
    encoding: Literal["utf-8", "base64"] = "utf-8"


class GenerateCommitRequest(BaseModel):
    client_id: NonEmpty
    files: list[GeneratedFile] = Field(min_length=1)


# --- editing ---

class EditRequest(BaseModel):
    section: NonEmpty
    message: NonEmpty
    action: Literal["edit", "replace", "new-page"] = "edit"
    referenceUrl: Optional[str] = None
    referenceImage: Optional[str] = None
    isGlobal: bool = False
    currentPage: str = "/"
    conversationHistory: list[ConversationTurn] = []
    client_id: Optional[str] = None       # omitted: the repo from GITHUB_OWNER/GITHUB_REPO


class PublishedEdit(BaseModel):
    filePath: NonEmpty
    modifiedCode: str
    section: str = ""
    description: str = ""


class PublishRequest(BaseModel):
    edits: list[PublishedEdit] = Field(min_length=1)
    commitMessage: NonEmpty
    client_id: Optional[str] = None
