"""Supabase access: identity, the client records table and snapshot storage."""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from supabase import AuthError, Client, PostgrestAPIError, create_client
from supabase.client import ClientOptions

from .config import get_env
from .errors import NotFound

logger = logging.getLogger(__name__)

CLIENTS_TABLE = "ai_website_clients"
EDITS_TABLE = "ai_website_edits"
SNAPSHOT_BUCKET = "site-snapshots"


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: Optional[str]
    access_token: str


def _options(access_token: Optional[str] = None) -> ClientOptions:
    headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
    return ClientOptions(headers=headers, auto_refresh_token=False, persist_session=False)


def anon_client() -> Client:
    return create_client(get_env("SUPABASE_URL"), get_env("SUPABASE_ANON_KEY"), options=_options())


def user_client(access_token: str) -> Client:
    """Client whose table and storage calls run as the given user (row-level security applies)."""
    return create_client(
        get_env("SUPABASE_URL"),
        get_env("SUPABASE_ANON_KEY"),
        options=_options(access_token),
    )


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# --- identity ---

def get_user(access_token: str) -> Optional[AuthenticatedUser]:
    """Resolve an access token to its user; None when the token is invalid or expired."""
    try:
        response = anon_client().auth.get_user(access_token)
    except AuthError as exc:
        logger.info("Rejected access token: %s", exc)
        return None
    user = response.user if response else None
    if user is None:
        return None
    return AuthenticatedUser(id=user.id, email=user.email, access_token=access_token)


def sign_in(email: str, password: str) -> Optional[dict]:
    """Password login; returns {"token", "email"} or None on bad credentials."""
    try:
        response = anon_client().auth.sign_in_with_password({"email": email, "password": password})
    except AuthError as exc:
        logger.info("Login failed for %s: %s", email, exc)
        return None
    if response.session is None:
        return None
    return {"token": response.session.access_token, "email": response.user.email}


# --- client records ---

def get_client_record(db: Client, client_id: str, columns: str = "*") -> dict:
    try:
        response = db.table(CLIENTS_TABLE).select(columns).eq("id", client_id).maybe_single().execute()
    except PostgrestAPIError as exc:
        logger.warning("Client lookup failed for %s: %s", client_id, exc)
        raise NotFound("Client not found") from exc
    row = response.data if response is not None else None
    if not row:
        raise NotFound("Client not found")
    return row


def update_client_record(db: Client, client_id: str, fields: dict) -> None:
    db.table(CLIENTS_TABLE).update({**fields, "updated_at": now_iso()}).eq("id", client_id).execute()


def upload_snapshot(db: Client, path: str, document: str) -> bool:
    """Best effort: a failed upload is logged and reported as False, never raised."""
    try:
        db.storage.from_(SNAPSHOT_BUCKET).upload(
            path,
            document.encode("utf-8"),
            {"content-type": "text/html", "upsert": "true"},
        )
        return True
    except Exception as exc:
        logger.warning("Snapshot upload failed for %s: %s", path, exc)
        return False


def record_edits(db: Client, client_id: str, edits: list[dict], commit_sha: str) -> None:
    """Append published edits to the history table and bump the client's counter (best effort)."""
    created_at = now_iso()
    rows = [
        {
            "client_id": client_id,
            "file_path": edit["filePath"],
            "section": edit.get("section") or None,
            "description": edit.get("description") or None,
            "commit_sha": commit_sha,
            "created_at": created_at,
        }
        for edit in edits
    ]
    try:
        db.table(EDITS_TABLE).insert(rows).execute()
        record = get_client_record(db, client_id, "id, edit_count")
        update_client_record(db, client_id, {"edit_count": (record.get("edit_count") or 0) + len(rows)})
    except Exception as exc:
        logger.warning("Could not record edit history for %s: %s", client_id, exc)
