# src/hive_reminders/connectors/matrix_messenger.py

from __future__ import annotations

import html
import json
import logging
import os
from pathlib import Path
from typing import Any

from nio import AsyncClient, AsyncClientConfig, LoginResponse, RoomSendResponse

logger = logging.getLogger(__name__)


def _session_path(store_dir: Path) -> Path:
    return store_dir / "session.json"


def _load_json(path: Path) -> dict[str, Any]:
    val = json.loads(path.read_text("utf-8"))
    if isinstance(val, dict):
        return val
    raise ValueError("Expected JSON object")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    try:
        os.chmod(path, 0o600)
    except OSError:
        # Not critical on Windows or restricted FS.
        pass


async def create_matrix_client(settings) -> AsyncClient | None:
    """
    Create a logged-in Matrix AsyncClient, reusing session.json when present.

    session.json holds the access token and must stay under the gitignored data dir.
    """
    homeserver = (getattr(settings, "matrix_homeserver", "") or "").strip()
    user_id = (getattr(settings, "matrix_user_id", "") or "").strip()
    password = (getattr(settings, "matrix_password", "") or "").strip()
    store_dir = Path(getattr(settings, "matrix_store_path", Path(".local/hive/matrix_store")))

    if not homeserver or not user_id:
        logger.error("Matrix is not configured: set HIVE_MATRIX_HOMESERVER and HIVE_MATRIX_USER_ID")
        return None

    store_dir.mkdir(parents=True, exist_ok=True)
    session_file = _session_path(store_dir)

    client = AsyncClient(homeserver, user_id, config=AsyncClientConfig(store_sync_tokens=False))

    if session_file.exists():
        try:
            data = _load_json(session_file)
            access_token = data.get("access_token")
            sess_user_id = data.get("user_id")
            device_id = data.get("device_id")
            if not access_token or not sess_user_id or not device_id:
                raise ValueError("session.json is missing required fields")

            client.access_token = str(access_token)
            client.user_id = str(sess_user_id)
            client.device_id = str(device_id)
            logger.info("Matrix session restored for %s", client.user_id)
            return client
        except Exception as e:
            logger.warning("Failed to restore Matrix session.json, will try password login: %r", e)

    if not password:
        logger.error(
            "Matrix session.json not found and password is not set. "
            "Set HIVE_MATRIX_PASSWORD once to bootstrap a session."
        )
        await client.close()
        return None

    device_name = f"{getattr(settings, 'app_name', 'hive')} reminders"
    resp = await client.login(password=password, device_name=device_name)
    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %r", resp)
        await client.close()
        return None

    try:
        _atomic_write_json(
            session_file,
            {"access_token": resp.access_token, "user_id": resp.user_id, "device_id": resp.device_id},
        )
        logger.info("Matrix session saved to %s (user=%s)", session_file, resp.user_id)
    except OSError as e:
        logger.warning("Failed to write Matrix session.json (%s): %r", session_file, e)

    return client


class MatrixMessenger:
    """
    Posts fired reminders into one Matrix room as m.notice messages.

    The client is created lazily on first delivery so a misconfigured Matrix
    setup never blocks startup.
    """

    def __init__(self, settings, *, client: AsyncClient | None = None) -> None:
        self._settings = settings
        self._room_id = (getattr(settings, "matrix_room_id", "") or "").strip()
        self._client = client

    async def _ensure_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await create_matrix_client(self._settings)
        if self._client is None:
            raise RuntimeError("Matrix client unavailable")
        return self._client

    async def send_notification(self, *, title: str, body: str, data: dict[str, Any] | None = None) -> None:
        if not self._room_id:
            raise RuntimeError("HIVE_MATRIX_ROOM_ID is not set")

        client = await self._ensure_client()
        content = {
            "msgtype": "m.notice",
            "body": f"{title}: {body}",
            "format": "org.matrix.custom.html",
            "formatted_body": f"<b>{html.escape(title)}</b>: {html.escape(body)}",
        }
        resp = await client.room_send(room_id=self._room_id, message_type="m.room.message", content=content)
        if not isinstance(resp, RoomSendResponse):
            raise RuntimeError(f"Matrix room_send failed: {resp!r}")
        logger.debug("Reminder posted to %s event=%s", self._room_id, resp.event_id)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
