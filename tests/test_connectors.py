# tests/test_connectors.py

from __future__ import annotations

import io
from types import SimpleNamespace

import pytest
from nio import RoomSendError, RoomSendResponse

from hive_reminders.connectors.console_messenger import ConsoleMessenger, FanoutMessenger
from hive_reminders.connectors.matrix_messenger import MatrixMessenger

from .fakes import FakeMessenger


class _FakeMatrixClient:
    def __init__(self, response) -> None:
        self.response = response
        self.sent: list[dict] = []
        self.closed = False

    async def room_send(self, *, room_id, message_type, content):
        self.sent.append({"room_id": room_id, "type": message_type, "content": content})
        return self.response

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_console_messenger_prints_reminder_line() -> None:
    out = io.StringIO()
    await ConsoleMessenger(out).send_notification(title="Task due today", body="Trash today", data={"taskId": 1})

    line = out.getvalue()
    assert "[REMINDER] Task due today: Trash today (task #1)" in line


@pytest.mark.asyncio
async def test_fanout_tolerates_one_failing_connector() -> None:
    good, bad = FakeMessenger(), FakeMessenger(fail=True)
    await FanoutMessenger(bad, good).send_notification(title="t", body="b")
    assert [d.body for d in good.delivered] == ["b"]

    with pytest.raises(RuntimeError):
        await FanoutMessenger(bad).send_notification(title="t", body="b")


@pytest.mark.asyncio
async def test_matrix_messenger_posts_escaped_notice() -> None:
    client = _FakeMatrixClient(RoomSendResponse("$evt", "!room:hs"))
    messenger = MatrixMessenger(SimpleNamespace(matrix_room_id="!room:hs"), client=client)

    await messenger.send_notification(title="Task due today", body="<Trash> today")

    (sent,) = client.sent
    assert sent["room_id"] == "!room:hs"
    assert sent["content"]["msgtype"] == "m.notice"
    assert sent["content"]["formatted_body"] == "<b>Task due today</b>: &lt;Trash&gt; today"

    await messenger.close()
    assert client.closed


@pytest.mark.asyncio
async def test_matrix_messenger_raises_on_send_error() -> None:
    client = _FakeMatrixClient(RoomSendError("forbidden"))
    messenger = MatrixMessenger(SimpleNamespace(matrix_room_id="!room:hs"), client=client)

    with pytest.raises(RuntimeError):
        await messenger.send_notification(title="t", body="b")


@pytest.mark.asyncio
async def test_matrix_messenger_requires_room() -> None:
    messenger = MatrixMessenger(SimpleNamespace(matrix_room_id=""), client=_FakeMatrixClient(None))
    with pytest.raises(RuntimeError):
        await messenger.send_notification(title="t", body="b")
