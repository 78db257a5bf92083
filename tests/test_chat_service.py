"""
Unit tests for the chat service (snapshot resolution and chat/message operations).
"""

import pytest
from unittest.mock import AsyncMock

from wagateway.channels.base import MediaPayload
from wagateway.core import (
    BackendOperationFailed,
    ChatNotFound,
    ChatService,
    MessageNotFound,
    NotReady,
)

from conftest import EMPTY, GROUP, TWIN, WORK


async def _ready(controller, factory):
    await controller.connect("s1")
    await factory.last.become_ready()
    return factory.last


UNKNOWN = "000000@g.us"

CHAT_ID_OPERATIONS = [
    ("get_messages", lambda s: s.get_messages(UNKNOWN, 5)),
    ("get_last_message", lambda s: s.get_last_message(UNKNOWN)),
    ("forward_last_message", lambda s: s.forward_last_message(UNKNOWN, GROUP.id)),
    ("delete_last_message", lambda s: s.delete_last_message(UNKNOWN, True)),
    ("add_participants", lambda s: s.add_participants(UNKNOWN, ["1@c.us"])),
    ("remove_participants", lambda s: s.remove_participants(UNKNOWN, ["1@c.us"])),
    ("promote_participants", lambda s: s.promote_participants(UNKNOWN, ["1@c.us"])),
    ("demote_participants", lambda s: s.demote_participants(UNKNOWN, ["1@c.us"])),
    ("update_picture", lambda s: s.update_picture(UNKNOWN, "/tmp/pic.png")),
    ("archive_chat", lambda s: s.archive_chat(UNKNOWN)),
    ("unarchive_chat", lambda s: s.unarchive_chat(UNKNOWN)),
    ("pin_chat", lambda s: s.pin_chat(UNKNOWN)),
    ("unpin_chat", lambda s: s.unpin_chat(UNKNOWN)),
    ("mute_chat", lambda s: s.mute_chat(UNKNOWN)),
    ("unmute_chat", lambda s: s.unmute_chat(UNKNOWN)),
    ("clear_messages", lambda s: s.clear_messages(UNKNOWN)),
    ("delete_chat", lambda s: s.delete_chat(UNKNOWN)),
    ("get_invite_link", lambda s: s.get_invite_link(UNKNOWN)),
    ("revoke_invite", lambda s: s.revoke_invite(UNKNOWN)),
]


class TestResolution:
    """Chat lookup against the snapshot."""

    @pytest.mark.asyncio
    async def test_not_ready_before_connect(self, chat_service):
        with pytest.raises(NotReady):
            await chat_service.get_messages(GROUP.id, 1)
        with pytest.raises(NotReady):
            chat_service.get_participants(GROUP.id)

    @pytest.mark.asyncio
    async def test_not_ready_while_awaiting_credential(self, controller, chat_service):
        await controller.connect("s1")
        with pytest.raises(NotReady):
            chat_service.get_all_chats()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,operation", CHAT_ID_OPERATIONS)
    async def test_unknown_chat_id(self, controller, factory, chat_service, name, operation):
        client = await _ready(controller, factory)
        with pytest.raises(ChatNotFound):
            await operation(chat_service)
        assert client.called("fetch_messages") == []

    @pytest.mark.asyncio
    async def test_unknown_chat_id_participants(self, controller, factory, chat_service):
        await _ready(controller, factory)
        with pytest.raises(ChatNotFound):
            chat_service.get_participants(UNKNOWN)
        with pytest.raises(ChatNotFound):
            chat_service.get_admins(UNKNOWN)

    @pytest.mark.asyncio
    async def test_snapshot_is_point_in_time(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        client.chats = []  # backend changed, snapshot did not
        assert len(chat_service.get_all_chats()) == 4


class TestMessages:
    """Message reads, forward, send and delete."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -1, -50, None])
    async def test_non_positive_limit_means_one(self, controller, factory, chat_service, limit):
        client = await _ready(controller, factory)

        messages = await chat_service.get_messages(GROUP.id, limit)
        expected = await chat_service.get_messages(GROUP.id, 1)

        assert messages == expected
        assert len(messages) == 1
        assert client.called("fetch_messages")[0] == ("fetch_messages", GROUP.id, 1)

    @pytest.mark.asyncio
    async def test_get_messages_most_recent(self, controller, factory, chat_service):
        await _ready(controller, factory)
        messages = await chat_service.get_messages(GROUP.id, 3)
        assert [m.body for m in messages] == ["hello 3", "hello 4", "hello 5"]

    @pytest.mark.asyncio
    async def test_get_last_message(self, controller, factory, chat_service):
        await _ready(controller, factory)
        message = await chat_service.get_last_message(GROUP.id)
        assert message.body == "hello 5"

        with pytest.raises(MessageNotFound):
            await chat_service.get_last_message(EMPTY.id)

    @pytest.mark.asyncio
    async def test_forward_last_message(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        assert await chat_service.forward_last_message(GROUP.id, WORK.id) is True
        assert client.called("forward_message") == [("forward_message", f"msg-{GROUP.id}-5", WORK.id)]

    @pytest.mark.asyncio
    async def test_forward_from_empty_chat_sends_nothing(self, controller, factory, chat_service):
        client = await _ready(controller, factory)

        with pytest.raises(MessageNotFound):
            await chat_service.forward_last_message(EMPTY.id, WORK.id)
        with pytest.raises(MessageNotFound):
            await chat_service.forward_last_message(EMPTY.id, UNKNOWN)

        assert client.called("forward_message") == []

    @pytest.mark.asyncio
    async def test_forward_to_unknown_destination(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        with pytest.raises(ChatNotFound):
            await chat_service.forward_last_message(GROUP.id, UNKNOWN)
        assert client.called("forward_message") == []

    @pytest.mark.asyncio
    async def test_send_by_name_uses_first_match(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        assert await chat_service.send_message_by_name("Family", "hi all") is True
        assert client.called("send_message") == [("send_message", GROUP.id, "hi all")]
        assert TWIN.id not in [c[1] for c in client.called("send_message")]

    @pytest.mark.asyncio
    async def test_send_by_name_no_match(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        assert await chat_service.send_message_by_name("family", "hi") is False
        assert client.called("send_message") == []

    @pytest.mark.asyncio
    async def test_delete_last_message(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        assert await chat_service.delete_last_message(GROUP.id, True) is True
        assert await chat_service.delete_last_message(WORK.id, False) is True
        assert client.called("delete_message") == [
            ("delete_message", f"msg-{GROUP.id}-5", True),
            ("delete_message", f"msg-{WORK.id}-1", False),
        ]

    @pytest.mark.asyncio
    async def test_delete_last_message_empty_chat(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        assert await chat_service.delete_last_message(EMPTY.id, True) is False
        assert client.called("delete_message") == []


class TestParticipants:
    """Participant reads and mutations."""

    @pytest.mark.asyncio
    async def test_admins_are_ordered_subset(self, controller, factory, chat_service):
        await _ready(controller, factory)
        participants = chat_service.get_participants(GROUP.id)
        admins = chat_service.get_admins(GROUP.id)

        assert admins == [p for p in participants if p.is_admin]
        assert [a.id for a in admins] == ["5511999990001@c.us", "5511999990003@c.us"]

    @pytest.mark.asyncio
    async def test_mutations_reach_backend(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        ids = ["5511888880001@c.us"]

        await chat_service.add_participants(GROUP.id, ids)
        await chat_service.remove_participants(GROUP.id, ids)
        await chat_service.promote_participants(GROUP.id, ids)
        await chat_service.demote_participants(GROUP.id, ids)

        for op in ("add_participants", "remove_participants", "promote_participants", "demote_participants"):
            assert client.called(op) == [(op, GROUP.id, ids)]


class TestChatState:
    """Archive, pin, mute, clear, delete and picture."""

    @pytest.mark.asyncio
    async def test_state_actions(self, controller, factory, chat_service):
        client = await _ready(controller, factory)

        await chat_service.archive_chat(WORK.id)
        await chat_service.unarchive_chat(WORK.id)
        await chat_service.pin_chat(WORK.id)
        await chat_service.unpin_chat(WORK.id)
        await chat_service.mute_chat(WORK.id)
        await chat_service.unmute_chat(WORK.id)
        await chat_service.clear_messages(WORK.id)
        await chat_service.delete_chat(WORK.id)

        assert [c[0] for c in client.calls[-8:]] == [
            "archive", "unarchive", "pin", "unpin", "mute", "unmute", "clear_messages", "delete_chat",
        ]

    @pytest.mark.asyncio
    async def test_update_picture_uses_media_loader(self, controller, factory, registry):
        client = await _ready(controller, factory)
        loader = AsyncMock(return_value=MediaPayload(mimetype="image/png", data="aGk=", filename="p.png"))
        service = ChatService(registry, "s1", media_loader=loader)

        assert await service.update_picture(GROUP.id, "/data/p.png") is True
        loader.assert_awaited_once_with("/data/p.png")
        assert client.called("set_picture") == [("set_picture", GROUP.id, "image/png")]

    @pytest.mark.asyncio
    async def test_backend_failure_is_wrapped(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        client.archive = AsyncMock(side_effect=RuntimeError("page crashed"))

        with pytest.raises(BackendOperationFailed, match="page crashed"):
            await chat_service.archive_chat(WORK.id)


class TestInvites:
    """Invite link building and normalization."""

    @pytest.mark.asyncio
    async def test_invite_round_trip(self, controller, factory, chat_service):
        client = await _ready(controller, factory)

        link = await chat_service.get_invite_link(GROUP.id)
        assert link == "https://chat.whatsapp.com/ABC123"

        chat_id = await chat_service.accept_invite(link)
        assert chat_id == "120363999@g.us"
        assert client.called("accept_invite") == [("accept_invite", "ABC123")]

    @pytest.mark.asyncio
    async def test_backend_returning_full_url_is_not_doubled(self, controller, factory, chat_service):
        client = await _ready(controller, factory)
        client.invite_code = "https://chat.whatsapp.com/XYZ789"
        assert await chat_service.get_invite_link(GROUP.id) == "https://chat.whatsapp.com/XYZ789"

    @pytest.mark.asyncio
    async def test_revoke_returns_new_link(self, controller, factory, chat_service):
        await _ready(controller, factory)
        assert await chat_service.revoke_invite(GROUP.id) == "https://chat.whatsapp.com/NEW456"

    @pytest.mark.asyncio
    async def test_accept_invite_requires_ready(self, chat_service):
        with pytest.raises(NotReady):
            await chat_service.accept_invite("ABC123")
