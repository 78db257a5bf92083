"""
Shared test fixtures and configuration.
"""

import os
import tempfile

import pytest

# Set test environment variables before importing app modules
_TEST_ROOT = tempfile.mkdtemp(prefix="wagateway_test_")
os.environ.setdefault("CREDENTIALS_PATH", os.path.join(_TEST_ROOT, "auth"))
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_API_REQUESTS", "true")
os.environ.setdefault("PRINT_QR_IN_TERMINAL", "false")
os.environ.setdefault("QR_TIMEOUT_TICKS", "5")
os.environ.setdefault("QR_TICK_SECONDS", "0.01")

from wagateway.channels.base import Chat, ChatClient, MediaPayload, Message, Participant  # noqa: E402
from wagateway.core import ChatService, SessionController, SessionRegistry  # noqa: E402
from wagateway.storage import CredentialStore  # noqa: E402


GROUP = Chat(
    id="120363001@g.us",
    name="Family",
    is_group=True,
    participants=(
        Participant(id="5511999990001@c.us", is_admin=True, is_super_admin=True),
        Participant(id="5511999990002@c.us"),
        Participant(id="5511999990003@c.us", is_admin=True),
        Participant(id="5511999990004@c.us"),
    ),
)
TWIN = Chat(id="120363002@g.us", name="Family", is_group=True)
WORK = Chat(id="120363003@g.us", name="Work", is_group=True)
EMPTY = Chat(id="5511999990009@c.us", name="Alice")


def make_message(chat_id: str, n: int, **kwargs) -> Message:
    kwargs.setdefault("body", f"hello {n}")
    return Message(id=f"msg-{chat_id}-{n}", chat_id=chat_id, timestamp=1_700_000_000 + n, **kwargs)


class FakeChatClient(ChatClient):
    """
    In-memory ChatClient.

    initialize() emits the configured QR payloads, or "ready" straight away when
    the profile directory holds a marker left by a previous login. When
    initialize_gate is given, initialize() waits on it first (a slow browser launch).
    """

    AUTH_MARKER = "auth.json"

    def __init__(
        self,
        session_name,
        user_data_dir,
        qr_payloads=("qr-payload-1",),
        fail_initialize=False,
        fail_destroy=False,
        initialize_gate=None,
    ):
        super().__init__(session_name)
        self.user_data_dir = user_data_dir
        self.qr_payloads = list(qr_payloads)
        self.fail_initialize = fail_initialize
        self.fail_destroy = fail_destroy
        self.initialize_gate = initialize_gate
        self.chats = [GROUP, TWIN, WORK, EMPTY]
        self.messages = {
            GROUP.id: [make_message(GROUP.id, i, from_me=True, is_deletable_for_everyone=True) for i in range(1, 6)],
            WORK.id: [make_message(WORK.id, 1)],
        }
        self.invite_code = "ABC123"
        self.calls = []
        self.destroyed = False
        self.logged_out = False

    async def initialize(self):
        self.calls.append(("initialize",))
        if self.initialize_gate is not None:
            await self.initialize_gate.wait()
        if self.fail_initialize:
            raise RuntimeError("browser failed to launch")
        self.user_data_dir.mkdir(parents=True, exist_ok=True)
        if (self.user_data_dir / self.AUTH_MARKER).exists():
            await self._emit("ready")
            return
        for payload in self.qr_payloads:
            await self._emit("qr", payload)

    async def become_ready(self):
        """Simulate the user scanning the QR code."""
        (self.user_data_dir / self.AUTH_MARKER).write_text("{}")
        await self._emit("ready")

    async def destroy(self):
        self.calls.append(("destroy",))
        self.destroyed = True
        if self.fail_destroy:
            raise RuntimeError("browser already gone")
        await self._emit("disconnected")

    async def logout(self):
        self.calls.append(("logout",))
        self.logged_out = True
        await self.destroy()

    async def get_chats(self):
        return list(self.chats)

    async def fetch_messages(self, chat_id, limit):
        self.calls.append(("fetch_messages", chat_id, limit))
        return self.messages.get(chat_id, [])[-limit:]

    async def send_message(self, chat_id, body):
        self.calls.append(("send_message", chat_id, body))
        return make_message(chat_id, 99, body=body)

    async def forward_message(self, message, chat_id):
        self.calls.append(("forward_message", message.id, chat_id))
        return True

    async def delete_message(self, message, everyone):
        self.calls.append(("delete_message", message.id, everyone))

    async def add_participants(self, chat_id, participant_ids):
        self.calls.append(("add_participants", chat_id, participant_ids))

    async def remove_participants(self, chat_id, participant_ids):
        self.calls.append(("remove_participants", chat_id, participant_ids))

    async def promote_participants(self, chat_id, participant_ids):
        self.calls.append(("promote_participants", chat_id, participant_ids))

    async def demote_participants(self, chat_id, participant_ids):
        self.calls.append(("demote_participants", chat_id, participant_ids))

    async def set_picture(self, chat_id, media: MediaPayload):
        self.calls.append(("set_picture", chat_id, media.mimetype))
        return True

    async def archive(self, chat_id):
        self.calls.append(("archive", chat_id))

    async def unarchive(self, chat_id):
        self.calls.append(("unarchive", chat_id))

    async def pin(self, chat_id):
        self.calls.append(("pin", chat_id))

    async def unpin(self, chat_id):
        self.calls.append(("unpin", chat_id))

    async def mute(self, chat_id):
        self.calls.append(("mute", chat_id))

    async def unmute(self, chat_id):
        self.calls.append(("unmute", chat_id))

    async def clear_messages(self, chat_id):
        self.calls.append(("clear_messages", chat_id))

    async def delete_chat(self, chat_id):
        self.calls.append(("delete_chat", chat_id))

    async def get_invite_code(self, chat_id):
        return self.invite_code

    async def revoke_invite(self, chat_id):
        self.invite_code = "NEW456"
        return self.invite_code

    async def accept_invite(self, code):
        self.calls.append(("accept_invite", code))
        return "120363999@g.us"

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


class FakeClientFactory:
    """ClientFactory recording every client it builds."""

    def __init__(self, **client_kwargs):
        self.client_kwargs = client_kwargs
        self.created = []

    def __call__(self, session_name, user_data_dir):
        client = FakeChatClient(session_name, user_data_dir, **self.client_kwargs)
        self.created.append(client)
        return client

    @property
    def last(self) -> FakeChatClient:
        return self.created[-1]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def credential_store(tmp_path):
    return CredentialStore(str(tmp_path / "auth"))


@pytest.fixture
def factory():
    return FakeClientFactory()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def controller(registry, credential_store, factory):
    return SessionController(registry, credential_store, factory, qr_timeout_ticks=5, qr_tick_seconds=0.01)


@pytest.fixture
def chat_service(registry):
    return ChatService(registry, "s1")
