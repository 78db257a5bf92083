"""
Tests for the per-session credential store.
"""

import pytest

from wagateway.storage import CredentialStore


@pytest.fixture
def store(tmp_path):
    return CredentialStore(str(tmp_path / "auth"))


class TestCredentialStore:

    def test_path_layout(self, store):
        path = store.path_for("session1")
        assert path.name == "session-session1"
        assert path.parent == store.base_dir

    @pytest.mark.parametrize("name", ["../escape", "a/b", "../../etc", "../../session-s2", "x/../../session-s2"])
    def test_rejects_path_traversal(self, store, name):
        with pytest.raises(ValueError, match="Invalid session name"):
            store.path_for(name)

    @pytest.mark.asyncio
    async def test_traversal_cannot_purge_another_session(self, store):
        store.path_for("s2").mkdir()

        with pytest.raises(ValueError):
            await store.purge("../../session-s2")

        assert await store.exists("s2") is True

    @pytest.mark.asyncio
    async def test_exists_and_purge(self, store):
        assert await store.exists("s1") is False
        assert await store.purge("s1") is False

        profile = store.path_for("s1")
        (profile / "Default").mkdir(parents=True)
        (profile / "Default" / "Cookies").write_bytes(b"cookie")

        assert await store.exists("s1") is True
        assert await store.purge("s1") is True
        assert await store.exists("s1") is False
        assert not profile.exists()

    @pytest.mark.asyncio
    async def test_purge_only_touches_one_session(self, store):
        store.path_for("s1").mkdir()
        store.path_for("s2").mkdir()

        await store.purge("s1")

        assert await store.exists("s1") is False
        assert await store.exists("s2") is True
