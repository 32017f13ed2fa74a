"""KeyValueStore 实现测试

测试内容：
1. InMemoryKeyValueStore 基本读写
2. SqliteKeyValueStore 跨连接持久化 + WAL 模式
"""

import pytest
from flightdeck.core.store import InMemoryKeyValueStore, create_kv_store
from flightdeck.core.store.sqlite_init import verify_wal_mode


class TestInMemoryKeyValueStore:
    """内存存储"""

    async def test_get_missing(self):
        assert await InMemoryKeyValueStore().get("k") is None

    async def test_set_get_delete(self):
        store = InMemoryKeyValueStore()
        await store.set("k", b"v1")
        await store.set("k", b"v2")
        assert await store.get("k") == b"v2"
        await store.delete("k")
        assert await store.get("k") is None

    async def test_initial_data_copied(self):
        initial = {"k": b"v"}
        store = InMemoryKeyValueStore(initial)
        await store.delete("k")
        assert initial == {"k": b"v"}


class TestSqliteKeyValueStore:
    """SQLite 存储"""

    @pytest.fixture
    def db_path(self, tmp_path):
        return str(tmp_path / "nested" / "dir" / "flightdeck.db")

    async def test_creates_parent_directory(self, db_path, tmp_path):
        store = await create_kv_store(db_path)
        await store.close()
        assert (tmp_path / "nested" / "dir" / "flightdeck.db").exists()

    async def test_wal_mode_enabled(self, db_path):
        store = await create_kv_store(db_path)
        try:
            assert await verify_wal_mode(store.conn) is True
        finally:
            await store.close()

    async def test_survives_reconnect(self, db_path):
        store = await create_kv_store(db_path)
        await store.set("state", b'{"day":{"period_ordinal":1,"events":["A"]}}')
        await store.close()

        reopened = await create_kv_store(db_path)
        try:
            assert await reopened.get("state") == b'{"day":{"period_ordinal":1,"events":["A"]}}'
        finally:
            await reopened.close()

    async def test_upsert_overwrites(self, db_path):
        store = await create_kv_store(db_path)
        try:
            await store.set("state", b"old")
            await store.set("state", b"new")
            assert await store.get("state") == b"new"
            cursor = await store.conn.execute("SELECT COUNT(*) FROM kv_store")
            assert (await cursor.fetchone())[0] == 1
        finally:
            await store.close()

    async def test_delete(self, db_path):
        store = await create_kv_store(db_path)
        try:
            await store.set("state", b"v")
            await store.delete("state")
            assert await store.get("state") is None
            # 删除不存在的 key 不报错
            await store.delete("state")
        finally:
            await store.close()

    async def test_text_value_returned_as_bytes(self, db_path):
        store = await create_kv_store(db_path)
        try:
            await store.conn.execute(
                "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                ("legacy", "text-value", "2026-01-01T00:00:00+00:00"),
            )
            await store.conn.commit()
            assert await store.get("legacy") == b"text-value"
        finally:
            await store.close()
