"""KeyValueStore 实现 -- 内存版与 SQLite 版

SQLite 版每次 set() 都立即提交，终止信号处理中 await 返回即代表写入完成。
"""

from datetime import UTC, datetime

import aiosqlite


class InMemoryKeyValueStore:
    """进程内存储，用于测试和不需要跨重启保留状态的宿主"""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteKeyValueStore:
    """KeyValueStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    @property
    def conn(self) -> aiosqlite.Connection:
        return self._conn

    async def get(self, key: str) -> bytes | None:
        """读取 key 对应的 blob"""
        cursor = await self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?",
            (key,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        value = row[0]
        # 兼容以 TEXT 写入的历史数据
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    async def set(self, key: str, value: bytes) -> None:
        """写入 blob 并提交"""
        await self._conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now(UTC).isoformat()),
        )
        await self._conn.commit()

    async def delete(self, key: str) -> None:
        """删除 key 并提交"""
        await self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await self._conn.commit()

    async def close(self) -> None:
        await self._conn.close()
