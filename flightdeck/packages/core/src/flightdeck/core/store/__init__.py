"""Flightdeck Core Store -- 唯一性状态持久化

提供工厂函数创建 SQLite 键值存储。
"""

from pathlib import Path

import aiosqlite

from .kv_store import InMemoryKeyValueStore, SqliteKeyValueStore
from .protocols import EventSink, KeyValueStore, MetadataProvider
from .sqlite_init import init_db


async def create_kv_store(db_path: str) -> SqliteKeyValueStore:
    """创建 SQLite 键值存储

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        SqliteKeyValueStore 实例（调用方负责 close()）
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    await init_db(conn)

    return SqliteKeyValueStore(conn)


__all__ = [
    "KeyValueStore",
    "EventSink",
    "MetadataProvider",
    "InMemoryKeyValueStore",
    "SqliteKeyValueStore",
    "create_kv_store",
    "init_db",
]
