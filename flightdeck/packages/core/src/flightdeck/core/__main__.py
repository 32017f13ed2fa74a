"""CLI 入口模块 -- python -m flightdeck.core <command>

支持的命令：
  show-state   打印已持久化的唯一性统计状态
  clear-state  删除已持久化的唯一性统计状态
"""

import asyncio
import sys

from .config import STATE_STORAGE_KEY, get_db_path
from .logging_config import setup_logging
from .uniqueness import decode_state

_USAGE = [
    "用法: python -m flightdeck.core <command>",
    "命令:",
    "  show-state   打印已持久化的唯一性统计状态",
    "  clear-state  删除已持久化的唯一性统计状态",
]


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("\n".join(_USAGE))
        sys.exit(1)

    command = sys.argv[1]
    setup_logging()

    if command == "show-state":
        asyncio.run(show_state())
    elif command == "clear-state":
        asyncio.run(clear_state())
    else:
        print(f"未知命令: {command}")
        print("可用命令: show-state, clear-state")
        sys.exit(1)


async def show_state() -> None:
    """打印持久化状态（压缩后的存储形态）"""
    from .exceptions import StateBlobError
    from .store import create_kv_store

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store = await create_kv_store(db_path)
    try:
        blob = await store.get(STATE_STORAGE_KEY)
    finally:
        await store.close()

    if blob is None:
        print("没有已持久化的唯一性状态")
        return

    try:
        state = decode_state(blob)
    except StateBlobError as e:
        print(f"状态无法解析: {e}")
        sys.exit(1)

    for period, tracked in state.items():
        events = ", ".join(sorted(tracked.events)) or "-"
        print(f"{period.value:<8} ordinal={tracked.period_ordinal:<10} events={events}")


async def clear_state() -> None:
    """删除持久化状态"""
    from .store import create_kv_store

    db_path = get_db_path()
    store = await create_kv_store(db_path)
    try:
        await store.delete(STATE_STORAGE_KEY)
    finally:
        await store.close()
    print(f"已删除 {STATE_STORAGE_KEY}（{db_path}）")


if __name__ == "__main__":
    main()
