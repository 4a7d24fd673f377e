"""CLI 入口模块 -- python -m smarttask.core <command>

支持的命令：
  init-db        在配置的路径上初始化数据库 schema
  check-orphans  检查失去父任务的子任务 / embedding（级联约束生效时应为 0）
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m smarttask.core <command>")
        print("命令:")
        print("  init-db        初始化数据库 schema")
        print("  check-orphans  检查孤立的子任务与 embedding")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "check-orphans":
        orphan_count = asyncio.run(check_orphans())
        if orphan_count:
            sys.exit(2)
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, check-orphans")
        sys.exit(1)


async def init_database() -> None:
    """执行 schema 初始化"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def check_orphans() -> int:
    """统计孤立记录数量

    Returns:
        孤立子任务与孤立 embedding 的总数
    """
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        orphan_subtasks = await store_group.subtask_store.count_orphans()
        orphan_embeddings = await store_group.embedding_store.count_orphans()
    finally:
        await store_group.conn.close()

    print(f"孤立子任务: {orphan_subtasks}")
    print(f"孤立 embedding: {orphan_embeddings}")
    return orphan_subtasks + orphan_embeddings


if __name__ == "__main__":
    main()
