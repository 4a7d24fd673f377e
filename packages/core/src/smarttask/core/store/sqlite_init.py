"""SQLite 数据库初始化

PRAGMA 配置 + 四张表 DDL + 索引创建。
subtasks / task_embeddings 通过 ON DELETE CASCADE 绑定父任务，
级联删除由外键策略保证，要求连接上开启 foreign_keys。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id     TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    title       TEXT NOT NULL CHECK (length(trim(title)) > 0),
    priority    TEXT NOT NULL DEFAULT 'medium'
                CHECK (priority IN ('low', 'medium', 'high')),
    status      TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'in-progress', 'done')),
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_created ON tasks(user_id, created_at DESC);",
]

# subtasks 表 DDL
_SUBTASKS_DDL = """
CREATE TABLE IF NOT EXISTS subtasks (
    subtask_id  TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    user_id     TEXT NOT NULL,
    title       TEXT NOT NULL CHECK (length(trim(title)) > 0),
    status      TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'in-progress', 'done')),
    created_at  TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id) ON DELETE CASCADE
);
"""

_SUBTASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_subtasks_task_created ON subtasks(task_id, created_at);",
]

# profiles 表 DDL
_PROFILES_DDL = """
CREATE TABLE IF NOT EXISTS profiles (
    user_id              TEXT PRIMARY KEY,
    profile_picture_url  TEXT,
    updated_at           TEXT NOT NULL
);
"""

# task_embeddings 表 DDL
_EMBEDDINGS_DDL = """
CREATE TABLE IF NOT EXISTS task_embeddings (
    task_id     TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    embedding   TEXT NOT NULL DEFAULT '[]',
    model       TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id) ON DELETE CASCADE
);
"""

_EMBEDDINGS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_task_embeddings_user ON task_embeddings(user_id);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_TASKS_DDL)
    await conn.execute(_SUBTASKS_DDL)
    await conn.execute(_PROFILES_DDL)
    await conn.execute(_EMBEDDINGS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _SUBTASKS_INDEXES + _EMBEDDINGS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"


async def verify_foreign_keys(conn: aiosqlite.Connection) -> bool:
    """验证外键约束是否开启（级联删除依赖此项）"""
    cursor = await conn.execute("PRAGMA foreign_keys;")
    row = await cursor.fetchone()
    return row is not None and row[0] == 1
