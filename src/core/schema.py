"""SQLite schema definitions and initialization."""

import logging

import aiosqlite


logger = logging.getLogger(__name__)


COLLECTIONS: dict[str, str] = {
    "boards": """
        CREATE TABLE IF NOT EXISTS boards (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
    "columns": """
        CREATE TABLE IF NOT EXISTS columns (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            board_id INTEGER NOT NULL REFERENCES boards(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            position INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            column_id INTEGER NOT NULL REFERENCES columns(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT,
            priority TEXT NOT NULL DEFAULT 'MEDIUM' CHECK (priority IN ('LOW', 'MEDIUM', 'HIGH')),
            pomodoro_goal INTEGER NOT NULL DEFAULT 1 CHECK (pomodoro_goal >= 1),
            completed INTEGER NOT NULL DEFAULT 0,
            start_at TEXT,
            end_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
    "pomodoros": """
        CREATE TABLE IF NOT EXISTS pomodoros (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            task_id INTEGER NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            duration INTEGER NOT NULL,
            break_time INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'IN_PROGRESS' CHECK (status IN ('IN_PROGRESS', 'PAUSED', 'COMPLETED')),
            started_at TEXT NOT NULL,
            paused_at TEXT,
            completed_at TEXT,
            created_at TEXT NOT NULL
        )
    """,
    "pomodoro_settings": """
        CREATE TABLE IF NOT EXISTS pomodoro_settings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL UNIQUE,
            focus_duration INTEGER NOT NULL,
            short_break_duration INTEGER NOT NULL,
            long_break_duration INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
    "flowers": """
        CREATE TABLE IF NOT EXISTS flowers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            task_id INTEGER NOT NULL,
            flower_type TEXT NOT NULL CHECK (flower_type IN ('NORMAL', 'LEGENDARY')),
            priority TEXT NOT NULL CHECK (priority IN ('LOW', 'MEDIUM', 'HIGH')),
            color TEXT,
            legendary_name TEXT,
            custom_name TEXT,
            tags TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
}

INDEXES: list[str] = [
    # A user may hold at most one IN_PROGRESS/PAUSED pomodoro
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_pomodoros_one_active_per_user
        ON pomodoros(user_id) WHERE status IN ('IN_PROGRESS', 'PAUSED')
    """,
    "CREATE INDEX IF NOT EXISTS idx_pomodoros_user_status ON pomodoros(user_id, status, completed_at)",
    "CREATE INDEX IF NOT EXISTS idx_pomodoros_task_status ON pomodoros(task_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_column ON tasks(user_id, column_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_updated ON tasks(user_id, completed, updated_at)",
    "CREATE INDEX IF NOT EXISTS idx_columns_board ON columns(board_id)",
    "CREATE INDEX IF NOT EXISTS idx_flowers_user_type ON flowers(user_id, flower_type, priority)",
]


async def init_schema(conn: aiosqlite.Connection) -> None:
    """Create every table and index that does not exist yet."""
    for name, ddl in COLLECTIONS.items():
        await conn.execute(ddl)
        logger.debug("Ensured table", extra={"collection": name})

    for ddl in INDEXES:
        await conn.execute(ddl)

    await conn.commit()
    logger.info("Database schema initialized", extra={"tables": len(COLLECTIONS), "indexes": len(INDEXES)})
