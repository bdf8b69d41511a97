"""Ad-hoc database migrations for FlowShare."""

from __future__ import annotations

from sqlalchemy import text


def _column_exists(conn, table: str, column: str) -> bool:
    result = conn.execute(text(f"PRAGMA table_info('{table}')"))
    return any(row[1] == column for row in result)


def _add_missing_columns(conn, table: str, columns: dict) -> None:
    for name, ddl_type in columns.items():
        if not _column_exists(conn, table, name):
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {ddl_type}"))


def ensure_task_columns(conn) -> None:
    _add_missing_columns(
        conn,
        "tasks",
        {
            "due_time": "TEXT",
            "sort": "INTEGER NOT NULL DEFAULT 0",
            "color": "TEXT",
            "priority": "INTEGER NOT NULL DEFAULT 0",
            "external_id": "TEXT",
            "source_id": "INTEGER",
        },
    )
    # interval used to be writable as 0 or negative
    conn.execute(text('UPDATE tasks SET "interval" = 1 WHERE "interval" IS NULL OR "interval" < 1'))
    conn.execute(
        text("CREATE INDEX IF NOT EXISTS ix_tasks_bucket ON tasks (bucket_type, bucket_date)")
    )


def ensure_people_columns(conn) -> None:
    _add_missing_columns(conn, "people", {"color": "TEXT", "default_source_id": "INTEGER"})


def ensure_source_columns(conn) -> None:
    _add_missing_columns(
        conn,
        "external_sources",
        {
            "access_token": "TEXT",
            "refresh_token": "TEXT",
            "expires_at": "INTEGER",
            "scope": "TEXT",
            "account": "TEXT",
        },
    )


def ensure_done_dates_table(conn) -> None:
    conn.execute(
        text(
            """
            CREATE TABLE IF NOT EXISTS task_done_dates (
                task_id INTEGER NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
                date TEXT NOT NULL,
                PRIMARY KEY (task_id, date)
            )
            """
        )
    )
    conn.execute(
        text("CREATE INDEX IF NOT EXISTS ix_task_done_dates_date ON task_done_dates (date)")
    )
    # marks left behind by tasks deleted before cascades were enforced
    conn.execute(
        text("DELETE FROM task_done_dates WHERE task_id NOT IN (SELECT id FROM tasks)")
    )


def run_all(engine) -> None:
    with engine.begin() as conn:
        ensure_task_columns(conn)
        ensure_people_columns(conn)
        ensure_source_columns(conn)
        ensure_done_dates_table(conn)


__all__ = ["run_all"]
