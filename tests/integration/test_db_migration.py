from __future__ import annotations

import os
import sqlite3
import subprocess
import sys
from pathlib import Path


def _tables(db_path: Path) -> set[str]:
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        return {row[0] for row in cur.fetchall()}
    finally:
        conn.close()


def test_alembic_upgrade_and_downgrade_initial_schema(tmp_path: Path) -> None:
    repo_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path / "migration_test.db"
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{db_path}"

    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", "upgrade", "head"],
        cwd=repo_root,
        env=env,
        check=True,
    )

    assert {"preferences", "jobs", "applications", "gmail_tokens"} <= _tables(db_path)

    conn = sqlite3.connect(db_path)
    cur = conn.execute("PRAGMA index_list(jobs)")
    index_names = {row[1] for row in cur.fetchall()}
    cur = conn.execute("PRAGMA table_info(applications)")
    application_cols = {row[1] for row in cur.fetchall()}
    conn.close()

    assert "ix_jobs_user_id" in index_names
    assert {"job_id", "email_sent_at", "contact_email", "notes"} <= application_cols

    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", "downgrade", "base"],
        cwd=repo_root,
        env=env,
        check=True,
    )

    assert not {"preferences", "jobs", "applications", "gmail_tokens"} & _tables(db_path)
