from __future__ import annotations

from datetime import UTC, datetime

from typer.testing import CliRunner

from applyflow.cli.app import app
from applyflow.db.repositories import Repository
from applyflow.db.session import SessionLocal
from applyflow.sources.base import PostingSource
from applyflow.types import JobPosting

runner = CliRunner()


class OneJobSource(PostingSource):
    source_name = "one"

    def search(self, role: str, *, location: str = "", keywords: list[str] | None = None) -> list[JobPosting]:
        return [
            JobPosting(
                title=role,
                company="Acme",
                location="Remote",
                apply_url="https://acme.example/cli",
                posted_at=datetime(2026, 2, 1, tzinfo=UTC),
            )
        ]


def test_discover_requires_saved_preferences() -> None:
    result = runner.invoke(app, ["jobs", "discover", "--user-id", "cli-user"])

    assert result.exit_code != 0


def test_preferences_then_discover_then_list(monkeypatch) -> None:
    monkeypatch.setattr("applyflow.cli.app.build_posting_source", lambda settings: OneJobSource())

    saved = runner.invoke(
        app,
        ["preferences", "set", "--user-id", "cli-user", "--roles", "Platform Engineer", "--location", "Remote"],
    )
    assert saved.exit_code == 0
    with SessionLocal() as db:
        assert Repository(db).load_preferences("cli-user").roles == "Platform Engineer"

    discovered = runner.invoke(app, ["jobs", "discover", "--user-id", "cli-user"])
    assert discovered.exit_code == 0
    assert '"insertedCount": 1' in discovered.output
    assert '"totalCandidates": 1' in discovered.output

    throttled = runner.invoke(app, ["jobs", "discover", "--user-id", "cli-user"])
    assert throttled.exit_code == 1

    listed = runner.invoke(app, ["jobs", "list", "--user-id", "cli-user"])
    assert listed.exit_code == 0
    assert "https://acme.example/cli" in listed.output
    with SessionLocal() as db:
        assert Repository(db).list_jobs("cli-user")[0].match_score == 85
