from __future__ import annotations

import json

import typer
import uvicorn

from applyflow.api.app import create_app
from applyflow.config import get_settings
from applyflow.core.discovery import JobDiscoveryService
from applyflow.core.runtime import get_throttle_store
from applyflow.core.throttle import DiscoveryThrottle, DiscoveryThrottled
from applyflow.db.init import init_database
from applyflow.db.repositories import Repository
from applyflow.db.session import SessionLocal
from applyflow.logging_config import configure_logging
from applyflow.sources.factory import build_posting_source
from applyflow.types import JobPreferences

app = typer.Typer(help="ApplyFlow CLI")
jobs_app = typer.Typer(help="Job discovery and saved jobs")
preferences_app = typer.Typer(help="Manage search preferences")

app.add_typer(jobs_app, name="jobs")
app.add_typer(preferences_app, name="preferences")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Initialize the data directory and database tables."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    """Run the HTTP API."""
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(), host=host or settings.app_host, port=port or settings.app_port)


@preferences_app.command("set")
def preferences_set(
    user_id: str = typer.Option(..., "--user-id"),
    roles: str = typer.Option("", "--roles"),
    keywords: str = typer.Option("", "--keywords"),
    location: str = typer.Option("", "--location"),
    experience_level: str = typer.Option("Mid-level", "--experience-level"),
    tech_stack: str = typer.Option("", "--tech-stack"),
) -> None:
    configure_logging()
    ensure_initialized()
    preferences = JobPreferences(
        roles=roles,
        keywords=keywords,
        location=location,
        experience_level=experience_level,
        tech_stack=tech_stack,
    )
    with SessionLocal() as db:
        Repository(db).save_preferences(user_id, preferences)
    typer.echo(preferences.model_dump_json(indent=2))


@jobs_app.command("discover")
def jobs_discover(user_id: str = typer.Option(..., "--user-id")) -> None:
    """Search for new jobs using the user's saved preferences."""
    configure_logging()
    ensure_initialized()
    settings = get_settings()

    with SessionLocal() as db:
        repo = Repository(db)
        preferences = repo.load_preferences(user_id)
        if preferences is None:
            raise typer.BadParameter(f"no preferences saved for user {user_id}")

        service = JobDiscoveryService(
            repo=repo,
            source=build_posting_source(settings),
            throttle=DiscoveryThrottle(get_throttle_store(), window_sec=settings.discovery_cooldown_sec),
            max_roles=settings.discovery_max_roles,
            default_role=settings.discovery_default_role,
        )
        try:
            result = service.run(user_id, preferences)
        except DiscoveryThrottled as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc

    typer.echo(result.model_dump_json(by_alias=True, indent=2))


@jobs_app.command("list")
def jobs_list(
    user_id: str = typer.Option(..., "--user-id"),
    limit: int = typer.Option(20, "--limit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        rows = Repository(db).list_jobs(user_id, limit=limit)
        payload = [
            {
                "id": row.id,
                "title": row.title,
                "company": row.company,
                "location": row.location,
                "match_score": row.match_score,
                "apply_url": row.apply_url,
            }
            for row in rows
        ]
    typer.echo(json.dumps(payload, indent=2))

