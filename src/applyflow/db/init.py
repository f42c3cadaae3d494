from __future__ import annotations

from applyflow.config import get_settings
from applyflow.db.base import Base
from applyflow.db.session import engine
from applyflow.db import models  # noqa: F401


def ensure_data_directories() -> None:
    get_settings().data_dir.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, list[str]]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    return {"tables": sorted(Base.metadata.tables)}
