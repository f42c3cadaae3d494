from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="applyflow-tests-"))
os.environ["DATA_DIR"] = str(_TEST_DATA_DIR)
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DATA_DIR / 'applyflow_test.db'}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["OPENAI_API_KEY"] = ""
os.environ["JSEARCH_API_KEY"] = ""
os.environ["SUPABASE_URL"] = ""
os.environ["LOCAL_LLM_ENABLED"] = "false"

import pytest  # noqa: E402

from applyflow.core.runtime import get_throttle_store  # noqa: E402
from applyflow.db.base import Base  # noqa: E402
from applyflow.db.session import engine  # noqa: E402
from applyflow.db import models  # noqa: E402,F401


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    get_throttle_store().clear()
    yield
