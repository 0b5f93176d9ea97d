import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("CRP_ENVIRONMENT", "test")
os.environ.setdefault("CRP_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CRP_BACKEND_API_KEY", "test-api-key")
os.environ.setdefault("CRP_FLOWCORE_API_KEY", "")
os.environ.setdefault("CRP_LOG_JSON", "false")
os.environ.setdefault("CRP_RUN_PROJECTOR_IN_APP", "false")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_settings

get_settings.cache_clear()

from app.core.database import engine  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models import Base  # noqa: E402
from app.events_engine.dispatcher import set_event_dispatcher  # noqa: E402
from app.events_engine.source import set_event_source  # noqa: E402

API_KEY = "test-api-key"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    set_event_dispatcher(None)
    set_event_source(None)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client() -> TestClient:  # noqa: ANN001
    app = create_app()
    with TestClient(app) as test_client:
        test_client.headers.update({"X-API-Key": API_KEY})
        yield test_client
