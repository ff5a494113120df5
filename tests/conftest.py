import copy

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.config import Settings
from app.database.engine import create_engine
from app.main import create_app
from app.modules.models.schemas import parse_model_definition

EMPLOYEE = {
    "name": "Employee",
    "fields": [
        {"name": "name", "type": "string", "required": True},
        {"name": "age", "type": "number"},
    ],
    "rbac": {
        "Viewer": ["read"],
        "Manager": ["create", "read"],
    },
}

TASK = {
    "name": "Task",
    "fields": [
        {"name": "title", "type": "string", "required": True},
        {"name": "done", "type": "boolean"},
        {"name": "createdBy", "type": "string"},
    ],
    "ownerField": "createdBy",
    "rbac": {
        "Admin": ["all"],
        "Manager": ["create", "read", "update", "delete"],
        "Viewer": ["read"],
    },
}


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'data.db'}",
        models_dir=str(tmp_path / "models-json"),
        rate_limit="1000/minute",
    )


@pytest.fixture()
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest_asyncio.fixture()
async def engine(settings):
    engine = create_engine(settings)
    yield engine
    await engine.dispose()


@pytest.fixture()
def employee_raw():
    return copy.deepcopy(EMPLOYEE)


@pytest.fixture()
def task_raw():
    return copy.deepcopy(TASK)


@pytest.fixture()
def employee(employee_raw):
    return parse_model_definition(employee_raw)


@pytest.fixture()
def task(task_raw):
    return parse_model_definition(task_raw)
