"""Test fixtures for the apflow client."""

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fake_backend import FakeTaskStore, create_app
from fastapi import FastAPI

from apflow_client.api.models import TaskTree
from apflow_client.client import ApflowClient
from apflow_client.config import ClientConfig
from apflow_client.factory import create_client

BASE_URL = "http://apflow.test"


@pytest.fixture
def store() -> FakeTaskStore:
    """Fake server state with a small task tree.

    root (in_progress)
      child-a (in_progress)
        child-c (completed)
      child-b (pending)
    """
    store = FakeTaskStore()
    store.add(id="root", name="Root", user_id="alice", status="in_progress", progress=0.5)
    store.add(id="child-a", name="A", parent_id="root", user_id="alice", status="in_progress")
    store.add(id="child-c", name="C", parent_id="child-a", status="completed", progress=1.0)
    store.add(id="child-b", name="B", parent_id="root", user_id="bob")
    return store


@pytest.fixture
def backend_app(store: FakeTaskStore) -> FastAPI:
    """Fake server application bound to the store."""
    return create_app(store)


@pytest_asyncio.fixture
async def client(backend_app: FastAPI) -> AsyncGenerator[ApflowClient, None]:
    """Client talking to the fake server in-process."""
    http_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=backend_app))
    config = ClientConfig(api_url=BASE_URL)
    async with create_client(config, http_client=http_client) as api_client:
        yield api_client
    await http_client.aclose()


@pytest.fixture
def sample_tree() -> TaskTree:
    """Tree R[A[C], B] built client-side."""
    return TaskTree.model_validate(
        {
            "id": "R",
            "name": "Root",
            "status": "in_progress",
            "progress": 0.25,
            "children": [
                {
                    "id": "A",
                    "name": "A",
                    "parent_id": "R",
                    "status": "failed",
                    "error": "boom",
                    "children": [
                        {
                            "id": "C",
                            "name": "C",
                            "parent_id": "A",
                            "status": "completed",
                            "progress": 1.0,
                        }
                    ],
                },
                {"id": "B", "name": "B", "parent_id": "R"},
            ],
        }
    )
