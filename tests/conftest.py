from pathlib import Path
from typing import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from cotacao.core.config import Settings
from cotacao.main import create_app
from tests.helpers import UPSTREAM_BODY, json_handler


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    # Generous budgets keep success paths deterministic; timeout tests tighten them.
    return Settings(
        db_path=tmp_path / "exchange_rate.db",
        output_file=tmp_path / "cotacao.txt",
        request_timeout_seconds=5.0,
        upstream_timeout_seconds=2.0,
        storage_timeout_seconds=2.0,
    )


@pytest.fixture
def make_client(settings: Settings) -> Generator[Callable[..., TestClient], None, None]:
    opened: list[TestClient] = []

    def factory(handler=None, **overrides) -> TestClient:
        s = settings.model_copy(update=overrides)
        transport = httpx.MockTransport(handler or json_handler(UPSTREAM_BODY))
        client = TestClient(create_app(s, upstream_transport=transport))
        client.__enter__()
        opened.append(client)
        return client

    yield factory
    for client in opened:
        client.__exit__(None, None, None)
