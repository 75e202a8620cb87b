import asyncio
from pathlib import Path

import httpx
import pytest

from cotacao import client as client_module
from cotacao.client import QuoteClient, append_bid, main
from cotacao.core.errors import (
    OutputWriteError,
    ParseError,
    StageTimeoutError,
    TransportError,
)
from tests.helpers import EXPECTED_QUOTE, failing_handler, json_handler, slow_handler


def _client(handler, output: Path, timeout: float = 1.0) -> QuoteClient:
    return QuoteClient(
        service_url="http://service.test/",
        timeout=timeout,
        output_file=output,
        transport=httpx.MockTransport(handler),
    )


def test_run_appends_bid_line(tmp_path: Path) -> None:
    output = tmp_path / "cotacao.txt"
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=EXPECTED_QUOTE)

    bid = asyncio.run(_client(handler, output).run())

    assert bid == "5.43"
    assert seen == ["http://service.test/cotacao"]
    assert output.read_text(encoding="utf-8") == "Dólar: 5.43\n"


def test_run_is_append_only(tmp_path: Path) -> None:
    output = tmp_path / "cotacao.txt"
    output.write_text("Dólar: 5.40\n", encoding="utf-8")

    asyncio.run(_client(json_handler(EXPECTED_QUOTE), output).run())

    assert output.read_text(encoding="utf-8") == "Dólar: 5.40\nDólar: 5.43\n"


def test_slow_service_is_timeout(tmp_path: Path) -> None:
    output = tmp_path / "cotacao.txt"

    with pytest.raises(StageTimeoutError) as exc_info:
        asyncio.run(_client(slow_handler(1.0, EXPECTED_QUOTE), output, timeout=0.05).run())

    assert exc_info.value.stage == "client"
    assert not output.exists()


def test_unreachable_service_is_transport_error(tmp_path: Path) -> None:
    with pytest.raises(TransportError):
        asyncio.run(_client(failing_handler(), tmp_path / "cotacao.txt").run())


def test_error_status_is_transport_error(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(408, text="API request timeout")

    output = tmp_path / "cotacao.txt"
    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_client(handler, output).run())

    assert exc_info.value.status_code == 408
    assert not output.exists()


def test_malformed_body_is_parse_error(tmp_path: Path) -> None:
    with pytest.raises(ParseError):
        asyncio.run(_client(json_handler({"bid": "5.43"}), tmp_path / "cotacao.txt").run())


def test_unwritable_output_is_reported(tmp_path: Path) -> None:
    with pytest.raises(OutputWriteError):
        append_bid(tmp_path / "missing-dir" / "cotacao.txt", "5.43")


def test_main_exits_non_zero_on_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    async def refuse(self):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(client_module.QuoteClient, "_request", refuse)

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 1
    assert not (tmp_path / "cotacao.txt").exists()


def test_main_writes_output_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("OUTPUT_FILE", str(tmp_path / "out.txt"))

    async def respond(self):
        return httpx.Response(200, json=EXPECTED_QUOTE)

    monkeypatch.setattr(client_module.QuoteClient, "_request", respond)

    main()

    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "Dólar: 5.43\n"
