import asyncio
import json
import tempfile
from pathlib import Path

import pytest

from colortoken.lsp.protocol import encode_message
from colortoken.server.documents import TextDocument

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "colors"


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def isolated_config(temp_dir, monkeypatch):
    cache_dir = temp_dir / "cache"
    config_dir = temp_dir / "config"
    cache_dir.mkdir()
    config_dir.mkdir()

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))

    return {"cache": cache_dir, "config": config_dir}


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def json_document():
    return TextDocument(
        uri="file:///project/colors.json",
        language_id="json",
        version=1,
        text=(FIXTURES_DIR / "colors.json").read_text(),
    )


@pytest.fixture
def css_document():
    return TextDocument(
        uri="file:///project/styles.css",
        language_id="css",
        version=1,
        text=(FIXTURES_DIR / "styles.css").read_text(),
    )


class FakeWriter:
    """Collects framed messages written by the server."""

    def __init__(self):
        self.buffer = b""

    def write(self, data: bytes) -> None:
        self.buffer += data

    async def drain(self) -> None:
        pass

    def messages(self) -> list[dict]:
        messages = []
        rest = self.buffer
        while rest:
            header, rest = rest.split(b"\r\n\r\n", 1)
            length = int(header.decode("ascii").split(":", 1)[1])
            messages.append(json.loads(rest[:length]))
            rest = rest[length:]
        return messages


class ClientHarness:
    """Drives a server from the client side through in-memory streams."""

    def __init__(self, reader: asyncio.StreamReader, writer: FakeWriter):
        self.reader = reader
        self.writer = writer
        self._next_id = 0

    def request(self, method: str, params: dict | None = None) -> int:
        self._next_id += 1
        message = {"jsonrpc": "2.0", "id": self._next_id, "method": method}
        if params is not None:
            message["params"] = params
        self.reader.feed_data(encode_message(message))
        return self._next_id

    def notify(self, method: str, params: dict | None = None) -> None:
        message = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        self.reader.feed_data(encode_message(message))

    def respond(self, request_id: int, result) -> None:
        self.reader.feed_data(encode_message({"jsonrpc": "2.0", "id": request_id, "result": result}))

    def close(self) -> None:
        self.reader.feed_eof()

    async def wait_for(self, predicate, timeout: float = 2.0) -> dict:
        async def poll():
            while True:
                for message in self.writer.messages():
                    if predicate(message):
                        return message
                await asyncio.sleep(0.01)

        return await asyncio.wait_for(poll(), timeout)

    async def response(self, request_id: int) -> dict:
        return await self.wait_for(lambda m: m.get("id") == request_id and "method" not in m)


@pytest.fixture
def make_client():
    """Returns a factory; call it inside the running event loop."""
    def factory():
        reader = asyncio.StreamReader()
        writer = FakeWriter()
        return reader, writer, ClientHarness(reader, writer)

    return factory
