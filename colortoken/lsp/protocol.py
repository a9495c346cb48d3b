import json
import asyncio
from typing import Any

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_NOT_INITIALIZED = -32002


class LSPProtocolError(Exception):
    pass


class LSPResponseError(Exception):
    code: int
    message: str
    data: object | None

    def __init__(self, code: int, message: str, data: object | None = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"LSP Error {code}: {message}")

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


def encode_message(obj: dict[str, Any]) -> bytes:
    content = json.dumps(obj).encode("utf-8")
    header = f"Content-Length: {len(content)}\r\n\r\n".encode("ascii")
    return header + content


async def read_message(reader: asyncio.StreamReader) -> dict[str, Any]:
    headers: dict[str, str] = {}

    while True:
        line = await reader.readline()
        if not line:
            raise LSPProtocolError("Connection closed")

        try:
            line_str = line.decode("ascii").strip()
        except UnicodeDecodeError:
            raise LSPProtocolError(f"Non-ASCII header line: {line!r}")
        if not line_str:
            break

        if ":" in line_str:
            key, value = line_str.split(":", 1)
            headers[key.strip()] = value.strip()

    if "Content-Length" not in headers:
        raise LSPProtocolError("Missing Content-Length header")

    try:
        content_length = int(headers["Content-Length"])
    except ValueError:
        raise LSPProtocolError(f"Invalid Content-Length header: {headers['Content-Length']}")
    if content_length < 0:
        raise LSPProtocolError(f"Invalid Content-Length header: {content_length}")

    try:
        content = await reader.readexactly(content_length)
    except asyncio.IncompleteReadError:
        raise LSPProtocolError("Connection closed while reading message body")

    try:
        message = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LSPProtocolError(f"Malformed message body: {e}")

    if not isinstance(message, dict):
        raise LSPProtocolError(f"Expected a JSON object, got {type(message).__name__}")
    return message
