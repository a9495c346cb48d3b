import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from .. import __version__
from ..colors.cache import ParseFailurePolicy, TokenCache
from ..colors.detection import DetectionEngine
from ..colors.references import ReferenceResolver
from ..lsp.capabilities import client_supports_configuration, get_server_capabilities
from ..lsp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    SERVER_NOT_INITIALIZED,
    LSPProtocolError,
    LSPResponseError,
    encode_message,
    read_message,
)
from ..lsp.types import (
    ColorPresentationParams,
    DefinitionParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DocumentColorParams,
)
from ..settings import CONFIGURATION_SECTION, LanguageClassifier, Settings, SettingsProvider
from ..utils.config import DEFAULT_CONFIG, get_log_dir, load_config
from .documents import DocumentStore, TextDocument

logger = logging.getLogger(__name__)

Handler = Callable[[dict], Awaitable[Any]]


class ColorTokenServer:
    """JSON-RPC language server speaking over a pair of asyncio streams.

    Incoming requests and notifications are queued and handled strictly one
    at a time in arrival order. Responses to requests the server itself sent
    (`workspace/configuration`) are resolved directly by the read loop, so a
    handler waiting for configuration never blocks reading.
    """

    def __init__(self, reader: asyncio.StreamReader, writer: Any, config: dict[str, Any] | None = None):
        self.reader = reader
        self.writer = writer
        self.config = config if config is not None else DEFAULT_CONFIG

        self.documents = DocumentStore()
        self.cache = TokenCache(self.config.get("cache", {}).get("on_parse_failure", ParseFailurePolicy.KEEP_STALE))
        self.provider = SettingsProvider(defaults=Settings.from_client(self.config.get("settings")))
        self.classifier = LanguageClassifier(self.provider)
        self.resolver = ReferenceResolver(self.cache)
        self.engine = DetectionEngine(self.provider, self.classifier, self.resolver, notify=self.send_notification)

        self._request_id = 0
        self._pending_requests: dict[int, asyncio.Future[Any]] = {}
        self._queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self._closed: LSPProtocolError | None = None
        self._initialized = False
        self._shutdown_requested = False
        self._exit_event = asyncio.Event()
        self._client_capabilities: dict[str, Any] = {}

        self._request_handlers: dict[str, Handler] = {
            "initialize": self._handle_initialize,
            "shutdown": self._handle_shutdown,
            "textDocument/documentColor": self._handle_document_color,
            "textDocument/colorPresentation": self._handle_color_presentation,
            "textDocument/definition": self._handle_definition,
        }
        self._notification_handlers: dict[str, Handler] = {
            "initialized": self._handle_initialized,
            "exit": self._handle_exit,
            "textDocument/didOpen": self._handle_did_open,
            "textDocument/didChange": self._handle_did_change,
            "textDocument/didClose": self._handle_did_close,
            "workspace/didChangeWorkspaceFolders": self._handle_workspace_folders_changed,
        }

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    async def serve(self) -> None:
        """Run until the client sends `exit` or closes the connection.

        Messages already queued when the connection closes are still handled.
        """
        dispatcher = asyncio.create_task(self._dispatch_loop())
        reader_task = asyncio.create_task(self._read_loop())
        exit_wait = asyncio.create_task(self._exit_event.wait())
        try:
            await asyncio.wait({dispatcher, exit_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (dispatcher, reader_task, exit_wait):
                task.cancel()
            await asyncio.gather(dispatcher, reader_task, exit_wait, return_exceptions=True)
        logger.info("Server stopped")

    async def _read_loop(self) -> None:
        try:
            while True:
                message = await read_message(self.reader)
                logger.debug(f"Received message: id={message.get('id')}, method={message.get('method')}")
                if "method" in message:
                    await self._queue.put(message)
                else:
                    self._handle_response(message)
        except LSPProtocolError as e:
            logger.info(f"Connection ended: {e}")
            self._closed = e
            for future in self._pending_requests.values():
                if not future.done():
                    future.set_exception(e)
            self._pending_requests.clear()
        finally:
            self._queue.put_nowait(None)

    async def _dispatch_loop(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                return
            if "id" in message:
                await self._handle_request(message)
            else:
                await self._handle_notification(message)

    def _handle_response(self, message: dict[str, Any]) -> None:
        request_id = message.get("id")
        future = self._pending_requests.pop(request_id, None)

        if future is None:
            logger.warning(f"Received response for unknown request: {request_id}")
            return

        if "error" in message:
            error = message["error"]
            future.set_exception(
                LSPResponseError(error.get("code", -1), error.get("message", "Unknown error"), error.get("data"))
            )
        else:
            future.set_result(message.get("result"))

    async def _handle_request(self, message: dict[str, Any]) -> None:
        method = message["method"]
        request_id = message["id"]
        params = message.get("params") or {}

        response: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id}
        handler = self._request_handlers.get(method)

        try:
            if handler is None:
                raise LSPResponseError(METHOD_NOT_FOUND, f"Method not found: {method}")
            if not self._initialized and method != "initialize":
                raise LSPResponseError(SERVER_NOT_INITIALIZED, "Server not initialized")
            if self._shutdown_requested:
                raise LSPResponseError(INVALID_REQUEST, f"Server is shutting down, rejected {method}")
            response["result"] = await handler(params)
        except LSPResponseError as e:
            response["error"] = e.to_dict()
        except ValidationError as e:
            logger.warning(f"Invalid params for {method}: {e}")
            response["error"] = {"code": INVALID_PARAMS, "message": str(e)}
        except Exception as e:
            logger.exception(f"Error in handler {method}")
            response["error"] = {"code": INTERNAL_ERROR, "message": str(e)}

        await self._write(response)

    async def _handle_notification(self, message: dict[str, Any]) -> None:
        method = message["method"]
        handler = self._notification_handlers.get(method)
        if handler is None:
            logger.debug(f"Ignoring notification: {method}")
            return

        try:
            await handler(message.get("params") or {})
        except Exception:
            logger.exception(f"Error in notification handler {method}")

    async def _write(self, message: dict[str, Any]) -> None:
        self.writer.write(encode_message(message))
        await self.writer.drain()

    async def send_request(self, method: str, params: dict | list | None) -> Any:
        if self._closed is not None:
            raise self._closed

        self._request_id += 1
        request_id = self._request_id

        message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            message["params"] = params

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending_requests[request_id] = future

        logger.debug(f"Sending request {request_id}: {method}")
        await self._write(message)
        return await future

    async def send_notification(self, method: str, params: dict | list | None) -> None:
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        await self._write(message)
        logger.debug(f"Sent notification: {method}")

    async def _fetch_configuration(self) -> Any:
        return await self.send_request(
            "workspace/configuration",
            {"items": [{"section": CONFIGURATION_SECTION}]},
        )

    async def _handle_initialize(self, params: dict) -> dict:
        self._client_capabilities = params.get("capabilities") or {}
        if client_supports_configuration(self._client_capabilities):
            self.provider.fetch = self._fetch_configuration
        else:
            logger.info("Client does not support workspace/configuration, using default settings")

        self._initialized = True
        return {
            "capabilities": get_server_capabilities(self._client_capabilities),
            "serverInfo": {"name": "colortoken", "version": __version__},
        }

    async def _handle_initialized(self, params: dict) -> None:
        logger.info("Client initialized")

    async def _handle_workspace_folders_changed(self, params: dict) -> None:
        logger.info("Workspace folder change event received.")

    async def _handle_shutdown(self, params: dict) -> None:
        self._shutdown_requested = True
        return None

    async def _handle_exit(self, params: dict) -> None:
        self._exit_event.set()

    async def _update_cache(self, document: TextDocument) -> None:
        if await self.classifier.is_color_language(document.language_id):
            self.cache.update(document)

    async def _handle_did_open(self, params: dict) -> None:
        item = DidOpenTextDocumentParams.model_validate(params).text_document
        document = self.documents.open(item.uri, item.language_id, item.version, item.text)
        await self._update_cache(document)

    async def _handle_did_change(self, params: dict) -> None:
        parsed = DidChangeTextDocumentParams.model_validate(params)
        document = self.documents.change(
            parsed.text_document.uri, parsed.text_document.version, parsed.content_changes
        )
        if document is not None:
            await self._update_cache(document)

    async def _handle_did_close(self, params: dict) -> None:
        uri = DidCloseTextDocumentParams.model_validate(params).text_document.uri
        self.documents.close(uri)
        self.cache.remove(uri)

    async def _handle_document_color(self, params: dict) -> list[dict]:
        parsed = DocumentColorParams.model_validate(params)
        document = self.documents.get(parsed.text_document.uri)
        if document is None:
            return []
        tokens = await self.engine.detect(document)
        return [token.to_lsp() for token in tokens]

    async def _handle_color_presentation(self, params: dict) -> list[dict]:
        parsed = ColorPresentationParams.model_validate(params)
        document = self.documents.get(parsed.text_document.uri)
        if document is None:
            return []
        presentations = await self.engine.present(document, parsed.color)
        return [presentation.to_lsp() for presentation in presentations]

    async def _handle_definition(self, params: dict) -> list[dict] | None:
        parsed = DefinitionParams.model_validate(params)
        document = self.documents.get(parsed.text_document.uri)
        if document is None:
            return None
        if not await self.classifier.is_css_language(document.language_id):
            return None
        locations = self.resolver.resolve_definition(document, parsed.position)
        if not locations:
            return None
        return [location.to_lsp() for location in locations]


async def open_stdio_streams() -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    loop = asyncio.get_running_loop()

    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin.buffer)

    transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout.buffer)
    writer = asyncio.StreamWriter(transport, protocol, reader, loop)
    return reader, writer


async def run_server(config: dict[str, Any] | None = None) -> int:
    config = config if config is not None else load_config()

    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, str(config["server"]["log_level"]).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_dir / "server.log"),
        ],
    )

    reader, writer = await open_stdio_streams()
    server = ColorTokenServer(reader, writer, config)
    logger.info(f"colortoken {__version__} listening on stdio")
    await server.serve()

    return 0 if server.shutdown_requested else 1
