from enum import IntEnum
from typing import Any


class TextDocumentSyncKind(IntEnum):
    NONE = 0
    FULL = 1
    INCREMENTAL = 2


def client_supports_configuration(client_capabilities: dict[str, Any]) -> bool:
    workspace = client_capabilities.get("workspace") or {}
    return bool(workspace.get("configuration"))


def client_supports_workspace_folders(client_capabilities: dict[str, Any]) -> bool:
    workspace = client_capabilities.get("workspace") or {}
    return bool(workspace.get("workspaceFolders"))


def get_server_capabilities(client_capabilities: dict[str, Any]) -> dict[str, Any]:
    capabilities: dict[str, Any] = {
        "textDocumentSync": int(TextDocumentSyncKind.INCREMENTAL),
        "colorProvider": True,
        "definitionProvider": True,
    }
    if client_supports_workspace_folders(client_capabilities):
        capabilities["workspace"] = {
            "workspaceFolders": {
                "supported": True,
            },
        }
    return capabilities
