from pathlib import Path
from urllib.parse import quote, unquote, urlparse


def path_to_uri(path: str | Path) -> str:
    path = Path(path).resolve()
    return "file://" + quote(str(path), safe="/:")


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        raise ValueError(f"Not a file URI: {uri}")
    return Path(unquote(parsed.path))


def display_uri(uri: str, root: Path | None = None) -> str:
    """Render a document URI for humans: a path relative to root when possible.

    Non-file URIs (untitled:, vscode-notebook-cell:, ...) are returned as-is.
    """
    try:
        path = uri_to_path(uri)
    except ValueError:
        return uri
    if root is not None:
        try:
            return str(path.relative_to(root.resolve()))
        except ValueError:
            pass
    return str(path)
