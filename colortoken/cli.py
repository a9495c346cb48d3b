import asyncio
import sys
from pathlib import Path
from typing import Any

import click

from .colors.cache import TokenCache
from .colors.codec import encode_hex
from .colors.detection import MAX_TOKENS_NOTIFICATION, DetectionEngine
from .colors.references import ReferenceResolver
from .lsp.types import Position
from .output.formatters import format_output
from .server.documents import TextDocument
from .settings import LanguageClassifier, Settings, SettingsProvider
from .utils.config import DEFAULT_CONFIG, get_config_path, load_config, save_config
from .utils.text import get_language_id, read_file_content
from .utils.uri import display_uri, path_to_uri


class OrderedGroup(click.Group):
    def __init__(self, *args, commands_order: list[str] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.commands_order = commands_order or []

    def list_commands(self, ctx):
        commands = super().list_commands(ctx)
        if self.commands_order:
            ordered = [c for c in self.commands_order if c in commands]
            remaining = [c for c in commands if c not in self.commands_order]
            return ordered + remaining
        return commands


class OfflineSession:
    """The detection pipeline without a client: documents come from disk."""

    def __init__(self, config: dict[str, Any]):
        self.settings = Settings.from_client(config.get("settings"))
        self.cache = TokenCache(config.get("cache", {}).get("on_parse_failure", "keep-stale"))
        self.provider = SettingsProvider(defaults=self.settings)
        self.classifier = LanguageClassifier(self.provider)
        self.resolver = ReferenceResolver(self.cache)
        self.truncated_at: int | None = None
        self.engine = DetectionEngine(self.provider, self.classifier, self.resolver, notify=self._on_notification)

    async def _on_notification(self, method: str, params: Any) -> None:
        if method == MAX_TOKENS_NOTIFICATION:
            self.truncated_at = params["count"]

    async def add_definitions(self, paths: tuple[str, ...]) -> None:
        for path in paths:
            document = load_document(Path(path))
            if not await self.classifier.is_color_language(document.language_id):
                raise click.ClickException(f"{path} is not a color language document ({document.language_id})")
            if not self.cache.update(document):
                raise click.ClickException(f"Could not parse {path} as JSON")


def load_document(path: Path, language: str | None = None) -> TextDocument:
    try:
        text = read_file_content(path)
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Could not read {path}: {e}")
    return TextDocument(
        uri=path_to_uri(path),
        language_id=language or get_language_id(path),
        version=0,
        text=text,
    )


CLI_HELP = """Color previews for JSON color tables, C++ {r,g,b} arrays and CSS/LESS var(--x) references.

`colortoken serve` runs the language server on stdio; point your editor's LSP
client at it. `colortoken scan` and `colortoken definition` run the same
detection on files from disk, which is handy for checking a configuration.

Lines are 1-based and columns are 0-based UTF-16 offsets.
"""


@click.group(
    cls=OrderedGroup,
    commands_order=["serve", "scan", "definition", "config"],
    help=CLI_HELP,
    context_settings={"help_option_names": ["-h", "--help"], "max_content_width": 120},
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def cli(ctx, json_output):
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output


@cli.command("serve")
def serve():
    """Run the language server over stdin/stdout."""
    from .server.server import run_server

    sys.exit(asyncio.run(run_server(load_config())))


@cli.command("scan")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("-d", "--definitions", multiple=True, type=click.Path(exists=True, dir_okay=False),
              help="JSON file defining color variables (repeatable)")
@click.option("-l", "--language", default=None, help="Language id, instead of guessing from the file extension")
@click.pass_context
def scan(ctx, path, definitions, language):
    """List the colors detected in PATH."""
    session = OfflineSession(load_config())
    document = load_document(Path(path), language)

    async def run() -> list:
        await session.add_definitions(definitions)
        return await session.engine.detect(document)

    tokens = asyncio.run(run())
    colors = []
    for token in tokens:
        start = document.offset_at(token.range.start)
        end = document.offset_at(token.range.end)
        colors.append({
            "path": path,
            "line": token.range.start.line + 1,
            "column": token.range.start.character,
            "color": encode_hex(token.color, session.settings.casing),
            "text": document.text[start:end],
        })

    result = {"colors": colors}
    if session.truncated_at is not None:
        result["truncated_at"] = session.truncated_at
    click.echo(format_output(result, "json" if ctx.obj["json"] else "plain"))


@cli.command("definition")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=click.IntRange(min=1))
@click.argument("column", type=click.IntRange(min=0), default=0)
@click.option("-d", "--definitions", multiple=True, type=click.Path(exists=True, dir_okay=False),
              help="JSON file defining color variables (repeatable)")
@click.option("-l", "--language", default=None, help="Language id, instead of guessing from the file extension")
@click.pass_context
def definition(ctx, path, line, column, definitions, language):
    """Find where the color variable referenced on LINE of PATH is defined."""
    session = OfflineSession(load_config())
    document = load_document(Path(path), language)

    async def run() -> list:
        await session.add_definitions(definitions)
        if not await session.classifier.is_css_language(document.language_id):
            raise click.ClickException(f"{path} is not a reference language document ({document.language_id})")
        return session.resolver.resolve_definition(document, Position(line=line - 1, character=column))

    locations = [
        {
            "path": display_uri(location.uri, Path.cwd()),
            "line": location.range.start.line + 1,
            "column": location.range.start.character,
        }
        for location in asyncio.run(run())
    ]
    click.echo(format_output({"locations": locations}, "json" if ctx.obj["json"] else "plain"))


@cli.group(invoke_without_command=True)
@click.pass_context
def config(ctx):
    """Print config file location and contents."""
    if ctx.invoked_subcommand is not None:
        return

    config_path = get_config_path()
    click.echo(f"Config file: {config_path}")
    click.echo()

    if config_path.exists():
        click.echo(config_path.read_text())
    else:
        click.echo("(file does not exist, using defaults)")


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def config_init(force):
    """Write the default configuration to the config file."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        raise click.ClickException(f"Config file already exists: {config_path} (use --force to overwrite)")

    save_config(DEFAULT_CONFIG, config_path)
    click.echo(f"Wrote {config_path}")
