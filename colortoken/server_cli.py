"""Entry point for the colortoken language server."""

import asyncio
import sys


def main():
    """Run the language server on stdio."""
    from .server.server import run_server

    sys.exit(asyncio.run(run_server()))


if __name__ == "__main__":
    main()
