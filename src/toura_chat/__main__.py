"""CLI entrypoint for toura-chat."""

from __future__ import annotations

import argparse
from importlib import metadata
from pathlib import Path
import sys
from typing import Sequence

from .app import TouraChatApp
from .config import ensure_config_dir
from .exceptions import DialogueBackendError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="toura", description="Toura travel chat TUI")
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Read configuration from PATH instead of ~/.config/toura/config.toml",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Ensure configuration exists, handle CLI flags, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("toura-chat")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"toura {version}")
        return 0

    config_path: Path | None = args.config.expanduser() if args.config else None
    if config_path is None:
        ensure_config_dir()

    try:
        app = TouraChatApp(config_path=config_path)
    except DialogueBackendError as exc:
        print(f"toura: {exc}", file=sys.stderr)
        print(
            "Set backend.client_access_token in the config file, "
            'or use backend.provider = "ollama".',
            file=sys.stderr,
        )
        return 2
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
