"""
previewhost serve command.

SUMMARY: Serve a folder for a preview window until interrupted
"""

from __future__ import annotations

import argparse
import dataclasses
import signal
import threading
from pathlib import Path

from previewhost.cli import OutputFormatter, add_json_flag, add_repo_root_flag, get_repo_root
from previewhost.core.exceptions import PreviewHostError
from previewhost.core.serve_folder import ServeFolderConfig, ServeFolderManager

SUMMARY = "Serve a folder for a preview window until interrupted"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument("root", help="Folder to serve")
    parser.add_argument(
        "--https",
        action="store_true",
        help="Serve over TLS (bundled development certificate unless configured)",
    )
    parser.add_argument(
        "--window",
        default="cli",
        help="Window identity the server is registered under (default: cli)",
    )
    parser.add_argument(
        "--host",
        help="Interface to bind (default: serve_folder.host from configuration)",
    )
    add_json_flag(parser)
    add_repo_root_flag(parser)


def _wait_for_shutdown(stop: threading.Event) -> None:
    """Block until ``stop`` is set or SIGTERM/Ctrl+C arrives."""
    previous = None
    try:
        previous = signal.signal(signal.SIGTERM, lambda *_: stop.set())
    except ValueError:
        # Not on the main thread; rely on the event alone.
        previous = None
    try:
        while not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        config = ServeFolderConfig.load(get_repo_root(args))
        if args.host:
            config = dataclasses.replace(config, host=args.host)
        manager = ServeFolderManager(config)
    except PreviewHostError as exc:
        formatter.error(exc)
        return 1

    root = str(Path(args.root).expanduser())
    with manager:
        try:
            params = manager.serve_folder(root, args.https, args.window).result()
        except PreviewHostError as exc:
            formatter.error(exc)
            return 1

        formatter.success(params.to_dict(), f"Serving {root} at {params.url} (Ctrl+C to stop)")
        _wait_for_shutdown(threading.Event())
    return 0
