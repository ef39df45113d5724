"""Command line interface for vaultsync package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .cli_progress import (
    BatchProgressDisplay,
    RichConflictPrompt,
    render_configuration_summary,
    render_listing,
)
from .models import ConflictResolution, UploadConfig


CONFLICT_POLICIES = ("ask", "replace", "duplicate", "skip")


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug, --log-level or LOG_LEVEL is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    env_level = os.getenv("LOG_LEVEL")
    if silent or (not debug and not log_level and not env_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, (log_level or env_level or "INFO").upper(), logging.INFO)

    from rich.logging import RichHandler

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _collect_sources(sources: Sequence[Path]) -> List[Path]:
    """Expand the given paths into an ordered list of files (folders are walked, sorted)."""
    files: List[Path] = []
    for source in sources:
        path = Path(source).expanduser()
        if path.is_file():
            files.append(path)
        elif path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.is_file()))
        else:
            raise CLIError(f"source does not exist: {path}")
    if not files:
        raise CLIError("no files to upload")
    return files


def _build_prompt(policy: str):
    if policy == "ask":
        return RichConflictPrompt()
    from .orchestrator import fixed_resolution

    return fixed_resolution(ConflictResolution.parse(policy))


async def _run_upload(
    files: List[Path],
    config: UploadConfig,
    folder_id: Optional[int],
    concurrency: Optional[int],
    conflict_policy: str,
) -> int:
    from .orchestrator import UploadPipeline

    display = BatchProgressDisplay(total=len(files))
    pipeline = UploadPipeline(
        config,
        prompt=_build_prompt(conflict_policy),
        summary_sink=display.on_finish,
        on_refresh=render_listing,
    )

    async with pipeline:
        scheduler = pipeline.scheduler
        scheduler.on_item_start(display.on_item_start)
        scheduler.on_conflict(display.on_conflict)
        scheduler.on_item_complete(display.on_item_complete)
        scheduler.on_item_fail(display.on_item_fail)
        scheduler.on_item_skip(display.on_item_skip)

        report = await pipeline.upload(files, folder_id=folder_id, concurrency=concurrency)

    return 0 if report.success else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault-up",
        description="Upload files to the vault, resolving name conflicts interactively.",
    )
    parser.add_argument("sources", nargs="*", type=Path, help="Files or folders to upload")
    parser.add_argument(
        "-f",
        "--folder-id",
        type=int,
        default=None,
        help="Destination folder id (default: root)",
    )
    parser.add_argument(
        "-j",
        "--concurrency",
        type=int,
        default=None,
        help="Parallel transfers (default from VAULT_CONCURRENCY or 1)",
    )
    parser.add_argument(
        "--on-conflict",
        choices=CONFLICT_POLICIES,
        default="ask",
        help="How to resolve name conflicts (default: ask)",
    )
    parser.add_argument("--api-url", default=None, help="API base URL (default from VAULT_API_URL)")
    parser.add_argument("--token", default=None, help="Bearer token (default from VAULT_TOKEN)")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="vault-up (from vaultsync)",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if not args.sources:
        parser.print_help()
        return 0

    if args.concurrency is not None and args.concurrency < 1:
        print("ERROR: --concurrency must be >= 1", file=sys.stderr)
        return 1

    try:
        files = _collect_sources(args.sources)
        api_url = args.api_url
        if api_url and not api_url.endswith("/"):
            api_url += "/"
        config = UploadConfig.from_env(api_base=api_url, token=args.token)
    except (CLIError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    render_configuration_summary(
        {
            "Files": len(files),
            "Folder": args.folder_id if args.folder_id is not None else "(root)",
            "API": config.api_base,
            "Token": "set" if config.token else "-",
            "Concurrency": args.concurrency or config.concurrency,
            "On Conflict": args.on_conflict,
            "Env File": str(used_env_file) if used_env_file else "-",
            "Logging": effective_log_mode,
        }
    )

    try:
        return asyncio.run(
            _run_upload(
                files,
                config,
                folder_id=args.folder_id,
                concurrency=args.concurrency,
                conflict_policy=args.on_conflict,
            )
        )
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
