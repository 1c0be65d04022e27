"""Helpers shared by CLI commands."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer

from cadence.application.config import AppConfig, resolve_config


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config with CLI overrides; options left unset (None) fall through."""
    return resolve_config(overrides)


def _apply_verbosity(verbose: int) -> None:
    level = logging.WARNING if verbose <= 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.getLogger("cadence").setLevel(level)


def _format_ts(ms: int | None) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=lambda v: str(v) if isinstance(v, Path) else v))
