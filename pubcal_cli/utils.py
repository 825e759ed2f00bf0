"""CLI utilities for reading calendar payloads."""

import json
import logging
from pathlib import Path

import typer

logger = logging.getLogger(__name__)


def load_payload(path: Path) -> dict:
    """Read a calendar payload from a JSON file.

    Accepts either the calendar object itself or the request body form
    ``{"calendar": {...}}``.

    Raises:
        typer.BadParameter: If the file is missing or not a JSON object
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise typer.BadParameter(f"File not found: {path}")
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON in {path}: {e}")

    if isinstance(data, dict) and isinstance(data.get("calendar"), dict):
        data = data["calendar"]
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} does not contain a calendar object")
    return data
