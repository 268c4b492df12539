"""Reader for ``dub.selections.json``, the file pinning locally selected versions."""

import json
import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)


class DubSelectionsError(Exception):
    """The selections file exists but is not a version 1 document."""


def read_dub_selections(file_path: str) -> Dict[str, Any]:
    """Load a ``dub.selections.json`` file.

    Returns:
        The parsed document; ``versions`` maps package names to the selected
        version (a string, or an object with ``version`` or ``path``).

    Raises:
        FileNotFoundError: the file does not exist.
        DubSelectionsError: the file is not JSON or its fileVersion is not 1.
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(file_path)

    with open(file_path, "r", encoding="utf-8") as handle:
        try:
            selections = json.load(handle)
        except json.JSONDecodeError as exc:
            raise DubSelectionsError(f"Invalid JSON in {file_path}: {exc}") from exc

    file_version = selections.get("fileVersion") if isinstance(selections, dict) else None
    if file_version != 1:
        raise DubSelectionsError(f"Unknown dub.selections.json file version {file_version}")

    logger.debug("Loaded %d dub selections from %s", len(selections.get("versions") or {}), file_path)
    return selections


def selected_version(selections: Dict[str, Any], name: str) -> Any:
    """Return the locally selected version string for ``name``, if any."""
    entry = (selections.get("versions") or {}).get(name)
    if isinstance(entry, dict):
        return entry.get("version")
    return entry
