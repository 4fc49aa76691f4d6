"""Batch input loading and validation.

Every check in this module runs before the first item is submitted; any
problem is raised as :class:`ValidationError` so the run never starts on
half-valid input.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any, List, Sequence, Tuple
from urllib.parse import urlparse

from platyplex.core.errors import ValidationError
from platyplex.core.models import OperationItem
from platyplex.infra.logger import setup_logger

logger = setup_logger(__name__)

# Base58 alphabet (no 0, O, I, l); ledger addresses are 32-44 characters.
_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class TargetType(Enum):
    FILE = "file"
    URI = "uri"


def is_url(value: str) -> bool:
    """True when *value* parses as an absolute URL with a scheme."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if not parsed.scheme or len(parsed.scheme) < 2:
        # a single-letter scheme is a Windows drive letter, not a URL
        return False
    return bool(parsed.netloc or parsed.path)


def is_valid_address(value: Any) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def load_json(path: Path) -> Any:
    """Read a JSON document.

    Raises:
        ValidationError: The file is missing or is not valid JSON.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ValidationError(f"Input file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Input file {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise ValidationError(f"Could not read input file {path}: {e}") from e


def save_json(path: Path, obj: Any) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2)


def load_airdrop_items(path: Path) -> List[OperationItem]:
    """Load ``[{"mint": ..., "to": ...}, ...]`` into transfer items.

    Raises:
        ValidationError: The document is not an array, or an entry lacks a
            non-empty ``mint``/``to``, or ``to`` is not a ledger address.
    """
    data = load_json(path)
    if not isinstance(data, list):
        raise ValidationError(f"Invalid airdrop config format in {path}: expected an array")

    items: List[OperationItem] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValidationError(f"Invalid airdrop entry #{index}: expected an object, found {entry!r}")
        mint, to = entry.get("mint"), entry.get("to")
        if not isinstance(mint, str) or not mint.strip() or not isinstance(to, str) or not to.strip():
            raise ValidationError(
                f'Invalid airdrop entry #{index}: expected "mint" and "to" fields, found {entry!r}'
            )
        if not is_valid_address(to):
            raise ValidationError(f"Invalid airdrop entry #{index}: '{to}' is not a valid address")
        items.append(OperationItem(identity=mint, destination=to))

    logger.info("Loaded %d airdrop item(s) from %s", len(items), path)
    return items


def load_target_list(path: Path) -> List[str]:
    """Load a JSON array of target strings (files or URIs)."""
    data = load_json(path)
    if not isinstance(data, list):
        raise ValidationError(f"{path} is not an array")
    for entry in data:
        if not isinstance(entry, str):
            raise ValidationError(f"JSON list expected a string but found {entry!r}")
    return list(data)


def find_targets(targets: Sequence[str]) -> List[Tuple[str, TargetType]]:
    """Classify targets as URIs or local JSON files.

    Directories expand, sorted, to the ``.json`` files they directly contain.
    """
    found: List[Tuple[str, TargetType]] = []
    for target in targets:
        if is_url(target):
            found.append((target, TargetType.URI))
            continue
        path = Path(target)
        if path.is_dir():
            for child in sorted(path.glob("*.json")):
                if child.is_file():
                    found.append((str(child), TargetType.FILE))
        elif path.is_file():
            found.append((str(path), TargetType.FILE))
        else:
            raise ValidationError(f"Target not found: {target}")
    return found


def find_files(paths: Sequence[str]) -> List[Path]:
    """Expand files and directories (recursively, sorted) into a file list."""
    files: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.is_file()))
        elif path.is_file():
            files.append(path)
        else:
            raise ValidationError(f"File not found: {raw}")
    return files
