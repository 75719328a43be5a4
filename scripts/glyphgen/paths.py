import json
import os
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Iterable, List, Union

from .errors import InvalidArgumentError


def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure directory exists, create if not."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_files(paths: Iterable[Union[str, Path]]) -> None:
    for path in paths:
        Path(path).unlink(missing_ok=True)


def get_generated_at() -> str:
    """
    ISO-8601 UTC timestamp for manifests.

    Honours SOURCE_DATE_EPOCH so repeated runs can produce identical files.
    """
    epoch = os.environ.get("SOURCE_DATE_EPOCH")
    if epoch:
        try:
            moment = datetime.fromtimestamp(int(epoch), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            raise InvalidArgumentError(f"Invalid SOURCE_DATE_EPOCH value: {epoch}") from None
    else:
        moment = datetime.now(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def relative_to_cwd(path: Union[str, Path]) -> str:
    return os.path.relpath(Path(path).resolve(), Path.cwd())


def write_text(path: Union[str, Path], text: str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def write_json_atomic(path: Union[str, Path], data: Any) -> None:
    """Write JSON next to ``path`` and move it into place in one step."""
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.write("\n")
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise
    os.replace(tmp_path, path)


def find_json_with_key(directory: Union[str, Path], key: str) -> List[Path]:
    """JSON objects directly inside ``directory`` that carry a top-level ``key``."""
    matches = []
    for path in sorted(Path(directory).glob("*.json")):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            # Not a readable JSON document, so not one of ours.
            continue
        if isinstance(data, dict) and key in data:
            matches.append(path)
    return matches
