"""File operations: directories, JSON cache entries, export paths."""
import json
import re
from pathlib import Path
from typing import Any, Optional

from ..logger import get_logger

logger = get_logger(__name__)


def ensure_directory(path) -> Path:
    """Ensure a directory exists"""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_json(filepath) -> Optional[Any]:
    """Read a JSON document, returning None when it is missing or corrupt."""
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable file {filepath}: {e}")
        return None


def write_json(filepath, data: Any) -> None:
    """Write a JSON document atomically (temp file + rename)."""
    path = Path(filepath)
    ensure_directory(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False)
    tmp.replace(path)
    logger.debug(f"Saved {path}")


def sanitize_filename(name: str) -> str:
    """Sanitize a string to be used as a filename"""
    # Replace spaces with underscores
    name = name.replace(' ', '_')
    # Remove invalid characters
    name = re.sub(r'[<>:"/\\|?*]', '', name)
    # Limit length
    name = name[:100]
    return name


def generate_file_path(stem: str, output_dir: str = "output", suffix: str = ".csv") -> str:
    """Generate a file path for an export"""
    return str(Path(output_dir) / f"{sanitize_filename(stem)}{suffix}")
