"""
Utilities for handling output directories and destination file paths.
"""

from pathlib import Path

from pathvalidate import sanitize_filename


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def destination_for(output_dir: Path, name: str) -> Path:
    """Path an image called ``name`` is saved to inside ``output_dir``."""
    filename = sanitize_filename(name, platform="auto") or "image"
    return output_dir / filename


def destination_exists(path: Path) -> bool:
    return path.is_file()
