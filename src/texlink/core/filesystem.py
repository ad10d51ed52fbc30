"""File system access for settings, texture folders and reports."""

import json
from pathlib import Path
from typing import Any, Dict, Protocol

from .exceptions import FileSystemError, ValidationError


class FileSystem(Protocol):
    """Protocol for the file system operations texlink performs.

    Kept narrow so tests can swap in an in-memory implementation.
    """

    def ensure_directory(self, path: Path) -> Path:
        """Create directory if it doesn't exist.

        Raises:
            FileSystemError: If directory creation fails.
        """
        ...

    def validate_path(self, path: Path) -> Path:
        """Resolve a path to its absolute form.

        Raises:
            ValidationError: If path cannot be resolved.
        """
        ...

    def path_exists(self, path: Path) -> bool:
        ...

    def is_directory(self, path: Path) -> bool:
        ...

    def read_json(self, path: Path) -> Dict[str, Any]:
        """Read a JSON document.

        Raises:
            FileSystemError: If read or parse fails.
        """
        ...

    def write_json(self, path: Path, data: Dict[str, Any]) -> None:
        """Write a JSON document, creating parent directories.

        Raises:
            FileSystemError: If write fails.
        """
        ...


class DefaultFileSystem:
    """Local disk implementation of FileSystem."""

    def ensure_directory(self, path: Path) -> Path:
        try:
            path.mkdir(parents=True, exist_ok=True)
            return path
        except (OSError, ValueError) as exc:
            raise FileSystemError(
                f"Failed to create directory: {path}",
                details={"path": str(path), "error": str(exc)},
            ) from exc

    def validate_path(self, path: Path) -> Path:
        try:
            return path.resolve()
        except (OSError, RuntimeError) as exc:
            raise ValidationError(
                f"Cannot resolve path: {path}",
                details={"path": str(path), "error": str(exc)},
            ) from exc

    def path_exists(self, path: Path) -> bool:
        return path.exists()

    def is_directory(self, path: Path) -> bool:
        return path.is_dir()

    def read_json(self, path: Path) -> Dict[str, Any]:
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise FileSystemError(
                f"Failed to read JSON from {path}",
                details={
                    "path": str(path),
                    "error": str(exc),
                    "type": type(exc).__name__,
                },
            ) from exc

    def write_json(self, path: Path, data: Dict[str, Any]) -> None:
        try:
            self.ensure_directory(path.parent)
            with path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except (OSError, TypeError) as exc:
            raise FileSystemError(
                f"Failed to write JSON to {path}",
                details={
                    "path": str(path),
                    "error": str(exc),
                    "type": type(exc).__name__,
                },
            ) from exc
