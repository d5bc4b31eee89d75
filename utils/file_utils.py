from __future__ import annotations

import os
from pathlib import Path

__all__: list[str] = [
    "FileInUseError",
    "FileMissingError",
    "FilePermissionError",
    "FileUtils",
    "FileUtilsError",
    "InvalidFileTypeError",
    "UnsupportedFileFormatError",
]


class FileUtils:
    """Path helpers used for configuration paths, documents and temporary audio files."""

    @staticmethod
    def check_file_status(file_path: Path) -> None:
        """Make sure a path is a plain, existing file that nothing else links to.

        Raises:
            FileMissingError: If the file does not exist.
            InvalidFileTypeError: If the path is a directory or a symbolic link.
            FileInUseError: If the file has more than one hard link.
        """
        if not file_path.exists():
            msg = f"File does not exist: {file_path}"
            raise FileMissingError(msg)
        if file_path.is_dir() or file_path.is_symlink():
            msg = f"Invalid file type (directory or symbolic link): {file_path}"
            raise InvalidFileTypeError(msg)
        if file_path.stat().st_nlink > 1:
            msg = f"File is in use (hard link count > 1): {file_path}"
            raise FileInUseError(msg)

    @staticmethod
    def remove(file_path: Path) -> None:
        """Delete a file after check_file_status() accepted it.

        Raises:
            FileUtilsError: If the checks fail or the file cannot be deleted.
        """
        FileUtils.check_file_status(file_path)
        try:
            file_path.unlink(missing_ok=True)
        except PermissionError as err:
            msg = f"Insufficient permissions to delete the file: {file_path}"
            raise FilePermissionError(msg) from err

    @staticmethod
    def resolve_path(path: str | Path, *, strict: bool = False) -> Path:
        """Expand environment variables and ``~`` and make the path absolute.

        Relative paths are taken relative to the current working directory.

        Args:
            path (str | Path): The input path (e.g., "~/books/$TITLE/chapter1.html").
            strict (bool): Raise if the path does not exist.
        """
        expanded: Path = Path(os.path.expandvars(str(path))).expanduser()
        if not expanded.is_absolute():
            expanded = Path.cwd() / expanded
        return expanded.resolve(strict=strict)

    @staticmethod
    def validate_file_path(file_path: Path, suffix: list[str] | str) -> None:
        """Check that a file exists and has one of the allowed suffixes (case-insensitive).

        Raises:
            FileMissingError: If the file does not exist.
            UnsupportedFileFormatError: If the suffix is not allowed.
        """
        if isinstance(suffix, str):
            suffix = [suffix]

        if not file_path.is_file():
            msg = f"File does not exist: {file_path}"
            raise FileMissingError(msg)
        if file_path.suffix.lower() not in [s.lower() for s in suffix]:
            msg = f"Unsupported file format: '{file_path.suffix}'. Supported formats are: {', '.join(suffix)}"
            raise UnsupportedFileFormatError(msg)


class FileUtilsError(Exception):
    """Base class of FileUtils errors."""


class FileMissingError(FileUtilsError):
    """The file does not exist."""


class InvalidFileTypeError(FileUtilsError):
    """The path is not a regular file."""


class FileInUseError(FileUtilsError):
    """The file is still referenced elsewhere."""


class FilePermissionError(FileUtilsError):
    """The file could not be deleted for lack of permissions."""


class UnsupportedFileFormatError(FileUtilsError):
    """The file suffix is not supported."""
