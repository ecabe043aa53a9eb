"""Asynchronous text reads for scanned files."""

import asyncio
from pathlib import Path


class ReadError(Exception):
    """A file's content could not be read (missing, unreadable, undecodable)."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def _read_text_sync(path: str, encoding: str) -> str:
    try:
        return Path(path).read_text(encoding=encoding)
    except FileNotFoundError:
        raise ReadError(path, "file not found") from None
    except IsADirectoryError:
        raise ReadError(path, "is a directory") from None
    except PermissionError:
        raise ReadError(path, "permission denied") from None
    except UnicodeDecodeError as e:
        raise ReadError(path, f"cannot decode as {encoding}: {e.reason}") from None
    except OSError as e:
        raise ReadError(path, e.strerror or str(e)) from None
    except ValueError as e:
        # e.g. embedded null byte in a reference
        raise ReadError(path, str(e)) from None


async def read_text(path: str, encoding: str = "utf-8") -> str:
    """Read a file as text without blocking the event loop.

    Args:
        path: Canonical path of the file.
        encoding: Text encoding.

    Returns:
        File content.

    Raises:
        ReadError: If the file cannot be opened, read or decoded.
    """
    return await asyncio.to_thread(_read_text_sync, path, encoding)
