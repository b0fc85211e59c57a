"""
workspace.py

Responsibility: Read-only access to files inside a build workspace.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator


class WorkspaceReadError(RuntimeError):
    pass


@dataclass(frozen=True)
class Workspace:
    """File-tree handle rooted at a build's workspace directory."""

    root: Path

    def child(self, relative_path: str) -> Path:
        """
        Resolve `relative_path` against the workspace root.

        Absolute paths are honoured as-is, the way a workspace child lookup
        behaves on a build node.
        """
        return Path(self.root) / relative_path

    def exists(self, relative_path: str) -> bool:
        """
        True when something exists at the path. A directory in the file's
        place exists; reading it then fails.

        A path that cannot be checked at all (too long, unreadable parent, NUL
        byte) is a read error, not a missing file.
        """
        path = self.child(relative_path)
        try:
            path.stat()
        except (FileNotFoundError, NotADirectoryError):
            return False
        except (OSError, ValueError) as e:
            raise WorkspaceReadError(f"Cannot check {path}: {e}") from e
        return True

    @contextmanager
    def open_read(self, relative_path: str) -> Iterator[BinaryIO]:
        path = self.child(relative_path)
        try:
            stream = path.open("rb")
        except OSError as e:
            raise WorkspaceReadError(f"Cannot open {path}: {e}") from e
        with stream:
            yield stream

    def read_text(self, relative_path: str, charset: str) -> str:
        """Read the whole file and decode it strictly with `charset`."""
        with self.open_read(relative_path) as stream:
            try:
                data = stream.read()
            except OSError as e:
                raise WorkspaceReadError(f"Failed reading {relative_path}: {e}") from e
        try:
            return data.decode(charset)
        except (UnicodeDecodeError, LookupError) as e:
            raise WorkspaceReadError(f"Cannot decode {relative_path} as {charset}: {e}") from e
