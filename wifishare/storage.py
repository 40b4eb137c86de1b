"""Inbox/outbox layout under the base directory and the single-slot outbox."""

import os
import shutil
import threading
import uuid
from typing import List, Optional, Tuple


PART_MARKER = ".part-"
FALLBACK_NAME = "upload.bin"


def normalized_filename(raw_name: str) -> str:
    """Reduce a client or source filename to a safe basename."""
    raw = str(raw_name or "").replace("\\", "/")
    name = os.path.basename(raw).strip().replace("\x00", "")
    if not name or name in (".", ".."):
        return FALLBACK_NAME
    return name[:240]


def temp_path_for(path: str) -> str:
    """Return a sibling temporary path that directory scans ignore."""
    return f"{path}{PART_MARKER}{uuid.uuid4().hex[:8]}"


def list_files(directory: str) -> List[str]:
    """Return regular file names in sorted order; missing directory yields an empty list."""
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        return []
    out = []
    for name in names:
        if PART_MARKER in name:
            continue
        if os.path.isfile(os.path.join(directory, name)):
            out.append(name)
    out.sort()
    return out


def _remove_entry(path: str) -> None:
    """Delete a file, link or directory tree."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.remove(path)


class Outbox:
    """Single-slot outbox: `stage` replaces the slot, `take` consumes it exactly once."""

    def __init__(self, directory: str) -> None:
        self.directory = directory
        self._lock = threading.RLock()
        self._staged: Optional[str] = None

    def _current_locked(self) -> Optional[str]:
        if self._staged and os.path.isfile(os.path.join(self.directory, self._staged)):
            return self._staged
        # Files dropped into the outbox by hand are served in name order.
        names = list_files(self.directory)
        return names[0] if names else None

    def current(self) -> Optional[str]:
        """Return the staged filename without consuming it."""
        with self._lock:
            return self._current_locked()

    def stage(self, source_path: str) -> str:
        """Replace the outbox contents with a copy of `source_path` and return the staged name."""
        name = normalized_filename(os.path.basename(source_path))
        with self._lock:
            os.makedirs(self.directory, exist_ok=True)
            target = os.path.join(self.directory, name)
            tmp = temp_path_for(target)
            try:
                shutil.copyfile(source_path, tmp)
                for entry in os.listdir(self.directory):
                    path = os.path.join(self.directory, entry)
                    if path != tmp:
                        _remove_entry(path)
                os.replace(tmp, target)
            except Exception:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise
            self._staged = name
        return name

    def take(self) -> Optional[Tuple[str, bytes]]:
        """Read and delete the staged file; return None when nothing is staged."""
        with self._lock:
            name = self._current_locked()
            if name is None:
                self._staged = None
                return None
            path = os.path.join(self.directory, name)
            with open(path, "rb") as f:
                data = f.read()
            os.remove(path)
            self._staged = None
            return name, data


class StorageLayout:
    """Fixed `from_<peer>` inbox and `to_<peer>` outbox under one base directory."""

    def __init__(self, base_dir: str, peer: str = "android") -> None:
        self.base_dir = os.path.abspath(base_dir)
        self.peer = str(peer or "android")
        self.inbox_dir = os.path.join(self.base_dir, f"from_{self.peer}")
        self.outbox = Outbox(os.path.join(self.base_dir, f"to_{self.peer}"))

    @property
    def outbox_dir(self) -> str:
        return self.outbox.directory

    def ensure_inbox(self) -> str:
        os.makedirs(self.inbox_dir, exist_ok=True)
        return self.inbox_dir

    def inbox_files(self) -> List[str]:
        return list_files(self.inbox_dir)

    def first_received(self) -> Optional[str]:
        """Return the first inbox filename in sorted order, or None."""
        names = self.inbox_files()
        return names[0] if names else None

    def stage(self, source_path: str) -> str:
        return self.outbox.stage(source_path)
