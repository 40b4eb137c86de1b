"""Multipart/form-data helpers: header parsing and a streaming part writer for the inbox."""

import os
import re
from typing import BinaryIO, Dict, List, Optional

from python_multipart import MultipartParser

from .storage import normalized_filename, temp_path_for


_FILENAME_RE = re.compile(r'filename="([^"]+)"', re.IGNORECASE)


def is_multipart_form(content_type: Optional[str]) -> bool:
    """Return True when a Content-Type header declares multipart form data."""
    return "multipart/form-data" in str(content_type or "").lower()


def boundary_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Return the token after `boundary=` (unquoted, cut at the next parameter) or None."""
    raw = str(content_type or "")
    idx = raw.lower().find("boundary=")
    if idx < 0:
        return None
    value = raw[idx + len("boundary="):].split(";", 1)[0].strip().strip('"')
    return value or None


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """Return the quoted `filename` from a Content-Disposition header, or None for form fields."""
    m = _FILENAME_RE.search(str(header or ""))
    return m.group(1) if m else None


def _decode_header(raw: bytearray) -> str:
    try:
        return bytes(raw).decode("utf-8")
    except UnicodeDecodeError:
        return bytes(raw).decode("latin-1")


class InboxWriter:
    """Parse a multipart body fed in chunks and persist every file part into `inbox_dir`.

    Each file part is written to a temporary sibling and moved over
    `<inbox_dir>/<filename>` when the part closes, so a same-name upload
    replaces the previous file and readers never see a half-written one.
    Parts without a filename are discarded.
    """

    def __init__(self, inbox_dir: str, boundary: str) -> None:
        self.inbox_dir = inbox_dir
        self.saved: List[str] = []
        self._field = bytearray()
        self._value = bytearray()
        self._headers: Dict[str, str] = {}
        self._fh: Optional[BinaryIO] = None
        self._tmp: Optional[str] = None
        self._target: Optional[str] = None
        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_end": self._on_end,
            },
        )
        self._complete = False

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._field.clear()
        self._value.clear()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[_decode_header(self._field).strip().lower()] = _decode_header(self._value).strip()
        self._field.clear()
        self._value.clear()

    def _on_headers_finished(self) -> None:
        declared = filename_from_disposition(self._headers.get("content-disposition"))
        if declared is None:
            return
        self._target = os.path.join(self.inbox_dir, normalized_filename(declared))
        self._tmp = temp_path_for(self._target)
        self._fh = open(self._tmp, "wb")

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._fh is not None:
            self._fh.write(data[start:end])

    def _on_part_end(self) -> None:
        if self._fh is None:
            return
        self._fh.close()
        self._fh = None
        os.replace(self._tmp, self._target)
        self.saved.append(os.path.basename(self._target))
        self._tmp = None
        self._target = None

    def write(self, chunk: bytes) -> None:
        self._parser.write(chunk)

    def _on_end(self) -> None:
        self._complete = True

    def finalize(self) -> None:
        """Flush the parser; a body without its closing boundary is malformed."""
        self._parser.finalize()
        if self._fh is not None:
            raise ValueError("multipart stream ended inside a file part")
        if not self._complete:
            raise ValueError("bad multipart ending")

    def abort(self) -> None:
        """Close and remove any partially written part."""
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None
        if self._tmp and os.path.exists(self._tmp):
            try:
                os.remove(self._tmp)
            except OSError:
                pass
        self._tmp = None
        self._target = None
