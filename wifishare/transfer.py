"""Upload and download handler cores.

Both handlers take the session's `StorageLayout` and return a result value
from `wifishare.results`; mapping to HTTP happens in `wifishare.api.transfer`.
"""

import mimetypes
import urllib.parse
from typing import AsyncIterator, Optional

from .formdata import InboxWriter, boundary_from_content_type, is_multipart_form
from .logging_config import log
from .results import ClientError, HandlerResult, NotFound, ServerError, Success
from .storage import StorageLayout


MSG_RECEIVED = "File received"
MSG_INVALID_MULTIPART = "Invalid multipart request"
MSG_UPLOAD_FAILED = "Upload failed"
MSG_NO_FILE = "No file available"
MSG_DOWNLOAD_FAILED = "Download failed"

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def guess_media_type(filename: str) -> str:
    """Return the MIME type for a filename extension, or `application/octet-stream`."""
    mime, _ = mimetypes.guess_type(str(filename or ""))
    return mime or DEFAULT_MEDIA_TYPE


def content_disposition(filename: str) -> str:
    """Build an attachment header; non latin-1 names also carry an RFC 5987 `filename*`."""
    name = str(filename or "")
    try:
        name.encode("latin-1")
        plain = '"' not in name
    except UnicodeEncodeError:
        plain = False
    if plain:
        return f'attachment; filename="{name}"'
    fallback = name.encode("ascii", "replace").decode("ascii").replace("?", "_").replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{urllib.parse.quote(name)}"


async def receive_upload(
    layout: StorageLayout,
    content_type: Optional[str],
    chunks: AsyncIterator[bytes],
) -> HandlerResult:
    """Persist every file part of a multipart body into the inbox."""
    boundary = boundary_from_content_type(content_type) if is_multipart_form(content_type) else None
    if boundary is None:
        log.info("Upload rejected: content-type=%r", content_type)
        return ClientError(MSG_INVALID_MULTIPART)

    writer: Optional[InboxWriter] = None
    try:
        writer = InboxWriter(layout.ensure_inbox(), boundary)
        async for chunk in chunks:
            if chunk:
                writer.write(chunk)
        writer.finalize()
    except Exception:
        if writer is not None:
            writer.abort()
        log.exception("Upload failed")
        return ServerError(MSG_UPLOAD_FAILED)

    for name in writer.saved:
        log.info("Received from %s: %s", layout.peer, name)
    return Success(MSG_RECEIVED)


def serve_download(layout: StorageLayout) -> HandlerResult:
    """Consume the staged outbox file and return it as an attachment."""
    try:
        taken = layout.outbox.take()
    except Exception:
        log.exception("Download failed")
        return ServerError(MSG_DOWNLOAD_FAILED)

    if taken is None:
        log.debug("Download requested with empty outbox")
        return NotFound(MSG_NO_FILE)

    name, data = taken
    log.info("Sent to %s: %s (%d bytes)", layout.peer, name, len(data))
    return Success(
        data,
        media_type=guess_media_type(name),
        headers={"Content-Disposition": content_disposition(name)},
    )
