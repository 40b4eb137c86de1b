from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from .. import config
from ..results import HandlerResult, Success
from ..transfer import receive_upload, serve_download


def render(result: HandlerResult) -> Response:
    """Map a handler result onto an HTTP response."""
    if isinstance(result, Success):
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type=result.media_type,
            headers=dict(result.headers),
        )
    return PlainTextResponse(result.message, status_code=result.status_code)


def build_router(upload_path: Optional[str] = None, download_path: Optional[str] = None) -> APIRouter:
    """Create the peer-facing router; route paths default to the configured ones."""
    router = APIRouter()

    @router.post(upload_path or config.UPLOAD_PATH)
    async def peer_upload(request: Request):
        """Receive files from the peer into the inbox."""
        layout = request.app.state.session.layout
        result = await receive_upload(layout, request.headers.get("content-type"), request.stream())
        return render(result)

    @router.get(download_path or config.DOWNLOAD_PATH)
    def peer_download(request: Request):
        """Hand the staged outbox file to the peer and remove it."""
        return render(serve_download(request.app.state.session.layout))

    return router
