import ipaddress

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel


router = APIRouter()


class LocalStageRequest(BaseModel):
    file_path: str


def _is_loopback_host(host: str) -> bool:
    """Return True when the host is localhost/loopback, including IPv4-mapped IPv6."""
    value = str(host or "").strip()
    if not value:
        return False
    if value.lower() == "localhost":
        return True
    try:
        ip = ipaddress.ip_address(value)
    except ValueError:
        return False
    if ip.is_loopback:
        return True
    mapped = getattr(ip, "ipv4_mapped", None)
    return bool(mapped and mapped.is_loopback)


def _require_localhost(request: Request) -> None:
    """Allow access only from localhost or loopback addresses."""
    host = str(getattr(getattr(request, "client", None), "host", "") or "").strip()
    if not _is_loopback_host(host):
        raise HTTPException(403)


def _session(request: Request):
    return request.app.state.session


@router.get("/api/local/info")
def local_info(request: Request):
    """Return the session URL and directory layout for a launcher."""
    _require_localhost(request)
    return _session(request).info()


@router.post("/api/local/stage")
def local_stage(req: LocalStageRequest, request: Request):
    """Stage a host file in the outbox from a localhost-only API call."""
    _require_localhost(request)
    ok, msg = _session(request).stage_for_download(req.file_path)
    return {"ok": ok, "msg": msg}


@router.get("/api/local/inbox")
def local_inbox(request: Request):
    """Return the inbox status line and received file names."""
    _require_localhost(request)
    session = _session(request)
    return {"status": session.inspect_inbox(), "files": session.layout.inbox_files()}
