"""Console front end: pick the base folder, start the session, show the URL and read commands."""

import argparse
import io
import sys
from typing import Optional, TextIO

import qrcode
import requests

from . import config
from .api_client import LocalApiClient
from .logging_config import log
from .server import TransferSession, start


HELP_TEXT = (
    "Commands:\n"
    "  send <path>   stage a file for the phone to download\n"
    "  check         show the first received file\n"
    "  url           print the server URL again\n"
    "  quit          stop the server and exit"
)


def _ask_base_dir() -> Optional[str]:
    """Open a folder picker; return None when no display is available or the dialog is cancelled."""
    try:
        import tkinter as tk
        from tkinter import filedialog
    except ImportError:
        return None
    try:
        root = tk.Tk()
        root.withdraw()
        path = filedialog.askdirectory(title="Select WiFiShare Folder")
        root.destroy()
    except tk.TclError:
        return None
    return str(path or "") or None


def qr_text(url: str) -> str:
    """Render `url` as a terminal QR code."""
    qr = qrcode.QRCode(border=1, error_correction=qrcode.constants.ERROR_CORRECT_M)
    qr.add_data(url)
    qr.make(fit=True)
    buf = io.StringIO()
    qr.print_ascii(out=buf, invert=True)
    return buf.getvalue()


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def handle_command(session: TransferSession, line: str) -> Optional[str]:
    """Run one console command; return the text to print, or None to quit."""
    parts = str(line or "").strip().split(None, 1)
    if not parts:
        return ""
    cmd = parts[0].lower()
    arg = _strip_quotes(parts[1]) if len(parts) > 1 else ""

    if cmd in ("quit", "exit", "q"):
        return None
    if cmd in ("send", "stage"):
        if not arg:
            return "Usage: send <path>"
        _ok, msg = session.stage_for_download(arg)
        return msg
    if cmd in ("check", "inbox"):
        return session.inspect_inbox()
    if cmd == "url":
        return session.url
    return HELP_TEXT


def run_console(session: TransferSession, stdin: TextIO = sys.stdin, out: TextIO = sys.stdout) -> None:
    """Read commands until `quit` or end of input."""
    print(HELP_TEXT, file=out)
    while True:
        out.write("> ")
        out.flush()
        line = stdin.readline()
        if not line:
            break
        reply = handle_command(session, line)
        if reply is None:
            break
        if reply:
            print(reply, file=out)


def _stage_remote(port: int, file_path: str) -> int:
    """Stage a file on a server already running on this host."""
    client = LocalApiClient.for_port(port)
    try:
        resp = client.stage(file_path)
        resp.raise_for_status()
        body = resp.json()
    except requests.RequestException as e:
        print(f"Local API request failed: {e}", file=sys.stderr)
        return 1
    print(body.get("msg", ""))
    if not body.get("ok"):
        return 1
    try:
        info = client.get_info()
        info.raise_for_status()
        url = info.json().get("url", "")
    except requests.RequestException as e:
        log.debug("Local API info failed: %s", e)
        url = ""
    if url:
        print(f"Peer downloads from {url}")
    return 0


def _check_remote(port: int) -> int:
    """Print the inbox status of a server already running on this host."""
    client = LocalApiClient.for_port(port)
    try:
        resp = client.get_inbox()
        resp.raise_for_status()
        body = resp.json()
    except requests.RequestException as e:
        print(f"Local API request failed: {e}", file=sys.stderr)
        return 1
    print(body.get("status", ""))
    for name in body.get("files") or []:
        print(f"  {name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="wifishare", description="Share files with a phone over the local network.")
    ap.add_argument("base_dir", nargs="?", help="folder holding from_<peer>/ and to_<peer>/")
    ap.add_argument("--port", type=int, default=None, help="listen port (default: ephemeral)")
    ap.add_argument("--peer", default=None, help="peer name used for the inbox/outbox folders")
    ap.add_argument("--no-qr", action="store_true", help="do not print the QR code")
    ap.add_argument("--stage", metavar="FILE", default=None, help="stage FILE on a server running on --port and exit")
    ap.add_argument("--check", action="store_true", help="print the inbox of a server running on --port and exit")
    return ap


def main(argv: Optional[list] = None) -> int:
    """Run the module entrypoint and start the main application flow."""
    args = build_parser().parse_args(argv)

    if args.stage or args.check:
        if not args.port:
            print("--stage and --check need --port of the running server", file=sys.stderr)
            return 2
        if args.stage:
            return _stage_remote(args.port, args.stage)
        return _check_remote(args.port)

    base_dir = args.base_dir or config.BASE_DIR or _ask_base_dir()
    if not base_dir:
        print("No folder selected. Exiting.", file=sys.stderr)
        return 1

    try:
        session = start(base_dir, port=args.port, peer=args.peer)
    except (ValueError, OSError, RuntimeError) as e:
        log.exception("Startup failed")
        print(f"Startup failed: {e}", file=sys.stderr)
        return 1

    print(f"Base directory: {session.layout.base_dir}")
    print(f"Server running at {session.url}")
    if not args.no_qr:
        print(qr_text(session.url))
    try:
        run_console(session)
    except KeyboardInterrupt:
        pass
    finally:
        session.stop()
    return 0
