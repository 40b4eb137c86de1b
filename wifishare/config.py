import os
from typing import List


VERSION = "v0.3.0"


def _csv_list(raw: str) -> List[str]:
    """Parse a comma-separated string into normalized non-empty values."""
    out: List[str] = []
    for x in str(raw or "").split(","):
        s = str(x or "").strip().lower()
        if s and s not in out:
            out.append(s)
    return out


def _route(raw: str, default: str) -> str:
    """Normalize a configured route path to a single leading slash."""
    value = str(raw or "").strip().strip("/")
    return f"/{value}" if value else default


HOST = os.environ.get("WIFISHARE_HOST", "0.0.0.0") or "0.0.0.0"
PORT = int(os.environ.get("WIFISHARE_PORT", "0"))
PEER = str(os.environ.get("WIFISHARE_PEER", "android") or "android").strip()

UPLOAD_PATH = _route(os.environ.get("WIFISHARE_UPLOAD_PATH", ""), "/android-send")
DOWNLOAD_PATH = _route(os.environ.get("WIFISHARE_DOWNLOAD_PATH", ""), "/windows-send")

IFACE_BLOCKLIST_DEFAULT = ("virtual", "vmnet", "vbox", "docker")
IFACE_BLOCKLIST = list(IFACE_BLOCKLIST_DEFAULT) + [
    x for x in _csv_list(os.environ.get("WIFISHARE_IFACE_BLOCKLIST", "")) if x not in IFACE_BLOCKLIST_DEFAULT
]

DEBUG = os.environ.get("WIFISHARE_DEBUG", "0") == "1"
CONSOLE_LOG = os.environ.get("WIFISHARE_CONSOLE", "0") == "1"
LOG_ENABLED = os.environ.get("WIFISHARE_LOG", "0") == "1" or CONSOLE_LOG
VERBOSE_HTTP_LOG = os.environ.get("WIFISHARE_VERBOSE_HTTP_LOG", "1") == "1"

BASE_DIR = str(os.environ.get("WIFISHARE_BASE_DIR", "") or "").strip()
DATA_DIR = os.path.abspath(
    str(os.environ.get("WIFISHARE_DATA_DIR", "") or "").strip()
    or os.path.join(os.path.expanduser("~"), ".wifishare")
)
LOG_FILE = os.path.join(DATA_DIR, "wifishare.log")


def reload_from_env() -> None:
    """Reload runtime configuration from environment variables."""
    global HOST, PORT, PEER, UPLOAD_PATH, DOWNLOAD_PATH
    global IFACE_BLOCKLIST
    global DEBUG, CONSOLE_LOG, LOG_ENABLED, VERBOSE_HTTP_LOG
    global BASE_DIR, DATA_DIR, LOG_FILE

    HOST = os.environ.get("WIFISHARE_HOST", HOST) or "0.0.0.0"
    PORT = int(os.environ.get("WIFISHARE_PORT", str(PORT)))
    PEER = str(os.environ.get("WIFISHARE_PEER", PEER) or "android").strip()

    UPLOAD_PATH = _route(os.environ.get("WIFISHARE_UPLOAD_PATH", UPLOAD_PATH), "/android-send")
    DOWNLOAD_PATH = _route(os.environ.get("WIFISHARE_DOWNLOAD_PATH", DOWNLOAD_PATH), "/windows-send")

    IFACE_BLOCKLIST = list(IFACE_BLOCKLIST_DEFAULT) + [
        x for x in _csv_list(os.environ.get("WIFISHARE_IFACE_BLOCKLIST", "")) if x not in IFACE_BLOCKLIST_DEFAULT
    ]

    DEBUG = os.environ.get("WIFISHARE_DEBUG", "0") == "1"
    CONSOLE_LOG = os.environ.get("WIFISHARE_CONSOLE", "0") == "1"
    LOG_ENABLED = os.environ.get("WIFISHARE_LOG", "0") == "1" or CONSOLE_LOG
    VERBOSE_HTTP_LOG = os.environ.get("WIFISHARE_VERBOSE_HTTP_LOG", "1") == "1"

    BASE_DIR = str(os.environ.get("WIFISHARE_BASE_DIR", BASE_DIR) or "").strip()
    DATA_DIR = os.path.abspath(str(os.environ.get("WIFISHARE_DATA_DIR", DATA_DIR) or DATA_DIR).strip())
    LOG_FILE = os.path.join(DATA_DIR, "wifishare.log")
