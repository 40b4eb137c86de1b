"""Networking helpers for LAN address discovery."""

import ipaddress
import socket
from typing import Iterable, Iterator, Optional, Tuple

import psutil

from . import config


LOOPBACK_IP = "127.0.0.1"


def _iface_is_blocked(name: str, blocklist: Iterable[str]) -> bool:
    """Return True if an interface name contains any blocklisted token."""
    val = str(name or "").strip().lower()
    return any(str(token).lower() in val for token in blocklist if token)


def _is_usable_ipv4(ip: str) -> bool:
    """Return True for a parseable, non-loopback IPv4 address."""
    try:
        addr = ipaddress.ip_address(str(ip or "").strip())
    except ValueError:
        return False
    return isinstance(addr, ipaddress.IPv4Address) and not addr.is_loopback


def iter_lan_candidates(blocklist: Optional[Iterable[str]] = None) -> Iterator[Tuple[str, str]]:
    """Yield `(interface, ipv4)` pairs in enumeration order, skipping virtual and down adapters."""
    tokens = list(config.IFACE_BLOCKLIST if blocklist is None else blocklist)
    try:
        by_iface = psutil.net_if_addrs() or {}
    except Exception:
        by_iface = {}
    try:
        stats = psutil.net_if_stats() or {}
    except Exception:
        stats = {}

    for iface_name, entries in by_iface.items():
        st = stats.get(iface_name)
        if st is not None and not bool(getattr(st, "isup", False)):
            continue
        if _iface_is_blocked(iface_name, tokens):
            continue
        for entry in entries or []:
            if getattr(entry, "family", None) != socket.AF_INET:
                continue
            ip = str(getattr(entry, "address", "") or "").strip()
            if _is_usable_ipv4(ip):
                yield str(iface_name), ip


def resolve_lan_address(blocklist: Optional[Iterable[str]] = None) -> str:
    """Return the first IPv4 of the first non-virtual interface, or loopback when none qualifies."""
    for _iface, ip in iter_lan_candidates(blocklist):
        return ip
    return LOOPBACK_IP
