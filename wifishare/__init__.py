"""WiFiShare: hand files between this machine and a phone on the same network."""

from .config import VERSION

__version__ = VERSION
