"""Handler outcomes rendered to HTTP responses by the API layer."""

from dataclasses import dataclass, field
from typing import Dict, Union


@dataclass(frozen=True)
class Success:
    body: Union[bytes, str]
    media_type: str = "text/plain"
    headers: Dict[str, str] = field(default_factory=dict)
    status_code: int = 200


@dataclass(frozen=True)
class ClientError:
    message: str
    status_code: int = 400


@dataclass(frozen=True)
class NotFound:
    message: str
    status_code: int = 404


@dataclass(frozen=True)
class ServerError:
    message: str
    status_code: int = 500


HandlerResult = Union[Success, ClientError, NotFound, ServerError]
