"""Decoding of raw HTTP responses."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .errors import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)

HEAD_SEPARATOR = b"\r\n\r\n"

STATUS_LINE = re.compile(
    r"^(?P<protocol>HTTPS?)/(?P<version>\d(?:\.\d)?)\s+"
    r"(?P<code>\d{3})(?:\s+(?P<status>.*))?$"
)
CONTINUE_LINE = re.compile(rb"^HTTPS?/\d(?:\.\d)?\s+100\b")


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class TransportFailure:
    """Error record carried by a Response when the transport failed."""

    code: int
    message: str


@dataclass(frozen=True)
class Response:
    """Decoded HTTP response.

    On the transport error path ``code`` and ``status`` carry the transport
    error code and message and ``error`` is set.
    """

    code: int = 0
    status: str = ""
    headers: Mapping[str, str] = field(default_factory=_empty_mapping)
    body: bytes = b""
    raw: bytes = b""
    request_url: str = ""
    request_parameters: Mapping[str, Any] = field(
        default_factory=_empty_mapping
    )
    info: Mapping[str, Any] = field(default_factory=_empty_mapping)
    error: TransportFailure | None = None

    def __post_init__(self) -> None:
        for name in ("headers", "request_parameters", "info"):
            object.__setattr__(
                self, name, MappingProxyType(dict(getattr(self, name)))
            )

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @classmethod
    def from_transport_error(
        cls,
        error: TransportError,
        *,
        request_url: str = "",
        request_parameters: Mapping[str, Any] | None = None,
        info: Mapping[str, Any] | None = None,
    ) -> Response:
        return cls(
            code=error.code,
            status=error.message,
            request_url=request_url,
            request_parameters=request_parameters or {},
            info=info or {},
            error=TransportFailure(code=error.code, message=error.message),
        )


def _split_head(raw: bytes) -> tuple[bytes, bytes]:
    head, separator, rest = raw.partition(HEAD_SEPARATOR)
    if not separator:
        raise MalformedResponseError(
            "response has no blank line between headers and body"
        )
    return head, rest


def decode_response(raw: bytes) -> Response:
    """Parse raw response bytes into a Response.

    A single leading ``100 Continue`` interim block is skipped. The body is
    returned as-is, no transfer or content decoding is applied.

    Args:
        raw: Status line, header block, blank line and body.

    Returns:
        The decoded response.

    Raises:
        MalformedResponseError: If no blank-line separator or no status
            line can be found.
    """
    head, body = _split_head(raw)
    if CONTINUE_LINE.match(head):
        head, body = _split_head(body)

    code: int | None = None
    status = ""
    headers: dict[str, str] = {}
    for line in head.decode("iso-8859-1").split("\r\n"):
        if code is None:
            match = STATUS_LINE.match(line)
            if match:
                code = int(match.group("code"))
                status = (match.group("status") or "").strip()
                continue
        name, colon, value = line.partition(":")
        if not colon:
            if line:
                logger.debug("Skipping header line without colon: %r", line)
            continue
        headers[name] = value.strip()

    if code is None:
        raise MalformedResponseError("response has no parseable status line")

    return Response(
        code=code, status=status, headers=headers, body=body, raw=raw
    )
