"""URL decomposition and recomposition."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit

from .errors import MalformedUrlError

DEFAULT_PORTS: Mapping[str, int] = {"http": 80, "https": 443}


def default_port(scheme: str) -> int:
    """Return the conventional port for ``scheme`` (80 when unknown)."""

    return DEFAULT_PORTS.get(scheme.lower(), 80)


@dataclass(frozen=True)
class UrlParts:
    """Components of a URL, each defaulted when absent from the source."""

    scheme: str = "http"
    host: str = ""
    port: int | None = None
    user: str = ""
    password: str = ""
    path: str = ""
    query: str = ""
    fragment: str = ""

    def __post_init__(self) -> None:
        if self.port is None:
            object.__setattr__(self, "port", default_port(self.scheme))


def parse_url(url: str) -> UrlParts:
    """Split ``url`` into its components.

    Args:
        url: URL string, optionally carrying ``user[:pass]@`` credentials.

    Returns:
        The parsed parts; missing components keep their defaults.

    Raises:
        MalformedUrlError: If the string cannot be parsed as a URL.
    """
    if not isinstance(url, str):
        raise MalformedUrlError(
            f"URL must be a string, got {type(url).__name__}"
        )
    try:
        split = urlsplit(url)
        port = split.port
    except ValueError as exc:
        raise MalformedUrlError(f"cannot parse URL {url!r}: {exc}") from exc

    if split.scheme and not split.netloc:
        raise MalformedUrlError(f"URL {url!r} has a scheme but no host")

    hostinfo = split.netloc.rpartition("@")[2]
    if hostinfo.startswith("["):
        host = hostinfo[: hostinfo.index("]") + 1]
    else:
        host = hostinfo.partition(":")[0]

    return UrlParts(
        scheme=split.scheme or "http",
        host=host,
        port=port,
        user=split.username or "",
        password=split.password or "",
        path=split.path,
        query=split.query,
        fragment=split.fragment,
    )


def build_url(parts: UrlParts, strip_auth: bool = True) -> str:
    """Serialize ``parts`` back into a URL string.

    The port is left out when it is the scheme's default one.

    Args:
        parts: Parts to serialize.
        strip_auth: Never emit ``user[:pass]@`` when True.

    Returns:
        ``scheme://[user[:pass]@]host[:port]path[?query][#fragment]``
    """
    url = f"{parts.scheme}://"
    if not strip_auth and parts.user:
        if parts.password:
            url += f"{parts.user}:{parts.password}@"
        else:
            url += f"{parts.user}@"
    url += parts.host
    if parts.port != default_port(parts.scheme):
        url += f":{parts.port}"
    url += parts.path
    if parts.query:
        url += f"?{parts.query}"
    if parts.fragment:
        url += f"#{parts.fragment}"
    return url


def parse_parameters(params: Any) -> dict[str, Any]:
    """Normalize request parameters to an ordered mapping.

    Strings (and bytes) are read as URL-encoded query strings; mappings are
    copied as-is.
    """
    if not params:
        return {}
    if isinstance(params, bytes):
        params = params.decode("utf-8")
    if isinstance(params, str):
        return dict(parse_qsl(params.lstrip("?"), keep_blank_values=True))
    return dict(params)


def append_query(url: str, parameters: Mapping[str, Any]) -> str:
    """Append URL-encoded ``parameters`` to the query string of ``url``."""

    if not parameters:
        return url
    query = urlencode(parameters, doseq=True)
    base, hash_mark, fragment = url.partition("#")
    if base.endswith(("?", "&")):
        base += query
    elif "?" in base:
        base += f"&{query}"
    else:
        base += f"?{query}"
    return f"{base}{hash_mark}{fragment}"
