"""URL canonicalisation and linkhash derivation."""

import hashlib
import posixpath
import re
from typing import NamedTuple
from urllib.parse import quote, urlsplit, urlunsplit

from cleanread.services.errors import InvalidUrlError

ALLOWED_SCHEMES = {"http", "https"}
_DEFAULT_PORTS = {"http": 80, "https": 443}

# Runs of two or more slashes inside a path
_MULTI_SLASH_RE = re.compile(r"/{2,}")

# Google's AJAX crawling scheme: "#!state" is served as "?_escaped_fragment_=state"
_AJAX_FRAGMENT = "#!"
_ESCAPED_FRAGMENT_PARAM = "_escaped_fragment_"


class ParsingCandidate(NamedTuple):
    url: str
    linkhash: str


def make_linkhash(url: str) -> str:
    """Return the deterministic identifier for an already-normalised *url*."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()


def _escape_ajax_fragment(url: str) -> str:
    if _AJAX_FRAGMENT not in url:
        return url
    base, _, state = url.partition(_AJAX_FRAGMENT)
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{_ESCAPED_FRAGMENT_PARAM}={quote(state, safe='')}"


def _normalise_path(path: str) -> str:
    """Collapse duplicate slashes and resolve ``.``/``..`` segments."""
    if not path:
        return "/"
    collapsed = _MULTI_SLASH_RE.sub("/", path)
    if not collapsed.startswith("/"):
        collapsed = "/" + collapsed
    resolved = posixpath.normpath(collapsed)
    # normpath drops the trailing slash, which servers may treat as significant
    if collapsed.endswith("/") and resolved != "/":
        resolved += "/"
    return resolved


def _normalise_netloc(scheme: str, raw_url: str, parts) -> str:
    hostname = parts.hostname
    if not hostname:
        raise InvalidUrlError("URL must have a valid hostname.", url=raw_url)

    try:
        port = parts.port
    except ValueError as exc:
        raise InvalidUrlError(f"Invalid port: {exc}", url=raw_url) from exc

    host = f"[{hostname}]" if ":" in hostname else hostname
    netloc = host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"

    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    return netloc


def normalize_url(url: str) -> ParsingCandidate:
    """Canonicalise *url* and derive its linkhash.

    The result is idempotent: feeding the returned URL back in yields the same
    URL and the same linkhash.

    Raises:
        InvalidUrlError: if *url* is empty, not http/https, or has no host.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrlError("URL must be a non-empty string.")

    cleaned = _escape_ajax_fragment(url.strip()).replace(" ", "%20")
    parts = urlsplit(cleaned)

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidUrlError(
            f"Scheme '{parts.scheme}' is not allowed. Use http or https.", url=url
        )

    netloc = _normalise_netloc(scheme, url, parts)
    path = _normalise_path(parts.path)

    canonical = urlunsplit((scheme, netloc, path, parts.query, ""))
    return ParsingCandidate(url=canonical, linkhash=make_linkhash(canonical))
