"""URL normalization plus the `Request` and `Href` value types."""

from __future__ import annotations

import ipaddress
import posixpath
import re
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import SplitResult, parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from .types import HrefType


ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")
TRACKING_QUERY_PARAM_PREFIXES = ("utm_",)
TRACKING_QUERY_PARAMS = {
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
    "mkt_tok",
    "igshid",
    "ref_src",
}


def host_from_url(url: str) -> str:
    """Hostname without a leading `www.`; two URLs are the same site when these match."""

    try:
        host = (urlsplit(url).hostname or "").strip(".")
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def _canonical_netloc(parts: SplitResult) -> str:
    # Credentials are dropped; they never identify a different resource.
    host = (parts.hostname or "").lower()
    if not host:
        return ""
    if ":" in host:
        host = f"[{host}]"

    try:
        port = parts.port
    except ValueError:
        return ""
    if port is None or DEFAULT_PORTS.get(parts.scheme.lower()) == port:
        return host
    return f"{host}:{port}"


def _canonical_path(path: str) -> str:
    # normpath keeps a leading "//", so runs of slashes are squeezed first.
    if not path:
        return "/"
    return posixpath.normpath(re.sub(r"/{2,}", "/", path))


def _is_tracking_param(key: str) -> bool:
    key = key.strip().lower()
    return key in TRACKING_QUERY_PARAMS or key.startswith(TRACKING_QUERY_PARAM_PREFIXES)


def _canonical_query(query: str) -> str:
    pairs = parse_qsl(query, keep_blank_values=True)
    return urlencode([(key, value) for key, value in pairs if not _is_tracking_param(key)])


def normalize_url(url: str | None) -> str | None:
    """Canonical form of an absolute http(s) URL, used as the identity of a resource.

    Scheme and host are lowercased, default ports, fragments and tracking
    parameters are dropped, and the path loses dot segments and its trailing
    slash (the root stays `/`). Returns None for anything that is not an
    absolute http(s) URL.
    """

    try:
        parts = urlsplit((url or "").strip())
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES or not parts.netloc:
        return None

    netloc = _canonical_netloc(parts)
    if not netloc:
        return None

    return urlunsplit((scheme, netloc, _canonical_path(parts.path), _canonical_query(parts.query), ""))


def resolve_url(base_url: str, href: str | None) -> str | None:
    """Resolve a link found on `base_url`; in-page anchors and non-web schemes give None."""

    candidate = (href or "").strip()
    if not candidate or candidate.startswith("#"):
        return None
    if candidate.lower().startswith(SKIP_HREF_PREFIXES):
        return None
    return normalize_url(urljoin(base_url, candidate))


def domain_extension(host: str) -> str:
    """Return the top-level label of a host (`nl` for `www.example.nl`).

    IP literals and single-label hosts have no extension.
    """

    host = host.strip(".").lower()
    if not host or "." not in host:
        return ""
    try:
        ipaddress.ip_address(host.strip("[]"))
        return ""
    except ValueError:
        pass
    return host.rsplit(".", maxsplit=1)[-1]


def parse_extension_list(value: str | Iterable[str] | None) -> list[str]:
    """Parse `nl,.be, COM` style allow-lists into bare lowercase labels."""

    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)

    out: list[str] = []
    for item in items:
        label = str(item).strip().lower().lstrip(".")
        if label and label not in out:
            out.append(label)
    return out


@dataclass(frozen=True, slots=True)
class Request:
    """Normalized view of one resource URL.

    Build with `Request.from_url`; an unparseable URL gives a request whose
    `valid` flag is False and whose derived fields are empty.
    """

    raw_url: str
    url: str
    domain: str
    domain_url: str
    path: str
    extension: str
    file_extension: str

    @classmethod
    def from_url(cls, url: str) -> "Request":
        normalized = normalize_url(url)
        if normalized is None:
            return cls(
                raw_url=url,
                url="",
                domain="",
                domain_url="",
                path="",
                extension="",
                file_extension="",
            )

        parsed = urlsplit(normalized)
        host = (parsed.hostname or "").lower()
        path = parsed.path or "/"
        file_ext = posixpath.splitext(posixpath.basename(path))[1].lstrip(".").lower()

        return cls(
            raw_url=url,
            url=normalized,
            domain=host,
            domain_url=f"{parsed.scheme}://{parsed.netloc}",
            path=path,
            extension=domain_extension(host),
            file_extension=file_ext,
        )

    @property
    def valid(self) -> bool:
        return bool(self.url)

    @property
    def robots_url(self) -> str:
        return f"{self.domain_url}/robots.txt" if self.valid else ""

    def same_site(self, url: str) -> bool:
        """Return True when `url` lives on this request's scheme-agnostic host."""

        return bool(self.domain) and host_from_url(url) == host_from_url(self.url)


@dataclass(frozen=True, slots=True)
class Href:
    """A link token found in a document, resolved lazily against a base."""

    raw: str
    type: HrefType = HrefType.PAGE

    def get_url(self, base: Request | str) -> str | None:
        """Resolve to an absolute normalized URL, or None when unusable."""

        # Normalizing drops the trailing slash that picks the base directory.
        if isinstance(base, Request):
            base_url = base.raw_url.strip() if base.valid else ""
        else:
            base_url = base
        if not base_url:
            return normalize_url(self.raw)
        return resolve_url(base_url, self.raw)


def unique_hrefs(hrefs: Iterable[Href]) -> list[Href]:
    """Drop repeated hrefs while keeping first-seen order."""

    return list(dict.fromkeys(hrefs))


__all__ = [
    "ALLOWED_SCHEMES",
    "DEFAULT_PORTS",
    "Href",
    "Request",
    "SKIP_HREF_PREFIXES",
    "TRACKING_QUERY_PARAM_PREFIXES",
    "TRACKING_QUERY_PARAMS",
    "domain_extension",
    "host_from_url",
    "normalize_url",
    "parse_extension_list",
    "resolve_url",
    "unique_hrefs",
]
