"""HTTP proxy resolution for the SonarQube host.

The host environment is consulted through a ``ProxyProvider``; the default
``EnvironmentProxyProvider`` reads the usual ``HTTP_PROXY``/``HTTPS_PROXY``/
``ALL_PROXY``/``NO_PROXY`` variables. Only plain HTTP proxies are ever used:
SOCKS candidates are skipped.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol
from urllib.parse import urlsplit

from requests.utils import get_environ_proxies

logger = logging.getLogger(__name__)

_SUPPORTED_SCHEMES = ("http", "https")


class MalformedURLError(ValueError):
    """Raised when a host URL cannot be used to look up a proxy."""


class ProxyType(Enum):
    HTTP = "http"
    SOCKS = "socks"
    OTHER = "other"

    @classmethod
    def from_scheme(cls, scheme: str) -> "ProxyType":
        scheme = scheme.lower()
        if scheme in _SUPPORTED_SCHEMES:
            return cls.HTTP
        if scheme.startswith("socks"):
            return cls.SOCKS
        return cls.OTHER


@dataclass(frozen=True)
class ProxyAddress:
    host: str
    port: int


@dataclass(frozen=True)
class ProxyCandidate:
    type: ProxyType
    address: ProxyAddress


@dataclass(frozen=True)
class ProxyCredentials:
    login: str
    password: str = field(repr=False, default="")


class ProxyProvider(Protocol):
    def select(self, url: str) -> list[ProxyCandidate]:
        ...

    def credentials(self) -> ProxyCredentials | None:
        ...


def parse_host_url(url: str):
    """Split *url*, raising MalformedURLError when it is not a usable http(s) URL."""
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError on a non-numeric or out-of-range port
    except ValueError as exc:
        raise MalformedURLError(f"Malformed URL '{url}': {exc}") from exc
    if parts.scheme.lower() not in _SUPPORTED_SCHEMES:
        raise MalformedURLError(f"Malformed URL '{url}': unsupported scheme '{parts.scheme}'")
    if not parts.hostname:
        raise MalformedURLError(f"Malformed URL '{url}': no host")
    return parts


def _candidate_from_url(proxy_url: str) -> ProxyCandidate | None:
    # Bare "host:port" values are treated as HTTP proxies, like curl does.
    if "://" not in proxy_url:
        proxy_url = "http://" + proxy_url
    try:
        parts = urlsplit(proxy_url)
        port = parts.port
    except ValueError:
        logger.warning("Ignoring malformed proxy setting '%s'", proxy_url)
        return None
    if not parts.hostname:
        return None
    proxy_type = ProxyType.from_scheme(parts.scheme)
    if port is None:
        port = 1080 if proxy_type is ProxyType.SOCKS else 80
    return ProxyCandidate(proxy_type, ProxyAddress(parts.hostname, port))


class EnvironmentProxyProvider:
    """Proxy settings taken from the process environment.

    Proxy credentials are environment-wide settings handed in by the caller;
    user info embedded in the proxy URLs is not used.
    """

    def __init__(self, credentials: ProxyCredentials | None = None) -> None:
        self._credentials = credentials

    def select(self, url: str) -> list[ProxyCandidate]:
        proxies = get_environ_proxies(url)
        scheme = urlsplit(url).scheme.lower()
        ordered = [proxies.get(scheme), proxies.get("all")]
        candidates = []
        for proxy_url in ordered:
            if not proxy_url:
                continue
            candidate = _candidate_from_url(proxy_url)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def credentials(self) -> ProxyCredentials | None:
        return self._credentials


class ProxyResolver:
    def __init__(self, provider: ProxyProvider) -> None:
        self.provider = provider

    def resolve(self, host_url: str) -> ProxyAddress | None:
        """Return the first HTTP proxy the provider offers for *host_url*, if any.

        A malformed *host_url* is logged and treated as "no proxy".
        """
        try:
            parse_host_url(host_url)
        except MalformedURLError:
            logger.exception("Unable to configure proxy")
            return None
        for candidate in self.provider.select(host_url):
            if candidate.type is ProxyType.HTTP:
                logger.debug("Using HTTP proxy %s:%s for %s",
                             candidate.address.host, candidate.address.port, host_url)
                return candidate.address
        return None

    def credentials(self) -> ProxyCredentials | None:
        return self.provider.credentials()
