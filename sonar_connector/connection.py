"""Connections to a SonarQube server.

Usage:
    factory    = ConnectionFactory(proxy_provider=EnvironmentProxyProvider())
    connection = factory.build(ServerConfig("https://sonar.example.com/", username="admin",
                                            password_store=EnvironmentPasswordStore()))

A ``Connection`` bundles two independently used clients built from the same
server configuration: ``resource_client`` for the resource inventory and
``issue_client`` for paged issue searches and rule lookups.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import quote

from sonar_connector.client import SonarClient
from sonar_connector.proxy import (
    EnvironmentProxyProvider,
    ProxyAddress,
    ProxyCredentials,
    ProxyProvider,
    ProxyResolver,
)

logger = logging.getLogger(__name__)

# The analysis endpoints can take minutes to answer on large projects.
CONNECT_TIMEOUT = 180
READ_TIMEOUT = 180


# ---------------------------------------------------------------------------
# Server configuration and password handling
# ---------------------------------------------------------------------------

class PasswordStore(Protocol):
    def load_password(self) -> str | None:
        ...


class EnvironmentPasswordStore:
    """Reads the password from an environment variable each time it is asked."""

    def __init__(self, variable: str = "SONAR_PASSWORD") -> None:
        self.variable = variable

    def load_password(self) -> str | None:
        return os.environ.get(self.variable)


@dataclass(frozen=True)
class ServerConfig:
    host_url: str
    anonymous: bool = False
    username: str | None = None
    password_store: PasswordStore | None = field(default=None, repr=False, compare=False)


@contextmanager
def materialized_password(config: ServerConfig) -> Iterator[bytearray]:
    """Load the password for *config* into a buffer that is wiped on exit."""
    raw = config.password_store.load_password() if config.password_store else None
    secret = bytearray((raw or "").encode("utf-8"))
    del raw
    try:
        yield secret
    finally:
        secret[:] = bytes(len(secret))


def strip_trailing_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Connection:
    base_url: str
    username: str | None
    resource_client: SonarClient = field(repr=False)
    issue_client: SonarClient = field(repr=False)
    timeout: tuple[int, int] = (CONNECT_TIMEOUT, READ_TIMEOUT)
    proxy: ProxyAddress | None = None
    proxy_login: str | None = None

    @property
    def anonymous(self) -> bool:
        return not self.issue_client.authenticated


class ConnectionFactory:
    def __init__(self, proxy_provider: ProxyProvider | None = None) -> None:
        self.proxy_resolver = ProxyResolver(proxy_provider or EnvironmentProxyProvider())

    def build(self, config: ServerConfig) -> Connection:
        """Build a connection for *config*. No request is sent."""
        host_url = strip_trailing_slash(config.host_url)
        proxy = self.proxy_resolver.resolve(host_url)
        proxy_credentials = self.proxy_resolver.credentials() if proxy else None
        proxies = _proxy_urls(proxy, proxy_credentials)

        resource_client = self._build_client(config, host_url, proxies)
        issue_client = self._build_client(config, host_url, proxies)

        logger.debug(
            "Built %s connection to %s%s",
            "anonymous" if config.anonymous else "authenticated",
            host_url,
            f" via proxy {proxy.host}:{proxy.port}" if proxy else "",
        )
        return Connection(
            base_url=host_url,
            username=None if config.anonymous else config.username,
            resource_client=resource_client,
            issue_client=issue_client,
            proxy=proxy,
            proxy_login=proxy_credentials.login if proxy_credentials else None,
        )

    @staticmethod
    def _build_client(config: ServerConfig, host_url: str, proxies: dict[str, str]) -> SonarClient:
        timeout = (CONNECT_TIMEOUT, READ_TIMEOUT)
        if config.anonymous:
            return SonarClient(host_url, timeout=timeout, proxies=proxies)
        with materialized_password(config) as password:
            return SonarClient(
                host_url,
                credentials=(config.username or "", password),
                timeout=timeout,
                proxies=proxies,
            )


def _proxy_urls(proxy: ProxyAddress | None, credentials: ProxyCredentials | None) -> dict[str, str]:
    if proxy is None:
        return {}
    userinfo = ""
    if credentials is not None:
        userinfo = f"{quote(credentials.login, safe='')}:{quote(credentials.password, safe='')}@"
    url = f"http://{userinfo}{proxy.host}:{proxy.port}"
    return {"http": url, "https": url}
