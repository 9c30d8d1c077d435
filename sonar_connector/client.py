"""SonarQube API client.

Usage:
    client = SonarClient(url="https://sonar.example.com", credentials=("admin", b"secret"))
    data   = client.get("/api/issues/search", {"componentRoots": "my:project"})

A client holds no per-request state: the session carries the precomputed
``Authorization`` header and every request gets a fresh copy of the resolved
proxy mapping, so one instance may be shared by independent callers.
"""

import base64
import logging
from typing import Any

import requests
from requests.auth import AuthBase

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = (180, 180)

# Request-level keys that shadow the environment's proxies. A None value is
# dropped by requests after merging, so unresolved schemes go direct.
_NO_PROXIES = {"http": None, "https": None, "all": None}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SonarClientError(Exception):
    """Base exception for all client errors."""


class AuthenticationError(SonarClientError):
    """Raised on HTTP 401 — invalid credentials or expired token."""


class NotFoundError(SonarClientError):
    """Raised on HTTP 404 — resource, rule or endpoint not found."""


class NetworkError(SonarClientError):
    """Raised on connection timeout or unreachable server."""


def basic_auth_header(username: str, password: bytes | bytearray) -> str:
    """Return an HTTP Basic ``Authorization`` value for *username*/*password*."""
    token = base64.b64encode(username.encode("utf-8") + b":" + bytes(password))
    return "Basic " + token.decode("ascii")


class _HeaderAuth(AuthBase):
    """Sends a precomputed ``Authorization`` value; takes precedence over ~/.netrc."""

    def __init__(self, header: str) -> None:
        self._header = header

    def __call__(self, request):
        request.headers["Authorization"] = self._header
        return request


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class SonarClient:
    """Thin wrapper around the SonarQube web services."""

    def __init__(
        self,
        url: str,
        credentials: tuple[str, bytes | bytearray] | None = None,
        timeout: tuple[int, int] = DEFAULT_TIMEOUT,
        proxies: dict[str, str] | None = None,
    ) -> None:
        # Used as given; ConnectionFactory strips the trailing slash.
        self.base_url = url
        self.timeout = timeout
        self._session = requests.Session()
        self._proxies = {**_NO_PROXIES, **(proxies or {})}
        if credentials is not None:
            username, password = credentials
            self._session.auth = _HeaderAuth(basic_auth_header(username, password))

    @property
    def authenticated(self) -> bool:
        return self._session.auth is not None

    @property
    def proxies(self) -> dict[str, str]:
        return {scheme: url for scheme, url in self._proxies.items() if url is not None}

    def request_proxies(self) -> dict[str, str | None]:
        """Per-request proxy mapping; copied because requests merges into it."""
        return dict(self._proxies)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Perform a single GET request and return the parsed JSON response.

        Raises:
            AuthenticationError: HTTP 401
            NotFoundError:       HTTP 404
            SonarClientError:    Any other non-2xx response
            NetworkError:        Timeout or connection failure
        """
        return self._request(endpoint, params or {})

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        url = f"{self.base_url}{endpoint}"
        logger.debug("GET %s %s", url, params)
        try:
            response = self._session.get(
                url, params=params, timeout=self.timeout, proxies=self.request_proxies(),
            )
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self.timeout[1]}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach SonarQube server at '{self.base_url}'"
            ) from exc

        if response.status_code == 401:
            raise AuthenticationError(
                "Authentication failed — check the username, password or token."
            )
        if response.status_code == 404:
            raise NotFoundError(
                f"Resource not found: {url}"
            )
        if not response.ok:
            raise SonarClientError(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}"
            )

        return response.json()
