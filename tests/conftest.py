import pytest

from sonar_connector.connection import ConnectionFactory, ServerConfig
from sonar_connector.progress import CancellableProgress

BASE = "https://sonar.example.com"

_PROXY_VARIABLES = (
    "http_proxy", "https_proxy", "all_proxy", "no_proxy",
    "HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "NO_PROXY",
)


@pytest.fixture(autouse=True)
def clean_proxy_environment(monkeypatch):
    """Keep the developer's proxy settings out of the tests."""
    for name in _PROXY_VARIABLES:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class FakeProxyProvider:
    def __init__(self, candidates=(), credentials=None):
        self.candidates = list(candidates)
        self._credentials = credentials
        self.selected_urls = []

    def select(self, url):
        self.selected_urls.append(url)
        return self.candidates

    def credentials(self):
        return self._credentials


class CancelAfter(CancellableProgress):
    """Reports "not cancelled" for the first *checks* polls, then cancels."""

    def __init__(self, checks: int) -> None:
        super().__init__()
        self.remaining = checks
        self.texts = []
        self.fractions = []

    def set_text(self, text):
        super().set_text(text)
        self.texts.append(text)

    def set_fraction(self, fraction):
        super().set_fraction(fraction)
        self.fractions.append(fraction)

    def is_canceled(self):
        if self.remaining <= 0:
            return True
        self.remaining -= 1
        return False


@pytest.fixture
def fake_proxy_provider():
    return FakeProxyProvider


@pytest.fixture
def no_proxy():
    return FakeProxyProvider()


@pytest.fixture
def cancel_after():
    return CancelAfter


@pytest.fixture
def connection(no_proxy):
    return ConnectionFactory(no_proxy).build(ServerConfig(BASE, anonymous=True))
