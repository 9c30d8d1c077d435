"""Progress sinks consumed by the long-running queries.

Queries only write to the sink and poll ``is_canceled()`` between units of
work; they never block on it.
"""

import threading
from typing import Protocol

import click


class ProgressIndicator(Protocol):
    def set_text(self, text: str) -> None:
        ...

    def set_text2(self, text: str) -> None:
        ...

    def set_fraction(self, fraction: float) -> None:
        ...

    def is_canceled(self) -> bool:
        ...


class NullProgress:
    def set_text(self, text: str) -> None:
        pass

    def set_text2(self, text: str) -> None:
        pass

    def set_fraction(self, fraction: float) -> None:
        pass

    def is_canceled(self) -> bool:
        return False


class CancellableProgress(NullProgress):
    """Records the latest progress values; ``cancel()`` may be called from any thread."""

    def __init__(self) -> None:
        self.text = ""
        self.text2 = ""
        self.fraction = 0.0
        self._canceled = threading.Event()

    def set_text(self, text: str) -> None:
        self.text = text

    def set_text2(self, text: str) -> None:
        self.text2 = text

    def set_fraction(self, fraction: float) -> None:
        self.fraction = fraction

    def cancel(self) -> None:
        self._canceled.set()

    def is_canceled(self) -> bool:
        return self._canceled.is_set()


class EchoProgress(CancellableProgress):
    """Echoes progress text to stderr (used by the CLI)."""

    def set_text(self, text: str) -> None:
        super().set_text(text)
        click.echo(text, err=True)

    def set_text2(self, text: str) -> None:
        super().set_text2(text)
        click.echo(f"  {text} ({self.fraction:.0%})", err=True)
