"""Data models for SonarQube query results.

Contains the value objects handed back to callers:
    - Qualifier   (resource kind as the server encodes it)
    - Resource    (project or module)
    - Page        (one page of an issue search)
    - Rule        (rule definition from /api/rules/show)

Issues themselves are not modelled: they are passed through verbatim as the
JSON dicts the server returned.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Issue = dict[str, Any]


class Qualifier(str, Enum):
    PROJECT = "TRK"
    MODULE = "BRC"


@dataclass(frozen=True)
class Resource:
    id: int
    key: str
    name: str
    qualifier: Qualifier

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "Resource":
        return cls(
            id=int(raw["id"]),
            key=raw.get("key", ""),
            name=raw.get("name", ""),
            qualifier=Qualifier(raw.get("qualifier", Qualifier.PROJECT.value)),
        )


@dataclass(frozen=True)
class Page:
    """One page of ``/api/issues/search``.

    ``pages`` is only set when the server reports it; older servers send
    ``total`` and ``pageSize`` alone and the caller derives the count.
    """

    items: list[Issue] = field(default_factory=list)
    page_index: int = 1
    page_size: int = 0
    total: int = 0
    pages: int | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Page":
        items = list(data.get("issues") or [])
        paging = data.get("paging") or {}
        pages = paging.get("pages")
        total = paging.get("total")
        return cls(
            items=items,
            page_index=int(paging.get("pageIndex") or 1),
            page_size=int(paging.get("pageSize") or 0),
            total=int(total) if total is not None else len(items),
            pages=int(pages) if pages is not None else None,
        )


@dataclass(frozen=True)
class Rule:
    key: str
    name: str
    severity: str | None = None
    language: str | None = None
    language_name: str | None = None
    html_description: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Rule key must not be empty")

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "Rule":
        return cls(
            key=raw.get("key", ""),
            name=raw.get("name", ""),
            severity=raw.get("severity"),
            language=raw.get("lang"),
            language_name=raw.get("langName"),
            html_description=raw.get("htmlDesc"),
            description=raw.get("desc", raw.get("mdDesc")),
        )
