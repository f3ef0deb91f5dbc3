# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""What the resolver needs from a page: script texts and ``<meta property>`` content.

``PageSource`` is the collaborator interface. ``PageSnapshot`` is the
concrete, already-captured form produced by the browser session or by
parsing saved HTML offline with lxml.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from .errors import PageUnavailableError


@runtime_checkable
class PageSource(Protocol):
    """Interface for anything that can hand the resolver a rendered page."""

    def script_texts(self) -> Sequence[str]: ...

    def meta_content(self, prop: str) -> str | None: ...


@dataclass(frozen=True, slots=True)
class PageSnapshot:
    """Captured inline scripts (document order) and meta property map."""

    url: str = ""
    scripts: tuple[str, ...] = ()
    meta: Mapping[str, str | None] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "scripts", tuple(self.scripts))
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    def script_texts(self) -> Sequence[str]:
        return self.scripts

    def meta_content(self, prop: str) -> str | None:
        return self.meta.get(prop)

    @classmethod
    def from_evaluation(cls, url: str, data: dict) -> PageSnapshot:
        """Build from the ``{"scripts": [...], "meta": {...}}`` page.evaluate result."""
        scripts = data.get("scripts") or []
        meta = data.get("meta") or {}
        return cls(
            url=url,
            scripts=tuple(s if isinstance(s, str) else "" for s in scripts),
            meta={str(k): (v if isinstance(v, str) else None) for k, v in meta.items()},
        )


def snapshot_from_html(html: str, url: str = "") -> PageSnapshot:
    """Parse saved, rendered HTML into a snapshot (no browser).

    Mirrors the live capture: every ``<script>`` text in document order and
    the ``content`` of the first ``<meta property=...>`` per property.
    """
    if not html or not html.strip():
        raise PageUnavailableError("HTML document is empty")
    from lxml import etree
    from lxml.html import fromstring

    try:
        doc = fromstring(html)
    except (etree.ParserError, ValueError) as e:
        raise PageUnavailableError(f"Could not parse HTML: {e}") from e

    scripts = [el.text_content() for el in doc.iter("script")]
    meta: dict[str, str | None] = {}
    for el in doc.iter("meta"):
        prop = el.get("property")
        if prop and prop not in meta:
            meta[prop] = el.get("content")
    return PageSnapshot(url=url, scripts=tuple(scripts), meta=meta)
