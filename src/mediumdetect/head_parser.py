# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Extract meta, link, and JSON-LD script tags from raw <head> markup.

Uses lxml's event-driven (target) HTML parser as a streaming tokenizer:
start/end/data callbacks only, no tree is built.  libxml2 handles attribute
order, whitespace, single/double/unquoted values and name case; we only
collect the attributes we score on.

Contract:
- meta  → name, property, content
- link  → rel, href, title
- script[type=application/ld+json] → raw text (never JSON-decoded)
- missing or empty attributes stay None
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from lxml import etree

logger = logging.getLogger(__name__)

_LD_JSON_TYPE = "application/ld+json"


@dataclass(frozen=True, slots=True)
class MetaTag:
    name: str | None = None
    property: str | None = None
    content: str | None = None


@dataclass(frozen=True, slots=True)
class LinkTag:
    rel: str | None = None
    href: str | None = None
    title: str | None = None


@dataclass(frozen=True, slots=True)
class HeadDocument:
    """Parsed <head>: three independent tag sequences in document order."""

    meta: tuple[MetaTag, ...] = ()
    links: tuple[LinkTag, ...] = ()
    scripts: tuple[str, ...] = ()


def _pick_attrs(attrib: Mapping, wanted: tuple[str, ...]) -> dict[str, str]:
    """Case-insensitive attribute pick; empty values are dropped."""
    found: dict[str, str] = {}
    for key, value in attrib.items():
        k = str(key).lower()
        if k in wanted and k not in found and value:
            found[k] = value
    return found


class _HeadTarget:
    """lxml parser target collecting head tags as they stream past."""

    def __init__(self) -> None:
        self.meta: list[MetaTag] = []
        self.links: list[LinkTag] = []
        self.scripts: list[str] = []
        self._script_buf: list[str] | None = None

    def start(self, tag, attrib) -> None:
        name = str(tag).lower()
        if name == "meta":
            self.meta.append(MetaTag(**_pick_attrs(attrib, ("name", "property", "content"))))
        elif name == "link":
            self.links.append(LinkTag(**_pick_attrs(attrib, ("rel", "href", "title"))))
        elif name == "script":
            script_type = _pick_attrs(attrib, ("type",)).get("type", "")
            if script_type.strip().lower() == _LD_JSON_TYPE:
                self._script_buf = []

    def end(self, tag) -> None:
        if str(tag).lower() == "script" and self._script_buf is not None:
            self.scripts.append("".join(self._script_buf))
            self._script_buf = None

    def data(self, data) -> None:
        if self._script_buf is not None:
            self._script_buf.append(data)

    def close(self) -> HeadDocument:
        return self.document()

    def document(self) -> HeadDocument:
        return HeadDocument(meta=tuple(self.meta), links=tuple(self.links), scripts=tuple(self.scripts))


def parse_head(head_html: str) -> HeadDocument:
    """Tokenize *head_html* and collect meta/link/JSON-LD tags."""
    if not head_html or not head_html.strip():
        return HeadDocument()

    target = _HeadTarget()
    # Explicit encoding so a <meta charset> in the markup cannot switch decoding mid-stream
    parser = etree.HTMLParser(target=target, recover=True, no_network=True, encoding="utf-8")
    try:
        parser.feed(head_html.encode("utf-8", errors="replace"))
        parser.close()
    except etree.LxmlError as e:
        # Keep whatever streamed past before the tokenizer gave up
        logger.debug("Head tokenizer stopped early: %s", e)
    return target.document()


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


def pick_meta_name(doc: HeadDocument, name: str) -> list[str]:
    """Content values of <meta name=...> tags matching *name* (case-insensitive)."""
    wanted = name.lower()
    return [t.content for t in doc.meta if t.name and t.name.lower() == wanted and t.content]


def pick_meta_property(doc: HeadDocument, prop: str) -> list[str]:
    """Content values of <meta property=...> tags matching *prop* (case-insensitive)."""
    wanted = prop.lower()
    return [t.content for t in doc.meta if t.property and t.property.lower() == wanted and t.content]


def pick_link_attr(doc: HeadDocument, rel: str, attr: str) -> list[str]:
    """*attr* ("href" or "title") of <link rel=...> tags matching *rel* (case-insensitive)."""
    if attr not in ("rel", "href", "title"):
        raise ValueError(f"unsupported link attribute: {attr!r}")
    wanted = rel.lower()
    values = (getattr(t, attr) for t in doc.links if t.rel and t.rel.lower() == wanted)
    return [v for v in values if v]
