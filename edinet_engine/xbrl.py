"""Taxonomy-agnostic access to XBRL and inline XBRL documents.

EDINET filings come as plain XBRL instances (.xbrl) or inline XBRL
(.htm, XHTML with ix: facts).  Tag names drift between taxonomies:

  jppfs_cor:CurrentAssets         日本基準
  jpigp_cor:CurrentAssetsIFRS     IFRS
  jpcrp030000-asr_E01234-000:...  会社独自の拡張科目

Everything is therefore matched on a *normalized* local name
(lower-cased, no separators, no IFRS suffix).  Documents are parsed with
lxml either strictly as XML (namespaces resolved) or permissively as HTML
(prefixes kept verbatim in the tag, attribute names lower-cased); the
helpers below hide that difference.
"""

import logging
import re
from enum import Enum
from functools import cached_property
from typing import Iterator

from lxml import etree

logger = logging.getLogger(__name__)

_IFRS_SUFFIX_RE = re.compile(r"(?:ifrs)+$")

_XML_PARSER = etree.XMLParser(huge_tree=True, resolve_entities=False, no_network=True)
_HTML_PARSER = etree.HTMLParser(encoding="utf-8", huge_tree=True, no_network=True)


class PeriodKind(str, Enum):
    """XBRL period type of a concept: B/S = instant, P/L and C/F = duration."""

    INSTANT = "instant"
    DURATION = "duration"


class FactKind(Enum):
    """Inline XBRL element families the extractors care about."""

    NUMERIC = "nonfraction"
    NON_NUMERIC = "nonnumeric"
    CONTINUATION = "continuation"
    OTHER = ""


_FACT_KINDS = {kind.value: kind for kind in FactKind if kind is not FactKind.OTHER}


# ---------------------------------------------------------------------------
# Tag names
# ---------------------------------------------------------------------------

def normalize_tag_name(raw_name: str) -> str:
    """Normalize a concept name for pattern matching.

    "CurrentAssetsIFRS" -> "currentassets", "Current_Assets" -> "currentassets".
    Idempotent.
    """
    name = raw_name.lower().replace("_", "").replace("-", "")
    return _IFRS_SUFFIX_RE.sub("", name)


def strip_prefix(qname: str) -> str:
    """Drop a namespace prefix at the first ':' ("jppfs_cor:Assets" -> "Assets")."""
    _, sep, local = qname.partition(":")
    return local if sep else qname


def local_name(elem) -> str:
    """Local tag name of an element, for both XML- and HTML-parsed trees."""
    tag = elem.tag
    if not isinstance(tag, str):
        return ""  # comment / processing instruction
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return strip_prefix(tag)


def get_attr(elem, name: str, default: str = "") -> str:
    """Read an attribute; the HTML parser lower-cases attribute names."""
    value = elem.get(name)
    if value is None:
        value = elem.get(name.lower())
    return value if value is not None else default


def name_attr_local(elem) -> str:
    """Local part of an inline fact's ``name`` attribute."""
    return strip_prefix(get_attr(elem, "name"))


def fact_kind(elem) -> FactKind:
    return _FACT_KINDS.get(local_name(elem).lower(), FactKind.OTHER)


def element_text(elem) -> str:
    return "".join(elem.itertext())


def inner_markup(elem) -> str:
    """Serialize an element's content (text + children) back to markup.

    For a plain .xbrl TextBlock the HTML is escaped character data, so the
    element text already *is* the markup; for inline XBRL the table is a
    child subtree.
    """
    parts = [elem.text or ""]
    for child in elem:
        parts.append(etree.tostring(child, encoding="unicode", with_tail=True))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Context classification
# ---------------------------------------------------------------------------

_CURRENT_YEAR_TOKENS = {
    PeriodKind.INSTANT: ("currentyearinstant", "currentperiodinstant"),
    PeriodKind.DURATION: ("currentyearduration", "currentperiodduration"),
}


def is_current_year_context(context_ref: str, kind: PeriodKind | str) -> bool:
    """True for the consolidated, whole-company, current-year context.

    Non-consolidated (parent-only) figures and segment members are rejected.
    """
    ctx = context_ref.lower()
    if "nonconsolidated" in ctx:
        return False
    if "member" in ctx and "consolidatedmember" not in ctx:
        return False

    for token in _CURRENT_YEAR_TOKENS[PeriodKind(kind)]:
        if ctx == token:
            return True
        if ctx.startswith(token) and "_" not in ctx:
            return True
    return False


def is_summary_current_year_context(context_ref: str, kind: PeriodKind | str) -> bool:
    """Looser check used only for the 経営指標等 summary tables."""
    ctx = context_ref.lower()
    if "nonconsolidated" in ctx or "member" in ctx:
        return False
    return any(token in ctx for token in _CURRENT_YEAR_TOKENS[PeriodKind(kind)])


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def looks_like_xml(text: str) -> bool:
    return text.lstrip().startswith("<?xml")


class XbrlDocument:
    """A parsed XBRL / inline XBRL / HTML document."""

    def __init__(self, root, xml_mode: bool):
        self.root = root
        self.xml_mode = xml_mode

    @classmethod
    def parse(cls, text: str, xml_mode: bool | None = None) -> "XbrlDocument | None":
        """Parse *text*; returns None when the chosen mode cannot read it.

        With ``xml_mode=None`` the mode is picked from the XML prolog.
        """
        if xml_mode is None:
            xml_mode = looks_like_xml(text)
        if not text or not text.strip():
            return None

        data = text.encode("utf-8")
        try:
            if xml_mode:
                root = etree.fromstring(data, parser=_XML_PARSER)
            else:
                root = etree.fromstring(data, parser=_HTML_PARSER)
        except etree.XMLSyntaxError as e:
            logger.debug("XML parse failed (xml_mode=%s): %s", xml_mode, e)
            return None
        except (etree.ParserError, ValueError) as e:
            logger.debug("Document parse failed (xml_mode=%s): %s", xml_mode, e)
            return None

        if root is None:
            return None
        return cls(root, xml_mode)

    @cached_property
    def elements(self) -> list:
        """All elements in document order (comments and PIs skipped)."""
        return [el for el in self.root.iter() if isinstance(el.tag, str)]

    def facts(self, *kinds: FactKind) -> Iterator:
        for el in self.elements:
            if fact_kind(el) in kinds:
                yield el

    def tables(self) -> list:
        return [el for el in self.elements if local_name(el).lower() == "table"]

    @cached_property
    def text(self) -> str:
        return element_text(self.root)


def load_document(text: str) -> XbrlDocument | None:
    """Parse in the mode the prolog suggests, falling back to HTML mode.

    Filings that declare XML but are not well-formed are still readable
    by the HTML parser.
    """
    doc = XbrlDocument.parse(text)
    if doc is None and looks_like_xml(text):
        doc = XbrlDocument.parse(text, xml_mode=False)
    return doc
