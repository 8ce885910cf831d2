"""Ownership data from annual reports: 大株主の状況, 自己株式, 発行済株式総数.

The major-shareholders table has no fixed layout.  It may be an escaped
TextBlock in the .xbrl instance, an ix:nonNumeric block in the inline
XBRL honbun, split across ix:continuation elements, or only findable as a
plain HTML table.  Each location is tried in turn; the first one that
yields rows wins.
"""

import logging
import re
from typing import Callable, Iterable

from lxml import etree, html

from edinet_engine.numeric import apply_scale_and_sign, detect_share_unit, parse_number, parse_ratio
from edinet_engine.schemas import ShareholderEntry
from edinet_engine.xbrl import (
    FactKind,
    XbrlDocument,
    element_text,
    get_attr,
    inner_markup,
    load_document,
    local_name,
    looks_like_xml,
    normalize_tag_name,
)

logger = logging.getLogger(__name__)

# Header cell patterns (whitespace already removed from the cell text)
_NAME_HEADER_RE = re.compile(r"氏名|名称|株主名|株主の氏名")
_SHARES_HEADER_RE = re.compile(r"所有株式数|持株数|株式数")
_RATIO_HEADER_RE = re.compile(r"割合|比率|持株比率|議決権")

_HEADER_SPACE_RE = re.compile(r"[\s　]")
_TOTAL_ROW_RE = re.compile(r"^(計|合計|―|－|─)$")
_DIGIT_RE = re.compile(r"[0-9０-９]")

_MAX_HEADER_ROWS = 3

TREASURY_SHARE_PATTERNS = (
    "numberoftreasuryshares",
    "treasurysharesheldbycompany",
    "treasurysharesownedbycompanyanditssubsidiaries",
    "numberoftreasurystockshares",
)

TOTAL_SHARE_PATTERNS = (
    "totalnumberofissuedshares",
    "totalsharesissued",
    "issuednumberofshares",
)


def first_success(strategies: Iterable[Callable], *args) -> list:
    """Run *strategies* in order and return the first non-empty result."""
    for strategy in strategies:
        result = strategy(*args)
        if result:
            return result
    return []


# ---------------------------------------------------------------------------
# Table parsing
# ---------------------------------------------------------------------------

def _children_named(elem, *names: str) -> list:
    return [el for el in elem.iter() if local_name(el).lower() in names]


def _cell_text(cell) -> str:
    return element_text(cell).strip()


def _parse_table(table) -> list[ShareholderEntry]:
    rows = _children_named(table, "tr")
    if len(rows) < 2:
        return []

    name_idx = shares_idx = ratio_idx = -1
    multiplier = 1
    header_texts: list[str] = []
    data_start = 1

    for r, row in enumerate(rows[:min(_MAX_HEADER_ROWS, len(rows))]):
        headers = [
            _HEADER_SPACE_RE.sub("", element_text(cell))
            for cell in _children_named(row, "td", "th")
        ]
        header_texts.extend(headers)

        for i, h in enumerate(headers):
            if _NAME_HEADER_RE.search(h) and name_idx < 0:
                name_idx = i
            elif _SHARES_HEADER_RE.search(h) and shares_idx < 0:
                shares_idx = i
                unit = detect_share_unit(h)
                if unit is not None:
                    multiplier = unit.multiplier
            elif _RATIO_HEADER_RE.search(h) and ratio_idx < 0:
                ratio_idx = i

        if name_idx >= 0 and shares_idx >= 0:
            data_start = r + 1
            break

    # The unit is sometimes stated on its own header row: （千株）
    if multiplier == 1:
        unit = detect_share_unit("".join(header_texts))
        if unit is not None:
            multiplier = unit.multiplier

    if name_idx < 0 or shares_idx < 0:
        return []

    # A unit row under the header: |  | （千株） | （％） |
    if data_start < len(rows):
        unit_row = "".join(
            _HEADER_SPACE_RE.sub("", element_text(cell))
            for cell in _children_named(rows[data_start], "td", "th")
        )
        unit = detect_share_unit(unit_row)
        if unit is not None and not _DIGIT_RE.search(unit_row):
            if multiplier == 1:
                multiplier = unit.multiplier
            data_start += 1

    parsed: list[tuple[str, int, float]] = []
    for row in rows[data_start:]:
        cells = _children_named(row, "td", "th")
        if len(cells) <= max(name_idx, shares_idx):
            continue

        name = _cell_text(cells[name_idx])
        if not name or _TOTAL_ROW_RE.match(name):
            continue

        shares_text = element_text(cells[shares_idx])
        shares = parse_number(shares_text)
        if shares is None or shares <= 0:
            continue
        # A unit written in the cell itself was already applied by parse_number
        if detect_share_unit(shares_text) is None:
            shares *= multiplier

        ratio = 0.0
        if 0 <= ratio_idx < len(cells):
            ratio = parse_ratio(element_text(cells[ratio_idx]))

        parsed.append((name, shares, ratio))

    # A percentage above 100 means the ratio column was misdetected
    if any(ratio > 100 for _, _, ratio in parsed):
        parsed = [(name, shares, 0.0) for name, shares, _ in parsed]

    return [
        ShareholderEntry(name=name, shares=shares, ratio_pct=ratio)
        for name, shares, ratio in parsed
    ]


def _parse_tables_in(root) -> list[ShareholderEntry]:
    for table in _children_named(root, "table"):
        entries = _parse_table(table)
        if entries:
            return entries
    return []


def parse_major_shareholder_table(markup: str) -> list[ShareholderEntry]:
    """Parse the first table in an HTML fragment that yields shareholder rows.

    Returns [] when no table has both a name and a share-count column.
    """
    if not markup or not markup.strip():
        return []
    try:
        fragment = html.fragment_fromstring(markup, create_parent="div")
    except (etree.ParserError, ValueError) as e:
        logger.debug("Unparseable shareholder fragment: %s", e)
        return []
    return _parse_tables_in(fragment)


# ---------------------------------------------------------------------------
# Locating the table
# ---------------------------------------------------------------------------

def _from_text_block(doc: XbrlDocument) -> list[ShareholderEntry]:
    for el in doc.elements:
        if "majorshareholderstextblock" in local_name(el).lower():
            entries = parse_major_shareholder_table(inner_markup(el))
            if entries:
                return entries
    return []


def _from_inline_fact(doc: XbrlDocument) -> list[ShareholderEntry]:
    for el in doc.facts(FactKind.NON_NUMERIC):
        if "majorshareholder" in get_attr(el, "name").lower():
            entries = parse_major_shareholder_table(inner_markup(el))
            if entries:
                return entries
    return []


def _from_continuation(doc: XbrlDocument) -> list[ShareholderEntry]:
    for el in doc.facts(FactKind.CONTINUATION):
        inner = inner_markup(el)
        if "株式" in inner and ("名称" in inner or "氏名" in inner):
            entries = parse_major_shareholder_table(inner)
            if entries:
                return entries
    return []


def _from_document_tables(doc: XbrlDocument) -> list[ShareholderEntry]:
    tables = doc.tables()

    if "大株主" in doc.text:
        for table in tables:
            text = element_text(table)
            if (("株式" in text or "割合" in text or "持株" in text)
                    and ("名称" in text or "氏名" in text)):
                entries = _parse_table(table)
                if entries:
                    return entries

    for table in tables:
        text = element_text(table)
        if "所有株式数" in text and ("名称" in text or "氏名" in text):
            entries = _parse_table(table)
            if entries:
                return entries
    return []


_SHAREHOLDER_STRATEGIES = (
    _from_text_block,
    _from_inline_fact,
    _from_continuation,
    _from_document_tables,
)


def extract_major_shareholders(text: str) -> list[ShareholderEntry]:
    """Extract the 大株主の状況 rows from one XBRL / inline XBRL file.

    The file is read in the mode its prolog suggests first; if that finds
    nothing, the other mode is tried (inline XBRL that starts with an XML
    prolog but is not well-formed, and the reverse).
    """
    xml_first = looks_like_xml(text)
    for xml_mode in (xml_first, not xml_first):
        doc = XbrlDocument.parse(text, xml_mode=xml_mode)
        if doc is None:
            continue
        entries = first_success(_SHAREHOLDER_STRATEGIES, doc)
        if entries:
            return entries
    return []


# ---------------------------------------------------------------------------
# Share counts
# ---------------------------------------------------------------------------

def _share_count(el) -> int | None:
    raw = parse_number(element_text(el))
    if raw is None:
        return None
    return int(apply_scale_and_sign(raw, get_attr(el, "scale") or None))


def _find_share_count(
    text: str,
    patterns: tuple[str, ...],
    name_kinds: tuple[FactKind, ...],
    accept: Callable[[int], bool],
) -> int | None:
    doc = load_document(text)
    if doc is None:
        return None

    for el in doc.elements:
        tag = normalize_tag_name(local_name(el))
        if any(p in tag for p in patterns):
            value = _share_count(el)
            if value is not None and accept(value):
                return value

    for el in doc.facts(*name_kinds):
        name = get_attr(el, "name").lower().replace("_", "").replace("-", "")
        if any(p in name for p in patterns):
            value = _share_count(el)
            if value is not None and accept(value):
                return value

    return None


def extract_treasury_shares(text: str) -> int:
    """Number of treasury shares (自己株式数); 0 when the filing states none."""
    value = _find_share_count(
        text,
        TREASURY_SHARE_PATTERNS,
        (FactKind.NUMERIC, FactKind.NON_NUMERIC),
        lambda v: v >= 0,
    )
    return value if value is not None else 0


def extract_total_shares(text: str) -> int | None:
    """Total number of issued shares (発行済株式総数), if stated."""
    return _find_share_count(
        text,
        TOTAL_SHARE_PATTERNS,
        (FactKind.NUMERIC,),
        lambda v: v > 0,
    )
