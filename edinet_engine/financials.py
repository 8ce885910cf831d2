"""Financial statement figures (B/S, P/L, C/F) from annual report XBRL.

Three tiers, each only filling fields the previous ones left empty:

  1. Detailed statements (jppfs_cor JGAAP / jpigp_cor IFRS) in the
     consolidated current-year context.
  2. The 経営指標等 summary (jpcrp_cor:*SummaryOfBusinessResults).
  3. Company-specific extension concepts (jpcrp030000-asr_E01234-000:*).

Free cash flow is never read from the filing; it is derived from the
operating and investing cash flows.
"""

import logging
import re
from typing import Callable, Iterator, NamedTuple, Sequence

from edinet_engine.numeric import apply_scale_and_sign, parse_decimal
from edinet_engine.schemas import FINANCIAL_FIELDS, ArchiveMember
from edinet_engine.xbrl import (
    FactKind,
    PeriodKind,
    XbrlDocument,
    element_text,
    fact_kind,
    get_attr,
    is_current_year_context,
    is_summary_current_year_context,
    load_document,
    local_name,
    name_attr_local,
    normalize_tag_name,
)

logger = logging.getLogger(__name__)

Partial = dict[str, float]


class FieldDef(NamedTuple):
    tags: tuple[str, ...]  # normalized tag names
    period: PeriodKind


_I = PeriodKind.INSTANT
_D = PeriodKind.DURATION

STATEMENT_ELEMENTS: dict[str, FieldDef] = {
    # B/S
    "current_assets": FieldDef(("currentassets",), _I),
    "investment_securities": FieldDef((
        "investmentsecurities",
        "investmentsecuritiesnoncurrent",
        "otherfinancialassetsnca",  # IFRS 非流動その他金融資産
    ), _I),
    "total_assets": FieldDef(("assets",), _I),
    "total_liabilities": FieldDef(("liabilities",), _I),
    "stockholders_equity": FieldDef((
        "stockholdersequity",
        "equityattributabletoownersofparent",
        "shareholdersequity",
    ), _I),
    "net_assets": FieldDef(("netassets", "equity"), _I),
    # P/L
    "net_sales": FieldDef((
        "netsales",
        "operatingrevenue",
        "revenue",
        "operatingrevenue1",
        "netrevenuesoffinancialinstitutions",
        "totalnetrevenues",
        "operatingrevenues",
        "salesrevenueandotheroperatingrevenue",
    ), _D),
    "operating_income": FieldDef(("operatingincome", "operatingprofit", "operatingprofitloss"), _D),
    "ordinary_income": FieldDef(("ordinaryincome", "ordinaryprofit", "profitlossbeforetax"), _D),
    "net_income": FieldDef((
        "profitlossattributabletoownersofparent",
        "profitattributabletoownersofparent",
        "netincome",
        "netincomeattributabletoownersofparent",
        "netincomeloss",
    ), _D),
    # C/F
    "operating_cash_flow": FieldDef((
        "netcashprovidedbyusedinoperatingactivities",
        "cashflowsfromoperatingactivities",
        "cashflowsfromusedinoperatingactivities",
    ), _D),
    "investing_cash_flow": FieldDef((
        "netcashprovidedbyusedininvestingactivities",
        "cashflowsfrominvestingactivities",
        "cashflowsfromusedinvestingactivities",
    ), _D),
    "capital_expenditure": FieldDef((
        "purchaseofpropertyplantandequipmentandinvestmentproperty",
        "purchaseofpropertyplantandequipment",
        "purchaseoffixedassets",
        "capitalexpenditure",
    ), _D),
    "dividend_per_share": FieldDef((
        "dividendpershare",
        "dividendpaidpersharecommonstock",
        "cashdividendspershareapplicabletotheyear",
    ), _D),
}

SUMMARY_ELEMENTS: dict[str, FieldDef] = {
    "net_sales": FieldDef((
        "netsalessummaryofbusinessresults",
        "operatingrevenue1summaryofbusinessresults",
        "revenuesummaryofbusinessresults",
    ), _D),
    "operating_income": FieldDef((
        "operatingincomesummaryofbusinessresults",
        "operatingprofitsummaryofbusinessresults",
    ), _D),
    "ordinary_income": FieldDef((
        "ordinaryincomelosssummaryofbusinessresults",
        "profitlossbeforetaxsummaryofbusinessresults",
    ), _D),
    "net_income": FieldDef((
        "netincomelosssummaryofbusinessresults",
        "profitlossattributabletoownersofparentsummaryofbusinessresults",
    ), _D),
    "net_assets": FieldDef((
        "netassetssummaryofbusinessresults",
        "equityattributabletoownersofparentsummaryofbusinessresults",
    ), _I),
    "operating_cash_flow": FieldDef((
        "cashflowsfromusedinoperatingactivitiessummaryofbusinessresults",  # IFRS
        "netcashprovidedbyusedinoperatingactivitiessummaryofbusinessresults",  # JGAAP
    ), _D),
    "investing_cash_flow": FieldDef((
        "cashflowsfromusedininvestingactivitiessummaryofbusinessresults",
        "netcashprovidedbyusedininvestingactivitiessummaryofbusinessresults",
    ), _D),
    "dividend_per_share": FieldDef(("dividendpaidpersharesummaryofbusinessresults",), _D),
}

# Tier 3: suffixes of company-specific concept names, matched with endswith
COMPANY_TAG_SUFFIXES: dict[str, FieldDef] = {
    "net_sales": FieldDef(("netsales", "totalnetrevenues", "operatingrevenues", "netrevenues"), _D),
    "operating_income": FieldDef(("operatingincome", "operatingprofit", "operatingprofitloss"), _D),
    "ordinary_income": FieldDef(("ordinaryincome", "ordinaryprofit"), _D),
    "net_income": FieldDef((
        "profitlossattributabletoownersofparent",
        "profitattributabletoownersofparent",
    ), _D),
    "operating_cash_flow": FieldDef((
        "netcashprovidedbyusedinoperatingactivities",
        "cashflowsfromusedinoperatingactivities",
    ), _D),
    "investing_cash_flow": FieldDef((
        "netcashprovidedbyusedininvestingactivities",
        "cashflowsfromusedininvestingactivities",
    ), _D),
    "capital_expenditure": FieldDef(("purchaseofpropertyplantandequipment",), _D),
}

# EDINET code of the filer, present in extension namespace prefixes and URIs
_FILER_CODE_RE = re.compile(r"E\d{5}", re.IGNORECASE)
_COMPANY_TAG_EXCLUDE = ("nonoperating",)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CURRENT_YEAR_INSTANT_RE = re.compile(r"currentyearinstant", re.IGNORECASE)


def _build_lookup(defs: dict[str, FieldDef]) -> dict[str, str]:
    lookup: dict[str, str] = {}
    for field, fdef in defs.items():
        for tag in fdef.tags:
            lookup.setdefault(normalize_tag_name(tag), field)
    return lookup


_STATEMENT_LOOKUP = _build_lookup(STATEMENT_ELEMENTS)
_SUMMARY_LOOKUP = _build_lookup(SUMMARY_ELEMENTS)


# ---------------------------------------------------------------------------
# Partial results
# ---------------------------------------------------------------------------

def merge_partial(partial: Partial, new: Partial) -> Partial:
    """Combine two partial results; values already in *partial* win."""
    merged = dict(partial)
    for field, value in new.items():
        if value is not None and merged.get(field) is None:
            merged[field] = value
    return merged


def is_complete(partial: Partial, fields: Sequence[str]) -> bool:
    return all(partial.get(f) is not None for f in fields)


# ---------------------------------------------------------------------------
# Fact scanning
# ---------------------------------------------------------------------------

def _fact_value(el) -> float | None:
    value = parse_decimal(element_text(el))
    if value is None:
        return None
    return apply_scale_and_sign(value, get_attr(el, "scale") or None, get_attr(el, "sign") or None)


def _concept(el) -> tuple[FactKind, str]:
    """Normalized concept name: the tag itself, or an inline fact's name attribute."""
    kind = fact_kind(el)
    if kind is FactKind.NUMERIC:
        return kind, normalize_tag_name(name_attr_local(el))
    return kind, normalize_tag_name(local_name(el))


def _scan(
    doc: XbrlDocument,
    resolve: Callable[[str, object], str | None],
    defs: dict[str, FieldDef],
    context_check: Callable[[str, PeriodKind], bool],
    wanted: set[str],
) -> Partial:
    """One pass over a document collecting the first valid fact per field.

    A fact carried by the element's own tag beats an inline nonFraction
    fact for the same field.
    """
    direct: Partial = {}
    inline: Partial = {}

    for el in doc.elements:
        kind, concept = _concept(el)
        field = resolve(concept, el)
        if field is None or field not in wanted:
            continue
        target = inline if kind is FactKind.NUMERIC else direct
        if field in target:
            continue

        context_ref = get_attr(el, "contextRef")
        if not context_ref or not context_check(context_ref, defs[field].period):
            continue

        value = _fact_value(el)
        if value is not None:
            target[field] = value

    return merge_partial(direct, inline)


def _filer_qualifier(el) -> str:
    """Namespace URI or prefix of the concept an element reports."""
    if fact_kind(el) is FactKind.NUMERIC:
        return get_attr(el, "name").partition(":")[0]
    tag = el.tag
    if tag.startswith("{"):
        return tag[1:].partition("}")[0]
    return tag.partition(":")[0] if ":" in tag else ""


def _company_field(concept: str, el) -> str | None:
    if any(x in concept for x in _COMPANY_TAG_EXCLUDE):
        return None
    if not _FILER_CODE_RE.search(_filer_qualifier(el)):
        return None
    for field, fdef in COMPANY_TAG_SUFFIXES.items():
        if concept.endswith(fdef.tags):
            return field
    return None


def _missing(result: Partial, defs: dict[str, FieldDef]) -> set[str]:
    return {f for f in defs if result.get(f) is None}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_financial_statements(files: Sequence[ArchiveMember]) -> dict[str, float | None]:
    """Extract financial statement figures from the PublicDoc files of a filing.

    Returns a dict with every field of FINANCIAL_FIELDS; unresolved fields
    are None.  Files are consulted in order; the first file to supply a
    field wins.
    """
    parsed: dict[int, XbrlDocument | None] = {}

    def documents() -> Iterator[XbrlDocument]:
        for i, member in enumerate(files):
            if i not in parsed:
                parsed[i] = load_document(member.content)
                if parsed[i] is None:
                    logger.debug("Skipping unparseable file %s", member.name)
            if parsed[i] is not None:
                yield parsed[i]

    result: Partial = {}

    # Tier 1: detailed statements
    for doc in documents():
        wanted = _missing(result, STATEMENT_ELEMENTS)
        if not wanted:
            break
        found = _scan(doc, lambda c, _el: _STATEMENT_LOOKUP.get(c),
                      STATEMENT_ELEMENTS, is_current_year_context, wanted)
        result = merge_partial(result, found)

    # Tier 2: 経営指標等 summary
    for doc in documents():
        wanted = _missing(result, SUMMARY_ELEMENTS)
        if not wanted:
            break
        found = _scan(doc, lambda c, _el: _SUMMARY_LOOKUP.get(c),
                      SUMMARY_ELEMENTS, is_summary_current_year_context, wanted)
        result = merge_partial(result, found)

    # Tier 3: filer extension concepts
    for doc in documents():
        wanted = _missing(result, COMPANY_TAG_SUFFIXES)
        if not wanted:
            break
        found = _scan(doc, _company_field, COMPANY_TAG_SUFFIXES,
                      is_current_year_context, wanted)
        if found:
            logger.info("Filled %s from company-specific tags", sorted(found))
        result = merge_partial(result, found)

    output: dict[str, float | None] = {f: result.get(f) for f in FINANCIAL_FIELDS}
    output["free_cash_flow"] = None
    if output["operating_cash_flow"] is not None and output["investing_cash_flow"] is not None:
        output["free_cash_flow"] = output["operating_cash_flow"] + output["investing_cash_flow"]

    resolved = sum(1 for v in output.values() if v is not None)
    logger.debug("Resolved %d/%d financial fields", resolved, len(output))
    return output


def extract_fiscal_year_end(files: Sequence[ArchiveMember]) -> str:
    """Fiscal year end date (YYYY-MM-DD) from the CurrentYearInstant context.

    Returns "" when no file carries one.
    """
    for member in files:
        doc = load_document(member.content)
        if doc is None:
            continue
        for el in doc.elements:
            if "context" not in local_name(el).lower():
                continue
            if not _CURRENT_YEAR_INSTANT_RE.search(get_attr(el, "id")):
                continue
            instant = next(
                (d for d in el.iter() if d is not el and "instant" in local_name(d).lower()),
                None,
            )
            if instant is None:
                continue
            text = element_text(instant).strip()
            if _DATE_RE.match(text):
                return text
    return ""
