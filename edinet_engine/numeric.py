"""Normalization of localized numeric text found in EDINET filings.

有報 tables mix full-width digits (１，２３４), Japanese minus glyphs (△, ▲)
and unit suffixes (千株, 百万株).  Everything here is a pure function.
"""

import logging
import re
from enum import Enum

logger = logging.getLogger(__name__)

# Full-width digits sit at a fixed offset from ASCII ('０' - '0' == 0xFEE0)
_FULLWIDTH_OFFSET = 0xFEE0
_TO_ASCII_DIGITS = {
    cp: cp - _FULLWIDTH_OFFSET for cp in range(ord("０"), ord("９") + 1)
}
_TO_ASCII_DECIMAL = {**_TO_ASCII_DIGITS, ord("．"): "."}

_MINUS_GLYPHS = str.maketrans({"△": "-", "▲": "-"})

_SEPARATORS_RE = re.compile(r"[,，、\s　]")
_RATIO_NOISE_RE = re.compile(r"[,，%％\s　]")

_INTEGER_RE = re.compile(r"-?[0-9]+")
_DECIMAL_RE = re.compile(r"-?[0-9]+\.?[0-9]*")
_UNSIGNED_DECIMAL_RE = re.compile(r"[0-9]+\.?[0-9]*")


class ShareUnit(Enum):
    """Share-count unit suffixes and their multipliers.

    Order matters for detection: longer suffixes that contain a shorter one
    (百万株 contains 万株) are listed first.
    """

    MILLION = ("百万株", 1_000_000)
    TEN_THOUSAND = ("万株", 10_000)
    THOUSAND = ("千株", 1_000)
    HUNDRED = ("百株", 100)
    SHARE = ("株", 1)

    def __init__(self, suffix: str, multiplier: int):
        self.suffix = suffix
        self.multiplier = multiplier


# Units that scale the number; bare 株 is not one of them
SCALED_UNITS: tuple[ShareUnit, ...] = (
    ShareUnit.MILLION,
    ShareUnit.TEN_THOUSAND,
    ShareUnit.THOUSAND,
    ShareUnit.HUNDRED,
)


def to_ascii_digits(text: str) -> str:
    """Convert full-width digits (０-９) to ASCII."""
    return text.translate(_TO_ASCII_DIGITS)


def detect_share_unit(text: str) -> ShareUnit | None:
    """Return the scaling unit stated in *text* (e.g. a header "所有株式数（千株）")."""
    if not text:
        return None
    for unit in SCALED_UNITS:
        if unit.suffix in text:
            return unit
    return None


def parse_number(text: str | None) -> int | None:
    """Parse a share count or amount into a signed integer.

    "１，２３４千株" -> 1234000, "△500" -> -500, "garbage" -> None.
    """
    if not text:
        return None

    s = to_ascii_digits(text)
    s = _SEPARATORS_RE.sub("", s).translate(_MINUS_GLYPHS)

    multiplier = 1
    unit = detect_share_unit(s)
    if unit is not None:
        s = s.replace(unit.suffix, "", 1)
        multiplier = unit.multiplier
    else:
        s = s.replace(ShareUnit.SHARE.suffix, "", 1)

    m = _INTEGER_RE.search(s)
    if not m:
        return None
    return int(m.group(0)) * multiplier


def parse_ratio(text: str | None) -> float:
    """Parse a percentage such as "12.5%" or "１２．５％".

    Returns 0.0 when nothing numeric is found: a missing ratio means 0%.
    """
    if not text:
        return 0.0

    s = text.translate(_TO_ASCII_DECIMAL)
    s = _RATIO_NOISE_RE.sub("", s)
    m = _UNSIGNED_DECIMAL_RE.search(s)
    return float(m.group(0)) if m else 0.0


def parse_decimal(text: str | None) -> float | None:
    """Parse a (possibly negative, possibly fractional) financial figure."""
    if not text:
        return None

    s = text.strip().translate(_TO_ASCII_DECIMAL)
    s = _SEPARATORS_RE.sub("", s).translate(_MINUS_GLYPHS)
    m = _DECIMAL_RE.search(s)
    if not m:
        return None
    try:
        return float(m.group(0))
    except ValueError:
        return None


def apply_scale_and_sign(value: float, scale: str | None = None, sign: str | None = None) -> float:
    """Apply inline XBRL ``scale`` (power of ten) and ``sign`` attributes.

    scale="6" multiplies by 10^6.  sign="-" negates a positive value; an
    already negative display value (△1,000) is left as is.
    """
    if scale:
        try:
            exp = int(scale)
        except (TypeError, ValueError):
            logger.warning("Invalid scale attribute %r", scale)
        else:
            if exp:
                value = value * 10 ** exp

    if sign == "-" and value > 0:
        value = -value

    return value
