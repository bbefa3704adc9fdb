"""Paper formats supported by the PDF printer.

Dimensions are in inches and match the paper formats accepted by Puppeteer.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

DEFAULT_FORMAT = "A4"


@dataclass(frozen=True)
class PrintFormat:
    """Physical page size in inches."""
    width: float
    height: float


FORMATS: Mapping[str, PrintFormat] = MappingProxyType({
    "Letter": PrintFormat(8.5, 11),
    "Legal": PrintFormat(8.5, 14),
    "Tabloid": PrintFormat(11, 17),
    "Ledger": PrintFormat(17, 11),
    "A0": PrintFormat(33.1, 46.8),
    "A1": PrintFormat(23.4, 33.1),
    "A2": PrintFormat(16.54, 23.4),
    "A3": PrintFormat(11.7, 16.54),
    "A4": PrintFormat(8.27, 11.7),
    "A5": PrintFormat(5.83, 8.27),
    "A6": PrintFormat(4.13, 5.83),
})


def format_names() -> list:
    """Names of all known formats, in table order."""
    return list(FORMATS.keys())
