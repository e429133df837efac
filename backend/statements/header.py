"""
Header Locator - finds the row that names the columns.

Statement exports usually open with a bank title, account details and a
period line before the real table header. The header is taken to be the
first row that mentions at least two well-known column keywords.
"""
import logging
from dataclasses import dataclass
from typing import List

from .config import Config
from .models import RawGrid, RawCell

logger = logging.getLogger(__name__)


@dataclass
class HeaderMatch:
    row_index: int
    labels: List[str]
    keyword_count: int
    is_fallback: bool = False


def keyword_score(row: List[RawCell]) -> int:
    """Count distinct header keywords present in a row's joined, lower-cased text."""
    row_text = ' '.join(cell.display.lower().strip() for cell in row)
    return sum(1 for kw in Config.HEADER_KEYWORDS if kw in row_text)


def header_labels(row: List[RawCell]) -> List[str]:
    """Trimmed labels, made unique: a second "Amount" becomes "Amount_2"."""
    labels = []
    used = set()
    for idx, cell in enumerate(row):
        base = cell.display.strip() or f"Column_{idx + 1}"
        label, n = base, 1
        while label.lower() in used:
            n += 1
            label = f"{base}_{n}"
        used.add(label.lower())
        labels.append(label)
    return labels


def locate_header(grid: RawGrid) -> HeaderMatch:
    """
    Scan the first rows of the grid for the header row.

    Falls back to row 0 when nothing in the scan window qualifies; that is
    a best-effort guess, not an error.
    """
    for i, row in enumerate(grid[:Config.HEADER_SCAN_ROWS]):
        if all(cell.is_blank for cell in row):
            continue
        score = keyword_score(row)
        if score >= Config.HEADER_MIN_KEYWORDS:
            logger.info(f"Found header row at index {i} ({score} keywords)")
            return HeaderMatch(i, header_labels(row), score)

    logger.warning("No header row found, using first row")
    first = grid[0] if grid else []
    return HeaderMatch(0, header_labels(first), keyword_score(first), is_fallback=True)
