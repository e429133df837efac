"""
Column Classifier - two-phase schema inference for unknown statement layouts.

Phase 1 labels every header with a candidate role using substring rules.
Phase 2 samples the first data rows and revokes amount roles from columns
whose content is clearly text. Exports often put "Transaction Details"
or "Cr/Dr Particulars" under a header that also matches an amount rule,
and the label alone cannot tell the two apart.
"""
import logging
import re
from typing import List, Optional, Sequence

from .config import Config
from .models import CellKind, ColumnMapping, ColumnRole, RawCell

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Label Rules
# ─────────────────────────────────────────────────────────────
# Applied in order; first match wins.

DESCRIPTION_KEYWORDS = ['description', 'narration', 'particulars', 'details', 'remarks', 'transaction']
REFERENCE_KEYWORDS = ['reference', 'ref', 'cheque', 'chq', 'instrument']
DEBIT_KEYWORDS = ['debit', 'withdrawal', 'dr']
CREDIT_KEYWORDS = ['credit', 'deposit', 'cr']
BALANCE_KEYWORDS = ['balance', 'closing']
AMOUNT_KEYWORDS = ['amount', 'amt']

# Labels that name a description even when they also contain 'dr'/'cr'
_DESCRIPTION_GUARD = ['description', 'narration', 'particulars']

# Roles held by at most one column
SINGLE_ROLES = {
    ColumnRole.TRANSACTION_DATE, ColumnRole.VALUE_DATE, ColumnRole.REFERENCE,
    ColumnRole.DEBIT, ColumnRole.CREDIT, ColumnRole.BALANCE, ColumnRole.AMOUNT,
}
VALIDATED_ROLES = {ColumnRole.DEBIT, ColumnRole.CREDIT, ColumnRole.AMOUNT}

_RE_ALPHA = re.compile(r'[A-Za-z]')
_RE_DR_CR_TAG = re.compile(r'\s*(dr|cr)\.?\s*$', re.I)


def _contains_any(label: str, keywords: Sequence[str]) -> bool:
    return any(kw in label for kw in keywords)


def label_role(label: str) -> ColumnRole:
    """Candidate role for a single header label."""
    h = label.lower().strip()
    looks_like_description = _contains_any(h, _DESCRIPTION_GUARD)

    if 'value' in h and 'date' in h:
        return ColumnRole.VALUE_DATE
    if 'date' in h:
        return ColumnRole.TRANSACTION_DATE
    if _contains_any(h, DESCRIPTION_KEYWORDS):
        return ColumnRole.DESCRIPTION
    if _contains_any(h, REFERENCE_KEYWORDS):
        return ColumnRole.REFERENCE
    if _contains_any(h, DEBIT_KEYWORDS) and not looks_like_description:
        return ColumnRole.DEBIT
    if _contains_any(h, CREDIT_KEYWORDS) and not looks_like_description:
        return ColumnRole.CREDIT
    if _contains_any(h, BALANCE_KEYWORDS):
        return ColumnRole.BALANCE
    if _contains_any(h, AMOUNT_KEYWORDS):
        return ColumnRole.AMOUNT
    return ColumnRole.UNKNOWN


# ─────────────────────────────────────────────────────────────
# Sample Validation
# ─────────────────────────────────────────────────────────────

def looks_like_text(cell: RawCell, allow_dr_cr_tag: bool = False) -> bool:
    """
    True when a sampled amount-column cell is evidently not a number:
    it holds letters, a '/', a transfer token, or is a date.
    """
    if cell.kind == CellKind.EMPTY or cell.kind == CellKind.NUMBER:
        return False
    if cell.kind == CellKind.DATE:
        return True

    value = str(cell.value).strip()
    if allow_dr_cr_tag:
        value = _RE_DR_CR_TAG.sub('', value)
    upper = value.upper()
    if any(token in upper for token in Config.TRANSFER_TOKENS):
        return True
    return '/' in value or bool(_RE_ALPHA.search(value))


def _sample_value(row: Sequence[RawCell], idx: int) -> Optional[RawCell]:
    return row[idx] if idx < len(row) else None


def classify_columns(headers: List[str], sample_rows: Sequence[Sequence[RawCell]]) -> ColumnMapping:
    """
    Map header labels (plus sampled data rows) to column roles.

    Args:
        headers: trimmed header labels, one per column
        sample_rows: data rows directly under the header; only the first
            few are inspected

    Returns:
        ColumnMapping with every column assigned a role
    """
    label_roles = {idx: label_role(h) for idx, h in enumerate(headers)}

    roles = {}
    claimed = set()
    for idx in range(len(headers)):
        role = label_roles[idx]
        if role in SINGLE_ROLES:
            if role in claimed:
                logger.debug(f"Column {idx} '{headers[idx]}' duplicates {role.value}; left unassigned")
                role = ColumnRole.UNKNOWN
            else:
                claimed.add(role)
        roles[idx] = role

    revoked = set()
    samples = list(sample_rows)[:Config.VALIDATION_SAMPLE_ROWS]
    for idx, role in roles.items():
        if role not in VALIDATED_ROLES:
            continue
        for row in samples:
            cell = _sample_value(row, idx)
            if cell is None:
                continue
            if looks_like_text(cell, allow_dr_cr_tag=(role == ColumnRole.AMOUNT)):
                logger.warning(
                    f"{role.value.capitalize()} column {idx} '{headers[idx]}' holds text "
                    f"({cell.display!r}); treating it as description"
                )
                revoked.add(idx)
                break

    for idx in revoked:
        roles[idx] = ColumnRole.UNKNOWN

    mapping = ColumnMapping(headers=list(headers), label_roles=label_roles, roles=roles, revoked=revoked)
    logger.info(f"Column mapping: {mapping.describe()}")
    return mapping
