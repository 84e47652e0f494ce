"""Receipt total extraction by keyword-weighted line scoring."""

from dataclasses import dataclass
from decimal import Decimal

from .money import rightmost_amount

# (keywords, bonus); first matching tier wins
TOTAL_BONUS_TIERS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("grand total",), 140),
    (("amount due", "balance due", "total due"), 120),
    (("total",), 90),
)

# (keywords, penalty); every matching group applies
TOTAL_PENALTIES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("subtotal",), 120),
    (("tax",), 80),
    (("tip", "gratuity"), 80),
    (("discount", "coupon", "savings"), 60),
    (("change", "cash", "tender"), 60),
)

# Lines never used by the bottom-half fallback
FALLBACK_EXCLUDED_KEYWORDS = ("subtotal", "tax", "tip", "gratuity", "discount", "change")

AMOUNT_TIE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class TotalCandidate:
    amount: Decimal
    score: int
    index: int


def score_total_line(line: str, index: int) -> int:
    """Score how likely a line is to carry the final payable total."""
    lower = line.lower()
    score = index
    for keywords, bonus in TOTAL_BONUS_TIERS:
        if any(keyword in lower for keyword in keywords):
            score += bonus
            break
    for keywords, penalty in TOTAL_PENALTIES:
        if any(keyword in lower for keyword in keywords):
            score -= penalty
    return score


def _outranks(candidate: TotalCandidate, best: TotalCandidate) -> bool:
    if candidate.score != best.score:
        return candidate.score > best.score
    if abs(candidate.amount - best.amount) >= AMOUNT_TIE_TOLERANCE:
        return candidate.amount > best.amount
    return candidate.index > best.index


def _total_candidates(lines: list[str]) -> list[TotalCandidate]:
    candidates: list[TotalCandidate] = []
    for index, line in enumerate(lines):
        money = rightmost_amount(line)
        if money is None or money.amount <= 0:
            continue
        score = score_total_line(line, index)
        if score > 0:
            candidates.append(TotalCandidate(amount=money.amount, score=score, index=index))
    return candidates


def _bottom_half_fallback(lines: list[str]) -> Decimal | None:
    """Return the last amount in the bottom half that is not a subtotal/tax/tip/discount/change line."""
    for index in range(len(lines) - 1, len(lines) // 2 - 1, -1):
        lower = lines[index].lower()
        if any(keyword in lower for keyword in FALLBACK_EXCLUDED_KEYWORDS):
            continue
        money = rightmost_amount(lines[index])
        if money is not None:
            return money.amount
    return None


def extract_receipt_total(lines: list[str]) -> Decimal | None:
    """
    Pick the receipt total from normalized lines.

    Every money-bearing line is scored by position plus total-keyword bonus
    minus subtotal/tax/tip/discount/payment penalties. Without any positive
    candidate, the last priced line of the bottom half is used.
    """
    best: TotalCandidate | None = None
    for candidate in _total_candidates(lines):
        if best is None or _outranks(candidate, best):
            best = candidate
    if best is not None:
        return best.amount
    return _bottom_half_fallback(lines)
