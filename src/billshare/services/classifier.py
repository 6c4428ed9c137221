from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ParserState(str, Enum):
    SKIP_HEADER = "skip_header"
    ITEM_SECTION = "item_section"
    FEE_SECTION = "fee_section"


class LineAction(str, Enum):
    DISCARD = "discard"
    ENTER_FEES = "enter_fees"
    ITEM = "item"
    FEE = "fee"


# Greeting, payment method and header phrases (Indonesian and English).
SKIP_KEYWORDS: tuple[str, ...] = (
    "hai",
    "makasih udah pakai",
    "total dibayar",
    "transaction details",
    "rincian transaksi",
    "paid with",
    "bayar pakai",
)

TOTALS_MARKERS: tuple[str, ...] = (
    "pasal harga",
    "rincian harga",
    "total price",
)


@dataclass(frozen=True, slots=True)
class Rule:
    keywords: tuple[str, ...]
    action: LineAction

    def matches(self, line: str) -> bool:
        lowered = line.lower()
        return any(keyword in lowered for keyword in self.keywords)


# Evaluated in order; the first matching rule wins.
RULES: tuple[Rule, ...] = (
    Rule(SKIP_KEYWORDS, LineAction.DISCARD),
    Rule(TOTALS_MARKERS, LineAction.ENTER_FEES),
)

_DISPATCH = {
    ParserState.SKIP_HEADER: LineAction.ITEM,
    ParserState.ITEM_SECTION: LineAction.ITEM,
    ParserState.FEE_SECTION: LineAction.FEE,
}


def is_totals_marker(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in TOTALS_MARKERS)


def step(state: ParserState, line: str) -> tuple[ParserState, LineAction]:
    """Classify one trimmed line and return the next state with its action.

    ``FEE_SECTION`` is terminal: once entered, totals markers are simply
    discarded.
    """
    for rule in RULES:
        if not rule.matches(line):
            continue
        if rule.action is LineAction.ENTER_FEES:
            if state is ParserState.FEE_SECTION:
                return state, LineAction.DISCARD
            return ParserState.FEE_SECTION, LineAction.ENTER_FEES
        return state, rule.action

    action = _DISPATCH[state]
    if state is ParserState.SKIP_HEADER:
        return ParserState.ITEM_SECTION, action
    return state, action
