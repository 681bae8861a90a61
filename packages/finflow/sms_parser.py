"""Rule-based extraction of transactions from bank notification messages.

Pipeline (``parse_sms_transaction``):

1) relevance filter: cheap keyword check over body and sender;
2) type & amount: ordered regex rules, first positive match wins;
3) merchant & account: independent best-effort lookups over the same text;
4) description & category: keyword chains over body and merchant.

Every table below is an ordered, module-level constant. Order is the priority:
reordering rules changes how ambiguous messages are classified. All functions
are pure and never raise for string input; "no transaction" is ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType

from .logging_setup import get_logger
from .models import ExtractionRule, TransactionCandidate, TransactionKind

_logger = get_logger("finflow.sms_parser")

# ---------------------------------------------------------------------------
# Stage 1: relevance filter
# ---------------------------------------------------------------------------

FINANCIAL_KEYWORDS: tuple[str, ...] = (
    "rs",
    "₹",
    "$",
    "debit",
    "credit",
    "paid",
    "received",
    "bank",
    "account",
    "transaction",
    "payment",
    "upi",
    "atm",
    "card",
    "wallet",
    "transfer",
)


def is_financially_relevant(content: str, sender: str) -> bool:
    """True when ``content`` or ``sender`` contains any financial keyword."""

    body = content.lower()
    origin = sender.lower()
    return any(k in body or k in origin for k in FINANCIAL_KEYWORDS)


# ---------------------------------------------------------------------------
# Stage 2: type & amount rules
# ---------------------------------------------------------------------------

_CURRENCY = r"(?:rs\.?|inr|₹|\$)\s*"
_NUMBER = r"\d[\d,]*(?:\.\d+)?"
# Short connector allowed between the trigger and the amount ("debited by Rs.5").
_CONNECTOR = r"(?:(?:of|by|for|with|worth)\s+)?"
# Auxiliary verbs allowed between a leading amount and the trigger
# ("Rs.500 has been debited").
_AUXILIARY = r"(?:(?:has\s+been|have\s+been|was|is|been)\s+)?"


def _rule(trigger: str, kind: TransactionKind) -> ExtractionRule:
    """Compile one rule accepting ``<trigger> [conn] [cur] N`` or ``<cur> N [aux] <trigger>``.

    Both spellings capture the number in group 1.
    """

    trailing = rf"\b(?:{trigger})\s+{_CONNECTOR}(?:{_CURRENCY})?"
    leading = rf"(?<![a-z]){_CURRENCY}(?={_NUMBER}\s+{_AUXILIARY}(?:{trigger})\b)"
    pattern = re.compile(rf"(?:{trailing}|{leading})({_NUMBER})", re.IGNORECASE)
    return ExtractionRule(pattern=pattern, kind=kind, amount_group=1)


EXTRACTION_RULES: tuple[ExtractionRule, ...] = (
    _rule(r"debited|spent|purchase|paid|debit", "expense"),
    _rule(r"credited|received|deposited|deposit|salary|credit", "income"),
    _rule(r"(?:atm|cash)\s+(?:withdrawal|wd|withdraw)", "expense"),
    _rule(r"transferred|transfer|sent", "expense"),
    _rule(r"upi(?:\s+(?:payment|txn|transaction|transfer))?", "expense"),
    _rule(r"(?:card|pos)\s+(?:payment|transaction|txn)", "expense"),
)


def parse_amount(raw: str) -> Decimal | None:
    """Parse a captured number, dropping thousands separators.

    Returns ``None`` for unparseable, non-finite, zero or negative values.
    """

    try:
        value = Decimal(raw.replace(",", "").strip())
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def extract_type_and_amount(
    content: str,
    rules: tuple[ExtractionRule, ...] = EXTRACTION_RULES,
) -> tuple[TransactionKind, Decimal] | None:
    """Apply ``rules`` in order; return ``(kind, amount)`` for the first positive match."""

    for priority, rule in enumerate(rules, start=1):
        match = rule.pattern.search(content)
        if match is None:
            continue
        amount = parse_amount(match.group(rule.amount_group))
        if amount is None:
            _logger.debug("rule %d matched %r without a positive amount", priority, match.group(0))
            continue
        _logger.debug("rule %d matched %r -> %s %s", priority, match.group(0), rule.kind, amount)
        return rule.kind, amount
    return None


# ---------------------------------------------------------------------------
# Stage 3: merchant & account
# ---------------------------------------------------------------------------

_MERCHANT_TOKEN = r"([A-Z][A-Z0-9\s&.-]{2,30})"

MERCHANT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"\b{marker}{_MERCHANT_TOKEN}", re.IGNORECASE)
    for marker in (
        r"(?:at|from|to)\s+",
        r"(?:merchant|store):\s*",
        r"(?:pos|card)\s+",
        r"upi\s+",
        r"(?:paid to|sent to)\s+",
    )
)

ACCOUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(?:a/c|account|acc)\s*(?:no\.?\s*)?(\*+\d{4}|\d{4})(?!\d)", re.IGNORECASE),
    re.compile(r"\b(?:card|ending)\s*(\*+\d{4}|\d{4})(?!\d)", re.IGNORECASE),
)

MERCHANT_MAX_LEN = 30
_MERCHANT_DISALLOWED = re.compile(r"[^a-zA-Z0-9\s&.-]")
_SENTENCE_BREAK = re.compile(r"\.\s")


def clean_merchant(raw: str) -> str | None:
    """Normalize a captured merchant; ``None`` when nothing usable remains."""

    name = _MERCHANT_DISALLOWED.sub("", raw)
    name = _SENTENCE_BREAK.split(name, maxsplit=1)[0].strip()
    if len(name) > MERCHANT_MAX_LEN:
        name = name[:MERCHANT_MAX_LEN].strip()
    return name or None


def extract_merchant(content: str) -> str | None:
    for pattern in MERCHANT_PATTERNS:
        match = pattern.search(content)
        if match:
            return clean_merchant(match.group(1))
    return None


def extract_account(content: str) -> str | None:
    for pattern in ACCOUNT_PATTERNS:
        match = pattern.search(content)
        if match:
            return match.group(1)
    return None


# ---------------------------------------------------------------------------
# Stage 4: description & category
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DescriptionRule:
    """Description used when the lower-cased body contains any of ``markers``."""

    markers: tuple[str, ...]
    with_merchant: str
    without_merchant: str

    def render(self, merchant: str | None) -> str:
        if merchant:
            return self.with_merchant.format(merchant=merchant)
        return self.without_merchant


EXPENSE_DESCRIPTIONS: tuple[DescriptionRule, ...] = (
    DescriptionRule(("atm", "cash"), "ATM Withdrawal", "ATM Withdrawal"),
    DescriptionRule(("upi",), "UPI Payment to {merchant}", "UPI Payment"),
    DescriptionRule(("card",), "Card Payment at {merchant}", "Card Payment"),
    DescriptionRule((), "Payment to {merchant}", "Transaction"),
)

INCOME_DESCRIPTIONS: tuple[DescriptionRule, ...] = (
    DescriptionRule(("salary",), "Salary Credit", "Salary Credit"),
    DescriptionRule(("transfer",), "Transfer from {merchant}", "Transfer Received"),
    DescriptionRule((), "Payment from {merchant}", "Credit"),
)


def synthesize_description(kind: TransactionKind, content: str, merchant: str | None) -> str:
    body = content.lower()
    rules = EXPENSE_DESCRIPTIONS if kind == "expense" else INCOME_DESCRIPTIONS
    # The last entry is the catch-all.
    for rule in rules[:-1]:
        if any(m in body for m in rule.markers):
            return rule.render(merchant)
    return rules[-1].render(merchant)


@dataclass(frozen=True, slots=True)
class CategoryRule:
    """Category assigned when any keyword occurs in the body or the merchant.

    Each keyword is tied to the field it is searched in.
    """

    category: str
    content_keywords: tuple[str, ...] = ()
    merchant_keywords: tuple[str, ...] = ()

    def matches(self, body: str, merchant: str) -> bool:
        return any(k in body for k in self.content_keywords) or any(
            k in merchant for k in self.merchant_keywords
        )


INCOME_CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule("salary", content_keywords=("salary", "payroll")),
    CategoryRule("freelance", content_keywords=("freelance", "contract")),
    CategoryRule("investments", content_keywords=("investment", "dividend")),
)

EXPENSE_CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule("other-expense", content_keywords=("atm", "cash")),
    CategoryRule(
        "transportation",
        content_keywords=("fuel", "petrol", "diesel"),
        merchant_keywords=("uber", "ola", "taxi", "cab", "metro"),
    ),
    CategoryRule(
        "food",
        content_keywords=("dining",),
        merchant_keywords=(
            "restaurant",
            "cafe",
            "food",
            "zomato",
            "swiggy",
            "dominos",
            "mcdonald",
            "kfc",
            "pizza",
        ),
    ),
    CategoryRule(
        "shopping",
        content_keywords=("shopping",),
        merchant_keywords=("amazon", "flipkart", "myntra", "ajio", "mall", "store"),
    ),
    CategoryRule(
        "entertainment",
        content_keywords=("subscription", "movie"),
        merchant_keywords=("netflix", "spotify", "prime", "hotstar", "cinema", "theatre"),
    ),
    CategoryRule(
        "healthcare",
        content_keywords=("medical", "pharmacy", "hospital", "doctor"),
        merchant_keywords=("apollo", "medplus"),
    ),
    CategoryRule(
        "utilities",
        content_keywords=("electricity", "water", "gas", "internet", "mobile", "recharge"),
    ),
)

DEFAULT_CATEGORY: MappingProxyType[str, str] = MappingProxyType(
    {"income": "other-income", "expense": "other-expense"}
)


def auto_category(content: str, merchant: str | None, kind: TransactionKind) -> str:
    body = content.lower()
    merchant_lower = (merchant or "").lower()
    rules = INCOME_CATEGORY_RULES if kind == "income" else EXPENSE_CATEGORY_RULES
    for rule in rules:
        if rule.matches(body, merchant_lower):
            return rule.category
    return DEFAULT_CATEGORY[kind]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def parse_sms_transaction(content: str, sender: str) -> TransactionCandidate | None:
    """Extract a transaction candidate from a message body and sender.

    Returns ``None`` when the message carries no financial vocabulary or when
    no rule yields both a type and a positive amount. The candidate has no
    date; callers supply one when confirming it.
    """

    if not isinstance(content, str) or not isinstance(sender, str):
        return None
    if not is_financially_relevant(content, sender):
        return None

    extracted = extract_type_and_amount(content)
    if extracted is None:
        return None
    kind, amount = extracted

    merchant = extract_merchant(content)
    account = extract_account(content)

    return TransactionCandidate(
        type=kind,
        amount=amount,
        description=synthesize_description(kind, content, merchant),
        category=auto_category(content, merchant, kind),
        merchant=merchant,
        account=account,
    )


__all__ = [
    "FINANCIAL_KEYWORDS",
    "EXTRACTION_RULES",
    "MERCHANT_PATTERNS",
    "ACCOUNT_PATTERNS",
    "EXPENSE_DESCRIPTIONS",
    "INCOME_DESCRIPTIONS",
    "INCOME_CATEGORY_RULES",
    "EXPENSE_CATEGORY_RULES",
    "DescriptionRule",
    "CategoryRule",
    "is_financially_relevant",
    "parse_amount",
    "extract_type_and_amount",
    "clean_merchant",
    "extract_merchant",
    "extract_account",
    "synthesize_description",
    "auto_category",
    "parse_sms_transaction",
]
