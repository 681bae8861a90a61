"""Interactive review of parsed message candidates before they are saved.

For every candidate the operator sees a one-line summary, decides whether to
keep it, and may change its category within the categories of the same kind.
Nothing here touches the database; the caller persists what is returned.
"""

from __future__ import annotations

import builtins
import dataclasses
from collections.abc import Callable, Iterable

from prompt_toolkit import PromptSession

from .categories import category_name, get_categories_by_type
from .formatters import CurrencyInfo, format_currency
from .logging_setup import get_logger
from .models import ParsedMessage, TransactionCandidate, TransactionKind
from .term_ui import confirm, select_category

_logger = get_logger("finflow.review")

type Selector = Callable[[TransactionKind, str], str]
type Confirmer = Callable[[str], bool]


def category_choices(kind: TransactionKind) -> list[tuple[str, str]]:
    """``(display_name, id)`` pairs offered for ``kind``.

    Expenses may also be filed under bill categories.
    """

    kinds: tuple[str, ...] = ("expense", "bill") if kind == "expense" else ("income",)
    return [(c.name, c.id) for k in kinds for c in get_categories_by_type(k)]  # type: ignore[arg-type]


def summarize_candidate(
    candidate: TransactionCandidate, *, currency: CurrencyInfo | None = None
) -> str:
    sign = "+" if candidate.type == "income" else "-"
    parts = [
        f"{sign}{format_currency(candidate.amount, currency)}",
        candidate.description,
        f"[{category_name(candidate.category)}]",
    ]
    if candidate.account:
        parts.append(f"a/c {candidate.account}")
    return "  ".join(parts)


def _prompt_selector(session: PromptSession | None) -> Selector:
    def _select(kind: TransactionKind, current: str) -> str:
        choices = category_choices(kind)
        by_name = {name.lower(): cid for name, cid in choices}
        names = [name for name, _ in choices]
        chosen = select_category(names, default=category_name(current), session=session)
        return by_name.get(chosen.lower(), current)

    return _select


def _prompt_confirmer(session: PromptSession | None) -> Confirmer:
    def _confirm(summary: str) -> bool:
        return confirm("Keep this transaction?", default=True, session=session)

    return _confirm


def review_candidates(
    parsed: Iterable[ParsedMessage],
    *,
    assume_yes: bool = False,
    currency: CurrencyInfo | None = None,
    session: PromptSession | None = None,
    print_fn: Callable[..., None] = builtins.print,
    selector: Selector | None = None,
    confirmer: Confirmer | None = None,
) -> list[ParsedMessage]:
    """Return the candidates the operator keeps, with any category changes applied.

    Parameters
    ----------
    parsed:
        Parse results; entries without a candidate are skipped silently.
    assume_yes:
        Keep every candidate with its suggested category without prompting.
    session:
        Optional prompt_toolkit session whose input/output are reused by the
        prompts (tests pass a pipe input here).
    selector, confirmer:
        Override the default prompt_toolkit prompts. ``selector`` receives the
        kind and current category id and returns a category id.
    """

    items = [p for p in parsed if p.candidate is not None]
    if assume_yes:
        return items

    select = selector or _prompt_selector(session)
    keep = confirmer or _prompt_confirmer(session)

    kept: list[ParsedMessage] = []
    for pos, item in enumerate(items, start=1):
        cand = item.candidate
        assert cand is not None
        summary = summarize_candidate(cand, currency=currency)
        print_fn(f"[{pos}/{len(items)}] {summary}")
        print_fn(f"    {item.message.sender}: {item.message.content}")
        if not keep(summary):
            _logger.debug("discarded candidate from message %s", item.message.id)
            continue
        category = select(cand.type, cand.category)
        if category != cand.category:
            cand = dataclasses.replace(cand, category=category)
            item = dataclasses.replace(item, candidate=cand)
        kept.append(item)

    _logger.info("review kept %d of %d candidates", len(kept), len(items))
    return kept


__all__ = ["category_choices", "summarize_candidate", "review_candidates"]
