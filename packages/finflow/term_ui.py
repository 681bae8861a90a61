"""Tiny terminal UI helpers (prompt_toolkit-based).

Small, focused prompts kept apart from the review workflow so they are easy
to test in isolation with a pipe input and a dummy output.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.styles import Style
from prompt_toolkit.validation import ValidationError, Validator

# ----------------------------------------------------------------------------
# Closed-vocabulary selector
# ----------------------------------------------------------------------------


def _session_like(session: PromptSession | None, kb: KeyBindings) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


class _PrefixSuggest(AutoSuggest):
    def __init__(self, vocab: Sequence[str]) -> None:
        self._vocab = list(vocab)

    def get_suggestion(self, buffer, document):
        text = document.text
        if not text:
            return None
        match = _best_prefix_match(self._vocab, text)
        if match is None:
            return None
        return Suggestion(match[len(text) :])


def _best_prefix_match(words: Sequence[str], text: str) -> str | None:
    """First word that strictly extends ``text`` (case-insensitive); ``None`` on exact hits."""

    if not text:
        return None
    lower = text.lower()
    if any(w.lower() == lower for w in words):
        return None
    for w in words:
        if w.lower().startswith(lower):
            return w
    return None


class _ChoiceValidator(Validator):
    def __init__(self, allowed: Iterable[str]) -> None:
        self._allowed_lower = {w.lower() for w in allowed}

    def validate(self, document) -> None:
        if document.text.strip().lower() not in self._allowed_lower:
            raise ValidationError(message="Select a category from the list.")


def select_category(
    choices: Sequence[str],
    *,
    default: str,
    message: str = "Category (Enter to accept): ",
    session: PromptSession | None = None,
) -> str:
    """Prompt for one of ``choices``, pre-filled with ``default``.

    Tab completes the greyed prefix suggestion or opens the completion menu;
    Enter applies a highlighted completion or pending suggestion and submits.
    Input is validated against ``choices`` and the canonical spelling is
    returned.
    """

    words = list(choices)
    canonical = {w.lower(): w for w in words}
    completer = WordCompleter(words, ignore_case=True, match_middle=True, sentence=True)

    kb = KeyBindings()

    @kb.add("down", eager=True)
    def _(event) -> None:  # pragma: no cover - integration path
        b = event.app.current_buffer
        if b.complete_state is None:
            b.start_completion(select_first=True)
        else:
            b.complete_next()

    @kb.add("tab", eager=True)
    def _(event) -> None:  # pragma: no cover
        b = event.app.current_buffer
        cand = _best_prefix_match(words, b.document.text)
        if cand:
            b.insert_text(cand[len(b.document.text) :])
        elif b.complete_state is None:
            b.start_completion(select_first=True)
        else:
            b.complete_next()

    @kb.add("enter", eager=True)
    def _(event) -> None:  # pragma: no cover
        b = event.app.current_buffer
        cs = b.complete_state
        if cs is not None and cs.current_completion is not None:
            b.apply_completion(cs.current_completion)
        else:
            cand = _best_prefix_match(words, b.document.text)
            if cand:
                b.insert_text(cand[len(b.document.text) :])
        b.validate_and_handle()

    style = Style.from_dict({"auto-suggestion": "fg:#888888"})
    sess = _session_like(session, kb)
    result = sess.prompt(
        message,
        default=default,
        completer=completer,
        auto_suggest=_PrefixSuggest(words),
        validator=_ChoiceValidator(words),
        validate_while_typing=False,
        key_bindings=kb,
        style=style,
    )
    return canonical.get(result.strip().lower(), result.strip())


# ----------------------------------------------------------------------------
# Yes/no confirmation
# ----------------------------------------------------------------------------

_YES = frozenset({"y", "yes"})
_NO = frozenset({"n", "no"})


class _YesNoValidator(Validator):
    def validate(self, document) -> None:
        text = document.text.strip().lower()
        if text and text not in _YES | _NO:
            raise ValidationError(message="Answer y or n.")


def confirm(
    message: str,
    *,
    default: bool = True,
    session: PromptSession | None = None,
) -> bool:
    """Ask a y/n question; an empty answer takes ``default``."""

    kb = KeyBindings()
    sess = _session_like(session, kb)
    hint = "[Y/n]" if default else "[y/N]"
    answer = sess.prompt(
        f"{message} {hint} ",
        validator=_YesNoValidator(),
        validate_while_typing=False,
    )
    text = answer.strip().lower()
    if not text:
        return default
    return text in _YES


__all__ = ["select_category", "confirm"]
