import contextlib

from finflow.term_ui import confirm, select_category
from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

EXPENSE_NAMES = [
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Healthcare",
    "Education",
    "Other",
    "Utilities",
]


@contextlib.contextmanager
def pipe_session():
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        yield pipe, sess


def test_select_category_accepts_default_with_enter():
    with pipe_session() as (pipe, sess):
        pipe.send_text("\r")
        assert select_category(EXPENSE_NAMES, default="Shopping", session=sess) == "Shopping"


def test_select_category_replace_default_with_exact_name():
    with pipe_session() as (pipe, sess):
        # Ctrl-A (home), Ctrl-K (kill to end), type the target, Enter
        pipe.send_text("\x01\x0bFood & Dining\r")
        assert select_category(EXPENSE_NAMES, default="Shopping", session=sess) == "Food & Dining"


def test_select_category_enter_completes_prefix_case_insensitively():
    with pipe_session() as (pipe, sess):
        pipe.send_text("\x01\x0bhea\r")
        assert select_category(EXPENSE_NAMES, default="Other", session=sess) == "Healthcare"


def test_select_category_returns_canonical_spelling():
    with pipe_session() as (pipe, sess):
        pipe.send_text("\x01\x0butilities\r")
        assert select_category(EXPENSE_NAMES, default="Other", session=sess) == "Utilities"


def test_confirm_default_and_explicit_answers():
    with pipe_session() as (pipe, sess):
        pipe.send_text("\r")
        assert confirm("Keep?", session=sess) is True
    with pipe_session() as (pipe, sess):
        pipe.send_text("n\r")
        assert confirm("Keep?", session=sess) is False
    with pipe_session() as (pipe, sess):
        pipe.send_text("\r")
        assert confirm("Keep?", default=False, session=sess) is False
