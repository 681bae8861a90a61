from __future__ import annotations

from finflow.batch import parse_messages
from finflow.models import RawMessage
from finflow.review import category_choices, review_candidates, summarize_candidate
from helpers.sms_samples import AMAZON_DEBIT, CHAT, SALARY_CREDIT, SWIGGY_UPI


def _parsed():
    bodies = [AMAZON_DEBIT, CHAT, SALARY_CREDIT, SWIGGY_UPI]
    msgs = [RawMessage(f"m{i}", b, "HDFC-BANK", "t") for i, b in enumerate(bodies)]
    return parse_messages(msgs, max_workers=1)


def test_assume_yes_keeps_every_candidate_without_prompting():
    def _fail(*_args):
        raise AssertionError("should not prompt")

    kept = review_candidates(_parsed(), assume_yes=True, selector=_fail, confirmer=_fail)
    assert [k.message.id for k in kept] == ["m0", "m2", "m3"]


def test_review_discards_and_recategorizes():
    answers = iter([True, False, True])
    lines: list[str] = []

    def _select(kind, current):
        return "entertainment" if current == "food" else current

    kept = review_candidates(
        _parsed(),
        confirmer=lambda _summary: next(answers),
        selector=_select,
        print_fn=lambda *a: lines.append(" ".join(map(str, a))),
    )

    assert [k.message.id for k in kept] == ["m0", "m3"]
    assert kept[0].candidate.category == "shopping"
    assert kept[1].candidate.category == "entertainment"
    assert lines[0] == "[1/3] -$2,500  Payment to AMAZON INDIA  [Shopping]"


def test_category_choices_by_kind():
    expense_ids = [cid for _, cid in category_choices("expense")]
    assert "food" in expense_ids and "utilities" in expense_ids and "salary" not in expense_ids
    assert [cid for _, cid in category_choices("income")] == [
        "salary",
        "freelance",
        "investments",
        "other-income",
    ]


def test_summarize_candidate_for_income_with_account():
    (item,) = parse_messages(
        [RawMessage("x", "Rs.1,000 credited to A/c no. 4321", "SBI", "t")], max_workers=1
    )
    assert item.candidate is not None
    assert summarize_candidate(item.candidate) == "+$1,000  Credit  [Other]  a/c 4321"
