# ruff: noqa: I001
"""CLI for the ``finflow`` package.

This module exposes callable command handlers (``cmd_*``, each returning a
process exit code) and a Typer-based console interface that wraps them.
Environment variables (``DATABASE_URL``, ``FINFLOW_LOG_LEVEL``, ...) are
loaded from a local ``.env`` using ``python-dotenv`` before delegating to
command logic. Business logic lives in ``finflow.sms_parser``,
``finflow.persistence`` and ``finflow.analytics``.
"""

from __future__ import annotations

import json
import sys
from datetime import date
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging


# ---- Small module-level helpers used by CLI commands -------------------------


def _err(msg: str) -> int:
    print(f"Error: {msg}", file=sys.stderr)
    return 1


def _parse_day(raw: str | None, *, option: str) -> date | None:
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"{option} must be YYYY-MM-DD, got {raw!r}") from exc


def _resolve_currency(settings: dict[str, Any]):
    """Currency from the stored ``currencyRegion`` setting, else from env/locale."""

    from .formatters import currency_for_region, currency_from_env

    region = settings.get("currencyRegion")
    if isinstance(region, str) and region:
        return currency_for_region(region)
    return currency_from_env()


def _validation_message(exc: Exception) -> str:
    from pydantic import ValidationError

    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        return f"{loc}: {first['msg']}" if loc else first["msg"]
    return str(exc)


# ---- Command handlers ---------------------------------------------------------


def cmd_parse_sms(content: str, sender: str = "Unknown") -> int:
    """Parse one message and print the candidate as JSON.

    Prints ``No transaction detected`` when the message yields nothing; that
    is not an error.
    """

    from .sms_parser import parse_sms_transaction

    candidate = parse_sms_transaction(content, sender)
    if candidate is None:
        print("No transaction detected")
        return 0
    print(json.dumps(candidate.to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_import_sms(
    path: str,
    *,
    on: date | None = None,
    assume_yes: bool = False,
    dry_run: bool = False,
    max_workers: int | None = None,
    database_url: str | None = None,
) -> int:
    """Load a message backup, parse it, review the candidates and save them.

    Flow
    ----
    - Load ``path`` (JSON, XML or plain text, by suffix) and keep bank-looking
      messages.
    - Parse them in parallel; order follows the file.
    - Review each candidate interactively unless ``assume_yes``.
    - Unless ``dry_run``, store the kept candidates dated ``on`` (default:
      today). Messages imported before are skipped.
    """

    from db.client import init_db, session_scope

    from .batch import candidates_only, parse_messages
    from .errors import IngestError
    from .ingest import filter_bank_messages, load_messages
    from .persistence import get_settings, import_candidates
    from .review import review_candidates, summarize_candidate

    try:
        messages = load_messages(path)
    except IngestError as e:
        return _err(str(e))

    bank = filter_bank_messages(messages)
    detected = candidates_only(parse_messages(bank, max_workers=max_workers))
    print(
        f"Loaded {len(messages)} messages, {len(bank)} from banks, "
        f"{len(detected)} transactions detected."
    )
    if not detected:
        return 0

    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            currency = _resolve_currency(get_settings(session))
    except Exception as e:
        return _err(f"database unavailable: {e}")

    if dry_run:
        for item in detected:
            assert item.candidate is not None
            print(summarize_candidate(item.candidate, currency=currency))
        return 0

    try:
        kept = review_candidates(detected, assume_yes=assume_yes, currency=currency)
    except (EOFError, KeyboardInterrupt):
        return _err("review aborted; nothing saved")

    try:
        with session_scope(database_url=database_url) as session:
            saved = import_candidates(session, kept, on=on)
    except Exception as e:
        return _err(f"saving transactions failed: {e}")

    print(f"Saved {saved} transactions ({len(kept) - saved} already imported).")
    return 0


def cmd_add_transaction(
    *,
    kind: str,
    amount: str,
    category: str,
    description: str,
    on: date | None = None,
    merchant: str | None = None,
    account: str | None = None,
    database_url: str | None = None,
) -> int:
    from pydantic import ValidationError

    from db.client import init_db, session_scope

    from .models import TransactionIn
    from .persistence import add_transaction

    try:
        tx = TransactionIn(
            type=kind,  # type: ignore[arg-type]
            amount=amount,  # type: ignore[arg-type]
            category=category,
            description=description,
            date=on or date.today(),
            merchant=merchant,
            account=account,
        )
    except ValidationError as e:
        return _err(_validation_message(e))

    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            stored = add_transaction(session, tx)
    except ValueError as e:
        return _err(str(e))
    except Exception as e:
        return _err(f"database unavailable: {e}")
    print(stored.id)
    return 0


def cmd_list_transactions(
    *,
    month: str | None = None,
    kind: str | None = None,
    database_url: str | None = None,
) -> int:
    from db.client import init_db, session_scope

    from .categories import category_name
    from .formatters import format_currency, format_date
    from .persistence import get_settings, list_transactions

    if kind is not None and kind not in ("income", "expense"):
        return _err(f"--type must be income or expense, got {kind!r}")
    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            rows = list_transactions(session, month=month, type=kind)  # type: ignore[arg-type]
            currency = _resolve_currency(get_settings(session))
    except ValueError as e:
        return _err(str(e))
    except Exception as e:
        return _err(f"database unavailable: {e}")

    if not rows:
        print("No transactions.")
        return 0
    for t in rows:
        sign = "+" if t.type == "income" else "-"
        print(
            f"{t.id}\t{format_date(t.date)}\t{sign}{format_currency(t.amount, currency)}"
            f"\t{category_name(t.category)}\t{t.description}"
        )
    return 0


def cmd_delete_transaction(tx_id: str, *, database_url: str | None = None) -> int:
    from db.client import init_db, session_scope

    from .errors import NotFoundError
    from .persistence import delete_transaction

    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            delete_transaction(session, tx_id)
    except NotFoundError as e:
        return _err(str(e))
    except Exception as e:
        return _err(f"database unavailable: {e}")
    print(f"Deleted {tx_id}")
    return 0


def cmd_add_bill(
    *,
    name: str,
    amount: str,
    due: date,
    category: str,
    recurring: bool = False,
    frequency: str | None = None,
    database_url: str | None = None,
) -> int:
    from pydantic import ValidationError

    from db.client import init_db, session_scope

    from .models import BillIn
    from .persistence import add_bill

    try:
        bill = BillIn(
            name=name,
            amount=amount,  # type: ignore[arg-type]
            due_date=due,
            category=category,
            is_recurring=recurring,
            frequency=frequency,  # type: ignore[arg-type]
        )
    except ValidationError as e:
        return _err(_validation_message(e))

    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            stored = add_bill(session, bill)
    except ValueError as e:
        return _err(str(e))
    except Exception as e:
        return _err(f"database unavailable: {e}")
    print(stored.id)
    return 0


def cmd_list_bills(*, today: date | None = None, database_url: str | None = None) -> int:
    from db.client import init_db, session_scope

    from .analytics import days_until_due
    from .formatters import format_currency, format_date
    from .persistence import get_settings, list_bills

    ref = today or date.today()
    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            bills = list_bills(session)
            currency = _resolve_currency(get_settings(session))
    except Exception as e:
        return _err(f"database unavailable: {e}")

    if not bills:
        print("No bills.")
        return 0
    for b in bills:
        if b.is_paid:
            status = "paid"
        else:
            days = days_until_due(b.due_date, ref)
            status = f"overdue by {-days}d" if days < 0 else f"due in {days}d"
        print(
            f"{b.id}\t{format_date(b.due_date)}\t{format_currency(b.amount, currency)}"
            f"\t{b.name}\t{status}"
        )
    return 0


def cmd_toggle_bill(bill_id: str, *, database_url: str | None = None) -> int:
    from db.client import init_db, session_scope

    from .errors import NotFoundError
    from .persistence import toggle_bill_paid

    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            bill = toggle_bill_paid(session, bill_id)
    except NotFoundError as e:
        return _err(str(e))
    except Exception as e:
        return _err(f"database unavailable: {e}")
    print(f"{bill.name}: {'paid' if bill.is_paid else 'unpaid'}")
    return 0


def cmd_summary(*, today: date | None = None, database_url: str | None = None) -> int:
    """Print the dashboard: month stats, six-month totals, breakdown and alerts."""

    from db.client import init_db, session_scope

    from .analytics import (
        category_breakdown,
        financial_stats,
        last_n_months,
        month_key,
        monthly_totals,
        notification_for,
        overdue_bills,
        upcoming_bills,
    )
    from .formatters import format_currency, format_short_date
    from .persistence import get_settings, list_bills, list_transactions

    ref = today or date.today()
    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            transactions = list_transactions(session)
            bills = list_bills(session)
            currency = _resolve_currency(get_settings(session))
    except Exception as e:
        return _err(f"database unavailable: {e}")

    def money(v) -> str:
        return format_currency(v, currency)

    stats = financial_stats(transactions, ref)
    print(f"== {month_key(ref)} ==")
    print(f"Income:        {money(stats.total_income)}")
    print(f"Expenses:      {money(stats.total_expenses)}")
    print(f"Net:           {money(stats.net_income)} ({stats.monthly_growth:+.1f}% vs last month)")
    print(f"Savings rate:  {stats.savings_rate:.1f}%")
    if stats.top_category:
        print(f"Top category:  {stats.top_category}")

    print("\n== Last 6 months ==")
    for m in monthly_totals(transactions, last_n_months(ref)):
        print(f"{m.month}  in {money(m.income)}  out {money(m.expenses)}  net {money(m.net)}")

    breakdown = category_breakdown(transactions, month_key(ref))
    if breakdown:
        print("\n== Expenses by category ==")
        for name, total in breakdown:
            print(f"{name}: {money(total)}")

    overdue = overdue_bills(bills, ref)
    upcoming = upcoming_bills(bills, ref)
    if overdue or upcoming:
        print("\n== Bills ==")
        for b in overdue:
            print(f"OVERDUE  {format_short_date(b.due_date)}  {b.name}  {money(b.amount)}")
        for b in upcoming:
            print(f"upcoming {format_short_date(b.due_date)}  {b.name}  {money(b.amount)}")

    note = notification_for(transactions, bills, ref)
    if note.type != "none":
        print(f"\nAlert ({note.priority}): {note.message}")
    return 0


def cmd_settings(updates: list[str] | None = None, *, database_url: str | None = None) -> int:
    """Show settings, after merging any ``key=value`` updates.

    Values are parsed as JSON when possible (``true``, ``3``), else kept as
    strings.
    """

    from db.client import init_db, session_scope

    from .persistence import get_settings, save_settings

    parsed: dict[str, Any] = {}
    for item in updates or []:
        key, sep, raw = item.partition("=")
        if not sep or not key.strip():
            return _err(f"expected key=value, got {item!r}")
        try:
            parsed[key.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            parsed[key.strip()] = raw

    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            current = save_settings(session, parsed) if parsed else get_settings(session)
    except Exception as e:
        return _err(f"database unavailable: {e}")
    print(json.dumps(current, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


def cmd_export(out: str, *, database_url: str | None = None) -> int:
    from db.client import init_db, session_scope

    from .persistence import export_data

    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            payload = export_data(session)
    except Exception as e:
        return _err(f"database unavailable: {e}")
    try:
        Path(out).write_text(payload, encoding="utf-8")
    except OSError as e:
        return _err(f"could not write {out}: {e}")
    print(f"Exported to {out}")
    return 0


def cmd_import_backup(path: str, *, database_url: str | None = None) -> int:
    from db.client import init_db, session_scope

    from .persistence import import_data

    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return _err(f"could not read {path}: {e}")

    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            n_tx, n_bills = import_data(session, text)
    except ValueError as e:
        return _err(f"invalid backup file ({_validation_message(e)}). Please check file format.")
    except Exception as e:
        return _err(f"database unavailable: {e}")
    print(f"Imported {n_tx} transactions and {n_bills} bills.")
    return 0


def cmd_clear(*, confirmed: bool, database_url: str | None = None) -> int:
    from db.client import init_db, session_scope

    from .persistence import clear_all_data

    if not confirmed:
        return _err("refusing to delete all data without --yes")
    try:
        init_db(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            clear_all_data(session)
    except Exception as e:
        return _err(f"database unavailable: {e}")
    print("All data cleared.")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Track income, expenses and bills; import transactions from bank SMS "
        "backups. Loads settings from a local .env before running."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
FILE_OPTION: OptionInfo = typer.Option(
    ...,
    "--file",
    help="Path to the input file",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
TODAY_OPTION: OptionInfo = typer.Option(
    None, "--today", help="Reference date YYYY-MM-DD (default: today)."
)


def _db(ctx: typer.Context) -> str | None:
    return (ctx.obj or {}).get("database_url")


def _run(fn, *args: Any, **kwargs: Any) -> None:
    """Call a handler and turn its return value into the process exit code."""

    try:
        code = fn(*args, **kwargs)
    except ValueError as e:
        code = _err(str(e))
    raise typer.Exit(code)


@app.command("parse-sms")
def parse_sms_cmd(
    content: str = typer.Option(..., "--content", help="Message body"),
    sender: str = typer.Option("Unknown", "--sender", help="Message sender id"),
) -> None:
    """Parse a single message and print the detected transaction."""

    _run(cmd_parse_sms, content, sender)


@app.command("import-sms")
def import_sms_cmd(
    ctx: typer.Context,
    file: Annotated[Path, FILE_OPTION],
    on: str | None = typer.Option(
        None, "--date", help="Date for imported transactions, YYYY-MM-DD (default: today)."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Keep every candidate without prompting."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print candidates; save nothing."),
    max_workers: int | None = typer.Option(
        None, help="Parser threads (falls back to FINFLOW_PARSE_MAX_WORKERS)."
    ),
) -> None:
    """Import transactions from an SMS backup (.json, .xml or plain text)."""

    def _go() -> int:
        return cmd_import_sms(
            str(file),
            on=_parse_day(on, option="--date"),
            assume_yes=yes,
            dry_run=dry_run,
            max_workers=max_workers,
            database_url=_db(ctx),
        )

    _run(_go)


@app.command("add-transaction")
def add_transaction_cmd(
    ctx: typer.Context,
    kind: str = typer.Option(..., "--type", help="income or expense"),
    amount: str = typer.Option(..., "--amount", help="Positive amount, e.g. 249.50"),
    category: str = typer.Option(..., "--category", help="Category id, e.g. food"),
    description: str = typer.Option(..., "--description"),
    on: str | None = typer.Option(None, "--date", help="YYYY-MM-DD (default: today)"),
    merchant: str | None = typer.Option(None, "--merchant"),
    account: str | None = typer.Option(None, "--account"),
) -> None:
    """Record a transaction manually."""

    def _go() -> int:
        return cmd_add_transaction(
            kind=kind,
            amount=amount,
            category=category,
            description=description,
            on=_parse_day(on, option="--date"),
            merchant=merchant,
            account=account,
            database_url=_db(ctx),
        )

    _run(_go)


@app.command("list-transactions")
def list_transactions_cmd(
    ctx: typer.Context,
    month: str | None = typer.Option(None, "--month", help="YYYY-MM"),
    kind: str | None = typer.Option(None, "--type", help="income or expense"),
) -> None:
    """List stored transactions, newest first."""

    _run(cmd_list_transactions, month=month, kind=kind, database_url=_db(ctx))


@app.command("delete-transaction")
def delete_transaction_cmd(ctx: typer.Context, tx_id: str = typer.Argument(...)) -> None:
    """Delete a transaction by id."""

    _run(cmd_delete_transaction, tx_id, database_url=_db(ctx))


@app.command("add-bill")
def add_bill_cmd(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name"),
    amount: str = typer.Option(..., "--amount"),
    due: str = typer.Option(..., "--due-date", help="YYYY-MM-DD"),
    category: str = typer.Option("utilities", "--category", help="Category id"),
    recurring: bool = typer.Option(False, "--recurring"),
    frequency: str | None = typer.Option(None, "--frequency", help="monthly, quarterly or yearly"),
) -> None:
    """Record a bill."""

    def _go() -> int:
        due_date = _parse_day(due, option="--due-date")
        assert due_date is not None
        return cmd_add_bill(
            name=name,
            amount=amount,
            due=due_date,
            category=category,
            recurring=recurring,
            frequency=frequency,
            database_url=_db(ctx),
        )

    _run(_go)


@app.command("list-bills")
def list_bills_cmd(ctx: typer.Context, today: str | None = TODAY_OPTION) -> None:
    """List bills by due date with their status."""

    _run(lambda: cmd_list_bills(today=_parse_day(today, option="--today"), database_url=_db(ctx)))


@app.command("toggle-bill")
def toggle_bill_cmd(ctx: typer.Context, bill_id: str = typer.Argument(...)) -> None:
    """Flip a bill between paid and unpaid."""

    _run(cmd_toggle_bill, bill_id, database_url=_db(ctx))


@app.command("summary")
def summary_cmd(ctx: typer.Context, today: str | None = TODAY_OPTION) -> None:
    """Show this month's stats, six-month totals and alerts."""

    _run(lambda: cmd_summary(today=_parse_day(today, option="--today"), database_url=_db(ctx)))


@app.command("settings")
def settings_cmd(
    ctx: typer.Context,
    updates: list[str] | None = typer.Argument(None, help="key=value pairs to save"),
) -> None:
    """Show or update settings (e.g. currencyRegion=IN)."""

    _run(cmd_settings, updates, database_url=_db(ctx))


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    out: Path = typer.Option(..., "--out", dir_okay=False, help="Backup file to write"),
) -> None:
    """Write all data to a JSON backup."""

    _run(cmd_export, str(out), database_url=_db(ctx))


@app.command("import-backup")
def import_backup_cmd(ctx: typer.Context, file: Annotated[Path, FILE_OPTION]) -> None:
    """Replace all data with a JSON backup."""

    _run(cmd_import_backup, str(file), database_url=_db(ctx))


@app.command("clear")
def clear_cmd(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Confirm deleting all data."),
) -> None:
    """Delete all transactions, bills and settings."""

    _run(cmd_clear, confirmed=yes, database_url=_db(ctx))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()
    ctx.obj = {"database_url": database_url}

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
