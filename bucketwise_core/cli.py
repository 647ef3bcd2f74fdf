from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from bucketwise_core.domain.errors import BudgetError, InvalidAllocation
from bucketwise_core.domain.models import CATEGORY_KEYS
from bucketwise_core.io import config as config_io
from bucketwise_core.io.storage import JsonFileStore
from bucketwise_core.services.session import BudgetSession

app = typer.Typer(help="Four-bucket budgeting assistant: allocation, accounts and goal projection.")
console = Console()


def _spark_bar(value: float, target: float, width: int = 30) -> str:
    """Progress towards a target as a fixed-width bar."""
    if target <= 0:
        return "·" * width
    filled = min(width, int(value / target * width))
    return "█" * filled + "·" * (width - filled)


def _weights_table(title: str, weights: Dict[str, float], amounts: Optional[Dict[str, float]] = None) -> Table:
    table = Table(title=title)
    table.add_column("Bucket")
    table.add_column("Weight %", justify="right")
    if amounts is not None:
        table.add_column("Amount", justify="right")
    for key in CATEGORY_KEYS:
        row = [key, f"{weights[key]:g}"]
        if amounts is not None:
            row.append(f"{amounts[key]:,.2f}")
        table.add_row(*row)
    table.add_row("total", f"{sum(weights.values()):g}", *([f"{sum(amounts.values()):,.2f}"] if amounts is not None else []))
    return table


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(code=1)


def _warn_unsaved(ok: bool) -> None:
    if not ok:
        console.print("[yellow]Warning: changes could not be saved to the store.[/yellow]")


def _session(ctx: typer.Context) -> BudgetSession:
    return ctx.obj["session"]


@app.callback()
def main(
    ctx: typer.Context,
    store: Optional[Path] = typer.Option(None, help="JSON store file (default: $BUCKETWISE_STORE or ~/.bucketwise_store.json)"),
    config: Optional[Path] = typer.Option(None, help="JSON config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
):
    """Open the store and build the budgeting session."""
    try:
        app_config = config_io.load_app_config(config) if config else config_io.default_app_config()
    except (BudgetError, ValueError, OSError) as exc:
        _fail(f"Cannot read config {config}: {exc}")
    level = logging.DEBUG if verbose else getattr(logging, app_config.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)

    store_path = store or app_config.store_path
    session = BudgetSession(JsonFileStore(store_path), default_allocation=app_config.default_allocation)
    ctx.obj = {"session": session, "config": app_config}


@app.command()
def income(ctx: typer.Context, amount: str = typer.Argument(..., help="Monthly take-home income")):
    """Set the monthly income."""
    session = _session(ctx)
    try:
        ok = session.set_monthly_income(amount)
    except BudgetError as exc:
        _fail(str(exc))
    _warn_unsaved(ok)
    console.print(_weights_table("Monthly split", session.state.allocation, session.income_split(session.state.monthly_income)))


@app.command()
def allocate(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Bucket to change: growth|stability|essentials|rewards"),
    value: float = typer.Argument(..., help="New weight, 0-100"),
    dry_run: bool = typer.Option(False, help="Show the rebalanced weights without saving"),
):
    """Move one bucket's weight; the others are rebalanced to keep 100%."""
    session = _session(ctx)
    try:
        draft = session.adjust_allocation(key, value)
    except BudgetError as exc:
        _fail(str(exc))
    console.print(_weights_table("Rebalanced allocation", draft))
    if dry_run:
        return
    try:
        ok = session.commit_allocation(draft)
    except InvalidAllocation as exc:
        _fail(f"Allocation not saved: {exc}")
    _warn_unsaved(ok)
    console.print("[green]Allocation saved.[/green]")


@app.command("account-add")
def account_add(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Bucket the account belongs to"),
    name: str = typer.Argument(..., help="Account name"),
):
    """Add an account (starting at 0) to a bucket."""
    session = _session(ctx)
    try:
        account = session.add_account(category, name)
    except BudgetError as exc:
        _fail(str(exc))
    _warn_unsaved(session.last_save_ok)
    console.print(f"[green]Added[/green] {account.name}")


@app.command("account-update")
def account_update(
    ctx: typer.Context,
    category: str = typer.Argument(...),
    index: int = typer.Argument(..., help="Account position as shown by `accounts`"),
    amount: str = typer.Argument(..., help="Current balance; invalid input counts as 0"),
):
    """Update an account's balance."""
    session = _session(ctx)
    try:
        account = session.update_amount(category, index, amount)
    except BudgetError as exc:
        _fail(str(exc))
    _warn_unsaved(session.last_save_ok)
    console.print(f"{account.name}: {account.amount:,.2f}")


@app.command("account-delete")
def account_delete(ctx: typer.Context, category: str = typer.Argument(...), index: int = typer.Argument(...)):
    """Delete an account."""
    session = _session(ctx)
    try:
        account = session.delete_account(category, index)
    except BudgetError as exc:
        _fail(str(exc))
    _warn_unsaved(session.last_save_ok)
    console.print(f"[yellow]Deleted[/yellow] {account.name}")


@app.command()
def accounts(ctx: typer.Context):
    """List accounts per bucket with totals."""
    session = _session(ctx)
    table = Table(title="Accounts")
    table.add_column("Bucket")
    table.add_column("#", justify="right")
    table.add_column("Account")
    table.add_column("Amount", justify="right")
    for key in CATEGORY_KEYS:
        for idx, account in enumerate(session.ledger.accounts(key)):
            table.add_row(key, str(idx), account.name, f"{account.amount:,.2f}")
        table.add_row(key, "", "[bold]subtotal[/bold]", f"{session.ledger.category_total(key):,.2f}")
    table.add_row("", "", "[bold]total assets[/bold]", f"{session.ledger.total_assets():,.2f}")
    console.print(table)


@app.command()
def goal(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="What you are saving for"),
    amount: str = typer.Argument(..., help="Target total amount"),
):
    """Set the savings goal."""
    session = _session(ctx)
    try:
        saved = session.set_goal(name, amount)
    except BudgetError as exc:
        _fail(str(exc))
    _warn_unsaved(session.last_save_ok)
    console.print(f"[green]Goal saved:[/green] {saved.name} {saved.total_amount:,.2f}")
    console.print(_weights_table("Per-bucket targets", session.state.allocation, session.overview()["category_goals"]))


@app.command()
def snapshot(ctx: typer.Context):
    """Record the current total assets in the history."""
    session = _session(ctx)
    recorded = session.record_snapshot()
    _warn_unsaved(session.last_save_ok)
    console.print(f"Recorded {recorded.total_amount:,.2f} on {recorded.date:%Y-%m-%d}")


@app.command()
def plan(
    ctx: typer.Context,
    income_amount: float = typer.Argument(..., metavar="INCOME", help="Income to distribute"),
    choice: str = typer.Option("A", "--plan", help="A = fixed weights, B = rebalance towards targets"),
    record: bool = typer.Option(False, help="Record the income and chosen split in the history"),
):
    """Show how an income payment should be split across buckets."""
    session = _session(ctx)
    if income_amount <= 0:
        _fail("Income must be positive")
    plans = session.plans(income_amount)
    for label, split in plans.items():
        marker = " (selected)" if label == choice.upper() else ""
        console.print(_weights_table(f"Plan {label}{marker}", session.state.allocation, split))
    if record:
        try:
            session.record_income(income_amount, choice.upper())
        except (BudgetError, ValueError) as exc:
            _fail(str(exc))
        _warn_unsaved(session.last_save_ok)
        console.print("[green]Income recorded.[/green] Transfer the amounts, then update your accounts.")


@app.command()
def predict(ctx: typer.Context):
    """Estimate when the goal will be reached."""
    session = _session(ctx)
    prediction = session.prediction()
    total = session.ledger.total_assets()
    goal_amount = session.state.goal.total_amount if session.state.goal else 0.0
    console.print(f"Progress: {_spark_bar(total, goal_amount)} {total:,.2f} / {goal_amount:,.2f}")
    console.print(f"Monthly growth: [bold]{prediction.monthly_growth_rate:,.2f}[/bold]")
    console.print(f"Months needed: [bold]{prediction.months_needed}[/bold]")
    console.print(f"Estimated: [bold]{prediction.estimated_date}[/bold]")


@app.command()
def status(ctx: typer.Context, as_json: bool = typer.Option(False, "--json", help="Print the overview as JSON")):
    """Dashboard overview."""
    payload = _session(ctx).overview()
    if as_json:
        typer.echo(json.dumps(payload, indent=2))
        return
    console.print(f"[bold cyan]Monthly income:[/bold cyan] {payload['monthly_income']:,.2f}")
    console.print(_weights_table("Buckets", payload["allocation"], payload["category_totals"]))
    if payload["goal"]:
        console.print(f"Goal: {payload['goal']['name']} | progress {payload['progress']:.1f}%")
        console.print(f"Estimated: {payload['prediction']['estimated_date']}")
    else:
        console.print("[yellow]No goal set. Run: bucketwise goal <name> <amount>[/yellow]")


if __name__ == "__main__":
    app()
