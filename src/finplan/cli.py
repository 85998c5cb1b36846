"""Command line entry points for FinPlan."""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import click

from .config import BaseConfig
from .errors import FinPlanError, NonAmortizingPaymentError
from .logging_config import setup_logging
from .money import to_decimal
from .services import amortization, debts
from .services.planning import PlanningService, RecordSource

EXIT_NON_AMORTIZING = 2


class DecimalParamType(click.ParamType):
    """Money or percentage argument; accepts ``1,250.00`` and ``$40``."""

    name = "decimal"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            return to_decimal(value)
        except (TypeError, ValueError):
            self.fail(f"{value!r} is not a valid number", param, ctx)


DECIMAL = DecimalParamType()


def _echo_json(payload: dict | list) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _format_months(months: int | None) -> str:
    if months is None:
        return "never"
    years, remaining = divmod(months, 12)
    if years == 0:
        return f"{months} months"
    if remaining == 0:
        return f"{years} year{'s' if years > 1 else ''}"
    return (
        f"{years} year{'s' if years > 1 else ''} "
        f"{remaining} month{'s' if remaining > 1 else ''}"
    )


def _planning_service(ctx: click.Context, json_file: str | None) -> PlanningService:
    config: BaseConfig = ctx.obj["config"]
    if json_file:
        source = RecordSource.from_json_file(json_file)
        return PlanningService(
            debt_source=source, budget_source=source, policy=config.extra_payment_policy()
        )

    from .infra.database import bootstrap_database
    from .infra.repositories import SQLModelBudgetRepository, SQLModelDebtRepository

    _engine, session_factory = bootstrap_database(config)
    return PlanningService(
        debt_source=SQLModelDebtRepository(session_factory),
        budget_source=SQLModelBudgetRepository(session_factory),
        policy=config.extra_payment_policy(),
    )


@click.group()
@click.option("--quiet", is_flag=True, default=False, help="Skip logging setup.")
@click.pass_context
def cli(ctx: click.Context, quiet: bool) -> None:
    """Debt payoff planning and budget projection."""

    config = BaseConfig()
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    if not quiet:
        setup_logging(config)


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create database tables."""

    from .infra.database import bootstrap_database

    bootstrap_database(ctx.obj["config"])
    click.echo(f"Database ready: {ctx.obj['config'].DATABASE_URL}")


@cli.command("seed-demo")
@click.pass_context
def seed_demo(ctx: click.Context) -> None:
    """Insert a small demo set of debts and a budget for the current month."""

    from .infra.database import bootstrap_database
    from .services.seed import seed_demo_data

    _engine, session_factory = bootstrap_database(ctx.obj["config"])
    counts = seed_demo_data(session_factory, today=date.today())
    click.echo(f"Seeded {counts['debts']} debts and {counts['budget_items']} budget items.")


@cli.command("payoff")
@click.argument("balance", type=DECIMAL)
@click.argument("payment", type=DECIMAL)
@click.argument("rate", type=DECIMAL)
@click.option("--schedule", "show_schedule", is_flag=True, help="Print the monthly schedule.")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of text.")
def payoff(
    balance: Decimal, payment: Decimal, rate: Decimal, show_schedule: bool, as_json: bool
) -> None:
    """Months and interest to clear BALANCE paying PAYMENT monthly at RATE percent APR."""

    try:
        months = amortization.months_to_payoff(balance, payment, rate)
        interest = amortization.total_interest(balance, payment, rate)
        rows = amortization.amortization_schedule(balance, payment, rate) if show_schedule else []
    except NonAmortizingPaymentError as exc:
        click.echo(f"This payment will never pay off this balance: {exc}", err=True)
        raise SystemExit(EXIT_NON_AMORTIZING) from exc

    if as_json:
        payload = {"months_to_payoff": months, "total_interest": str(interest)}
        if show_schedule:
            payload["schedule"] = [row.to_dict() for row in rows]
        _echo_json(payload)
        return

    click.echo(f"Months to payoff: {months} ({_format_months(months)})")
    click.echo(f"Total interest:   ${interest:,.2f}")
    for row in rows:
        click.echo(
            f"{row.month:>4}  pay {row.payment:>10,.2f}  interest {row.interest:>9,.2f}"
            f"  balance {row.remaining_balance:>11,.2f}"
        )


@cli.command("strategies")
@click.option("--extra", type=DECIMAL, default=None, help="Extra monthly payment.")
@click.option("--json-file", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of text.")
@click.pass_context
def strategies(
    ctx: click.Context, extra: Decimal | None, json_file: str | None, as_json: bool
) -> None:
    """Compare snowball and avalanche payoff plans."""

    service = _planning_service(ctx, json_file)
    try:
        comparison = service.strategies(extra_payment=extra)
    except FinPlanError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        _echo_json(comparison.to_dict())
        return

    click.echo(
        f"Minimum payments ${comparison.total_minimum_payments:,.2f} + extra "
        f"${comparison.extra_payment:,.2f} = ${comparison.payment_budget:,.2f}/month"
    )
    for plan in (comparison.snowball, comparison.avalanche):
        click.echo(f"\n{plan.strategy.title()}")
        for position, line in enumerate(plan.lines, start=1):
            click.echo(
                f"  {position}. {line.item.name:<24} pay {line.payment:>9,.2f}"
                f"  {_format_months(line.months_to_payoff)}"
            )
        click.echo(f"  Debt free in {_format_months(plan.total_months)}")
        click.echo(f"  Interest ${plan.total_interest:,.2f}, saves ${plan.savings_vs_minimum:,.2f}")
        for name in plan.undefined_items:
            click.echo(f"  Warning: payment never pays off {name}", err=True)
    click.echo(f"\nPreferred: {comparison.preferred_strategy}")


@cli.command("rollover")
@click.option("--strategy", type=click.Choice(debts.STRATEGIES), default=debts.AVALANCHE)
@click.option("--extra", type=DECIMAL, default=None, help="Extra monthly payment.")
@click.option("--json-file", type=click.Path(exists=True, dir_okay=False), default=None)
@click.pass_context
def rollover(
    ctx: click.Context, strategy: str, extra: Decimal | None, json_file: str | None
) -> None:
    """Month-by-month schedule with freed payments rolled to the next debt."""

    service = _planning_service(ctx, json_file)
    try:
        schedule = service.rollover(strategy=strategy, extra_payment=extra)
    except NonAmortizingPaymentError as exc:
        click.echo(f"Payments never clear the debts: {exc}", err=True)
        raise SystemExit(EXIT_NON_AMORTIZING) from exc
    except FinPlanError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_json(schedule.to_dict())


@cli.command("project")
@click.option("--year", type=int, default=None, help="Defaults to the current year.")
@click.option("--month", type=click.IntRange(1, 12), default=None)
@click.option("--json-file", type=click.Path(exists=True, dir_okay=False), default=None)
@click.pass_context
def project(
    ctx: click.Context, year: int | None, month: int | None, json_file: str | None
) -> None:
    """Project recurring budget items onto a calendar month."""

    today = date.today()
    projection = _planning_service(ctx, json_file).project_month(
        year=year or today.year, month=month or today.month
    )
    _echo_json(projection.to_dict())


def main() -> None:  # pragma: no cover - console script
    cli(obj={})


if __name__ == "__main__":  # pragma: no cover
    main()
