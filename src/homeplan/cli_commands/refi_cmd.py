from __future__ import annotations

from typing import Any, Dict, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from homeplan.cli_commands.common import (
    build_context,
    check_choice,
    color_for_recommendation,
    console,
    credit_bucket_ids,
    echo_json,
    loan_type_ids,
    print_sections,
    set_if_given,
)


def register(app: typer.Typer) -> None:
    @app.command("refi")
    def refi(
        balance: Optional[str] = typer.Option(None, "--balance", help="Current loan balance"),
        current_rate: Optional[str] = typer.Option(None, "--current-rate", help="Current rate, annual %"),
        new_rate: Optional[str] = typer.Option(None, "--new-rate", help="Manual new rate, annual %"),
        closing_costs: Optional[str] = typer.Option(None, "--closing-costs", help="Refinance closing costs"),
        target_months: Optional[str] = typer.Option(None, "--target-months", help="Break-even target (target mode)"),
        loan_type: Optional[str] = typer.Option(None, "--loan-type", help="Refinance loan type id"),
        rate_mode: Optional[str] = typer.Option(None, "--rate-mode", help="live | credit | manual | target"),
        credit: Optional[str] = typer.Option(None, "--credit", help="Credit score band id"),
        preset: Optional[str] = typer.Option(None, "--preset", help="mild-savings | fast-breakeven"),
        json_out: bool = typer.Option(False, "--json", help="Machine-readable output"),
        report: bool = typer.Option(False, "--report", help="Print the full report sections"),
        save: bool = typer.Option(False, "--save", help="Save the result as a scenario"),
        tax_lookup: bool = typer.Option(
            True, "--tax-lookup/--no-tax-lookup", help="Look up the ZIP tax rate for the saved home price"
        ),
    ):
        """
        Monthly savings and break-even for refinancing the current balance.
        """
        from homeplan.catalog import REFI_PRESETS, get_preset
        from homeplan.rates.resolve import REFI_RATE_MODES
        from homeplan.report import build_refi_report
        from homeplan.state.models import merge_refi_inputs, merge_settings
        from homeplan.state.scenarios import save_scenario
        from homeplan.utils.formatting import format_money, format_percent

        ctx = build_context()
        s = ctx.session

        if preset is not None:
            found = get_preset(REFI_PRESETS, preset)
            if found is None:
                raise typer.BadParameter(f"unknown preset {preset!r}", param_hint="--preset")
            s.refi = merge_refi_inputs(s.refi, found.inputs)

        given: Dict[str, Any] = {}
        set_if_given(given, "balance", balance)
        set_if_given(given, "current_rate", current_rate)
        set_if_given(given, "new_rate", new_rate)
        set_if_given(given, "closing_costs", closing_costs)
        set_if_given(given, "target_months", target_months)
        s.refi = merge_refi_inputs(s.refi, given)

        changes: Dict[str, Any] = {"active_calc": "refi"}
        set_if_given(changes, "refi_loan_type_id", check_choice(loan_type, loan_type_ids(), "--loan-type"))
        set_if_given(
            changes, "refi_rate_mode", check_choice(rate_mode, [m.value for m in REFI_RATE_MODES], "--rate-mode")
        )
        set_if_given(changes, "refi_credit_score_id", check_choice(credit, credit_bucket_ids(), "--credit"))
        s.settings = merge_settings(s.settings, changes)

        ctx.load_rates()
        view = ctx.refinance()

        if save:
            s.scenarios = save_scenario(
                s.scenarios,
                afford=s.afford,
                refi=s.refi,
                settings=s.settings,
                quick_stats=ctx.quick_stats(lookup_tax=tax_lookup),
            )
        ctx.save()

        if json_out:
            echo_json(
                {
                    "rate": view.resolved,
                    "result": view.result,
                    "achievable": view.result.achievable,
                    "timeline": view.timeline,
                    "recommendation": view.recommendation,
                    "rate_status": ctx.rate_status.value,
                }
            )
            return

        if report:
            print_sections("Refinance summary", build_refi_report(view, s.refi, s.settings))
            return

        r = view.result
        if r.target_mode and not r.achievable:
            console.print(
                Panel(
                    "[red]No rate between 0.1% and the current rate reaches break-even "
                    f"within {r.target_months:g} months.[/red]",
                    title="Refinance (target mode)",
                    expand=False,
                )
            )
            return

        color = color_for_recommendation(view.recommendation.label)
        break_even = f"month {r.break_even_months}" if r.break_even_months > 0 else "not in range"
        console.print(
            Panel(
                f"{format_percent(r.current_rate)} -> [bold]{format_percent(r.new_rate)}[/bold]\n"
                f"Payment {format_money(r.current_payment)} -> {format_money(r.new_payment)} "
                f"(saves {format_money(r.monthly_savings)}/mo)\n"
                f"Break-even {break_even}\n"
                f"[{color}]{view.recommendation.label}[/{color}]: {view.recommendation.note}",
                title="Refinance" + (" (target mode)" if r.target_mode else ""),
                expand=False,
            )
        )

        table = Table(title="Savings timeline")
        table.add_column("Months", justify="right")
        table.add_column("Gross", justify="right")
        table.add_column("Net of closing costs", justify="right")
        for p in view.timeline:
            net_color = "green" if p.net >= 0 else "red"
            table.add_row(str(p.months), format_money(p.gross), f"[{net_color}]{format_money(p.net)}[/{net_color}]")
        console.print(table)
        if save:
            console.print(f"[green]Saved {s.scenarios[0].name}[/green]")
