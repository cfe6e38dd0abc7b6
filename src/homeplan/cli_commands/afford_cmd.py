from __future__ import annotations

from typing import Any, Dict, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from homeplan.cli_commands.common import (
    build_context,
    check_choice,
    color_for_health,
    console,
    create_metric_table,
    credit_bucket_ids,
    echo_json,
    loan_type_ids,
    print_sections,
    set_if_given,
    strategy_index,
)


def register(app: typer.Typer) -> None:
    @app.command("afford")
    def afford(
        income: Optional[str] = typer.Option(None, "--income", help="Annual gross income"),
        expenses: Optional[str] = typer.Option(None, "--expenses", help="Monthly non-housing debt payments"),
        down: Optional[str] = typer.Option(None, "--down", help="Down payment"),
        closing_costs: Optional[str] = typer.Option(None, "--closing-costs", help="Closing costs amount"),
        closing_cost_rate: Optional[str] = typer.Option(None, "--closing-cost-rate", help="Closing costs, % of price"),
        hoa: Optional[str] = typer.Option(None, "--hoa", help="HOA dues per year"),
        zip_code: Optional[str] = typer.Option(None, "--zip", help="ZIP code for the property tax estimate"),
        rate: Optional[str] = typer.Option(None, "--rate", help="Manual rate, annual %"),
        loan_type: Optional[str] = typer.Option(None, "--loan-type", help="Loan type id"),
        rate_mode: Optional[str] = typer.Option(None, "--rate-mode", help="live | credit | manual"),
        credit: Optional[str] = typer.Option(None, "--credit", help="Credit score band id"),
        strategy: Optional[str] = typer.Option(None, "--strategy", help="conservative | standard | stretch"),
        insurance: Optional[str] = typer.Option(None, "--insurance", help="Home insurance per month"),
        pmi_rate: Optional[str] = typer.Option(None, "--pmi-rate", help="PMI, annual % of the loan"),
        tax_rate: Optional[str] = typer.Option(None, "--tax-rate", help="Property tax, annual % of price"),
        preset: Optional[str] = typer.Option(None, "--preset", help="starter | family-upgrade | aggressive"),
        tax_lookup: bool = typer.Option(True, "--tax-lookup/--no-tax-lookup", help="Look up the ZIP tax rate"),
        json_out: bool = typer.Option(False, "--json", help="Machine-readable output"),
        report: bool = typer.Option(False, "--report", help="Print the full report sections"),
        save: bool = typer.Option(False, "--save", help="Save the result as a scenario"),
    ):
        """
        How much home the income supports, with a comparison across loan types.

        Inputs not given on the command line come from the saved session.
        """
        from homeplan.catalog import AFFORD_PRESETS, get_preset
        from homeplan.rates.resolve import AFFORD_RATE_MODES
        from homeplan.report import build_affordability_report
        from homeplan.state.models import merge_afford_inputs, merge_settings
        from homeplan.state.scenarios import save_scenario
        from homeplan.utils.formatting import format_money, format_percent, format_ratio_percent

        ctx = build_context()
        s = ctx.session

        if preset is not None:
            found = get_preset(AFFORD_PRESETS, preset)
            if found is None:
                raise typer.BadParameter(f"unknown preset {preset!r}", param_hint="--preset")
            s.afford = merge_afford_inputs(s.afford, found.inputs)

        given: Dict[str, Any] = {}
        set_if_given(given, "annual_income", income)
        set_if_given(given, "expenses", expenses)
        set_if_given(given, "down_payment", down)
        set_if_given(given, "closing_costs", closing_costs)
        set_if_given(given, "closing_cost_rate", closing_cost_rate)
        set_if_given(given, "hoa_annual", hoa)
        set_if_given(given, "zip_code", zip_code)
        set_if_given(given, "rate", rate)
        s.afford = merge_afford_inputs(s.afford, given)

        changes: Dict[str, Any] = {"active_calc": "afford"}
        set_if_given(changes, "loan_type_id", check_choice(loan_type, loan_type_ids(), "--loan-type"))
        set_if_given(
            changes, "rate_mode", check_choice(rate_mode, [m.value for m in AFFORD_RATE_MODES], "--rate-mode")
        )
        set_if_given(changes, "credit_score_id", check_choice(credit, credit_bucket_ids(), "--credit"))
        idx = strategy_index(strategy)
        if idx is not None:
            changes["strategy_index"] = idx
        set_if_given(changes, "insurance_override", insurance)
        set_if_given(changes, "pmi_rate_override", pmi_rate)
        set_if_given(changes, "tax_rate_override", tax_rate)
        s.settings = merge_settings(s.settings, changes)

        ctx.load_rates()
        if tax_lookup:
            ctx.lookup_zip_tax()
        view = ctx.affordability()

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
                    "health": view.health,
                    "options": view.options,
                    "top_fits": view.top_fits,
                    "rate_status": ctx.rate_status.value,
                    "tax_status": ctx.tax.status,
                }
            )
            return

        if report:
            print_sections("Home affordability summary", build_affordability_report(view, s.afford, s.settings))
            return

        r = view.result
        color = color_for_health(view.health.label)
        console.print(
            Panel(
                f"[bold]{format_money(r.estimated_home_price)}[/bold] estimated home price\n"
                f"Range {format_money(r.conservative)} - {format_money(r.optimistic)}\n"
                f"Total monthly {format_money(r.total_monthly)} at {format_percent(view.resolved.rate)}\n"
                f"[{color}]{view.health.label}[/{color}]: {view.health.note}",
                title="Affordability",
                expand=False,
            )
        )
        if ctx.rates is None and s.settings.rate_mode.value != "manual":
            console.print("[yellow]No benchmark rates loaded; using the manual rate entry.[/yellow]")
        if ctx.tax.status == "error":
            console.print("[yellow]No Census tax data for this ZIP; property tax assumed 0.[/yellow]")

        console.print(
            create_metric_table(
                "Monthly breakdown",
                [
                    ("Housing budget", format_money(r.max_housing_budget)),
                    ("Principal + interest", format_money(r.principal_payment)),
                    ("Property tax", format_money(r.property_tax_monthly)),
                    ("Insurance", format_money(r.insurance_monthly)),
                    ("HOA", format_money(r.hoa_monthly)),
                    ("PMI", format_money(r.pmi_monthly)),
                    ("Loan amount", format_money(r.loan_amount)),
                    ("LTV", format_ratio_percent(r.ltv)),
                    ("Closing costs", format_money(r.closing_costs)),
                ],
            )
        )

        table = Table(title="Loan options")
        table.add_column("Loan type", style="bold")
        table.add_column("Rate", justify="right")
        table.add_column("Home price", justify="right")
        table.add_column("Total monthly", justify="right")
        table.add_column("Total interest", justify="right")
        for o in view.options:
            table.add_row(
                o.label,
                format_percent(o.rate),
                format_money(o.home_price),
                format_money(o.total_monthly),
                format_money(o.total_interest),
            )
        console.print(table)

        if view.top_fits:
            fits = ", ".join(f"{o.label} ({format_money(o.comparable_total_monthly)}/mo)" for o in view.top_fits)
            console.print(f"Best fits at this price: {fits}")
        if save:
            console.print(f"[green]Saved {s.scenarios[0].name}[/green]")
