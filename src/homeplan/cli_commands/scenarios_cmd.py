from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from homeplan.cli_commands.common import build_context, console


def register(scenarios_app: typer.Typer) -> None:
    @scenarios_app.command("list")
    def scenarios_list():
        """
        Saved scenarios, newest first.
        """
        from homeplan.utils.formatting import format_money, format_percent

        ctx = build_context()
        scenarios = ctx.session.scenarios
        if not scenarios:
            console.print("No saved scenarios.")
            return

        table = Table(title="Saved scenarios")
        table.add_column("#", justify="right")
        table.add_column("Name", style="bold")
        table.add_column("Saved")
        table.add_column("Calc")
        table.add_column("Home price", justify="right")
        table.add_column("Total monthly", justify="right")
        table.add_column("Refi savings", justify="right")
        table.add_column("Break-even", justify="right")
        table.add_column("Best market rate", justify="right")
        for i, sc in enumerate(scenarios, start=1):
            q = sc.quick_stats
            table.add_row(
                str(i),
                sc.name,
                sc.created_at[:16].replace("T", " "),
                sc.active_calc,
                format_money(q.home_price),
                format_money(q.total_monthly),
                format_money(q.monthly_savings),
                f"{q.break_even_months} mo" if q.break_even_months > 0 else "-",
                format_percent(q.market_best_rate) if q.market_best_rate is not None else "-",
            )
        console.print(table)

    @scenarios_app.command("save")
    def scenarios_save(
        name: Optional[str] = typer.Option(None, "--name", help="Default: Scenario N"),
        tax_lookup: bool = typer.Option(
            True, "--tax-lookup/--no-tax-lookup", help="Look up the ZIP tax rate for the saved home price"
        ),
    ):
        """
        Snapshot the current session as a scenario (the oldest beyond six are dropped).
        """
        from homeplan.state.scenarios import save_scenario

        ctx = build_context()
        s = ctx.session
        ctx.load_rates()
        s.scenarios = save_scenario(
            s.scenarios,
            afford=s.afford,
            refi=s.refi,
            settings=s.settings,
            quick_stats=ctx.quick_stats(lookup_tax=tax_lookup),
            name=name,
        )
        ctx.save()
        console.print(f"[green]Saved {s.scenarios[0].name}[/green] ({s.scenarios[0].id})")

    @scenarios_app.command("load")
    def scenarios_load(key: str = typer.Argument(..., help="Scenario id or list position")):
        """
        Restore a scenario's inputs and calculator settings into the session.
        """
        from homeplan.state.scenarios import apply_scenario, find_scenario

        ctx = build_context()
        s = ctx.session
        scenario = find_scenario(s.scenarios, key)
        if scenario is None:
            console.print(f"[red]No scenario {key!r}[/red]")
            raise typer.Exit(code=1)
        s.afford, s.refi, s.settings = apply_scenario(scenario, s.afford, s.refi, s.settings)
        ctx.save()
        console.print(f"[green]Loaded {scenario.name}[/green]")

    @scenarios_app.command("delete")
    def scenarios_delete(key: str = typer.Argument(..., help="Scenario id or list position")):
        from homeplan.state.scenarios import delete_scenario, find_scenario

        ctx = build_context()
        s = ctx.session
        scenario = find_scenario(s.scenarios, key)
        if scenario is None:
            console.print(f"[red]No scenario {key!r}[/red]")
            raise typer.Exit(code=1)
        s.scenarios = delete_scenario(s.scenarios, scenario.id)
        ctx.save()
        console.print(f"Deleted {scenario.name}")
