from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from homeplan.cli_commands.common import build_context, console, echo_json


def register(rates_app: typer.Typer) -> None:
    @rates_app.command("fetch")
    def rates_fetch(
        out: Optional[str] = typer.Option(None, "--out", help="Snapshot path (default: HOMEPLAN_SNAPSHOT_PATH)"),
    ):
        """
        Fetch every benchmark series from FRED and write the rate snapshot file.
        """
        from homeplan.config import load_settings
        from homeplan.data.fred import FredClient
        from homeplan.errors import NoRatesAvailableError
        from homeplan.rates.cache import write_snapshot

        settings = load_settings()
        try:
            payload = FredClient(settings).fetch_all_rates()
        except NoRatesAvailableError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1)

        path = write_snapshot(payload, out or settings.snapshot_path)
        console.print(f"[green]Wrote {len(payload.data)} series to {path}[/green]")
        for series_id, obs in payload.data.items():
            console.print(f"  {series_id}: {obs.rate:.2f}% ({obs.date}) via {obs.source_series_id}")

    @rates_app.command("show")
    def rates_show(
        refresh: bool = typer.Option(False, "--refresh", help="Skip snapshot and cache; fetch live"),
        json_out: bool = typer.Option(False, "--json", help="Print the normalized payload as JSON"),
    ):
        """
        Show the loaded benchmark rates, where they came from and how fresh they are.
        """
        from homeplan.rates.summary import market_rate_cards, rate_freshness
        from homeplan.utils.formatting import format_percent, format_rate_date

        ctx = build_context()
        result = ctx.load_rates()
        if refresh:
            result = ctx.refresh_rates()

        if json_out:
            echo_json(
                {
                    "status": result.status.value,
                    "provider": result.provider,
                    "payload": ctx.rates.to_json_dict() if ctx.rates is not None else None,
                }
            )
            return

        if ctx.rates is None:
            console.print("[red]No benchmark rates available.[/red] Calculators fall back to manual rate entry.")
            raise typer.Exit(code=1)

        fresh = rate_freshness(ctx.rates)
        age = f"{fresh.age_days}d old" if fresh.age_days is not None else "age unknown"
        console.print(f"[bold]Rates[/bold] from {result.provider} ({ctx.rates.source}), fetched {ctx.rates.fetched_at_iso} ({age})")
        if fresh.refresh_suggested:
            console.print("[yellow]Rates are a few days old; run with --refresh to fetch the latest.[/yellow]")

        table = Table(title="Benchmark rates")
        table.add_column("Series", style="bold")
        table.add_column("Benchmark")
        table.add_column("Rate", justify="right")
        table.add_column("As of", justify="right")
        for card in market_rate_cards(ctx.rates):
            obs = ctx.rates.data.get(card.series_id)
            rate = format_percent(card.rate) if card.rate is not None else "n/a"
            if obs is not None and obs.is_stale:
                rate = f"[yellow]{rate} (stale)[/yellow]"
            table.add_row(card.series_id, card.label_full, rate, format_rate_date(card.date))
        console.print(table)

        best = ctx.rates.summary.best_rates
        if best.lowest is not None and best.highest is not None:
            console.print(
                f"Lowest {best.lowest.bucket} {format_percent(best.lowest.rate)}, "
                f"highest {best.highest.bucket} {format_percent(best.highest.rate)}, "
                f"spread {best.spread_bps} bps"
            )
