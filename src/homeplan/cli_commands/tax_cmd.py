from __future__ import annotations

import typer

from homeplan.cli_commands.common import console, create_metric_table, echo_json


def register(app: typer.Typer) -> None:
    @app.command("tax")
    def tax(
        zip_code: str = typer.Argument(..., help="5-digit ZIP code"),
        json_out: bool = typer.Option(False, "--json", help="Machine-readable output"),
    ):
        """
        Effective property tax rate for a ZIP (Census ACS 5-year medians).
        """
        from homeplan.config import load_settings
        from homeplan.data.census import CensusClient
        from homeplan.utils.formatting import format_money, format_ratio_percent
        from homeplan.utils.numbers import is_complete_zip, sanitize_zip

        zip5 = sanitize_zip(zip_code)
        if not is_complete_zip(zip5):
            raise typer.BadParameter("a ZIP code needs 5 digits", param_hint="ZIP_CODE")

        result = CensusClient(load_settings()).lookup_tax_rate(zip5)
        if json_out:
            echo_json({"zip": zip5, "result": result})
            return
        if result is None:
            console.print(f"[yellow]No Census tax data for {zip5}.[/yellow]")
            raise typer.Exit(code=1)

        console.print(
            create_metric_table(
                result.zip_name,
                [
                    ("Median home value", format_money(result.home_value)),
                    ("Median real estate taxes", format_money(result.annual_tax)),
                    ("Effective rate", format_ratio_percent(result.rate)),
                    ("Source", result.year),
                ],
            )
        )
