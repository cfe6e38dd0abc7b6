from __future__ import annotations

import typer

from homeplan.cli_commands.common import build_context, console, create_metric_table, echo_json


def register(app: typer.Typer) -> None:
    @app.command("session")
    def session_show(json_out: bool = typer.Option(False, "--json", help="Machine-readable output")):
        """
        Show the saved inputs and calculator settings.
        """
        ctx = build_context()
        s = ctx.session
        if json_out:
            echo_json({"afford": s.afford, "refi": s.refi, "settings": s.settings})
            return
        afford_rows = [(k, v or "-") for k, v in s.afford.to_json_dict().items()]
        refi_rows = [(k, v or "-") for k, v in s.refi.to_json_dict().items()]
        console.print(create_metric_table("Affordability inputs", afford_rows))
        console.print(create_metric_table("Refinance inputs", refi_rows))
        console.print(create_metric_table("Settings", [(k, str(v)) for k, v in s.settings.to_json_dict().items()]))

    @app.command("reset")
    def reset():
        """
        Clear saved inputs and settings back to defaults. Saved scenarios are kept.
        """
        from homeplan.state.models import AffordabilityInputs, CalculatorSettings, RefiInputs

        ctx = build_context()
        s = ctx.session
        s.afford = AffordabilityInputs()
        s.refi = RefiInputs()
        s.settings = CalculatorSettings()
        ctx.save()
        console.print("Session reset.")
