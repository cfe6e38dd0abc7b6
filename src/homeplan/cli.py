from __future__ import annotations

import logging

import typer

app = typer.Typer(add_completion=False, help="Home affordability and refinance planner")
rates_app = typer.Typer(add_completion=False, help="Benchmark mortgage rates (FRED)")
app.add_typer(rates_app, name="rates")
share_app = typer.Typer(add_completion=False, help="Shareable links for the saved inputs")
app.add_typer(share_app, name="share")
scenarios_app = typer.Typer(add_completion=False, help="Saved scenarios (up to six)")
app.add_typer(scenarios_app, name="scenarios")

_COMMANDS_REGISTERED = False


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _register_commands() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return
    # Import here to keep `homeplan.cli` lightweight at import time.
    from homeplan.cli_commands.afford_cmd import register as register_afford
    from homeplan.cli_commands.rates_cmd import register as register_rates
    from homeplan.cli_commands.refi_cmd import register as register_refi
    from homeplan.cli_commands.scenarios_cmd import register as register_scenarios
    from homeplan.cli_commands.session_cmd import register as register_session
    from homeplan.cli_commands.share_cmd import register as register_share
    from homeplan.cli_commands.tax_cmd import register as register_tax

    register_rates(rates_app)
    register_afford(app)
    register_refi(app)
    register_tax(app)
    register_session(app)
    register_share(share_app)
    register_scenarios(scenarios_app)
    _COMMANDS_REGISTERED = True


def main():
    _register_commands()
    app()


# Register commands when imported as a console-script entrypoint (`pyproject.toml` uses `homeplan.cli:app`).
_register_commands()


if __name__ == "__main__":
    main()
