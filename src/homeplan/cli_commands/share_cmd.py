from __future__ import annotations

import typer

from homeplan.cli_commands.common import build_context, console

DEFAULT_BASE_URL = "https://homeplan.app/"


def register(share_app: typer.Typer) -> None:
    @share_app.command("url")
    def share_url(
        base_url: str = typer.Option(DEFAULT_BASE_URL, "--base-url", help="Link target"),
    ):
        """
        Print a link that carries the saved affordability and refinance inputs.
        """
        from homeplan.state.share import build_share_url

        ctx = build_context()
        s = ctx.session
        typer.echo(build_share_url(base_url, s.afford, s.refi, s.settings.active_calc))

    @share_app.command("load")
    def share_load(url: str = typer.Argument(..., help="A link produced by `share url`")):
        """
        Merge the inputs from a shared link into the saved session.
        """
        from homeplan.state.models import merge_settings
        from homeplan.state.share import apply_share_url

        ctx = build_context()
        s = ctx.session
        shared = apply_share_url(url, s.afford, s.refi)
        changed = shared.afford != s.afford or shared.refi != s.refi
        s.afford = shared.afford
        s.refi = shared.refi
        if shared.active_calc is not None:
            s.settings = merge_settings(s.settings, {"active_calc": shared.active_calc})
        ctx.save()

        if changed:
            console.print(f"[green]Loaded shared inputs[/green] (calculator: {s.settings.active_calc})")
        else:
            console.print("[yellow]Link carried no usable inputs; session unchanged.[/yellow]")
