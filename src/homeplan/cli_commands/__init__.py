"""Command registrations for the Typer CLI.

`homeplan/cli.py` stays the entrypoint module (`pyproject.toml` points the
script at `homeplan.cli:app`); the commands live here and are registered from
there.
"""
