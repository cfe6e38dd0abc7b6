from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from homeplan.catalog import AFFORD_STRATEGIES, CREDIT_SCORE_BUCKETS, LOAN_TYPES
from homeplan.config import load_settings
from homeplan.context import PlannerContext
from homeplan.report import NOT_A_QUOTE, ReportSection

console = Console()


def build_context() -> PlannerContext:
    return PlannerContext(load_settings())


def set_if_given(target: Dict[str, Any], key: str, value: Optional[str]) -> None:
    if value is not None:
        target[key] = value


def check_choice(value: Optional[str], choices: Iterable[str], option: str) -> Optional[str]:
    if value is None:
        return None
    allowed = list(choices)
    if value not in allowed:
        raise typer.BadParameter(f"expected one of: {', '.join(allowed)}", param_hint=option)
    return value


def loan_type_ids() -> List[str]:
    return [loan.id for loan in LOAN_TYPES]


def credit_bucket_ids() -> List[str]:
    return [b.id for b in CREDIT_SCORE_BUCKETS]


def strategy_index(strategy_id: Optional[str]) -> Optional[int]:
    if strategy_id is None:
        return None
    ids = [s.id for s in AFFORD_STRATEGIES]
    check_choice(strategy_id, ids, "--strategy")
    return ids.index(strategy_id)


def to_jsonable(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: to_jsonable(v) for k, v in asdict(obj).items()}
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True)
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


def echo_json(obj: Any) -> None:
    # Plain stdout so the output stays machine-readable (no rich markup).
    typer.echo(json.dumps(to_jsonable(obj), indent=2, default=str))


def create_metric_table(title: str, rows: list[tuple[str, str]], expand: bool = False) -> Table:
    table = Table(title=title, expand=expand, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    for metric, value in rows:
        table.add_row(metric, value)
    return table


def color_for_health(label: str) -> str:
    return {"Healthy": "green", "Watchlist": "yellow", "High risk": "red"}.get(label, "white")


def color_for_recommendation(label: str) -> str:
    return {"Strong candidate": "green", "Moderate": "yellow", "Long horizon": "yellow", "Wait": "red"}.get(
        label, "white"
    )


def print_sections(title: str, sections: List[ReportSection]) -> None:
    console.print(Panel(f"[bold]{title}[/bold]\n[dim]{NOT_A_QUOTE}[/dim]", expand=False))
    for section in sections:
        if section.is_table:
            table = Table(title=section.title)
            for i, col in enumerate(section.columns):
                table.add_column(col, justify="left" if i == 0 else "right")
            for row in section.rows:
                table.add_row(*row)
            console.print(table)
        else:
            console.print(create_metric_table(section.title, section.items))
