from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from homeplan.state.models import (
    ActiveCalc,
    AffordabilityInputs,
    CalculatorSettings,
    RefiInputs,
    merge_afford_inputs,
    merge_refi_inputs,
    merge_settings,
)

MAX_SCENARIOS = 6


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ScenarioQuickStats(_CamelModel):
    home_price: float = 0.0
    total_monthly: float = 0.0
    break_even_months: int = 0
    monthly_savings: float = 0.0
    market_best_rate: Optional[float] = None
    best_loan_label: Optional[str] = None


class Scenario(_CamelModel):
    id: str
    name: str
    created_at: str
    active_calc: ActiveCalc = "afford"
    afford_inputs: dict[str, Any] = Field(default_factory=dict)
    refi_inputs: dict[str, Any] = Field(default_factory=dict)
    loan_type_id: Optional[str] = None
    refi_loan_type_id: Optional[str] = None
    rate_mode: Optional[str] = None
    refi_rate_mode: Optional[str] = None
    quick_stats: ScenarioQuickStats = Field(default_factory=ScenarioQuickStats)


def load_scenarios(raw: Any) -> List[Scenario]:
    """Valid entries only, newest first as stored, capped at `MAX_SCENARIOS`."""
    if not isinstance(raw, list):
        return []
    out: List[Scenario] = []
    for item in raw:
        try:
            out.append(Scenario.model_validate(item))
        except ValidationError:
            continue
    return out[:MAX_SCENARIOS]


def dump_scenarios(scenarios: List[Scenario]) -> list[dict]:
    return [s.model_dump(mode="json", by_alias=True) for s in scenarios[:MAX_SCENARIOS]]


def _scenario_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:5]}"


def save_scenario(
    scenarios: List[Scenario],
    *,
    afford: AffordabilityInputs,
    refi: RefiInputs,
    settings: CalculatorSettings,
    quick_stats: ScenarioQuickStats,
    name: str | None = None,
    now: datetime | None = None,
) -> List[Scenario]:
    """New scenario goes first; the oldest beyond `MAX_SCENARIOS` are dropped."""
    created = (now or datetime.now(timezone.utc)).isoformat()
    scenario = Scenario(
        id=_scenario_id(),
        name=name or f"Scenario {len(scenarios) + 1}",
        created_at=created,
        active_calc=settings.active_calc,
        afford_inputs=afford.to_json_dict(),
        refi_inputs=refi.to_json_dict(),
        loan_type_id=settings.loan_type_id,
        refi_loan_type_id=settings.refi_loan_type_id,
        rate_mode=settings.rate_mode.value,
        refi_rate_mode=settings.refi_rate_mode.value,
        quick_stats=quick_stats,
    )
    return [scenario, *scenarios][:MAX_SCENARIOS]


def delete_scenario(scenarios: List[Scenario], scenario_id: str) -> List[Scenario]:
    return [s for s in scenarios if s.id != scenario_id]


def find_scenario(scenarios: List[Scenario], key: str) -> Optional[Scenario]:
    """By id, or by 1-based position as listed."""
    for s in scenarios:
        if s.id == key:
            return s
    if key.isdigit() and 1 <= int(key) <= len(scenarios):
        return scenarios[int(key) - 1]
    return None


def apply_scenario(
    scenario: Scenario,
    afford: AffordabilityInputs,
    refi: RefiInputs,
    settings: CalculatorSettings,
) -> tuple[AffordabilityInputs, RefiInputs, CalculatorSettings]:
    restored = merge_settings(
        settings,
        {
            "activeCalc": scenario.active_calc,
            "loanTypeId": scenario.loan_type_id,
            "refiLoanTypeId": scenario.refi_loan_type_id,
            "rateMode": scenario.rate_mode,
            "refiRateMode": scenario.refi_rate_mode,
        },
    )
    return (
        merge_afford_inputs(afford, scenario.afford_inputs),
        merge_refi_inputs(refi, scenario.refi_inputs),
        restored,
    )
