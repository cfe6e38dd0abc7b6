"""
Raw calculator inputs and UI settings.

Everything the user types is kept as a sanitized string; numbers are parsed
at calculation time. Stored or shared blobs are merged field by field over
the current values: unknown keys are ignored and each known key is
validated on its own, so one bad field never discards the rest.
"""
from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from homeplan.catalog import (
    AFFORD_STRATEGIES,
    DEFAULT_STRATEGY_INDEX,
    is_known_credit_bucket,
    is_known_loan_type,
)
from homeplan.rates.resolve import AFFORD_RATE_MODES, REFI_RATE_MODES, RateMode, coerce_rate_mode
from homeplan.utils.numbers import sanitize_numeric, sanitize_zip

ActiveCalc = Literal["afford", "refi"]
ACTIVE_CALCS = ("afford", "refi")


class _InputsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class AffordabilityInputs(_InputsModel):
    annual_income: str = ""
    expenses: str = ""
    down_payment: str = ""
    closing_costs: str = ""
    closing_cost_rate: str = ""
    hoa_annual: str = ""
    zip_code: str = ""
    rate: str = ""

    @field_validator(
        "annual_income",
        "expenses",
        "down_payment",
        "closing_costs",
        "closing_cost_rate",
        "hoa_annual",
        "rate",
        mode="before",
    )
    @classmethod
    def _numeric(cls, v: Any) -> str:
        return sanitize_numeric(v if isinstance(v, str) else "")

    @field_validator("zip_code", mode="before")
    @classmethod
    def _zip(cls, v: Any) -> str:
        return sanitize_zip(v if isinstance(v, str) else "")


class RefiInputs(_InputsModel):
    balance: str = ""
    current_rate: str = ""
    new_rate: str = ""
    closing_costs: str = ""
    target_months: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _numeric(cls, v: Any) -> str:
        return sanitize_numeric(v if isinstance(v, str) else "")


class CalculatorSettings(_InputsModel):
    active_calc: ActiveCalc = "afford"
    loan_type_id: str = "conventional-30"
    rate_mode: RateMode = RateMode.LIVE
    credit_score_id: str = "760plus"
    refi_loan_type_id: str = "conventional-30"
    refi_rate_mode: RateMode = RateMode.LIVE
    refi_credit_score_id: str = "760plus"
    strategy_index: int = DEFAULT_STRATEGY_INDEX
    show_assumptions: bool = False
    insurance_override: str = ""
    pmi_rate_override: str = ""
    tax_rate_override: str = ""

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _lookup(stored: Mapping[str, Any], name: str, model: type[BaseModel]) -> tuple[bool, Any]:
    alias = model.model_fields[name].alias or name
    for key in (alias, name):
        if key in stored:
            return True, stored[key]
    return False, None


def _merge_string_fields(current: _InputsModel, stored: Any) -> _InputsModel:
    if not isinstance(stored, Mapping):
        return current
    update: dict[str, Any] = {}
    for name in type(current).model_fields:
        found, value = _lookup(stored, name, type(current))
        if found and isinstance(value, str):
            update[name] = value
    if not update:
        return current
    # Re-validate so every merged value passes the sanitizers.
    return type(current).model_validate({**current.model_dump(), **update})


def merge_afford_inputs(current: AffordabilityInputs, stored: Any) -> AffordabilityInputs:
    return _merge_string_fields(current, stored)  # type: ignore[return-value]


def merge_refi_inputs(current: RefiInputs, stored: Any) -> RefiInputs:
    return _merge_string_fields(current, stored)  # type: ignore[return-value]


def merge_settings(current: CalculatorSettings, stored: Any) -> CalculatorSettings:
    """Apply each stored setting only when it has the right type and a known value."""
    if not isinstance(stored, Mapping):
        return current
    update: dict[str, Any] = {}

    def get(name: str) -> Any:
        return _lookup(stored, name, CalculatorSettings)[1]

    active = get("active_calc")
    if active in ACTIVE_CALCS:
        update["active_calc"] = active
    for name in ("loan_type_id", "refi_loan_type_id"):
        v = get(name)
        if isinstance(v, str) and is_known_loan_type(v):
            update[name] = v
    for name in ("credit_score_id", "refi_credit_score_id"):
        v = get(name)
        if isinstance(v, str) and is_known_credit_bucket(v):
            update[name] = v
    mode = coerce_rate_mode(get("rate_mode"), AFFORD_RATE_MODES)
    if mode is not None:
        update["rate_mode"] = mode
    refi_mode = coerce_rate_mode(get("refi_rate_mode"), REFI_RATE_MODES)
    if refi_mode is not None:
        update["refi_rate_mode"] = refi_mode
    idx = get("strategy_index")
    if isinstance(idx, int) and not isinstance(idx, bool) and 0 <= idx < len(AFFORD_STRATEGIES):
        update["strategy_index"] = idx
    show = get("show_assumptions")
    if isinstance(show, bool):
        update["show_assumptions"] = show
    for name in ("insurance_override", "pmi_rate_override", "tax_rate_override"):
        v = get(name)
        if isinstance(v, str):
            update[name] = sanitize_numeric(v)

    return current.model_copy(update=update) if update else current
