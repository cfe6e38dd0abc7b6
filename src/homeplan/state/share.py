"""Shareable links: inputs as base64(UTF-8 JSON) in the ``a`` / ``r`` query params."""
from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from homeplan.state.models import (
    ACTIVE_CALCS,
    AffordabilityInputs,
    RefiInputs,
    merge_afford_inputs,
    merge_refi_inputs,
)

logger = logging.getLogger(__name__)

AFFORD_PARAM = "a"
REFI_PARAM = "r"
CALC_PARAM = "calc"


def encode_state_payload(value: Any) -> str:
    try:
        text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return ""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_state_payload(encoded: Optional[str]) -> Optional[dict]:
    """None for anything that isn't base64 of a JSON object."""
    if not encoded:
        return None
    try:
        raw = base64.b64decode(encoded, validate=False)
        parsed = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, ValueError) as e:
        logger.debug("Ignoring undecodable share payload: %s", e)
        return None
    return parsed if isinstance(parsed, dict) else None


def build_share_params(afford: AffordabilityInputs, refi: RefiInputs, active_calc: str) -> dict[str, str]:
    return {
        AFFORD_PARAM: encode_state_payload(afford.to_json_dict()),
        REFI_PARAM: encode_state_payload(refi.to_json_dict()),
        CALC_PARAM: active_calc,
    }


def build_share_url(base_url: str, afford: AffordabilityInputs, refi: RefiInputs, active_calc: str) -> str:
    parts = urlsplit(base_url)
    query = {k: v[-1] for k, v in parse_qs(parts.query).items()}
    query.update(build_share_params(afford, refi, active_calc))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


@dataclass(frozen=True)
class SharedState:
    afford: AffordabilityInputs
    refi: RefiInputs
    active_calc: Optional[str]


def apply_share_params(
    params: Mapping[str, Any],
    afford: AffordabilityInputs,
    refi: RefiInputs,
) -> SharedState:
    """
    Merge shared inputs over the current ones. Missing or corrupt parameters
    are ignored; ``active_calc`` is None unless a valid calculator was named.
    """

    def _one(key: str) -> Optional[str]:
        v = params.get(key)
        if isinstance(v, (list, tuple)):
            v = v[-1] if v else None
        return v if isinstance(v, str) else None

    shared_afford = decode_state_payload(_one(AFFORD_PARAM))
    shared_refi = decode_state_payload(_one(REFI_PARAM))
    calc = _one(CALC_PARAM)
    return SharedState(
        afford=merge_afford_inputs(afford, shared_afford) if shared_afford else afford,
        refi=merge_refi_inputs(refi, shared_refi) if shared_refi else refi,
        active_calc=calc if calc in ACTIVE_CALCS else None,
    )


def apply_share_url(url: str, afford: AffordabilityInputs, refi: RefiInputs) -> SharedState:
    return apply_share_params(parse_qs(urlsplit(url).query), afford, refi)
