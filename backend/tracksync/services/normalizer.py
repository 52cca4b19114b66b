"""Response normalizer — canonical status + track list from record-info payloads.

The Kie.ai API has shipped several envelope shapes over time, e.g.::

    {"code": 200, "data": {"status": "SUCCESS", "response": {"sunoData": [...]}}}
    {"data": {"response": {"status": "PENDING"}, "sunoData": [...]}}
    {"status": "first_success", "response": [...]}

Extraction is an ordered list of small strategies, each returning a value or
``None``. The first usable result wins. Nothing here raises: an unrecognised
payload degrades to ``UNKNOWN`` and an empty track list.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tracksync.models.task import TaskStatus

logger = logging.getLogger(__name__)

Strategy = Callable[[Any], Any]


@dataclass(frozen=True)
class NormalizedResponse:
    status: str
    assets: list[Any] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

def _dig(value: Any, *keys: str) -> Any:
    """Follow mapping keys, returning None as soon as a step is missing."""
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _body(raw: Any) -> Any:
    """Unwrap the {code, msg, data} envelope when present."""
    data = _dig(raw, "data")
    return data if isinstance(data, Mapping) else raw


# ---------------------------------------------------------------------------
# Strategies (order is the contract)
# ---------------------------------------------------------------------------

def _status_top_level(raw: Any) -> Any:
    return _dig(_body(raw), "status")


def _status_nested_response(raw: Any) -> Any:
    return _dig(_body(raw), "response", "status")


STATUS_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("status", _status_top_level),
    ("response.status", _status_nested_response),
)


def _assets_response_suno_data(raw: Any) -> Any:
    return _dig(_body(raw), "response", "sunoData")


def _assets_suno_data(raw: Any) -> Any:
    return _dig(_body(raw), "sunoData")


def _assets_bare_response(raw: Any) -> Any:
    return _dig(_body(raw), "response")


def _assets_double_wrapped(raw: Any) -> Any:
    return _dig(_body(raw), "data", "response", "sunoData")


def _assets_data_data(raw: Any) -> Any:
    return _dig(raw, "data", "data", "sunoData")


def _assets_data_response(raw: Any) -> Any:
    return _dig(raw, "data", "response", "sunoData")


ASSET_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("response.sunoData", _assets_response_suno_data),
    ("sunoData", _assets_suno_data),
    ("response[]", _assets_bare_response),
    ("data.response.sunoData", _assets_double_wrapped),
    ("data.data.sunoData", _assets_data_data),
    ("data.response.sunoData (raw)", _assets_data_response),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_status(raw: Any) -> str:
    """Return the upper-cased upstream status, or UNKNOWN."""
    for name, strategy in STATUS_STRATEGIES:
        try:
            value = strategy(raw)
        except Exception:
            logger.debug("status strategy %s failed", name, exc_info=True)
            continue
        if isinstance(value, str) and value.strip():
            return value.strip().upper()
    return TaskStatus.UNKNOWN.value


def extract_assets(raw: Any) -> list[Any]:
    """Return the first per-track list found, or an empty list."""
    for name, strategy in ASSET_STRATEGIES:
        try:
            value = strategy(raw)
        except Exception:
            logger.debug("asset strategy %s failed", name, exc_info=True)
            continue
        if isinstance(value, list):
            return list(value)
    return []


def normalize(raw: Any) -> NormalizedResponse:
    """Normalize a raw record-info payload into (status, assets)."""
    return NormalizedResponse(status=extract_status(raw), assets=extract_assets(raw))
