from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any

from ..concierge_service import ConciergeService, concierge_service


def get_concierge_service() -> ConciergeService:
    return concierge_service


def to_payload(value: Any) -> Any:
    """Dataclass results (or lists of them) as plain JSON-ready dicts."""
    if value is None:
        return None
    if isinstance(value, list):
        return [to_payload(item) for item in value]
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value
