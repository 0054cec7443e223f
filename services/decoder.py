"""Schema-validated decoding of realtime store payloads.

Each decoder is total: malformed fields are reported as rejections and
treated as absent rather than raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, Any, Generic, List, Mapping, Optional, TypeVar

from pydantic import Field, StrictBool, StrictStr, TypeAdapter, ValidationError

from models.records import ControlState, SensorReadings, UNKNOWN_PUMP_STATUS

logger = logging.getLogger(__name__)

T = TypeVar("T")

_Number = TypeAdapter(Annotated[float, Field(strict=True, allow_inf_nan=False)])
_Bool = TypeAdapter(StrictBool)
_Text = TypeAdapter(StrictStr)


@dataclass(slots=True)
class FieldRejection:
    field: str
    reason: str


@dataclass
class DecodeResult(Generic[T]):
    value: T
    rejected: List[FieldRejection] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.rejected)


def _field(
    payload: Mapping[str, Any],
    name: str,
    adapter: TypeAdapter,
    rejected: List[FieldRejection],
) -> Any:
    if name not in payload or payload[name] is None:
        return None
    try:
        return adapter.validate_python(payload[name])
    except ValidationError as exc:
        rejected.append(FieldRejection(field=name, reason=exc.errors()[0]["msg"]))
        return None


def _as_mapping(raw: Any, rejected: List[FieldRejection], name: str) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return raw
    rejected.append(FieldRejection(field=name, reason="expected an object"))
    return {}


def _log_rejections(path: str, rejected: List[FieldRejection]) -> None:
    for rejection in rejected:
        logger.warning(
            "Treating malformed feed field as absent",
            extra={"path": path, "field": rejection.field, "reason": rejection.reason},
        )


def decode_sensor_data(
    raw: Any, previous_pump_status: str = UNKNOWN_PUMP_STATUS
) -> DecodeResult[SensorReadings]:
    """Decode ``irrigation/data``; a malformed pump status keeps the previous one."""
    rejected: List[FieldRejection] = []
    payload = _as_mapping(raw, rejected, "data")
    pump_status = _field(payload, "pumpStatus", _Text, rejected)
    readings = SensorReadings(
        temperature=_field(payload, "temperature", _Number, rejected),
        humidity=_field(payload, "humidity", _Number, rejected),
        soil=_field(payload, "soil", _Number, rejected),
        pump_status=previous_pump_status if pump_status is None else pump_status,
    )
    _log_rejections("irrigation/data", rejected)
    return DecodeResult(value=readings, rejected=rejected)


def decode_control(raw: Any) -> DecodeResult[ControlState]:
    """Decode ``irrigation/control``; absent or malformed flags read as off."""
    rejected: List[FieldRejection] = []
    payload = _as_mapping(raw, rejected, "control")
    auto = _field(payload, "auto", _Bool, rejected)
    manual = _field(payload, "manualPump", _Bool, rejected)
    _log_rejections("irrigation/control", rejected)
    return DecodeResult(
        value=ControlState(auto=bool(auto), manual_pump=bool(manual)),
        rejected=rejected,
    )


def decode_last_seen(raw: Any) -> DecodeResult[Optional[int]]:
    rejected: List[FieldRejection] = []
    value = _field({"lastSeen": raw}, "lastSeen", _Number, rejected)
    _log_rejections("irrigation/status/lastSeen", rejected)
    return DecodeResult(value=None if value is None else int(value), rejected=rejected)
