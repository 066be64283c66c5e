from __future__ import annotations

from typing import Any

from spanetlink.parsing.rf.frame import AttributeTable, parse
from spanetlink.parsing.rf.mapping import DEFAULT_MAPPING, AttributeMapping
from spanetlink.parsing.rf.model import (
    PUMP_COUNT,
    BlowerAttributes,
    LightsAttributes,
    PumpAttributes,
    SpaAttributes,
    SpaSettings,
)


def _number(values: dict[str, Any], target: str) -> float:
    return float(values.get(target, 0.0))


def build_spa_attributes(table: AttributeTable, mapping: AttributeMapping | None = None) -> SpaAttributes:
    values = (mapping or DEFAULT_MAPPING).resolve(table)
    pumps = tuple(
        PumpAttributes(
            id=pump_id,
            active=_number(values, f"pump{pump_id}.active"),
            ok=_number(values, f"pump{pump_id}.ok"),
            installed=str(values.get(f"pump{pump_id}.installed", "")),
        )
        for pump_id in range(1, PUMP_COUNT + 1)
    )
    return SpaAttributes(
        water_temperature=_number(values, "water_temperature"),
        target_temperature=_number(values, "target_temperature"),
        heating=_number(values, "heating"),
        auto=_number(values, "auto"),
        sanitising=_number(values, "sanitising"),
        cleaning=_number(values, "cleaning"),
        sleeping=_number(values, "sleeping"),
        blower=BlowerAttributes(
            mode=_number(values, "blower.mode"),
            speed=_number(values, "blower.speed"),
        ),
        lights=LightsAttributes(
            active=_number(values, "lights.active"),
            mode=_number(values, "lights.mode"),
            brightness=_number(values, "lights.brightness"),
            speed=_number(values, "lights.speed"),
            colour=_number(values, "lights.colour"),
        ),
        pumps=pumps,
        settings=SpaSettings(lock=_number(values, "settings.lock")),
    )


def decode_rf_frame(raw: bytes | str, mapping: AttributeMapping | None = None) -> SpaAttributes:
    return build_spa_attributes(parse(raw), mapping)
