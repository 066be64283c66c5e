from __future__ import annotations

from dataclasses import dataclass, field

PUMP_COUNT = 5


@dataclass(frozen=True)
class PumpAttributes:
    id: int
    active: float = 0.0
    ok: float = 0.0
    # Raw "<installed>-<speed-type>-<states>" code, not interpreted.
    installed: str = ""


@dataclass(frozen=True)
class BlowerAttributes:
    mode: float = 0.0
    speed: float = 0.0


@dataclass(frozen=True)
class LightsAttributes:
    active: float = 0.0
    mode: float = 0.0
    brightness: float = 0.0
    speed: float = 0.0
    colour: float = 0.0


@dataclass(frozen=True)
class SpaSettings:
    lock: float = 0.0


def _default_pumps() -> tuple[PumpAttributes, ...]:
    return tuple(PumpAttributes(id=pump_id) for pump_id in range(1, PUMP_COUNT + 1))


@dataclass(frozen=True)
class SpaAttributes:
    """
    Typed snapshot of one RF status frame.

    Boolean states are exposed as ``0.0`` / ``1.0`` so every field can be
    published as a gauge. Temperatures are in degrees Celsius.
    """
    water_temperature: float = 0.0
    target_temperature: float = 0.0
    heating: float = 0.0
    auto: float = 0.0
    sanitising: float = 0.0
    cleaning: float = 0.0
    sleeping: float = 0.0
    blower: BlowerAttributes = field(default_factory=BlowerAttributes)
    lights: LightsAttributes = field(default_factory=LightsAttributes)
    pumps: tuple[PumpAttributes, ...] = field(default_factory=_default_pumps)
    settings: SpaSettings = field(default_factory=SpaSettings)

    def pump(self, pump_id: int) -> PumpAttributes:
        for pump in self.pumps:
            if pump.id == pump_id:
                return pump
        raise KeyError(f"No pump {pump_id}")
