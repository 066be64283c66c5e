from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable

from spanetlink.parsing.rf.extractors import get_bool_as_number, get_float, get_string
from spanetlink.parsing.rf.frame import ROW_TAGS, AttributeTable
from spanetlink.parsing.rf.model import PUMP_COUNT

TRANSFORMS: Dict[str, Callable[[AttributeTable, str, int], Any]] = {
    "string": get_string,
    "float": get_float,
    "bool": get_bool_as_number,
    "tenths": lambda table, tag, col: get_float(table, tag, col) / 10,
}

SCALAR_TARGETS = (
    "water_temperature",
    "target_temperature",
    "heating",
    "auto",
    "sanitising",
    "cleaning",
    "sleeping",
    "blower.mode",
    "blower.speed",
    "lights.active",
    "lights.mode",
    "lights.brightness",
    "lights.speed",
    "lights.colour",
    "settings.lock",
)
PUMP_FIELDS = ("active", "ok", "installed")
VALID_TARGETS = set(SCALAR_TARGETS) | {
    f"pump{pump_id}.{name}" for pump_id in range(1, PUMP_COUNT + 1) for name in PUMP_FIELDS
}


@dataclass(frozen=True)
class FieldMapping:
    target: str
    tag: str
    column: int
    transform: str = "float"

    def validate(self) -> None:
        if self.target not in VALID_TARGETS:
            raise ValueError(f"Unknown mapping target: {self.target}")
        if self.tag not in ROW_TAGS:
            raise ValueError(f"tag must be one of {list(ROW_TAGS)}")
        if self.column < 0:
            raise ValueError("column must be non-negative")
        if self.transform not in TRANSFORMS:
            raise ValueError(f"transform must be one of {sorted(TRANSFORMS)}")
        if self.target.endswith(".installed") != (self.transform == "string"):
            raise ValueError("the 'string' transform is for pump installed codes only, and they require it")

    def extract(self, table: AttributeTable) -> Any:
        return TRANSFORMS[self.transform](table, self.tag, self.column)


@dataclass
class AttributeMapping:
    """
    Where each ``SpaAttributes`` field lives in an RF frame.

    Columns have moved between firmware revisions; adapting to a new one means
    editing this table (or loading an override with ``from_dict``), never the
    decoder.
    """
    fields: Dict[str, FieldMapping] = field(default_factory=dict)

    @classmethod
    def from_rows(cls, rows: Iterable[FieldMapping]) -> "AttributeMapping":
        fields: Dict[str, FieldMapping] = {}
        for row in rows:
            row.validate()
            fields[row.target] = row
        return cls(fields=fields)

    @classmethod
    def from_dict(cls, data: dict | None, base: "AttributeMapping | None" = None) -> "AttributeMapping":
        fields = dict(base.fields) if base else {}
        for target, entry in (data or {}).items():
            if not isinstance(entry, dict):
                raise ValueError(f"Mapping for {target} must be an object")
            previous = fields.get(target)
            try:
                column = int(entry.get("column", previous.column if previous else -1))
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Mapping for {target} has an invalid column: {exc}") from exc
            row = FieldMapping(
                target=target,
                tag=entry.get("tag", previous.tag if previous else ""),
                column=column,
                transform=entry.get("transform", previous.transform if previous else "float"),
            )
            row.validate()
            fields[target] = row
        return cls(fields=fields)

    @classmethod
    def from_json_file(cls, path: str | Path, base: "AttributeMapping | None" = None) -> "AttributeMapping":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Mapping file {path} must contain a JSON object")
        return cls.from_dict(data, base=base if base is not None else DEFAULT_MAPPING)

    def with_row(self, row: FieldMapping) -> "AttributeMapping":
        row.validate()
        return AttributeMapping(fields={**self.fields, row.target: row})

    def move(self, target: str, column: int) -> "AttributeMapping":
        return self.with_row(replace(self.fields[target], column=column))

    def resolve(self, table: AttributeTable) -> dict[str, Any]:
        return {target: row.extract(table) for target, row in self.fields.items()}

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return {
            target: {"tag": row.tag, "column": row.column, "transform": row.transform}
            for target, row in self.fields.items()
        }


# Heating and auto share R5[11], lights colour shares R6[1] with brightness and
# pump 3 shares R5[19] with pump 2. Pump 1 has no known "ok" column.
DEFAULT_MAPPING = AttributeMapping.from_rows(
    [
        FieldMapping("water_temperature", "R5", 14, "tenths"),
        FieldMapping("target_temperature", "R6", 7, "tenths"),
        FieldMapping("heating", "R5", 11, "bool"),
        FieldMapping("auto", "R5", 11, "bool"),
        FieldMapping("sanitising", "R5", 15, "bool"),
        FieldMapping("cleaning", "R5", 10, "bool"),
        FieldMapping("sleeping", "R5", 9, "bool"),
        FieldMapping("blower.mode", "RC", 9),
        FieldMapping("blower.speed", "R6", 0),
        FieldMapping("lights.active", "R5", 13, "bool"),
        FieldMapping("lights.mode", "R6", 3),
        FieldMapping("lights.brightness", "R6", 1),
        FieldMapping("lights.speed", "R6", 4),
        FieldMapping("lights.colour", "R6", 1),
        FieldMapping("pump1.installed", "RG", 6, "string"),
        FieldMapping("pump1.active", "R5", 17, "bool"),
        FieldMapping("pump2.installed", "RG", 7, "string"),
        FieldMapping("pump2.active", "R5", 19, "bool"),
        FieldMapping("pump2.ok", "RG", 1, "bool"),
        FieldMapping("pump3.installed", "RG", 8, "string"),
        FieldMapping("pump3.active", "R5", 19, "bool"),
        FieldMapping("pump3.ok", "RG", 2, "bool"),
        FieldMapping("pump4.installed", "RG", 9, "string"),
        FieldMapping("pump4.active", "R5", 20, "bool"),
        FieldMapping("pump4.ok", "RG", 3, "bool"),
        FieldMapping("pump5.installed", "RG", 10, "string"),
        FieldMapping("pump5.active", "R5", 21, "bool"),
        FieldMapping("pump5.ok", "RG", 4, "bool"),
        FieldMapping("settings.lock", "RG", 11),
    ]
)


__all__ = ["FieldMapping", "AttributeMapping", "DEFAULT_MAPPING", "TRANSFORMS", "VALID_TARGETS"]
