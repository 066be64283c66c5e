from spanetlink.parsing.rf.decode import build_spa_attributes, decode_rf_frame
from spanetlink.parsing.rf.extractors import get_bool_as_number, get_float, get_string
from spanetlink.parsing.rf.frame import (
    ROW_TAGS,
    AttributeTable,
    DecodeError,
    MalformedFrameError,
    ends_on_row_boundary,
    is_frame_complete,
    parse,
)
from spanetlink.parsing.rf.mapping import DEFAULT_MAPPING, AttributeMapping, FieldMapping
from spanetlink.parsing.rf.model import (
    BlowerAttributes,
    LightsAttributes,
    PumpAttributes,
    SpaAttributes,
    SpaSettings,
)

__all__ = [
    "AttributeMapping",
    "AttributeTable",
    "BlowerAttributes",
    "DEFAULT_MAPPING",
    "DecodeError",
    "FieldMapping",
    "LightsAttributes",
    "MalformedFrameError",
    "PumpAttributes",
    "ROW_TAGS",
    "SpaAttributes",
    "SpaSettings",
    "build_spa_attributes",
    "decode_rf_frame",
    "ends_on_row_boundary",
    "get_bool_as_number",
    "get_float",
    "get_string",
    "is_frame_complete",
    "parse",
]
