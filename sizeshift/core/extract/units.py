"""Length unit normalization."""

import logging

logger = logging.getLogger(__name__)

MM_PER_UNIT: dict[str, float] = {
    "mm": 1.0,
    "millimeter": 1.0,
    "millimeters": 1.0,
    "millimetre": 1.0,
    "millimetres": 1.0,
    "ミリ": 1.0,
    "cm": 10.0,
    "centimeter": 10.0,
    "centimeters": 10.0,
    "centimetre": 10.0,
    "centimetres": 10.0,
    "センチ": 10.0,
    "in": 25.4,
    "inch": 25.4,
    "inches": 25.4,
    '"': 25.4,
    "″": 25.4,
}

# Unrecognized units are read as centimetres.
FALLBACK_UNIT = "cm"


def canonical_unit(unit: str | None) -> str | None:
    """Map a unit spelling to ``mm``, ``cm`` or ``in``; ``None`` if unknown."""
    key = str(unit or "").strip().lower().rstrip(".")
    factor = MM_PER_UNIT.get(key)
    if factor is None:
        return None
    return {1.0: "mm", 10.0: "cm", 25.4: "in"}[factor]


def convert_to_mm(value: float, unit: str | None) -> float:
    key = str(unit or "").strip().lower().rstrip(".")
    factor = MM_PER_UNIT.get(key)
    if factor is None:
        logger.warning("Unknown length unit %r, assuming %s", unit, FALLBACK_UNIT)
        factor = MM_PER_UNIT[FALLBACK_UNIT]
    return round(float(value) * factor, 3)


__all__ = ["FALLBACK_UNIT", "MM_PER_UNIT", "canonical_unit", "convert_to_mm"]
