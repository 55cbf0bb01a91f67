from enum import Enum


class ProductUnit(str, Enum):
    """
    Units a product's stock is counted in.
    """

    PIECE = "piece"
    KG = "kg"
    GRAM = "gram"
    LITER = "liter"
    ML = "ml"
    DOZEN = "dozen"
    PACK = "pack"
    BUNDLE = "bundle"
    METER = "meter"
    YARD = "yard"

    @classmethod
    def from_string(cls, value: str) -> 'ProductUnit':
        normalized = value.strip().lower()
        for unit in cls:
            if unit.value == normalized:
                return unit
        valid = ", ".join(u.value for u in cls)
        raise ValueError(f"Invalid unit: '{value}'. Valid units: {valid}")
