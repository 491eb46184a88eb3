"""Read-only skill registry — maps operation to contract instance."""

from .base import SkillContract
from .column_addition import ColumnAdditionContract
from .column_subtraction import ColumnSubtractionContract
from .short_division import ShortDivisionContract
from .short_multiplication import ShortMultiplicationContract

SKILL_REGISTRY: dict[str, SkillContract] = {
    "add": ColumnAdditionContract(),
    "subtract": ColumnSubtractionContract(),
    "multiply": ShortMultiplicationContract(),
    "divide": ShortDivisionContract(),
}


def get_contract(operation: str) -> SkillContract:
    contract = SKILL_REGISTRY.get(operation)
    if contract is None:
        raise ValueError(f"Unsupported operation: {operation!r}")
    return contract
