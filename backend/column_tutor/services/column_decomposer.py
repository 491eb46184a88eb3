from column_tutor.models.problem import MathColumn
from column_tutor.skills.registry import get_contract


def decompose(num1: int, num2: int, operation: str) -> tuple[MathColumn, ...]:
    """Column model for num1 <op> num2, index 0 = units column."""
    return get_contract(operation).decompose(num1, num2)
