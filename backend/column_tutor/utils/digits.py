"""
digits.py — place-value helpers shared by generation, decomposition and grading.

All lists are ordered units-first (index 0 = ones place).
"""


def digits_low_to_high(n: int) -> list[int]:
    """
    Examples:
        352 → [2, 5, 3]
        7   → [7]
        0   → [0]
    """
    return [int(ch) for ch in reversed(str(n))]


def digits_high_to_low(n: int) -> list[int]:
    return [int(ch) for ch in str(n)]


def digit_count(n: int) -> int:
    return len(str(n))


def requires_borrowing(num1: int, num2: int) -> bool:
    """True if any aligned column of num1 - num2 has a smaller top digit."""
    top = digits_low_to_high(num1)
    bottom = digits_low_to_high(num2)
    for i, d2 in enumerate(bottom):
        d1 = top[i] if i < len(top) else 0
        if d1 < d2:
            return True
    return False
