"""
Operand generation per operation and difficulty tier.

Never fails: each operation either samples directly or, for borrow-free
subtraction, retries a bounded number of times before falling back to a
deterministic pair.
"""
from __future__ import annotations

import random
from typing import Optional

from column_tutor.models.problem import TIER_RANGES
from column_tutor.skills.registry import get_contract


def operand_range(tier: str) -> tuple[int, int]:
    if tier not in TIER_RANGES:
        raise ValueError(f"Unknown difficulty tier: {tier!r}")
    return TIER_RANGES[tier]


def generate_operands(
    operation: str,
    tier: str,
    include_borrowing: Optional[bool] = None,
    rng: Optional[random.Random] = None,
) -> tuple[int, int]:
    """
    Returns (num1, num2). For divide, num1 is the dividend and num2 the divisor;
    for multiply, num2 is the single-digit multiplier.
    """
    rng = rng or random.Random()
    contract = get_contract(operation)
    return contract.build_operands(rng, operand_range(tier), include_borrowing)
