"""Economy Engine - Pure logic for XP, gold and health arithmetic.

This engine provides stateless, pure Python functions for:
- Sufficient funds validation (NSF checks)
- Credits and floored deductions on the player's meters
- Health adjustments bounded to [MIN_HEALTH, MAX_HEALTH]

ARCHITECTURE: All functions are static methods that operate on passed-in
values. Reducers own the state document and write the results back.
"""

from __future__ import annotations

from .. import const
from ..utils.math_utils import clamp, floored_subtract


class InsufficientFundsError(Exception):
    """Raised when a purchase would result in a negative gold balance.

    Attributes:
        current_balance: Current gold balance
        requested_amount: Amount attempted to spend
        shortfall: How much more is needed (requested - current)
    """

    def __init__(self, current_balance: int, requested_amount: int) -> None:
        """Initialize InsufficientFundsError."""
        self.current_balance = current_balance
        self.requested_amount = requested_amount
        self.shortfall = requested_amount - current_balance
        super().__init__(
            f"Insufficient gold: balance={current_balance}, "
            f"requested={requested_amount}, shortfall={self.shortfall}"
        )


class EconomyEngine:
    """Pure logic engine for the player's meters.

    All methods are static - no instance state.

    Meters:
        - totalXp: never below 0, only reduced by penalties and undo
        - gold: never below 0, purchases rejected on NSF
        - health: bounded to [MIN_HEALTH, MAX_HEALTH]
    """

    @staticmethod
    def validate_sufficient_funds(balance: int, cost: int) -> bool:
        """Check if balance is sufficient for a withdrawal.

        Returns:
            True if balance >= cost, False otherwise (NSF)
        """
        return balance >= cost

    @staticmethod
    def withdraw(balance: int, cost: int) -> int:
        """Spend gold, raising InsufficientFundsError when balance < cost.

        Returns:
            New balance
        """
        if not EconomyEngine.validate_sufficient_funds(balance, cost):
            raise InsufficientFundsError(balance, cost)
        return balance - cost

    @staticmethod
    def credit(balance: int, amount: int) -> int:
        """Add a non-negative amount to a meter."""
        return balance + max(const.DEFAULT_ZERO, amount)

    @staticmethod
    def deduct_floored(balance: int, amount: int) -> tuple[int, int]:
        """Deduct from a meter without going below zero.

        Returns:
            Tuple of (new_balance, amount_actually_deducted). The applied
            amount is stored on log entries so undo restores exactly it.
        """
        return floored_subtract(balance, amount, const.DEFAULT_ZERO)

    @staticmethod
    def damage_health(health: int, amount: int) -> tuple[int, int]:
        """Reduce health, floored at MIN_HEALTH.

        Returns:
            Tuple of (new_health, amount_actually_removed)
        """
        return floored_subtract(health, amount, const.MIN_HEALTH)

    @staticmethod
    def heal(health: int, amount: int) -> int:
        """Restore health, capped at MAX_HEALTH."""
        return int(clamp(health + amount, const.MIN_HEALTH, const.MAX_HEALTH))
