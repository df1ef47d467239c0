# utils/common.py
import secrets
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union


GRIN_DISPLAY_PLACES = Decimal("0.00000001")


def generate_payment_reference(
    order_id: Union[str, int],
    now: Optional[float] = None,
    random_suffix: bool = False,
) -> str:
    """
    Build the payment reference for a checkout attempt.

    Format is GRIN-<order_id>-<unix_seconds>. Two attempts on the same order
    in the same second collide unless random_suffix is set, which appends
    eight hex characters.
    """
    timestamp = int(time.time() if now is None else now)
    reference = f"GRIN-{order_id}-{timestamp}"
    if random_suffix:
        reference = f"{reference}-{secrets.token_hex(4)}"
    return reference


def to_grin_amount(value: Union[Decimal, str, float, int]) -> Decimal:
    """Quantize an amount to 8 decimal places."""
    return Decimal(str(value)).quantize(GRIN_DISPLAY_PLACES, rounding=ROUND_HALF_UP)


def format_grin_amount(value: Union[Decimal, str, float, int]) -> str:
    """Format an amount with exactly 8 decimal places, e.g. 80.00000000"""
    return f"{to_grin_amount(value):.8f}"


def amount_within_tolerance(
    expected: Decimal, received: Decimal, tolerance: Decimal = Decimal("0")
) -> bool:
    """True when received covers expected, allowing a relative shortfall of tolerance."""
    return Decimal(received) >= Decimal(expected) * (Decimal(1) - Decimal(tolerance))
