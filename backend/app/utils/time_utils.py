"""
PURPOSE: Time and identifier helpers shared by the lifecycle engine and chain backend.
"""

import random
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4


def get_utc_now() -> datetime:
    """
    PURPOSE: Return the current UTC time as a timezone-aware datetime object.

    Returns:
        datetime: Current UTC time with timezone info.
    """
    return datetime.now(timezone.utc)


def new_record_id(prefix: str) -> str:
    """
    PURPOSE: Build a unique record identifier such as "strategy-3f9c0a7e1b2d".

    Args:
        prefix: Leading label ("strategy", "subscribed", "draft").

    Returns:
        str: Prefix joined with 12 hex characters.
    """
    return f"{prefix}-{uuid4().hex[:12]}"


def random_hex(length: int, rng: Optional[random.Random] = None) -> str:
    """Return `length` lowercase hex digits prefixed with 0x."""
    rng = rng or random
    return "0x" + "".join(rng.choice("0123456789abcdef") for _ in range(length))
