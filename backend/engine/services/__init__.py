from .hierarchy import (
    grand_total,
    initialize,
    recompute_subtotals,
    round_half_up,
    set_value,
    subtotal_of,
    variance_of,
)
from .allocation import (
    allocate_percentage,
    allocate_value,
    percentage_to_value,
)

__all__ = [
    "allocate_percentage",
    "allocate_value",
    "grand_total",
    "initialize",
    "percentage_to_value",
    "recompute_subtotals",
    "round_half_up",
    "set_value",
    "subtotal_of",
    "variance_of",
]
