from gym_admin.domain.memberships.expiration import (
    add_months,
    compute_expiration,
    days_remaining,
    normalize_date,
)

__all__ = [
    "add_months",
    "compute_expiration",
    "days_remaining",
    "normalize_date",
]
