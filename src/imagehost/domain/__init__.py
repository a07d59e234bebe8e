"""Pure domain logic."""

from .expiry_policy import (
    ExpiryPolicy,
    InitialExpiry,
    PolicyKind,
    calculate_initial_expiry,
    calculate_open_expiry,
    parse_expiry_option,
)

__all__ = [
    "ExpiryPolicy",
    "InitialExpiry",
    "PolicyKind",
    "calculate_initial_expiry",
    "calculate_open_expiry",
    "parse_expiry_option",
]
