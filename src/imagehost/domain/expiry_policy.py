"""Expiry policy calculations.

A resource is created with one of three policies:

* ``never`` - no expiry at all;
* ``fixed(duration)`` - expires ``duration`` after creation;
* ``on-open`` - the countdown starts when the share link is first opened.
  The window applied at that moment is a per-family constant owned by the
  open-trigger handler, not part of the upload request.

The helpers here are pure; validation of user input happens in
:func:`parse_expiry_option` so that non-positive durations never reach
:func:`calculate_initial_expiry`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from ..exceptions import InvalidExpiryError


class PolicyKind(str, Enum):
    NEVER = "never"
    FIXED = "fixed"
    ON_OPEN = "on-open"


@dataclass(frozen=True, slots=True)
class ExpiryPolicy:
    kind: PolicyKind
    duration: timedelta | None = None

    @classmethod
    def never(cls) -> "ExpiryPolicy":
        return cls(PolicyKind.NEVER)

    @classmethod
    def fixed(cls, duration: timedelta) -> "ExpiryPolicy":
        if duration <= timedelta(0):
            raise InvalidExpiryError("fixed expiry duration must be positive")
        return cls(PolicyKind.FIXED, duration)

    @classmethod
    def on_open(cls) -> "ExpiryPolicy":
        return cls(PolicyKind.ON_OPEN)


@dataclass(frozen=True, slots=True)
class InitialExpiry:
    expires_at: datetime | None
    expires_on_open: bool


PRESET_DURATIONS: dict[str, timedelta] = {
    "1-hour": timedelta(hours=1),
    "1-day": timedelta(days=1),
    "3-days": timedelta(days=3),
    "7-days": timedelta(days=7),
}


def parse_expiry_option(option: str | None, *, duration_seconds: int | None = None) -> ExpiryPolicy:
    """Translate an upload form selection into an :class:`ExpiryPolicy`.

    ``duration_seconds`` wins over ``option`` when both are present.
    """

    if duration_seconds is not None:
        if duration_seconds <= 0:
            raise InvalidExpiryError("duration_seconds must be positive")
        return ExpiryPolicy.fixed(timedelta(seconds=duration_seconds))

    normalized = (option or PolicyKind.NEVER.value).strip().lower()
    if normalized == PolicyKind.NEVER.value:
        return ExpiryPolicy.never()
    if normalized == PolicyKind.ON_OPEN.value:
        return ExpiryPolicy.on_open()
    try:
        return ExpiryPolicy.fixed(PRESET_DURATIONS[normalized])
    except KeyError:
        raise InvalidExpiryError(f"unknown expiry option '{option}'") from None


def calculate_initial_expiry(policy: ExpiryPolicy, created_at: datetime) -> InitialExpiry:
    """Return the ``(expires_at, expires_on_open)`` pair stored at creation."""

    if policy.kind is PolicyKind.FIXED:
        assert policy.duration is not None
        return InitialExpiry(expires_at=created_at + policy.duration, expires_on_open=False)
    if policy.kind is PolicyKind.ON_OPEN:
        return InitialExpiry(expires_at=None, expires_on_open=True)
    return InitialExpiry(expires_at=None, expires_on_open=False)


def calculate_open_expiry(opened_at: datetime, *, window_seconds: int) -> datetime:
    """Return ``opened_at + window`` for an on-open resource."""

    if window_seconds <= 0:
        raise ValueError("window_seconds must be positive")
    return opened_at + timedelta(seconds=window_seconds)


__all__ = [
    "PolicyKind",
    "ExpiryPolicy",
    "InitialExpiry",
    "PRESET_DURATIONS",
    "parse_expiry_option",
    "calculate_initial_expiry",
    "calculate_open_expiry",
]
