"""Errors raised by the waitlist core. Routers translate them to HTTP responses."""

from __future__ import annotations


class WaitlistError(Exception):
    """Base class for waitlist domain errors."""


class InvalidEmailError(WaitlistError, ValueError):
    """Raised when an email is missing or malformed, before any store write."""


class DuplicateEmailError(WaitlistError):
    """Raised when signing up an email that is already on the waitlist."""


class EntryNotFoundError(WaitlistError, LookupError):
    """Raised when no waitlist entry matches an email or id."""


class TaskNotFoundError(WaitlistError, LookupError):
    """Raised when a task id or reserved task type is not in the catalog."""


class ReferralNotFoundError(WaitlistError, LookupError):
    """Raised when a referral code does not belong to any entry."""
