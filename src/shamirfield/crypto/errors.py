"""
Failure types raised by the secret sharing engine.

All of them are input-contract violations, so they derive from ValueError
and are never retried or recovered internally.
"""


class SharingError(ValueError):
    """Base class for every engine failure."""


class UnsupportedBitWidth(SharingError):
    """No fixed prime exists for the width, or the width is too small."""


class SecretOutOfRange(SharingError):
    """Secret is negative or not below the modulus."""


class ThresholdTooSmall(SharingError):
    """Threshold below 2."""


class ThresholdTooLarge(SharingError):
    """Threshold above 255."""


class InvalidSharePoint(SharingError):
    """A share x-coordinate is zero modulo the prime."""


class DuplicateSharePoint(SharingError):
    """Two share x-coordinates collide modulo the prime."""


class NotInvertible(SharingError):
    """gcd(a, modulus) != 1, so a has no modular inverse."""


class NotEnoughShares(SharingError):
    """Fewer than two shares were handed to the reconstructor."""


class SessionClosed(SharingError):
    """The session's polynomial has already been discarded."""
