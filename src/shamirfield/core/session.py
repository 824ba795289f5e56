"""
Sharing session: binds a modulus, a threshold and one secret polynomial.

A session is the dealer side of the scheme. It owns the polynomial from
creation until close(); after that only the modulus and threshold remain,
which is everything a holder needs to carry alongside the shares.

Reconstruction does not need a session:

    >>> with create_session(256, True, threshold=3, secret=25) as session:
    ...     shares = session.generate_shares([4, 16, 13, 1, 12, 7])
    ...     prime = session.modulus
    >>> reconstruct_secret(prime, [shares[5], shares[0], shares[4]])
    25
"""

import logging
import random
from typing import Iterable, Optional, Union

from ..crypto.errors import SecretOutOfRange, SessionClosed
from ..crypto.field import BitSize, check_bit_width, select_modulus
from ..crypto.shamir import (
    Share,
    generate_shares,
    new_polynomial,
    reconstruct_secret,
    validate_secret,
    validate_threshold,
)


logger = logging.getLogger(__name__)

__all__ = ["Session", "create_session", "reconstruct_secret"]


class Session:
    """
    Dealer state for one secret.

    The polynomial is immutable once built, so concurrent generate_shares()
    calls on one open session are safe. close() must not race with them.
    """

    def __init__(self, modulus: int, threshold: int, coefficients: tuple[int, ...]):
        self._modulus = modulus
        self._threshold = threshold
        self._coefficients: Optional[tuple[int, ...]] = coefficients

    @property
    def modulus(self) -> int:
        """Prime to transmit with the shares; reconstruction needs it."""
        return self._modulus

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def closed(self) -> bool:
        return self._coefficients is None

    def generate_shares(self, points: Iterable[int]) -> list[Share]:
        """
        Issue one share per point, in the given order.

        Raises:
            SessionClosed: If close() was already called
            InvalidSharePoint: If a point is zero mod the prime
            DuplicateSharePoint: If two points collide mod the prime
        """
        if self._coefficients is None:
            raise SessionClosed("Session is closed; its polynomial was discarded")
        return generate_shares(self._coefficients, points, self._modulus)

    def close(self) -> None:
        """Discard the polynomial. Holding it is equivalent to holding the secret."""
        if self._coefficients is not None:
            logger.debug("Discarding degree-%d polynomial", self._threshold - 1)
        self._coefficients = None

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return (
            f"Session(bits={self._modulus.bit_length()}, "
            f"threshold={self._threshold}, {state})"
        )


def create_session(
    bit_width: Union[BitSize, int],
    use_fixed_prime: bool,
    threshold: int,
    secret: int,
    rng: Optional[random.Random] = None,
) -> Session:
    """
    Select a modulus and build the secret polynomial.

    Threshold, width and secret are validated before a prime is generated
    and before any coefficient is drawn.

    Args:
        bit_width: Field width (BitSize or integer)
        use_fixed_prime: Use the published prime for the width instead of
            generating one
        threshold: Shares needed to reconstruct (2..255)
        secret: Integer in [0, modulus)
        rng: Coefficient source for tests; defaults to the OS CSPRNG

    Raises:
        ThresholdTooSmall, ThresholdTooLarge, SecretOutOfRange,
        UnsupportedBitWidth
    """
    validate_threshold(threshold)

    width = check_bit_width(bit_width, use_fixed_prime)
    if secret < 0 or secret.bit_length() > width:
        raise SecretOutOfRange(f"Secret does not fit in a {width}-bit field")

    modulus = select_modulus(bit_width, use_fixed_prime)
    validate_secret(secret, modulus)

    coefficients = new_polynomial(secret, threshold, modulus, rng=rng)
    logger.debug(
        "Created session: %d-bit %s prime, threshold %d",
        modulus.bit_length(),
        "fixed" if use_fixed_prime else "generated",
        threshold,
    )
    return Session(modulus, threshold, coefficients)
