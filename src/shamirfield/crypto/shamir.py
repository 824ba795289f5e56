"""
Shamir Secret Sharing over a prime field GF(p).

This module implements (t, n) threshold secret sharing where:
- A secret S becomes the constant term of a random polynomial of degree t - 1
- Shares are evaluations of that polynomial at caller-chosen points x != 0
- Any t shares reconstruct S; fewer than t reveal nothing about it

Mathematical Basis:
    f(x) = a_0 + a_1*x + ... + a_{t-1}*x^{t-1}  (mod p),  a_0 = S
    S = f(0) = sum_i y_i * prod_{j != i} (-x_j) / (x_i - x_j)  (mod p)

IMPORTANT: the reconstructor cannot tell whether it was given enough shares.
With fewer than t shares it still returns a value, deterministically derived
from the inputs and unrelated to the secret. Callers must track and enforce
the threshold themselves.

Reference:
    Shamir, A. (1979). "How to share a secret". Communications of the ACM.
"""

import logging
import random
import secrets
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .arith import mod_inverse
from .errors import (
    DuplicateSharePoint,
    InvalidSharePoint,
    NotEnoughShares,
    SecretOutOfRange,
    ThresholdTooLarge,
    ThresholdTooSmall,
)


logger = logging.getLogger(__name__)

MIN_THRESHOLD = 2

# Thresholds are carried in a single byte.
MAX_THRESHOLD = 255


@dataclass(frozen=True)
class Share:
    """
    A single share in the secret sharing scheme.

    Attributes:
        x: The x-coordinate (evaluation point). Non-zero modulo the prime.
        y: The y-coordinate (polynomial evaluation at x).
    """

    x: int
    y: int

    def to_bytes(self, size: int) -> bytes:
        """
        Serialize share to binary format.

        Format: size bytes (x, big-endian) + size bytes (y, big-endian).
        Use the byte length of the modulus for size.
        """
        return self.x.to_bytes(size, byteorder="big") + self.y.to_bytes(
            size, byteorder="big"
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "Share":
        """
        Deserialize share from binary format.

        Raises:
            ValueError: If data is empty or has odd length
        """
        if not data or len(data) % 2:
            raise ValueError(f"Share data must have even length, got {len(data)}")
        half = len(data) // 2
        x = int.from_bytes(data[:half], byteorder="big")
        y = int.from_bytes(data[half:], byteorder="big")
        return cls(x=x, y=y)

    def __str__(self) -> str:
        return f"{self.x}-{self.y:x}"

    @classmethod
    def parse(cls, text: str) -> "Share":
        """
        Parse the textual form produced by str(share): "<x decimal>-<y hex>".

        Raises:
            ValueError: If text is malformed
        """
        x_part, sep, y_part = text.strip().partition("-")
        if not sep or not x_part or not y_part:
            raise ValueError(f"Malformed share: {text!r}")
        return cls(x=int(x_part, 10), y=int(y_part, 16))


def validate_threshold(threshold: int) -> None:
    """
    Raises:
        ThresholdTooSmall: threshold < 2
        ThresholdTooLarge: threshold > 255
    """
    if threshold < MIN_THRESHOLD:
        raise ThresholdTooSmall(
            f"Threshold must be at least {MIN_THRESHOLD}, got {threshold}"
        )
    if threshold > MAX_THRESHOLD:
        raise ThresholdTooLarge(
            f"Threshold must be at most {MAX_THRESHOLD}, got {threshold}"
        )


def validate_secret(secret: int, modulus: int) -> None:
    """
    Raises:
        SecretOutOfRange: Unless 0 <= secret < modulus
    """
    if not 0 <= secret < modulus:
        # Never echo the secret itself.
        raise SecretOutOfRange(
            f"Secret must be in range [0, modulus - 1] for a "
            f"{modulus.bit_length()}-bit modulus"
        )


def validate_points(xs: Iterable[int], modulus: int) -> list[int]:
    """
    Check evaluation points before any of them is used.

    Args:
        xs: Candidate x-coordinates
        modulus: Prime modulus

    Returns:
        The points reduced into [1, modulus), in input order

    Raises:
        InvalidSharePoint: If a point is 0 mod modulus (f(0) is the secret)
        DuplicateSharePoint: If two points are equal mod modulus
    """
    seen: set[int] = set()
    reduced = []

    for x in xs:
        x_mod = x % modulus
        if x_mod == 0:
            raise InvalidSharePoint(f"Share point {x} is zero modulo the prime")
        if x_mod in seen:
            raise DuplicateSharePoint(f"Share point {x} is repeated modulo the prime")
        seen.add(x_mod)
        reduced.append(x_mod)

    return reduced


def new_polynomial(
    secret: int,
    threshold: int,
    modulus: int,
    rng: Optional[random.Random] = None,
) -> tuple[int, ...]:
    """
    Generate a random polynomial with the secret as constant term.

    The polynomial has degree exactly (threshold - 1). Higher coefficients are
    uniform in [0, modulus); a zero leading coefficient is kept as drawn.

    Args:
        secret: The secret value to hide (becomes coefficient a_0)
        threshold: Number of shares needed for reconstruction
        modulus: The prime defining the finite field
        rng: Coefficient source. Defaults to the OS CSPRNG; anything else is
            for tests only.

    Returns:
        Coefficients (a_0, a_1, ..., a_{t-1}) where a_0 = secret

    Raises:
        ThresholdTooSmall, ThresholdTooLarge, SecretOutOfRange
    """
    validate_threshold(threshold)
    validate_secret(secret, modulus)

    if rng is None:
        rng = secrets.SystemRandom()

    coefficients = [secret]
    coefficients.extend(rng.randrange(modulus) for _ in range(threshold - 1))

    return tuple(coefficients)


def evaluate(coefficients: Sequence[int], x: int, modulus: int) -> int:
    """
    Evaluate polynomial at point x using Horner's method.

    f(x) = a_0 + x*(a_1 + x*(a_2 + ...)), reduced at every step so
    intermediate values never exceed modulus^2.

    Args:
        coefficients: Polynomial coefficients [a_0, a_1, ..., a_{t-1}]
        x: Point at which to evaluate
        modulus: Modulus for finite field arithmetic

    Returns:
        f(x) mod modulus
    """
    result = 0

    for coeff in reversed(coefficients):
        result = (result * x + coeff) % modulus

    return result


def generate_shares(
    coefficients: Sequence[int], xs: Iterable[int], modulus: int
) -> list[Share]:
    """
    Evaluate the polynomial at every point in xs.

    All points are validated before the first evaluation, so a bad point
    list yields an error and no shares.

    Returns:
        One Share per point, in input order

    Raises:
        InvalidSharePoint, DuplicateSharePoint
    """
    points = validate_points(xs, modulus)
    shares = [Share(x=x, y=evaluate(coefficients, x, modulus)) for x in points]

    logger.debug(
        "Issued %d shares from a degree-%d polynomial",
        len(shares),
        len(coefficients) - 1,
    )
    return shares


def reconstruct_secret(modulus: int, shares: Sequence[Share]) -> int:
    """
    Reconstruct secret from shares using Lagrange interpolation at x = 0.

        f(0) = sum_i y_i * L_i(0),   L_i(0) = prod_{j != i} (-x_j) / (x_i - x_j)

    The result is only the secret if at least threshold shares of the same
    polynomial are supplied. That cannot be checked here: with fewer shares a
    meaningless value is returned without error.

    Args:
        modulus: Prime the shares were issued under
        shares: Two or more shares with pairwise distinct x mod modulus

    Returns:
        f(0) mod modulus

    Raises:
        NotEnoughShares: If fewer than two shares are given
        DuplicateSharePoint: If two x-coordinates collide mod modulus
        NotInvertible: If modulus is not prime and a denominator shares a factor
    """
    if len(shares) < 2:
        raise NotEnoughShares(f"At least 2 shares required, got {len(shares)}")

    xs = [s.x % modulus for s in shares]
    if len(set(xs)) != len(xs):
        raise DuplicateSharePoint("Duplicate x values in shares")

    secret = 0

    for i, share_i in enumerate(shares):
        xi = xs[i]
        numerator = 1
        denominator = 1

        for j, xj in enumerate(xs):
            if i == j:
                continue

            # (0 - x_j) and (x_i - x_j), normalized into [0, modulus)
            numerator = (numerator * (modulus - xj)) % modulus
            denominator = (denominator * ((xi - xj) % modulus)) % modulus

        lagrange_coeff = (numerator * mod_inverse(denominator, modulus)) % modulus
        secret = (secret + share_i.y * lagrange_coeff) % modulus

    logger.debug("Interpolated secret from %d shares", len(shares))
    return secret
