"""
Modular arithmetic over a prime field.

Python integers are arbitrary precision, so the heavy lifting (reduction,
three-argument pow) is left to the interpreter. This module adds the
validation and the pieces the interpreter does not expose directly:

    - extended Euclid, used for modular inverses during interpolation
    - Miller-Rabin probable-prime testing, used by the field registry

Reference:
    Menezes, van Oorschot, Vanstone. Handbook of Applied Cryptography,
    Algorithms 2.107 (extended Euclid) and 4.24 (Miller-Rabin).
"""

import random
import secrets
from typing import Optional

from .errors import NotInvertible


# Miller-Rabin rounds. Each round lets a composite through with probability
# at most 1/4, so 64 rounds bound the error by 2^-128.
MILLER_RABIN_ROUNDS = 64


def _small_primes(limit: int) -> tuple[int, ...]:
    sieve = bytearray([1]) * (limit + 1)
    sieve[0:2] = b"\x00\x00"
    for i in range(2, int(limit**0.5) + 1):
        if sieve[i]:
            sieve[i * i :: i] = bytearray(len(sieve[i * i :: i]))
    return tuple(i for i, flag in enumerate(sieve) if flag)


# Trial divisors used to reject most candidates before Miller-Rabin.
SMALL_PRIMES = _small_primes(2000)


def mod_add(a: int, b: int, modulus: int) -> int:
    """(a + b) mod modulus, normalized into [0, modulus)."""
    return (a + b) % modulus


def mod_mul(a: int, b: int, modulus: int) -> int:
    """(a * b) mod modulus, normalized into [0, modulus)."""
    return (a * b) % modulus


def mod_pow(base: int, exponent: int, modulus: int) -> int:
    """
    Compute base^exponent mod modulus.

    Square-and-multiply is done by the built-in three-argument pow, which
    reduces every intermediate value.

    Args:
        base: Any integer (negative values are reduced first)
        exponent: Non-negative exponent
        modulus: Positive modulus

    Returns:
        The power in [0, modulus). exponent = 0 gives 1, modulus = 1 gives 0.

    Raises:
        ValueError: If exponent is negative or modulus is not positive
    """
    if modulus < 1:
        raise ValueError(f"Modulus must be positive, got {modulus}")
    if exponent < 0:
        raise ValueError("Exponent must be non-negative; use mod_inverse")
    if modulus == 1:
        return 0
    return pow(base % modulus, exponent, modulus)


def gcd(a: int, b: int) -> int:
    """Greatest common divisor of |a| and |b|."""
    a, b = abs(a), abs(b)
    while b:
        a, b = b, a % b
    return a


def extended_gcd(a: int, b: int) -> tuple[int, int, int]:
    """
    Extended Euclidean algorithm.

    Returns:
        (g, s, t) with g = gcd(a, b) and s*a + t*b = g
    """
    old_r, r = a, b
    old_s, s = 1, 0
    old_t, t = 0, 1

    while r != 0:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_s, s = s, old_s - q * s
        old_t, t = t, old_t - q * t

    if old_r < 0:
        old_r, old_s, old_t = -old_r, -old_s, -old_t
    return old_r, old_s, old_t


def mod_inverse(a: int, modulus: int) -> int:
    """
    Compute the multiplicative inverse of a modulo modulus.

    Args:
        a: Value to invert (negative values are normalized first)
        modulus: Modulus greater than 1

    Returns:
        a^(-1) in [1, modulus)

    Raises:
        NotInvertible: If gcd(a, modulus) != 1, in particular when a = 0 mod modulus
        ValueError: If modulus < 2
    """
    if modulus < 2:
        raise ValueError(f"Modulus must be at least 2, got {modulus}")

    a %= modulus
    g, s, _ = extended_gcd(a, modulus)
    if g != 1:
        raise NotInvertible(f"{a} has no inverse modulo {modulus} (gcd = {g})")
    return s % modulus


def is_probable_prime(
    n: int,
    rounds: int = MILLER_RABIN_ROUNDS,
    rng: Optional[random.Random] = None,
) -> bool:
    """
    Miller-Rabin probable-prime test.

    Small inputs are answered exactly by trial division. Larger inputs get
    `rounds` witness rounds with bases drawn uniformly from [2, n - 2].

    Args:
        n: Candidate
        rounds: Number of random witnesses to try
        rng: Source of witnesses (default: OS CSPRNG)

    Returns:
        False if n is certainly composite, True if n is prime with error
        probability at most 4^-rounds
    """
    if n < 2:
        return False
    for p in SMALL_PRIMES:
        if n == p:
            return True
        if n % p == 0:
            return False
    if n < SMALL_PRIMES[-1] ** 2:
        return True

    if rng is None:
        rng = secrets.SystemRandom()

    # n - 1 = d * 2^r with d odd
    d = n - 1
    r = 0
    while d % 2 == 0:
        d //= 2
        r += 1

    for _ in range(rounds):
        a = rng.randrange(2, n - 1)
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(r - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False

    return True
