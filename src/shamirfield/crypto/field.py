"""
Field registry: chooses the prime modulus a sharing session works under.

Two sources:
    - a fixed, published prime per supported width (pure table lookup)
    - a freshly generated probable prime of the requested width

The fixed table is module-level constant data exposed through a read-only
mapping; the registry keeps no state between calls.
"""

import logging
import secrets
from enum import Enum
from types import MappingProxyType
from typing import Union

from .arith import MILLER_RABIN_ROUNDS, is_probable_prime
from .errors import UnsupportedBitWidth


logger = logging.getLogger(__name__)

# Smallest width generate_prime() accepts.
MIN_GENERATED_BITS = 16


class BitSize(Enum):
    """Supported field widths. The value is the prime's bit length."""

    BN254 = 254
    BIT256 = 256
    BIT512 = 512
    BIT1024 = 1024


# Scalar field order r of the BN254 (alt_bn128) pairing curve.
BN254_PRIME = int(
    "21888242871839275222246405745257275088548364400416034343698204186575808495617"
)

PRIME_256 = int(
    "D7F71B07B75BC19077A53B9B1BAEA33249C8CD5C132C7FA3E20E18AAF17F5A9B", 16
)

PRIME_512 = int(
    "EB3CFFA5DBAB1325022CE08399445F0E4B9B146B0BA3D17967D70616B2E33B62"
    "FCE08149C3D76FA8EAC2769B4DB5232DFF3416848ED598BA2470CEC3CB5DCD6B",
    16,
)

PRIME_1024 = int(
    "DE97F71CFA25F986F6D07618C9EDB1378517A16101CEF67262AFBD3D703E9413"
    "4F91757A03262A988C1A8DE361AAE62F96D7E2C70C10AFD647F718A628651C23"
    "4225FE75F25FB1D6FB28596BEA5E2802B5B4E4BE3CE573192CC1E1F1DEB8CACA"
    "C9BC55AA8CB213945388C78271D5E500D34469A4108680E1AF56FA7C05D321DF",
    16,
)

FIXED_PRIMES = MappingProxyType(
    {
        BitSize.BN254.value: BN254_PRIME,
        BitSize.BIT256.value: PRIME_256,
        BitSize.BIT512.value: PRIME_512,
        BitSize.BIT1024.value: PRIME_1024,
    }
)


def _width(bit_width: Union[BitSize, int]) -> int:
    if isinstance(bit_width, BitSize):
        return bit_width.value
    return int(bit_width)


def fixed_prime(bit_width: Union[BitSize, int]) -> int:
    """
    Look up the published prime for a width.

    Raises:
        UnsupportedBitWidth: If the width has no table entry
    """
    width = _width(bit_width)
    try:
        return FIXED_PRIMES[width]
    except KeyError:
        supported = ", ".join(str(w) for w in sorted(FIXED_PRIMES))
        raise UnsupportedBitWidth(
            f"No fixed prime for {width} bits (supported: {supported})"
        ) from None


def generate_prime(
    bit_width: Union[BitSize, int], rounds: int = MILLER_RABIN_ROUNDS
) -> int:
    """
    Generate a random probable prime of exactly bit_width bits.

    Candidates are uniformly random odd integers with the top bit set, drawn
    from the OS CSPRNG, and kept when they pass is_probable_prime().

    Args:
        bit_width: Bit length of the result
        rounds: Miller-Rabin rounds per candidate

    Returns:
        Probable prime p with p.bit_length() == bit_width

    Raises:
        UnsupportedBitWidth: If bit_width < MIN_GENERATED_BITS
    """
    width = _width(bit_width)
    if width < MIN_GENERATED_BITS:
        raise UnsupportedBitWidth(
            f"Cannot generate a prime below {MIN_GENERATED_BITS} bits, got {width}"
        )

    rng = secrets.SystemRandom()
    top_bit = 1 << (width - 1)
    candidates = 0

    while True:
        candidates += 1
        candidate = secrets.randbits(width) | top_bit | 1
        if is_probable_prime(candidate, rounds=rounds, rng=rng):
            logger.debug(
                "Generated %d-bit probable prime after %d candidates",
                width,
                candidates,
            )
            return candidate


def check_bit_width(bit_width: Union[BitSize, int], use_fixed: bool) -> int:
    """
    Validate a requested width without drawing any randomness.

    Returns:
        The width as a plain integer

    Raises:
        UnsupportedBitWidth: If no fixed prime exists for the width, or the
            width is too small to generate
    """
    width = _width(bit_width)
    if use_fixed:
        fixed_prime(width)
    elif width < MIN_GENERATED_BITS:
        raise UnsupportedBitWidth(
            f"Cannot generate a prime below {MIN_GENERATED_BITS} bits, got {width}"
        )
    return width


def select_modulus(bit_width: Union[BitSize, int], use_fixed: bool) -> int:
    """
    Pick the modulus for a sharing session.

    Args:
        bit_width: Requested width (BitSize member or plain integer)
        use_fixed: Look up the published prime instead of generating one

    Returns:
        A prime (fixed) or probable prime (generated) of the requested width

    Raises:
        UnsupportedBitWidth: If no fixed prime exists for the width, or the
            width is too small to generate
    """
    if use_fixed:
        return fixed_prime(bit_width)
    return generate_prime(bit_width)
