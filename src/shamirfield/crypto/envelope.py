"""
Sharing arbitrary byte payloads.

Shamir shares hide a field element, not a file. To share a payload of any
length the payload is encrypted with AES-256-GCM under a fresh data key, and
only that key is split:

    K  <- 32 random bytes
    C  =  AES-GCM_K(payload)                 (nonce || ciphertext || tag)
    shares = Shamir(int(K), t) over the fixed 512-bit prime

Every 256-bit key is below the 512-bit prime, so no key is out of range.

Unlike bare reconstruction, opening an envelope with too few shares is
detected: the interpolated key is wrong and GCM authentication fails with
cryptography.exceptions.InvalidTag.

Reference:
    Krawczyk, H. (1993). "Secret Sharing Made Short". CRYPTO '93.
"""

import logging
import os
import random
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .field import BitSize, fixed_prime
from .shamir import (
    Share,
    generate_shares,
    new_polynomial,
    reconstruct_secret,
    validate_points,
    validate_threshold,
)


logger = logging.getLogger(__name__)

# 96-bit nonce, as recommended for GCM by NIST SP 800-38D.
NONCE_SIZE = 12

TAG_SIZE = 16

# AES-256 data key.
KEY_SIZE = 32

# Field the data key is shared over.
ENVELOPE_BITS = BitSize.BIT512


@dataclass(frozen=True)
class EncryptedData:
    """
    AES-GCM output.

    Attributes:
        nonce: Random 12-byte nonce
        ciphertext: Encrypted payload followed by the 16-byte tag
    """

    nonce: bytes
    ciphertext: bytes

    def to_bytes(self) -> bytes:
        """Format: 12 bytes nonce, then ciphertext (tag included)."""
        return self.nonce + self.ciphertext

    @classmethod
    def from_bytes(cls, data: bytes) -> "EncryptedData":
        """
        Raises:
            ValueError: If data cannot hold a nonce and a tag
        """
        if len(data) < NONCE_SIZE + TAG_SIZE:
            raise ValueError(
                f"Encrypted data too short: got {len(data)}, "
                f"minimum {NONCE_SIZE + TAG_SIZE}"
            )
        return cls(nonce=data[:NONCE_SIZE], ciphertext=data[NONCE_SIZE:])


@dataclass(frozen=True)
class SealedPayload:
    """Everything produced by seal(): modulus and shares go to holders."""

    modulus: int
    threshold: int
    shares: list[Share]
    encrypted: EncryptedData


def seal(
    payload: bytes,
    threshold: int,
    points: Iterable[int],
    rng: Optional[random.Random] = None,
) -> SealedPayload:
    """
    Encrypt payload and split its data key into shares at points.

    Args:
        payload: Bytes to protect (any length)
        threshold: Shares needed to open the envelope
        points: Non-zero, distinct x-coordinates, one share each
        rng: Coefficient source for tests; defaults to the OS CSPRNG

    Raises:
        ThresholdTooSmall, ThresholdTooLarge, InvalidSharePoint,
        DuplicateSharePoint
    """
    modulus = fixed_prime(ENVELOPE_BITS)
    validate_threshold(threshold)
    points = validate_points(points, modulus)

    key = os.urandom(KEY_SIZE)

    coefficients = new_polynomial(
        int.from_bytes(key, byteorder="big"), threshold, modulus, rng=rng
    )
    shares = generate_shares(coefficients, points, modulus)
    del coefficients

    nonce = os.urandom(NONCE_SIZE)
    ciphertext = AESGCM(key).encrypt(nonce, payload, associated_data=None)

    logger.debug(
        "Sealed %d-byte payload into %d shares (threshold %d)",
        len(payload),
        len(shares),
        threshold,
    )
    return SealedPayload(
        modulus=modulus,
        threshold=threshold,
        shares=shares,
        encrypted=EncryptedData(nonce=nonce, ciphertext=ciphertext),
    )


def unseal(modulus: int, shares: Sequence[Share], encrypted: EncryptedData) -> bytes:
    """
    Reconstruct the data key and decrypt.

    Raises:
        NotEnoughShares, DuplicateSharePoint: From reconstruction
        cryptography.exceptions.InvalidTag: If the shares do not rebuild the
            data key (too few, wrong or tampered) or the ciphertext was altered
    """
    key = reconstruct_secret(modulus, shares)

    # A wrong interpolation is uniform over the field and almost never fits.
    if key.bit_length() > KEY_SIZE * 8:
        raise InvalidTag()

    cipher = AESGCM(key.to_bytes(KEY_SIZE, byteorder="big"))
    return cipher.decrypt(encrypted.nonce, encrypted.ciphertext, associated_data=None)
