"""Tests for sharing sessions: the dealer-side entry point."""

import itertools

import pytest

from shamirfield.core.session import Session, create_session, reconstruct_secret
from shamirfield.crypto.errors import (
    DuplicateSharePoint,
    InvalidSharePoint,
    SecretOutOfRange,
    SessionClosed,
    ThresholdTooLarge,
    ThresholdTooSmall,
    UnsupportedBitWidth,
)
from shamirfield.crypto.field import PRIME_256, BitSize, fixed_prime


POINTS = [4, 16, 13, 1, 12, 7]


class ExplodingSource:
    """Coefficient source that must never be reached."""

    def randrange(self, stop):
        raise AssertionError("randomness consumed before validation finished")


class TestScenario:
    """256-bit fixed prime, secret 25, threshold 3, six points."""

    @pytest.fixture
    def issued(self):
        with create_session(256, True, threshold=3, secret=25) as session:
            shares = session.generate_shares(POINTS)
            modulus = session.modulus
        return modulus, {s.x: s for s in shares}

    def test_modulus_is_fixed_prime(self, issued):
        modulus, _ = issued
        assert modulus == PRIME_256

    def test_six_shares_in_order(self, issued):
        _, by_x = issued
        assert list(by_x) == POINTS

    def test_three_chosen_shares(self, issued):
        modulus, by_x = issued
        shares = [by_x[7], by_x[4], by_x[12]]

        assert reconstruct_secret(modulus, shares) == 25

    def test_any_three_of_six(self, issued):
        modulus, by_x = issued
        for subset in itertools.combinations(by_x.values(), 3):
            assert reconstruct_secret(modulus, list(subset)) == 25

    def test_two_shares_are_not_enough(self, issued):
        modulus, by_x = issued
        assert reconstruct_secret(modulus, [by_x[7], by_x[4]]) != 25


class TestSessionFields:
    @pytest.mark.parametrize("size", list(BitSize))
    def test_fixed_primes(self, size):
        secret = 232
        with create_session(size, True, threshold=3, secret=secret) as session:
            shares = session.generate_shares(range(1, 26))
            assert session.modulus == fixed_prime(size)

        assert reconstruct_secret(fixed_prime(size), shares[:3]) == secret

    def test_generated_prime(self):
        with create_session(BitSize.BIT256, False, threshold=3, secret=25) as session:
            shares = session.generate_shares(POINTS)
            modulus = session.modulus

        assert modulus.bit_length() == 256
        assert reconstruct_secret(modulus, shares[:3]) == 25

    def test_minimum_threshold(self):
        with create_session(256, True, threshold=2, secret=11) as session:
            shares = session.generate_shares([5, 6])

        assert reconstruct_secret(PRIME_256, shares) == 11


class TestValidation:
    """Failures are raised before any coefficient is drawn."""

    def test_threshold_too_small(self):
        with pytest.raises(ThresholdTooSmall):
            create_session(256, True, 1, 25, rng=ExplodingSource())

    def test_threshold_too_large(self):
        with pytest.raises(ThresholdTooLarge):
            create_session(256, True, 300, 25, rng=ExplodingSource())

    def test_secret_not_below_prime(self):
        with pytest.raises(SecretOutOfRange):
            create_session(256, True, 3, PRIME_256, rng=ExplodingSource())

    def test_negative_secret(self):
        with pytest.raises(SecretOutOfRange):
            create_session(256, True, 3, -5, rng=ExplodingSource())

    def test_secret_wider_than_generated_field(self):
        """Rejected before any prime is generated."""
        with pytest.raises(SecretOutOfRange, match="256-bit"):
            create_session(256, False, 3, 2**256, rng=ExplodingSource())

    def test_unsupported_fixed_width(self):
        with pytest.raises(UnsupportedBitWidth):
            create_session(128, True, 3, 25, rng=ExplodingSource())

    @pytest.mark.parametrize(
        "width, use_fixed", [(0, True), (4, True), (100, True), (8, False)]
    )
    def test_width_checked_before_secret(self, width, use_fixed):
        """A secret too wide for a bad width still reports the width."""
        with pytest.raises(UnsupportedBitWidth):
            create_session(width, use_fixed, 3, 300, rng=ExplodingSource())

    def test_small_generated_width(self):
        with pytest.raises(UnsupportedBitWidth, match="below 16 bits"):
            create_session(8, False, 3, 5, rng=ExplodingSource())

    def test_bad_points_produce_no_shares(self):
        with create_session(256, True, 3, 25) as session:
            with pytest.raises(InvalidSharePoint):
                session.generate_shares([1, 2, 0])
            with pytest.raises(DuplicateSharePoint):
                session.generate_shares([1, 2, 1])


class TestLifecycle:
    def test_evaluation_is_deterministic(self):
        with create_session(256, True, 4, 99) as session:
            assert session.generate_shares([5]) == session.generate_shares([5])

    def test_closed_session_refuses_shares(self):
        session = create_session(256, True, 3, 25)
        session.close()

        assert session.closed
        with pytest.raises(SessionClosed):
            session.generate_shares([1, 2, 3])

    def test_context_manager_closes(self):
        with create_session(256, True, 3, 25) as session:
            assert not session.closed
        assert session.closed

    def test_modulus_survives_close(self):
        session = create_session(256, True, 3, 25)
        session.close()

        assert session.modulus == PRIME_256
        assert session.threshold == 3

    def test_repr_hides_secret(self):
        secret = 123456789123456789
        session = create_session(256, True, 3, secret)

        assert str(secret) not in repr(session)
        assert "threshold=3" in repr(session)

    def test_close_is_idempotent(self):
        session = Session(101, 2, (5, 7))
        session.close()
        session.close()

        assert session.closed
