"""Tests for on-disk share storage."""

import pytest

from shamirfield.core.session import create_session
from shamirfield.core.sharestore import ShareStore
from shamirfield.crypto.field import PRIME_256
from shamirfield.crypto.shamir import Share, reconstruct_secret


@pytest.fixture
def store(tmp_path):
    return ShareStore(tmp_path / "store")


@pytest.fixture
def shares():
    with create_session(256, True, 3, 25) as session:
        return session.generate_shares([4, 16, 13, 1, 12, 7])


class TestShareStore:
    def test_creates_layout(self, store):
        assert store.store_dir.is_dir()
        assert (store.store_dir / ShareStore.SHARES_DIR).is_dir()

    def test_empty_store(self, store):
        assert store.load_modulus() is None
        assert store.load_threshold() is None
        assert store.load_payload() is None
        assert store.list_points() == []
        assert store.load_share(1) is None

    def test_modulus_and_threshold(self, store):
        store.save_modulus(PRIME_256)
        store.save_threshold(3)

        assert store.load_modulus() == PRIME_256
        assert store.load_threshold() == 3
        assert store.share_size() == 32

    def test_share_size_needs_modulus(self, store):
        with pytest.raises(ValueError, match="No modulus stored"):
            store.share_size()

    def test_save_and_load_shares(self, store, shares):
        store.save_modulus(PRIME_256)
        store.save_shares(shares)

        assert store.list_points() == [1, 4, 7, 12, 13, 16]
        assert store.load_share(13) == shares[2]

        loaded = store.load_shares([7, 4, 12])
        assert reconstruct_secret(store.load_modulus(), loaded) == 25

    def test_load_all_shares(self, store, shares):
        store.save_modulus(PRIME_256)
        store.save_shares(shares)

        assert sorted(store.load_shares(), key=lambda s: s.x) == sorted(
            shares, key=lambda s: s.x
        )

    def test_missing_point(self, store, shares):
        store.save_modulus(PRIME_256)
        store.save_shares(shares)

        with pytest.raises(ValueError, match="No share stored for x = 99"):
            store.load_shares([4, 99])

    def test_export_and_import(self, store, shares, tmp_path):
        store.save_modulus(PRIME_256)
        store.save_shares(shares)
        target = tmp_path / "share16.bin"

        store.export_share(16, target)

        assert target.stat().st_size == 64
        assert ShareStore.import_share(target) == shares[1]

    def test_export_missing(self, store, tmp_path):
        store.save_modulus(PRIME_256)
        with pytest.raises(ValueError):
            store.export_share(5, tmp_path / "nope")

    def test_payload(self, store):
        store.save_payload(b"\x00\x01blob")
        assert store.load_payload() == b"\x00\x01blob"

    def test_reset(self, store):
        store.save_modulus(101)
        store.save_share(Share(x=3, y=9))
        store.save_payload(b"blob")

        store.reset()

        assert store.list_points() == []
        assert store.load_payload() is None
        assert store.load_modulus() == 101

    def test_reopen(self, store, shares):
        store.save_modulus(PRIME_256)
        store.save_shares(shares)

        again = ShareStore(store.store_dir)
        assert again.load_shares([1]) == [shares[3]]

    def test_point_reduced_modulo_prime(self, store):
        store.save_modulus(101)
        store.save_share(Share(x=3, y=9))

        assert store.load_share(104) == Share(x=3, y=9)
        assert store.load_shares([3 + 2 * 101]) == [Share(x=3, y=9)]

    def test_corrupt_modulus(self, store):
        (store.store_dir / ShareStore.MODULUS_FILE).write_text("garbage\n")

        with pytest.raises(ValueError):
            store.load_modulus()
