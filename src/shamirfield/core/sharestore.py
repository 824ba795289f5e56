"""
On-disk storage for one share set.

A share is only useful together with the modulus it was issued under, so
the store keeps both. The recorded threshold is informational: the
reconstructor never sees it.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from ..crypto.shamir import Share


logger = logging.getLogger(__name__)


class ShareStore:
    """
    Persistent storage for a modulus and its shares.

    Directory Structure:
        store_dir/
            modulus          # decimal modulus
            threshold        # threshold recorded by the dealer
            payload.bin      # optional sealed payload
            shares/          # <x>.share, binary Share.to_bytes()
    """

    MODULUS_FILE = "modulus"
    THRESHOLD_FILE = "threshold"
    PAYLOAD_FILE = "payload.bin"
    SHARES_DIR = "shares"
    SHARE_SUFFIX = ".share"

    def __init__(self, store_dir: str | Path):
        """Initialize store at specified directory."""
        self.store_dir = Path(store_dir)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create directory structure."""
        self.store_dir.mkdir(parents=True, exist_ok=True)
        (self.store_dir / self.SHARES_DIR).mkdir(exist_ok=True)

    def _read_int(self, name: str) -> Optional[int]:
        path = self.store_dir / name
        if not path.exists():
            return None
        return int(path.read_text().strip())

    # --- Field parameters ---

    def save_modulus(self, modulus: int) -> None:
        (self.store_dir / self.MODULUS_FILE).write_text(f"{modulus}\n")

    def load_modulus(self) -> Optional[int]:
        return self._read_int(self.MODULUS_FILE)

    def save_threshold(self, threshold: int) -> None:
        (self.store_dir / self.THRESHOLD_FILE).write_text(f"{threshold}\n")

    def load_threshold(self) -> Optional[int]:
        return self._read_int(self.THRESHOLD_FILE)

    def share_size(self) -> int:
        """Bytes per coordinate: the byte length of the stored modulus."""
        modulus = self.load_modulus()
        if modulus is None:
            raise ValueError("No modulus stored; save_modulus() first")
        return (modulus.bit_length() + 7) // 8

    # --- Shares ---

    def _share_path(self, x: int) -> Path:
        return self.store_dir / self.SHARES_DIR / f"{x}{self.SHARE_SUFFIX}"

    def save_share(self, share: Share) -> None:
        """Save one share, replacing any share with the same x."""
        with open(self._share_path(share.x), "wb") as f:
            f.write(share.to_bytes(self.share_size()))

    def reset(self) -> None:
        """Remove stored shares and payload before a new share set is written."""
        shares_dir = self.store_dir / self.SHARES_DIR
        for path in shares_dir.glob(f"*{self.SHARE_SUFFIX}"):
            path.unlink()
        (self.store_dir / self.PAYLOAD_FILE).unlink(missing_ok=True)

    def save_shares(self, shares: Iterable[Share]) -> None:
        count = 0
        for share in shares:
            self.save_share(share)
            count += 1
        logger.debug("Stored %d shares in %s", count, self.store_dir)

    def load_share(self, x: int) -> Optional[Share]:
        """Look up a share by x, reduced modulo the stored modulus if any."""
        modulus = self.load_modulus()
        if modulus is not None:
            x %= modulus
        path = self._share_path(x)
        if not path.exists():
            return None

        with open(path, "rb") as f:
            return Share.from_bytes(f.read())

    def list_points(self) -> list[int]:
        """x-coordinates of stored shares, ascending."""
        shares_dir = self.store_dir / self.SHARES_DIR
        return sorted(
            int(p.name[: -len(self.SHARE_SUFFIX)])
            for p in shares_dir.glob(f"*{self.SHARE_SUFFIX}")
        )

    def load_shares(self, points: Optional[Iterable[int]] = None) -> list[Share]:
        """
        Load shares for the given points (default: all, ascending x).

        Raises:
            ValueError: If a requested point has no stored share
        """
        if points is None:
            points = self.list_points()

        shares = []
        for x in points:
            share = self.load_share(x)
            if share is None:
                raise ValueError(f"No share stored for x = {x}")
            shares.append(share)
        return shares

    def export_share(self, x: int, export_path: str | Path) -> None:
        """Export one share to external file."""
        share = self.load_share(x)
        if share is None:
            raise ValueError(f"No share stored for x = {x}")

        with open(export_path, "wb") as f:
            f.write(share.to_bytes(self.share_size()))

    @staticmethod
    def import_share(import_path: str | Path) -> Share:
        """Import a share from external file."""
        with open(import_path, "rb") as f:
            return Share.from_bytes(f.read())

    # --- Sealed payload ---

    def save_payload(self, blob: bytes) -> None:
        with open(self.store_dir / self.PAYLOAD_FILE, "wb") as f:
            f.write(blob)

    def load_payload(self) -> Optional[bytes]:
        path = self.store_dir / self.PAYLOAD_FILE
        if not path.exists():
            return None

        with open(path, "rb") as f:
            return f.read()
