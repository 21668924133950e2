"""Tests for customer password hashing in the data layer."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from salesmanager import database


class PasswordHashingTests(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        hashed = database._hash_password("supersecurepassword")

        self.assertTrue(hashed.startswith("$pbkdf2-sha256$"))
        self.assertNotIn("supersecurepassword", hashed)
        self.assertTrue(database._verify_password("supersecurepassword", hashed))
        self.assertFalse(database._verify_password("incorrect", hashed))

    def test_hashes_are_salted(self) -> None:
        first = database._hash_password("anothersecurepassword")
        second = database._hash_password("anothersecurepassword")

        self.assertNotEqual(first, second)
        self.assertTrue(database._verify_password("anothersecurepassword", second))

    def test_malformed_hash_does_not_verify(self) -> None:
        self.assertFalse(database._verify_password("password", "not-a-hash"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
