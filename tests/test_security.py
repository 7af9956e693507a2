"""Unit tests for the argon2 credential hasher."""

import pytest

from utils.exceptions import InternalError
from utils.security import CredentialHasher


@pytest.fixture
def hasher():
    return CredentialHasher(time_cost=1, memory_cost=8, parallelism=1)


class TestCredentialHasher:
    def test_hash_is_not_plaintext(self, hasher):
        hashed = hasher.hash("pw")

        assert hashed != "pw"
        assert hashed.startswith("$argon2")

    def test_same_password_produces_different_hashes(self, hasher):
        assert hasher.hash("password") != hasher.hash("password")

    @pytest.mark.parametrize("password", ["pw", "password", "ünïcødé", " spaced out ", "x" * 200])
    def test_verify_accepts_the_hashed_password(self, hasher, password):
        assert hasher.verify(hasher.hash(password), password) is True

    @pytest.mark.parametrize("p1, p2", [("pw", "pW"), ("password", "password "), ("a", "")])
    def test_verify_rejects_other_passwords(self, hasher, p1, p2):
        assert hasher.verify(hasher.hash(p1), p2) is False

    def test_verify_of_garbage_hash_is_false_not_an_error(self, hasher):
        assert hasher.verify("not-a-hash", "pw") is False

    def test_verify_dummy_is_always_false(self, hasher):
        assert hasher.verify_dummy("anything") is False
        assert hasher.verify_dummy(None) is False

    def test_verify_dummy_never_hashes(self, hasher, monkeypatch):
        calls = []
        monkeypatch.setattr(hasher._ph, "hash", lambda *a, **kw: calls.append(a))

        hasher.verify_dummy("first call")

        assert calls == []

    def test_hashing_failure_is_internal_error(self, hasher):
        with pytest.raises(InternalError):
            hasher.hash(None)

    def test_needs_rehash_when_cost_changes(self, hasher):
        hashed = hasher.hash("pw")
        stronger = CredentialHasher(time_cost=2, memory_cost=16, parallelism=1)

        assert hasher.needs_rehash(hashed) is False
        assert stronger.needs_rehash(hashed) is True
