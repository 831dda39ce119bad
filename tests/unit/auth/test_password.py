"""Unit tests for password hashing and strength rules."""

import pytest

from infrastructure.auth.password import PasswordHasher, password_problems


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


def test_hash_verifies(hasher: PasswordHasher):
    hashed = hasher.hash("Str0ngPassw0rd")

    assert hashed != "Str0ngPassw0rd"
    assert hasher.verify("Str0ngPassw0rd", hashed)
    assert not hasher.verify("str0ngpassw0rd", hashed)


def test_hashes_are_salted(hasher: PasswordHasher):
    assert hasher.hash("Str0ngPassw0rd") != hasher.hash("Str0ngPassw0rd")


@pytest.mark.parametrize("stored", ["", "not-a-bcrypt-hash"])
def test_bad_stored_hash_never_verifies(hasher: PasswordHasher, stored: str):
    assert hasher.verify("anything", stored) is False


def test_dummy_verify_never_matches(hasher: PasswordHasher):
    assert hasher.verify_dummy("Str0ngPassw0rd") is False
    assert hasher.verify_dummy("Str0ngPassw0rd") is False


@pytest.mark.parametrize(
    "password, broken",
    [
        ("Str0ngPassw0rd", 0),
        ("Sh0rt", 1),
        ("nouppercase1", 1),
        ("NOLOWERCASE1", 1),
        ("NoDigitsHere", 1),
        ("", 4),
    ],
)
def test_password_problems(password: str, broken: int):
    assert len(password_problems(password)) == broken
