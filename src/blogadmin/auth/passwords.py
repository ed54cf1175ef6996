# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from pydantic import SecretStr

from blogadmin.errors import InvalidCredentials, UnexpectedError

MEMORY_COST_KIB = 15000
TIME_COST = 2
PARALLELISM = 1

_PH = PasswordHasher(
    time_cost=TIME_COST,
    memory_cost=MEMORY_COST_KIB,
    parallelism=PARALLELISM,
)

# Verified against when the username is unknown, so both failure paths pay
# for one full argon2 computation with the same parameters.
DUMMY_PASSWORD_HASH = SecretStr(
    "$argon2id$v=19$m=15000,t=2,p=1$"
    "gZiV/M1gPc22ElAH/Jh1Hw$"
    "CWOrkoo7oJBQ/iyh7uJ0LO2aLEfrHwTWllSAxT0zRno"
)


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _PH.hash(plain)


def verify_password_hash(stored: SecretStr, candidate: SecretStr) -> None:
    """Check candidate against a stored argon2 PHC string.

    Raises UnexpectedError when the stored value cannot be parsed (bad data,
    not an authentication outcome) and InvalidCredentials on mismatch.
    """
    try:
        _PH.verify(stored.get_secret_value(), candidate.get_secret_value())
    except VerifyMismatchError as e:
        raise InvalidCredentials("bad_password", "Invalid password.") from e
    except (InvalidHashError, VerificationError) as e:
        # libargon2 reports undecodable hashes as a generic VerificationError
        raise UnexpectedError("Failed to parse hash in PHC string format.") from e


def needs_rehash(stored: SecretStr) -> bool:
    """True when the stored hash was made with other parameters than ours."""
    try:
        return _PH.check_needs_rehash(stored.get_secret_value())
    except InvalidHashError:
        return False
