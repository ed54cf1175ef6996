import threading
import time

import pytest
from argon2 import PasswordHasher
from pydantic import SecretStr

import blogadmin.auth.users as users_mod
from blogadmin.auth.passwords import DUMMY_PASSWORD_HASH
from blogadmin.auth.users import (
    Credentials,
    create_user,
    get_stored_credentials,
    get_user,
    get_users,
    validate_credentials,
)
from blogadmin.errors import InvalidCredentials, StoreUnavailable, UnexpectedError
from blogadmin.infra.database import database_url, make_engine, run_store_call

from conftest import PASSWORD, USERNAME

PHC_PREFIX = "$argon2id$v=19$m=15000,t=2,p=1$"


@pytest.fixture()
def verify_calls(monkeypatch):
    """Record every hash verification, then run the real one."""
    calls = []
    real = users_mod.verify_password_hash

    def _recording(stored, candidate):
        calls.append({"stored": stored.get_secret_value(), "thread": threading.get_ident()})
        return real(stored, candidate)

    monkeypatch.setattr(users_mod, "verify_password_hash", _recording)
    return calls


def test_user_lookups(engine, admin_user):
    create_user(engine, "editor", "$argon2id$placeholder")
    assert [u.username for u in get_users(engine)] == ["admin", "editor"]
    assert get_user(engine, " admin ").user_id == admin_user.user_id
    assert get_user(engine, "nobody") is None
    assert get_user(engine, "") is None

    user_id, secret = get_stored_credentials(engine, USERNAME)
    assert user_id == admin_user.user_id
    assert isinstance(secret, SecretStr)
    assert "argon2" not in repr(secret)
    assert get_stored_credentials(engine, "nobody") is None


def test_store_failure_is_store_unavailable(tmp_path):
    bare = make_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    with pytest.raises(StoreUnavailable):
        get_users(bare)


@pytest.mark.asyncio
async def test_store_call_timeout():
    with pytest.raises(StoreUnavailable):
        await run_store_call(time.sleep, 0.5, timeout=0.05)


@pytest.mark.asyncio
async def test_valid_credentials_return_user_id(engine, admin_user, verify_calls):
    user_id = await validate_credentials(Credentials(USERNAME, SecretStr(PASSWORD)), engine)
    assert user_id == admin_user.user_id
    assert len(verify_calls) == 1


@pytest.mark.asyncio
async def test_wrong_password(engine, admin_user):
    with pytest.raises(InvalidCredentials) as ei:
        await validate_credentials(Credentials(USERNAME, SecretStr("wrong")), engine)
    assert ei.value.reason == "bad_password"
    assert ei.value.status_code == 401


@pytest.mark.asyncio
async def test_unknown_user_still_runs_one_full_hash(engine, admin_user, verify_calls):
    with pytest.raises(InvalidCredentials) as ei:
        await validate_credentials(Credentials("nobody", SecretStr(PASSWORD)), engine)
    assert ei.value.reason == "unknown_user"
    assert ei.value.status_code == 404
    assert len(verify_calls) == 1
    assert verify_calls[0]["stored"] == DUMMY_PASSWORD_HASH.get_secret_value()


@pytest.mark.asyncio
async def test_unknown_user_and_wrong_password_do_the_same_work(engine, admin_user, verify_calls):
    for creds in (
        Credentials("nobody", SecretStr("wrong")),
        Credentials(USERNAME, SecretStr("wrong")),
    ):
        with pytest.raises(InvalidCredentials):
            await validate_credentials(creds, engine)

    assert len(verify_calls) == 2
    dummy, real = verify_calls
    # Same algorithm and cost parameters on both paths
    assert dummy["stored"].startswith(PHC_PREFIX)
    assert real["stored"].startswith(PHC_PREFIX)


@pytest.mark.asyncio
async def test_hashing_runs_off_the_event_loop_thread(engine, admin_user, verify_calls):
    loop_thread = threading.get_ident()
    await validate_credentials(Credentials(USERNAME, SecretStr(PASSWORD)), engine)
    assert verify_calls[0]["thread"] != loop_thread


@pytest.mark.asyncio
async def test_malformed_stored_hash_is_unexpected(engine):
    create_user(engine, "legacy", "plaintext-password")
    with pytest.raises(UnexpectedError):
        await validate_credentials(Credentials("legacy", SecretStr("plaintext-password")), engine)


@pytest.mark.asyncio
async def test_worker_failure_is_unexpected(engine, admin_user, monkeypatch):
    def _boom(stored, candidate):
        raise RuntimeError("worker died")

    monkeypatch.setattr(users_mod, "verify_password_hash", _boom)
    with pytest.raises(UnexpectedError):
        await validate_credentials(Credentials(USERNAME, SecretStr(PASSWORD)), engine)


@pytest.mark.asyncio
async def test_outdated_hash_is_rehashed_on_login(engine):
    weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash(PASSWORD)
    rec = create_user(engine, "old", weak)

    user_id = await validate_credentials(Credentials("old", SecretStr(PASSWORD)), engine)
    assert user_id == rec.user_id
    assert get_user(engine, "old").password_hash.startswith(PHC_PREFIX)

    # and the new hash still verifies
    assert await validate_credentials(Credentials("old", SecretStr(PASSWORD)), engine) == rec.user_id


@pytest.mark.asyncio
async def test_rehash_with_padded_username_updates_the_row(engine):
    weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash(PASSWORD)
    rec = create_user(engine, "old", weak)

    user_id = await validate_credentials(Credentials(" old ", SecretStr(PASSWORD)), engine)
    assert user_id == rec.user_id
    assert get_user(engine, "old").password_hash.startswith(PHC_PREFIX)


@pytest.mark.asyncio
async def test_failed_rehash_write_does_not_fail_login(engine, monkeypatch):
    weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash(PASSWORD)
    rec = create_user(engine, "old", weak)

    def _down(engine, user_id, new_hash):
        raise StoreUnavailable("connection refused")

    monkeypatch.setattr(users_mod, "update_password_hash", _down)
    user_id = await validate_credentials(Credentials("old", SecretStr(PASSWORD)), engine)
    assert user_id == rec.user_id
    assert get_user(engine, "old").password_hash == weak


def test_update_password_hash_requires_an_existing_row(engine, admin_user):
    users_mod.update_password_hash(engine, admin_user.user_id, "$argon2id$new")
    assert get_user(engine, USERNAME).password_hash == "$argon2id$new"

    with pytest.raises(UnexpectedError):
        users_mod.update_password_hash(engine, "no-such-id", "$argon2id$new")


def test_engine_url_comes_from_environment(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'env.db'}"
    monkeypatch.setenv("BLOG_DATABASE_URL", url)
    assert database_url() == url
    eng = make_engine()
    assert str(eng.url) == url
    eng.dispose()
