import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import importlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from blogadmin.auth.passwords import hash_password
from blogadmin.auth.users import create_user
from blogadmin.infra.database import init_db, make_engine
from blogadmin.infra.posts_repo import create_post

USERNAME = "admin"
PASSWORD = "correct horse battery staple"


def seed_posts(engine, count: int) -> None:
    for i in range(count):
        create_post(engine, title=f"Post {i}", description=f"Description {i}", post_id=f"{i:04d}")


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'blog.db'}"


@pytest.fixture()
def engine(db_url: str):
    """Empty store with the schema created."""
    eng = make_engine(db_url)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def admin_user(engine):
    return create_user(engine, USERNAME, hash_password(PASSWORD))


@pytest.fixture()
def app_module(db_url, engine, monkeypatch):
    monkeypatch.setenv("BLOG_DATABASE_URL", db_url)
    import blogadmin.app as app_module
    importlib.reload(app_module)
    yield app_module
    app_module.ENGINE.dispose()


@pytest.fixture()
def client(app_module):
    with TestClient(app_module.app) as c:
        yield c
