# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from agora_stage.core.security import create_access_token
from agora_stage.core.settings import Settings
from agora_stage.db.session import Base, enable_sqlite_savepoints
from agora_stage.db.session import get_db as app_get_session
from agora_stage.main import app as fastapi_app
from agora_stage.models import Answer, Community, CommunityMember, Question, User
from agora_stage.models.community import ROLE_ADMIN, ROLE_MEMBER

TEST_DB_URL = "sqlite://"

_USERNAME_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Commits issued by endpoints release a SAVEPOINT; the outer transaction
    # is rolled back when the test ends.
    session = Session(
        bind=connection,
        autoflush=False,
        join_transaction_mode="create_savepoint",
    )

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return Settings()


def make_user(db: Session, display_name: str) -> User:
    """Persist a user with a unique username and zero reputation."""
    user = User(username=f"user{next(_USERNAME_COUNTER)}", display_name=display_name)
    db.add(user)
    db.flush()
    return user


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture()
def user_factory(db_session: Session):
    """Return a callable that persists extra users on demand."""

    def _make(display_name: str = "Someone") -> User:
        return make_user(db_session, display_name)

    return _make


@pytest.fixture()
def test_user(db_session: Session) -> Iterator[User]:
    """Create and return a persisted test user."""
    yield make_user(db_session, "Test User")


@pytest.fixture()
def other_user(db_session: Session) -> Iterator[User]:
    """Create and return a second persisted user."""
    yield make_user(db_session, "Other User")


@pytest.fixture()
def third_user(db_session: Session) -> Iterator[User]:
    """Create and return a third persisted user."""
    yield make_user(db_session, "Third User")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers(test_user.id)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers(other_user.id)


@pytest.fixture()
def question(db_session: Session, other_user: User) -> Iterator[Question]:
    """A site-wide question asked by ``other_user``."""
    question = Question(
        title="How do savepoints work?",
        content="Asking for a friend.",
        author_id=other_user.id,
    )
    db_session.add(question)
    db_session.flush()
    yield question


@pytest.fixture()
def answer(db_session: Session, question: Question, other_user: User) -> Iterator[Answer]:
    """An answer by ``other_user`` on ``question``."""
    answer = Answer(content="Nested transactions.", author_id=other_user.id, question_id=question.id)
    db_session.add(answer)
    db_session.flush()
    yield answer


@pytest.fixture()
def community(db_session: Session, other_user: User, test_user: User) -> Iterator[Community]:
    """A community administered by ``other_user`` with ``test_user`` as a member."""
    community = Community(slug="python", name="Python", description="All things Python")
    db_session.add(community)
    db_session.flush()
    db_session.add_all(
        [
            CommunityMember(community_id=community.id, user_id=other_user.id, role=ROLE_ADMIN),
            CommunityMember(community_id=community.id, user_id=test_user.id, role=ROLE_MEMBER),
        ]
    )
    db_session.flush()
    yield community


@pytest.fixture()
def third_auth_token(third_user: User) -> dict[str, str]:
    """Return authorization headers for the third test user."""
    return auth_headers(third_user.id)
