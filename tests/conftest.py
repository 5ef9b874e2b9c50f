"""
Pytest Configuration and Fixtures

Every test gets a fresh SQLite database and a scripted chat-completions
client, so nothing here talks to OpenAI, Google or a real Postgres.
"""
import json
import os
from types import SimpleNamespace
from typing import AsyncGenerator

# Settings are cached on first import, so the environment goes first
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LANGUAGE_DETECTION_ENABLED"] = "false"
os.environ["SESSION_COOKIE_SECURE"] = "false"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from growthforge.config import Settings
from growthforge.database import get_db, get_session_factory, init_db
from growthforge.main import app
from growthforge.models.skill_assessment import SkillAssessment
from growthforge.models.user import User
from growthforge.routes.deps import get_llm, get_oauth_client
from growthforge.services.google_oauth import GoogleIdentity
from growthforge.services.llm_client import LLMClient
from growthforge.services.sessions import issue_session_token
from growthforge.utils import metrics


# ---------------------------------------------------------------------------
# Fake chat-completions API
# ---------------------------------------------------------------------------

class FakeCompletions:
    """Replays queued replies: a str is returned as message content, an exception is raised."""

    def __init__(self):
        self.replies = []
        self.calls = []

    def queue(self, *replies):
        for reply in replies:
            self.replies.append(json.dumps(reply) if isinstance(reply, (dict, list)) else reply)

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self.replies:
            raise AssertionError("unexpected chat completion call")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeOpenAI:
    def __init__(self):
        self.chat = SimpleNamespace(completions=FakeCompletions())


class FakeOAuth:
    def __init__(self):
        self.identity = GoogleIdentity(id="g-123", email="ada@example.com", name="Ada", picture="https://img/ada.png")

    async def exchange_code(self, code: str, redirect_uri: str) -> GoogleIdentity:
        return self.identity


async def no_sleep(_seconds: float) -> None:
    return None


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine(tmp_path):
    # NullPool: each session gets its own connection, like a real server
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(db) -> User:
    user = User(email="ada@example.com", name="Ada Lovelace")
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def other_user(db) -> User:
    user = User(email="grace@example.com", name="Grace Hopper")
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def add_assessment(db):
    async def _add(user, skill_id, current, target, area="Leadership"):
        assessment = SkillAssessment(
            user_id=user.id,
            skill_id=skill_id,
            area=area,
            name=skill_id.replace("_", " ").title(),
            current_level=current,
            target_level=target,
        )
        db.add(assessment)
        await db.commit()
        return assessment
    return _add


# ---------------------------------------------------------------------------
# LLM
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="sk-test", language_detection_enabled=False, llm_max_retries=2)


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def completions(fake_openai) -> FakeCompletions:
    return fake_openai.chat.completions


@pytest.fixture
def llm(fake_openai, settings) -> LLMClient:
    return LLMClient(client=fake_openai, settings=settings, sleep=no_sleep)


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def oauth() -> FakeOAuth:
    return FakeOAuth()


@pytest.fixture
def db_calls():
    """Number of times the app opened a request-scoped session"""
    return {"count": 0}


@pytest.fixture
async def client(session_factory, llm, oauth, db_calls) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db():
        db_calls["count"] += 1
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_llm] = lambda: llm
    app.dependency_overrides[get_oauth_client] = lambda: oauth

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {issue_session_token(user)}"}


# ---------------------------------------------------------------------------
# Sample AI output
# ---------------------------------------------------------------------------

@pytest.fixture
def role_profile_json() -> dict:
    return {
        "archetype": "Engineering Manager",
        "skillAreas": [
            {
                "area": "Leadership",
                "skills": [
                    {"id": "coaching", "name": "Coaching", "description": "Grow people", "targetLevel": 4},
                    {"id": "delegation", "name": "Delegation", "description": "Hand off work", "targetLevel": 4},
                ],
            },
            {
                "area": "Delivery",
                "skills": [
                    {"id": "planning", "name": "Planning", "description": "Roadmaps", "targetLevel": 3},
                ],
            },
        ],
    }


@pytest.fixture
def growth_plan_json() -> dict:
    return {
        "growthItems": [
            {"type": "book", "title": "The Manager's Path", "description": "Read it", "link": None},
            {"type": "habit", "title": "Weekly 1:1s", "description": "Hold them"},
            {"type": "mission", "title": "Run a planning cycle", "description": "Own Q3 planning", "link": ""},
        ]
    }


def make_mental_models(count: int) -> dict:
    return {
        "models": [
            {
                "name": f"Model {i}",
                "explanation": "Explains things",
                "newPerspective": "A new angle",
                "keyInsight": "Something non-obvious",
                "practicalAction": "Do one thing",
            }
            for i in range(count)
        ]
    }
