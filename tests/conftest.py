"""
Shared fixtures: a throwaway SQLite database, a TestClient and seed helpers.

Environment is set before anything from incident_desk is imported, since
config reads it at import time.
"""
import asyncio
import os
import tempfile
from types import SimpleNamespace

_tmpdir = tempfile.mkdtemp(prefix="incident-desk-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmpdir}/test.db"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["COOKIE_SECURE"] = "0"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from incident_desk.core.database.engine import AsyncSessionLocal, drop_db, init_db  # noqa: E402
from incident_desk.features.incidents.models import Incident, IncidentStatus  # noqa: E402
from incident_desk.features.teams.models import PlatformManager, Team, TeamMembership, TeamRole  # noqa: E402
from incident_desk.features.users.auth import create_access_token, hash_password  # noqa: E402
from incident_desk.features.users.models import User  # noqa: E402
from incident_desk.main import app  # noqa: E402


PASSWORD = "secret123"
# One hash for every seeded user; bcrypt is slow on purpose
_PWD_HASH = hash_password(PASSWORD)


# ── Seed helpers ─────────────────────────────────────────────────────────
async def _add(obj):
    async with AsyncSessionLocal() as db:
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
        return obj


def create_user(name: str, email: str | None = None) -> str:
    email = email or f"{name.lower()}@example.com"
    return asyncio.run(_add(User(name=name, email=email, pwd_hash=_PWD_HASH))).id


def create_team(name: str) -> str:
    return asyncio.run(_add(Team(name=name))).id


def add_member(team_id: str, user_id: str, role: TeamRole) -> None:
    asyncio.run(_add(TeamMembership(team_id=team_id, user_id=user_id, role=role)))


def make_platform_manager(user_id: str) -> None:
    asyncio.run(_add(PlatformManager(user_id=user_id)))


def create_incident(
    team_id: str,
    reporter_id: str,
    title: str = "Printer on fire",
    status: IncidentStatus = IncidentStatus.PENDING,
    assignee_id: str | None = None,
) -> str:
    incident = Incident(
        title=title,
        team_id=team_id,
        reported_by_user_id=reporter_id,
        status=status,
        assigned_to_user_id=assignee_id,
    )
    return asyncio.run(_add(incident)).id


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


# ── Fixtures ─────────────────────────────────────────────────────────────
@pytest.fixture
def client():
    asyncio.run(drop_db())
    asyncio.run(init_db())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def world(client):
    """
    Two teams and a cast of users:

    ops:   alice (admin), ada (admin), mona (manager), uma (user), ulf (user)
    infra: ivan (admin)
    nora belongs to no team; pam is a platform manager outside every team.
    """
    w = SimpleNamespace(client=client)
    w.ops = create_team("Ops")
    w.infra = create_team("Infra")

    w.alice = create_user("Alice")
    w.ada = create_user("Ada")
    w.mona = create_user("Mona")
    w.uma = create_user("Uma")
    w.ulf = create_user("Ulf")
    w.ivan = create_user("Ivan")
    w.nora = create_user("Nora")
    w.pam = create_user("Pam")

    add_member(w.ops, w.alice, TeamRole.ADMIN)
    add_member(w.ops, w.ada, TeamRole.ADMIN)
    add_member(w.ops, w.mona, TeamRole.MANAGER)
    add_member(w.ops, w.uma, TeamRole.USER)
    add_member(w.ops, w.ulf, TeamRole.USER)
    add_member(w.infra, w.ivan, TeamRole.ADMIN)
    make_platform_manager(w.pam)
    return w
