import pytest
import pytest_asyncio
from datetime import datetime, timezone
from tortoise import Tortoise

from app.core.clock import FixedClock
from app.core.db import init_db
from app.core.rate_limit import limiter
from app.models.household import User, Household, HouseholdMember, Kitchen, Role

# Fixed "now" for all time-window tests
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def no_rate_limit():
    """Throttling is exercised in test_rate_limiting; keep it out of the way elsewhere."""
    limiter.enabled = False
    limiter.reset()
    yield
    limiter.enabled = True
    limiter.reset()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest_asyncio.fixture
async def db():
    """Real Tortoise ORM on an in-memory SQLite database, fresh per test."""
    await init_db(db_url="sqlite://:memory:")
    yield
    await Tortoise.close_connections()


class World:
    """A household with one kitchen and one member per role."""

    def __init__(self, household, kitchen, users):
        self.household = household
        self.kitchen = kitchen
        self.users = users

    @property
    def owner(self):
        return self.users[Role.OWNER]

    @property
    def admin(self):
        return self.users[Role.ADMIN]

    @property
    def member(self):
        return self.users[Role.MEMBER]

    @property
    def viewer(self):
        return self.users[Role.VIEWER]


@pytest_asyncio.fixture
async def world(db):
    household = await Household.create(name="Test Household", invite_code="ABC123")
    kitchen = await Kitchen.create(household=household, name="Main Kitchen")
    users = {}
    for role in Role:
        user = await User.create(email=f"{role.value.lower()}@example.com", name=role.value.title())
        await HouseholdMember.create(user=user, household=household, role=role)
        users[role] = user
    return World(household, kitchen, users)


@pytest_asyncio.fixture
async def outsider(db):
    return await User.create(email="outsider@example.com", name="Outsider")
