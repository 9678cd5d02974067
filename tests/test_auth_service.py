import pytest

from app.core.errors import ConflictError, InvalidCredentials, TooManyRequests
from app.core.config import LOGIN_MAX_FAILURES
from app.core.security import decode_access_token
from app.models.household import HouseholdMember, Kitchen, Role, User
from app.services import auth_service

PASSWORD = "s3cret-pass"


@pytest.mark.asyncio
async def test_register_creates_personal_household_and_kitchen(db):
    user, token = await auth_service.register("  Chef@Example.com ", PASSWORD, "Chef")

    assert user.email == "chef@example.com"
    assert user.password_hash and user.password_hash != PASSWORD
    assert decode_access_token(token)["sub"] == str(user.id)

    membership = await HouseholdMember.get(user_id=user.id).prefetch_related("household")
    assert membership.role == Role.OWNER
    assert membership.household.name == "Chef's Kitchen"
    assert [k.name for k in await Kitchen.filter(household_id=membership.household_id)] == ["Home Kitchen"]


@pytest.mark.asyncio
async def test_register_rejects_duplicate_email(db):
    await auth_service.register("chef@example.com", PASSWORD)

    with pytest.raises(ConflictError):
        await auth_service.register("CHEF@example.com", PASSWORD)
    assert await User.all().count() == 1


@pytest.mark.asyncio
async def test_login_returns_token_for_valid_credentials(db):
    registered, _ = await auth_service.register("chef@example.com", PASSWORD)

    user, token = await auth_service.login("chef@example.com", PASSWORD, "10.0.0.1")

    assert user.id == registered.id
    assert decode_access_token(token)["sub"] == str(user.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("email, password", [
    ("chef@example.com", "wrong-password"),
    ("nobody@example.com", PASSWORD),
])
async def test_login_rejects_bad_credentials(db, email, password):
    await auth_service.register("chef@example.com", PASSWORD)

    with pytest.raises(InvalidCredentials):
        await auth_service.login(email, password, "10.0.0.1")


@pytest.mark.asyncio
async def test_users_without_password_cannot_log_in(world):
    with pytest.raises(InvalidCredentials):
        await auth_service.login(world.owner.email, "", "10.0.0.1")


@pytest.mark.asyncio
async def test_repeated_failures_lock_out_the_ip(db):
    await auth_service.register("chef@example.com", PASSWORD)
    for _ in range(LOGIN_MAX_FAILURES):
        with pytest.raises(InvalidCredentials):
            await auth_service.login("chef@example.com", "wrong-password", "10.0.0.1")

    with pytest.raises(TooManyRequests):
        await auth_service.login("chef@example.com", PASSWORD, "10.0.0.1")

    user, _ = await auth_service.login("chef@example.com", PASSWORD, "10.0.0.2")
    assert user.email == "chef@example.com"


@pytest.mark.asyncio
async def test_successful_login_clears_failure_count(db):
    await auth_service.register("chef@example.com", PASSWORD)

    for _ in range(2):
        for _ in range(LOGIN_MAX_FAILURES - 1):
            with pytest.raises(InvalidCredentials):
                await auth_service.login("chef@example.com", "wrong-password", "10.0.0.1")
        await auth_service.login("chef@example.com", PASSWORD, "10.0.0.1")
