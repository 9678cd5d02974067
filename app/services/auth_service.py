import logging
from typing import Optional, Tuple

from tortoise.transactions import in_transaction

from app.core.errors import ConflictError, InvalidCredentials, TooManyRequests, handle_db_error
from app.core.rate_limit import clear_failed_logins, login_locked_out, record_failed_login
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models.household import Household, HouseholdMember, Kitchen, Role, User
from app.services.household_service import generate_invite_code

log = logging.getLogger("auth_service")


async def register(email: str, password: str, name: Optional[str] = None) -> Tuple[User, str]:
    """
    Creates the account together with a personal household (caller as
    OWNER) and a "Home Kitchen", then returns the user and a bearer token.
    """
    email = email.strip().lower()
    name = name.strip() if name else None
    if await User.exists(email=email):
        raise ConflictError(f"User {email} already exists", "An account with this email already exists.")

    try:
        async with in_transaction() as conn:
            user = await User.create(
                email=email,
                name=name,
                password_hash=get_password_hash(password),
                using_db=conn,
            )
            household = await Household.create(
                name=f"{name or email.split('@')[0]}'s Kitchen",
                description="My personal kitchen management",
                invite_code=generate_invite_code(),
                created_by=user,
                using_db=conn,
            )
            await HouseholdMember.create(user=user, household=household, role=Role.OWNER, using_db=conn)
            await Kitchen.create(household=household, name="Home Kitchen", description="Main kitchen", using_db=conn)
    except Exception as e:
        log.error(f"Error registering user {email}: {e}")
        raise handle_db_error(e, "user registration")

    log.info(f"User registered: {user.id}")
    return user, create_access_token(user.id)


async def login(email: str, password: str, client_ip: str) -> Tuple[User, str]:
    """
    Verifies credentials and issues a bearer token. Repeated failures from
    one IP lock it out for the configured window; success clears the count.
    """
    if login_locked_out(client_ip):
        raise TooManyRequests(f"Login locked out for {client_ip}")

    user = await User.get_or_none(email=email.strip().lower())
    if not user or not verify_password(password, user.password_hash):
        record_failed_login(client_ip)
        log.warning(f"Failed login attempt for email: {email} from IP: {client_ip}")
        raise InvalidCredentials(f"Failed login for {email}")

    clear_failed_logins(client_ip)
    log.info(f"Successful login: {user.id} from IP: {client_ip}")
    return user, create_access_token(user.id)
