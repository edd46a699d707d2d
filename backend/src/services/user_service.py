"""Service layer for user accounts and profiles."""
import logging
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.passwords import dummy_hash, hash_password, verify_password
from models.user import User
from schemas.user import ProfileUpdate, SignupRequest, UserProfile
from schemas.validators import username_from_email
from services.exceptions import DuplicateUserError, InvalidLoginError

logger = logging.getLogger(__name__)

# Fields a user may change on their own profile. Never includes email,
# role, or password_hash.
UPDATABLE_FIELDS = frozenset({
    "username",
    "first_name",
    "last_name",
    "bio",
    "profile_pic",
    "avatar",
    "location",
    "website",
})

# Fields that cannot be cleared once set
REQUIRED_FIELDS = frozenset({"username"})


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    """Get a user by id."""
    return await db.get(User, user_id)


async def get_profile(db: AsyncSession, user_id: int) -> UserProfile | None:
    """Load the public profile for user_id from the database."""
    user = await get_user(db, user_id)
    if user is None:
        return None
    return UserProfile.model_validate(user)


async def user_exists(db: AsyncSession, user_id: int) -> bool:
    """Check whether a user id exists."""
    result = await db.scalar(select(User.id).where(User.id == user_id))
    return result is not None


async def create_user(
    db: AsyncSession,
    data: SignupRequest,
    bcrypt_rounds: int = 12,
) -> User:
    """
    Create a user from signup data.

    The username defaults to the local part of the email when not provided.

    Raises:
        DuplicateUserError: If the email or username is already registered.
    """
    username = data.username or username_from_email(data.email)

    existing = await db.scalar(
        select(User.id).where(or_(User.email == data.email, User.username == username)),
    )
    if existing is not None:
        raise DuplicateUserError

    user = User(
        email=data.email,
        username=username,
        password_hash=hash_password(data.password, rounds=bcrypt_rounds),
        first_name=data.first_name,
        last_name=data.last_name,
        bio=data.bio,
        profile_pic=data.profile_pic,
        avatar=data.avatar,
        location=data.location,
        website=data.website,
    )
    try:
        # Savepoint so a lost race on the unique columns does not discard the
        # rest of the request's unit of work
        async with db.begin_nested():
            db.add(user)
            await db.flush()
    except IntegrityError as e:
        raise DuplicateUserError from e
    await db.refresh(user)
    logger.info("user_created", extra={"user_id": user.id})
    return user


async def authenticate(
    db: AsyncSession,
    email: str,
    password: str,
    bcrypt_rounds: int = 12,
) -> User:
    """
    Check an email/password pair with timing equalization.

    bcrypt runs whether or not the email exists, so response time does not
    reveal which emails are registered.

    Raises:
        InvalidLoginError: On unknown email or wrong password.
    """
    user = await db.scalar(select(User).where(User.email == email.lower()))
    if user is None:
        verify_password(password, dummy_hash(bcrypt_rounds))
        raise InvalidLoginError
    if not verify_password(password, user.password_hash):
        raise InvalidLoginError
    return user


async def update_profile(
    db: AsyncSession,
    user_id: int,
    data: ProfileUpdate,
) -> User | None:
    """
    Apply the fields present in data to the user's profile.

    Returns None if the user does not exist.

    Raises:
        DuplicateUserError: If the new username is taken.

    Note:
        Does not touch the profile cache. The caller invalidates it before
        writing and again after commit.
    """
    user = await get_user(db, user_id)
    if user is None:
        return None

    updates: dict[str, Any] = data.model_dump(exclude_unset=True)

    new_username = updates.get("username")
    if new_username and new_username != user.username:
        taken = await db.scalar(
            select(User.id).where(User.username == new_username, User.id != user_id),
        )
        if taken is not None:
            raise DuplicateUserError("Username already taken")

    changed = False
    for field, value in updates.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if value is None and field in REQUIRED_FIELDS:
            continue
        if getattr(user, field) != value:
            setattr(user, field, value)
            changed = True

    if changed:
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost a race for the username after the check above
            raise DuplicateUserError("Username already taken") from e
        await db.refresh(user)
    return user
