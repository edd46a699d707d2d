"""Tests for the user service layer."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from core.passwords import verify_password
from models.user import User, UserRole
from schemas.user import ProfileUpdate, SignupRequest
from services import user_service
from services.exceptions import DuplicateUserError, InvalidLoginError

PASSWORD = "Sup3rSecret"


async def _signup(db: AsyncSession, email: str, **fields: object) -> User:
    data = SignupRequest(email=email, password=PASSWORD, **fields)
    return await user_service.create_user(db, data, bcrypt_rounds=4)


class TestCreateUser:
    """Tests for create_user."""

    async def test__create_user__hashes_password(self, db_session: AsyncSession) -> None:
        """The stored hash verifies the password and is not the plaintext."""
        user = await _signup(db_session, "alice@example.com", username="alice")

        assert user.id is not None
        assert user.password_hash != PASSWORD
        assert verify_password(PASSWORD, user.password_hash)
        assert user.role == UserRole.USER

    async def test__create_user__default_username(self, db_session: AsyncSession) -> None:
        """Without a username the email local part is used."""
        user = await _signup(db_session, "bob.smith@example.com")

        assert user.username == "bob_smith"

    async def test__create_user__lowercases_email(self, db_session: AsyncSession) -> None:
        """Emails are stored lowercase."""
        user = await _signup(db_session, "Carol@Example.COM", username="carol")

        assert user.email == "carol@example.com"

    async def test__create_user__duplicate_email(self, db_session: AsyncSession) -> None:
        """The same email cannot register twice."""
        await _signup(db_session, "dup@example.com", username="first")

        with pytest.raises(DuplicateUserError):
            await _signup(db_session, "DUP@example.com", username="second")

    async def test__create_user__duplicate_username(self, db_session: AsyncSession) -> None:
        """The same username cannot register twice."""
        await _signup(db_session, "one@example.com", username="taken")

        with pytest.raises(DuplicateUserError):
            await _signup(db_session, "two@example.com", username="taken")


class TestAuthenticate:
    """Tests for authenticate."""

    async def test__authenticate__success(self, db_session: AsyncSession) -> None:
        """Correct email and password return the user."""
        created = await _signup(db_session, "eve@example.com", username="eve")

        user = await user_service.authenticate(
            db_session, "EVE@example.com", PASSWORD, bcrypt_rounds=4,
        )

        assert user.id == created.id

    async def test__authenticate__wrong_password(self, db_session: AsyncSession) -> None:
        """Wrong password is rejected with the generic message."""
        await _signup(db_session, "frank@example.com", username="frank")

        with pytest.raises(InvalidLoginError, match="Invalid credentials"):
            await user_service.authenticate(
                db_session, "frank@example.com", "Wr0ngPassword", bcrypt_rounds=4,
            )

    async def test__authenticate__unknown_email(self, db_session: AsyncSession) -> None:
        """Unknown email gets the same error as a wrong password."""
        with pytest.raises(InvalidLoginError, match="Invalid credentials"):
            await user_service.authenticate(
                db_session, "nobody@example.com", PASSWORD, bcrypt_rounds=4,
            )


class TestProfiles:
    """Tests for get_profile and update_profile."""

    async def test__get_profile__projection(self, db_session: AsyncSession) -> None:
        """The profile never carries the password hash."""
        user = await _signup(db_session, "gina@example.com", username="gina", bio="hi")

        profile = await user_service.get_profile(db_session, user.id)

        assert profile is not None
        assert profile.username == "gina"
        assert profile.bio == "hi"
        assert "password_hash" not in profile.model_dump()

    async def test__get_profile__missing(self, db_session: AsyncSession) -> None:
        """Unknown id returns None."""
        assert await user_service.get_profile(db_session, 999_999) is None

    async def test__update_profile__applies_set_fields_only(
        self, db_session: AsyncSession,
    ) -> None:
        """Fields absent from the update are left alone."""
        user = await _signup(
            db_session, "hank@example.com", username="hank", bio="old", location="Paris",
        )

        updated = await user_service.update_profile(
            db_session, user.id, ProfileUpdate(bio="new"),
        )

        assert updated is not None
        assert updated.bio == "new"
        assert updated.location == "Paris"

    async def test__update_profile__empty_string_clears(
        self, db_session: AsyncSession,
    ) -> None:
        """An empty string clears an optional field."""
        user = await _signup(db_session, "ivy@example.com", username="ivy", bio="old")

        updated = await user_service.update_profile(
            db_session, user.id, ProfileUpdate(bio=""),
        )

        assert updated is not None
        assert updated.bio is None

    async def test__update_profile__username_taken(self, db_session: AsyncSession) -> None:
        """Changing to another user's username is refused."""
        await _signup(db_session, "jack@example.com", username="jack")
        jill = await _signup(db_session, "jill@example.com", username="jill")

        with pytest.raises(DuplicateUserError):
            await user_service.update_profile(
                db_session, jill.id, ProfileUpdate(username="jack"),
            )

    async def test__update_profile__missing_user(self, db_session: AsyncSession) -> None:
        """Unknown id returns None."""
        assert await user_service.update_profile(
            db_session, 999_999, ProfileUpdate(bio="x"),
        ) is None
