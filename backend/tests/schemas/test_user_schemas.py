"""Tests for signup and profile validation rules."""
import pytest
from pydantic import ValidationError

from schemas.user import LoginRequest, ProfileUpdate, SignupRequest
from schemas.validators import username_from_email

PASSWORD = "Sup3rSecret"


class TestSignupRequest:
    """Tests for SignupRequest."""

    @pytest.mark.parametrize(
        "password",
        ["Short1", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere", "Aa1" + "x" * 62],
    )
    def test__password_policy__rejects(self, password: str) -> None:
        """Length, case mix, digit and byte cap are enforced."""
        with pytest.raises(ValidationError):
            SignupRequest(email="a@example.com", password=password)

    def test__password_policy__accepts_64_bytes(self) -> None:
        """The byte cap is inclusive at 64, below bcrypt's 72-byte input limit."""
        password = "Aa1" + "x" * 61

        assert SignupRequest(email="a@example.com", password=password).password == password

    def test__email__lowercased(self) -> None:
        """Emails are normalized."""
        data = SignupRequest(email="MiXeD@Example.com", password=PASSWORD)

        assert data.email == "mixed@example.com"

    @pytest.mark.parametrize("username", ["ab", "x" * 31, "has space", "dash-ed"])
    def test__username__rejects(self, username: str) -> None:
        """Usernames are 3-30 letters, digits or underscores."""
        with pytest.raises(ValidationError):
            SignupRequest(email="a@example.com", password=PASSWORD, username=username)

    def test__names__length(self) -> None:
        """Names are 1-50 characters."""
        with pytest.raises(ValidationError):
            SignupRequest(email="a@example.com", password=PASSWORD, first_name="x" * 51)
        with pytest.raises(ValidationError):
            SignupRequest(email="a@example.com", password=PASSWORD, last_name="   ")

    def test__location__length(self) -> None:
        """Location is at most 100 characters."""
        with pytest.raises(ValidationError):
            SignupRequest(email="a@example.com", password=PASSWORD, location="x" * 101)

    @pytest.mark.parametrize("url", ["javascript:alert(1)", "example.com", "ftp://example.com"])
    def test__urls__require_http(self, url: str) -> None:
        """Picture, avatar and website must be http(s) URLs."""
        with pytest.raises(ValidationError):
            SignupRequest(email="a@example.com", password=PASSWORD, profile_pic=url)


class TestProfileUpdate:
    """Tests for ProfileUpdate."""

    def test__only_set_fields_dumped(self) -> None:
        """Unset fields are excluded so they are left unchanged."""
        data = ProfileUpdate(bio="hello")

        assert data.model_dump(exclude_unset=True) == {"bio": "hello"}

    def test__empty_string_clears(self) -> None:
        """Empty strings become None for optional fields."""
        data = ProfileUpdate(bio="", website="  ")

        assert data.model_dump(exclude_unset=True) == {"bio": None, "website": None}


class TestLoginRequest:
    """Tests for LoginRequest."""

    def test__empty_password_rejected(self) -> None:
        """A password is required."""
        with pytest.raises(ValidationError):
            LoginRequest(email="a@example.com", password="")


class TestUsernameFromEmail:
    """Tests for the default username derivation."""

    @pytest.mark.parametrize(
        ("email", "expected"),
        [
            ("jane@example.com", "jane"),
            ("jane.doe+tag@example.com", "jane_doe_tag"),
            ("a@example.com", "a__"),
            ("x" * 40 + "@example.com", "x" * 30),
        ],
    )
    def test__username_from_email(self, email: str, expected: str) -> None:
        """Local part is sanitized to the username alphabet and length."""
        assert username_from_email(email) == expected
