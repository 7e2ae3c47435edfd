"""Jewel backends shipped with chartkeeper and the script helpers creating them."""

import logging
import secrets

from .jewel import Jewel, JewelBackend

__all__ = [
    "UserCredential",
    "RandomToken",
    "user_credential",
    "random_token",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_PASSWORD_LENGTH = 24
DEFAULT_TOKEN_LENGTH = 32


class UserCredential(JewelBackend):
    """A username and password pair.

    A missing username defaults to the configured one and a missing password
    is generated randomly. Existing fields are never rotated.
    """

    def __init__(self, username: str, password_length: int = DEFAULT_PASSWORD_LENGTH) -> None:
        """Initialize UserCredential."""
        self._username = username
        self._password_length = password_length

    @property
    def name(self) -> str:
        return "user_credential"

    def keys(self) -> dict[str, str]:
        return {"username": "username", "password": "password"}

    def apply(self, data: dict[str, bytes]) -> dict[str, bytes]:
        result = dict(data)
        if not result.get("username"):
            result["username"] = self._username.encode("utf-8")
        if not result.get("password"):
            _LOGGER.debug("Generating password for user %s", self._username)
            result["password"] = secrets.token_urlsafe(self._password_length)[
                : self._password_length
            ].encode("utf-8")
        return result


class RandomToken(JewelBackend):
    """A single random token, generated once."""

    def __init__(self, length: int = DEFAULT_TOKEN_LENGTH) -> None:
        """Initialize RandomToken."""
        if length <= 0:
            raise ValueError(f"Token length must be positive, got {length}")
        self._length = length

    @property
    def name(self) -> str:
        return "random_token"

    def keys(self) -> dict[str, str]:
        return {"token": "token"}

    def apply(self, data: dict[str, bytes]) -> dict[str, bytes]:
        if data.get("token"):
            return dict(data)
        return {**data, "token": secrets.token_hex(self._length)[: self._length].encode("utf-8")}


def user_credential(
    name: str,
    username: str | None = None,
    password_length: int = DEFAULT_PASSWORD_LENGTH,
) -> Jewel:
    """Create a jewel holding a username and password."""
    return Jewel(UserCredential(username or name, password_length), name)


def random_token(name: str, length: int = DEFAULT_TOKEN_LENGTH) -> Jewel:
    """Create a jewel holding a random token."""
    return Jewel(RandomToken(length), name)
