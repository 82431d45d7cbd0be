"""
Identity provider tags.

Every user record carries exactly one provider tag. The integer codes are
persisted and sent over the wire, so they are assigned by hand and must
never be renumbered.
"""

from enum import IntEnum
from typing import Any

from sqlalchemy import Integer
from sqlalchemy.types import TypeDecorator

from pyusers.core.exceptions import UnknownProviderError


class IdentityProvider(IntEnum):
    """External identity source a user account originates from."""

    AUTH0 = 1
    CLERK = 2
    GOOGLE = 3
    MICROSOFT = 4
    SUPABASE = 5
    # Reserved for non-production accounts
    TEST = 6
    # Catch-all for providers not modeled yet
    OTHER = 7

    @classmethod
    def from_code(cls, code: Any) -> "IdentityProvider":
        """
        Decode a persisted or transmitted provider code.

        Args:
            code: Integer code

        Returns:
            Matching provider

        Raises:
            UnknownProviderError: If code is not one of the defined variants
        """
        if isinstance(code, bool) or not isinstance(code, int):
            raise UnknownProviderError(code)
        try:
            return cls(code)
        except ValueError:
            raise UnknownProviderError(code) from None

    @classmethod
    def coerce(cls, code: Any) -> "IdentityProvider":
        """Decode a provider code, mapping unknown codes to OTHER."""
        try:
            return cls.from_code(code)
        except UnknownProviderError:
            return cls.OTHER

    @classmethod
    def from_name(cls, name: str) -> "IdentityProvider":
        """Look up a provider by symbolic name, case-insensitively."""
        try:
            return cls[name.strip().upper()]
        except (KeyError, AttributeError):
            raise UnknownProviderError(name) from None

    def to_code(self) -> int:
        """Encode the provider for storage or transmission."""
        return int(self.value)

    @property
    def is_production_allowed(self) -> bool:
        """Whether accounts from this provider may exist in production data."""
        return self is not IdentityProvider.TEST


class IdentityProviderType(TypeDecorator):
    """Column type storing an IdentityProvider as its integer code."""

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> int | None:
        if value is None:
            return None
        if isinstance(value, IdentityProvider):
            return value.to_code()
        return IdentityProvider.from_code(value).to_code()

    def process_result_value(self, value: Any, dialect: Any) -> IdentityProvider | None:
        if value is None:
            return None
        return IdentityProvider.from_code(value)
