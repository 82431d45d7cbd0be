"""Business logic services for PyUsers."""

from pyusers.services.user import UserService

__all__ = ["UserService"]
