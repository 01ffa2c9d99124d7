"""Database models."""

from .profile import Account, FarmLocation, ProfileRead, ProfileUpdate, UserProfile

__all__ = [
    "Account",
    "FarmLocation",
    "ProfileRead",
    "ProfileUpdate",
    "UserProfile",
]
