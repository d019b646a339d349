"""
Abstract base class for credential providers.
"""
from abc import ABC, abstractmethod

from devman.credentials.models import CredentialProfile


class CredentialProvider(ABC):
    """Abstract interface for credential storage providers."""

    @abstractmethod
    def list_profiles(self) -> list[str]:
        """List all credential profile names sorted by priority."""
        pass

    @abstractmethod
    def get_profile(self, name: str) -> CredentialProfile | None:
        """Get a credential profile by name."""
        pass

    @abstractmethod
    def get_all_profiles_ordered(self) -> list[CredentialProfile]:
        """Get all profiles ordered by priority (lowest first)."""
        pass

    @abstractmethod
    def save_profile(self, profile: CredentialProfile) -> None:
        """Save or update a credential profile."""
        pass

    @abstractmethod
    def delete_profile(self, name: str) -> bool:
        """Delete a credential profile. Returns False if it did not exist."""
        pass

    def profile_exists(self, name: str) -> bool:
        """Check if a profile exists."""
        return name in self.list_profiles()
