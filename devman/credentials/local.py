"""
Local file-based credential storage.
Credentials stored encrypted in data/credentials/ directory.
"""
import json
import logging
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from devman.credentials.base import CredentialProvider
from devman.credentials.models import CredentialProfile, profile_from_dict, profile_to_dict

logger = logging.getLogger(__name__)


class LocalCredentialProvider(CredentialProvider):
    """
    Stores credential profiles in one encrypted JSON file.

    Structure:
    data/credentials/
    ├── .key              # Encryption key (gitignored)
    └── profiles.json.enc # Encrypted credential profiles
    """

    def __init__(self, base_path: str = "data/credentials"):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._key_file = self.base_path / ".key"
        self._profiles_file = self.base_path / "profiles.json.enc"
        self._fernet: Fernet | None = None

    def _get_fernet(self) -> Fernet:
        """Get or create Fernet encryption instance."""
        if self._fernet is None:
            if self._key_file.exists():
                key = self._key_file.read_bytes()
            else:
                key = Fernet.generate_key()
                self._key_file.write_bytes(key)
                self._key_file.chmod(0o600)
            self._fernet = Fernet(key)
        return self._fernet

    def _load_profiles(self) -> dict:
        """Load and decrypt profiles from file."""
        if not self._profiles_file.exists():
            return {}
        try:
            decrypted = self._get_fernet().decrypt(self._profiles_file.read_bytes())
            return json.loads(decrypted)
        except (InvalidToken, ValueError) as e:
            logger.warning(f"Unable to read credential store {self._profiles_file}: {e!r}")
            return {}

    def _save_profiles(self, profiles: dict) -> None:
        """Encrypt and save profiles to file."""
        data = json.dumps(profiles, indent=2).encode()
        self._profiles_file.write_bytes(self._get_fernet().encrypt(data))

    @staticmethod
    def _ordered(profiles: dict) -> list[tuple[str, dict]]:
        # Sort by priority (lower first), then by name
        return sorted(profiles.items(), key=lambda item: (item[1].get("priority", 100), item[0]))

    def list_profiles(self) -> list[str]:
        """List all credential profile names sorted by priority."""
        return [name for name, _ in self._ordered(self._load_profiles())]

    def get_profile(self, name: str) -> CredentialProfile | None:
        """Get a credential profile by name."""
        data = self._load_profiles().get(name)
        if not data:
            return None
        return profile_from_dict(data)

    def get_all_profiles_ordered(self) -> list[CredentialProfile]:
        """Get all profiles ordered by priority (lowest first)."""
        return [profile_from_dict(data) for _, data in self._ordered(self._load_profiles())]

    def save_profile(self, profile: CredentialProfile) -> None:
        """Save or update a credential profile."""
        profiles = self._load_profiles()
        profiles[profile.name] = profile_to_dict(profile)
        self._save_profiles(profiles)

    def delete_profile(self, name: str) -> bool:
        """Delete a credential profile."""
        profiles = self._load_profiles()
        if profiles.pop(name, None) is None:
            return False
        self._save_profiles(profiles)
        return True
