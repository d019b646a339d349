"""
Credential management module.
"""
from devman.config.settings import get_settings
from devman.credentials.base import CredentialProvider
from devman.credentials.local import LocalCredentialProvider


def get_credential_provider() -> CredentialProvider:
    """Get the configured credential provider."""
    settings = get_settings()
    return LocalCredentialProvider(settings.credential_path)
