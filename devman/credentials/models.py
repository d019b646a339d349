"""
Credential profile models using Pydantic.
"""
from typing import Literal

from pydantic import BaseModel, SecretStr

from devman.cli.params import CliParams
from devman.snmp.client import (
    AuthProtocol,
    PrivProtocol,
    SNMPv1Credential,
    SNMPv2cCredential,
    SNMPv3Credential,
)


class ProfileBase(BaseModel):
    """Fields shared by every profile: naming, ordering, CLI login."""

    name: str
    description: str | None = None
    priority: int = 100  # Lower = tried first during auto-discovery
    cli_username: str | None = None
    cli_password: SecretStr | None = None
    cli_enable_password: SecretStr | None = None

    def to_cli_params(self, telnet: bool = False) -> CliParams | None:
        """CLI params carrying this profile's login, None without a username."""
        if not self.cli_username:
            return None
        return CliParams(
            telnet=telnet,
            username=self.cli_username,
            password=self.cli_password.get_secret_value() if self.cli_password else "",
            enable_password=(
                self.cli_enable_password.get_secret_value() if self.cli_enable_password else ""
            ),
        )


class SNMPv2cProfile(ProfileBase):
    """SNMPv2c credential profile."""

    version: Literal["v2c"] = "v2c"
    community: SecretStr

    def to_snmp_credential(self) -> SNMPv2cCredential:
        """Convert to SNMP client credential."""
        return SNMPv2cCredential(community=self.community.get_secret_value())


class SNMPv1Profile(SNMPv2cProfile):
    """SNMPv1 credential profile."""

    version: Literal["v1"] = "v1"

    def to_snmp_credential(self) -> SNMPv1Credential:
        return SNMPv1Credential(community=self.community.get_secret_value())


class SNMPv3Profile(ProfileBase):
    """SNMPv3 credential profile."""

    version: Literal["v3"] = "v3"
    username: str
    auth_protocol: AuthProtocol | None = None
    auth_password: SecretStr | None = None
    priv_protocol: PrivProtocol | None = None
    priv_password: SecretStr | None = None

    @property
    def security_level(self) -> str:
        """Return the security level based on configured protocols."""
        if self.priv_protocol and self.auth_protocol:
            return "authPriv"
        elif self.auth_protocol:
            return "authNoPriv"
        return "noAuthNoPriv"

    def to_snmp_credential(self) -> SNMPv3Credential:
        """Convert to SNMP client credential."""
        return SNMPv3Credential(
            username=self.username,
            auth_protocol=self.auth_protocol or AuthProtocol.NONE,
            auth_password=(
                self.auth_password.get_secret_value() if self.auth_password else None
            ),
            priv_protocol=self.priv_protocol or PrivProtocol.NONE,
            priv_password=(
                self.priv_password.get_secret_value() if self.priv_password else None
            ),
        )


CredentialProfile = SNMPv1Profile | SNMPv2cProfile | SNMPv3Profile

PROFILE_CLASSES = {"v1": SNMPv1Profile, "v2c": SNMPv2cProfile, "v3": SNMPv3Profile}


def profile_from_dict(data: dict) -> CredentialProfile:
    """
    Create a credential profile from a dictionary.

    Raises:
        ValueError: unknown version or invalid fields (pydantic.ValidationError)
    """
    version = data.get("version", "v2c")
    if version not in PROFILE_CLASSES:
        raise ValueError(f"unknown SNMP version {version!r}")
    return PROFILE_CLASSES[version](**data)


def profile_to_dict(profile: CredentialProfile) -> dict:
    """Serialize a profile for storage, revealing secrets."""
    data = profile.model_dump(mode="json")
    for key, value in profile:
        if isinstance(value, SecretStr):
            data[key] = value.get_secret_value()
    return data
