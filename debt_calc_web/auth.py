"""Credential checks for the web app.

The app only needs one capability from this module: map a presented
credential to a role (``"creditor"``, ``"debtor"``, ...) or to ``None``. Any
object with an ``authenticate`` method will do, so a deployment can swap the
static table below for something backed by a real identity provider without
touching the engine.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional


class CredentialAuthenticator:
    """Static mapping of shared secrets to roles.

    Secrets are compared case-insensitively.
    """

    def __init__(self, credentials: Mapping[str, str]) -> None:
        self._roles: Dict[str, str] = {secret.strip().lower(): role for secret, role in credentials.items()}

    def authenticate(self, credential: Optional[str]) -> Optional[str]:
        if not credential:
            return None
        return self._roles.get(credential.strip().lower())


def parse_credentials(spec: str) -> Dict[str, str]:
    """Parse ``"secret:role,secret:role"`` into a dictionary."""
    credentials: Dict[str, str] = {}
    for item in spec.replace("\n", ",").split(","):
        item = item.strip()
        if not item:
            continue
        secret, sep, role = item.partition(":")
        if not sep or not secret.strip() or not role.strip():
            raise ValueError(f"Credential must be in SECRET:ROLE format; got {item!r}")
        credentials[secret.strip()] = role.strip()
    return credentials


def create_authenticator_from_env(spec: Optional[str]) -> CredentialAuthenticator:
    return CredentialAuthenticator(parse_credentials(spec or ""))
