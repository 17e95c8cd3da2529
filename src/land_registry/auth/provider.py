"""Authentication provider Protocol and mock implementation."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from land_registry.auth.models import AuthCredentials, AuthResult, TokenValidation

_DEFAULT_FIXTURES_PATH = Path(__file__).resolve().parents[3] / "config" / "auth_fixtures.yml"


@runtime_checkable
class AuthProvider(Protocol):
    """Protocol for authentication providers."""

    def authenticate(self, credentials: AuthCredentials) -> AuthResult: ...

    def validate_token(self, token: str) -> TokenValidation: ...

    def refresh_token(self, token: str) -> AuthResult: ...

    def revoke_token(self, token: str) -> bool: ...


class MockAuthProvider:
    """Mock auth provider with fixture parties from YAML.

    Each fixture party has a username, a verification code, a display name
    and the ``address`` that identifies it as a parcel owner. A token
    resolves to that address.
    """

    def __init__(
        self,
        fixtures_path: str | Path | None = None,
        token_expiry_minutes: int = 60,
    ) -> None:
        self._parties: dict[str, dict[str, Any]] = {}
        self._tokens: dict[str, dict[str, Any]] = {}
        self._token_expiry = timedelta(minutes=token_expiry_minutes)
        self._load_fixtures(Path(fixtures_path) if fixtures_path else _DEFAULT_FIXTURES_PATH)

    def _load_fixtures(self, path: Path) -> None:
        if not path.exists():
            return
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}
        for party in data.get("parties", []):
            self._parties[party["username"]] = party

    @property
    def parties(self) -> dict[str, dict[str, Any]]:
        return dict(self._parties)

    def issue_token(self, party_id: str, display_name: str = "") -> str:
        """Issue a token for a party directly, skipping credential checks."""
        token = str(uuid.uuid4())
        self._tokens[token] = {
            "party_id": party_id,
            "display_name": display_name or party_id,
            "expires_at": datetime.now(timezone.utc) + self._token_expiry,
        }
        return token

    def authenticate(self, credentials: AuthCredentials) -> AuthResult:
        party = self._parties.get(credentials.username)
        if party is None:
            return AuthResult(success=False, error="Party not found")

        if not credentials.code or not credentials.code.strip():
            return AuthResult(success=False, error="Verification code is required")

        expected_code = str(party.get("code", ""))
        if expected_code and credentials.code != expected_code:
            return AuthResult(success=False, error="Invalid verification code")

        party_id = party.get("address", party["username"])
        display_name = party.get("display_name", party["username"])
        token = self.issue_token(party_id, display_name)

        return AuthResult(
            success=True,
            token=token,
            party_id=party_id,
            display_name=display_name,
        )

    def validate_token(self, token: str) -> TokenValidation:
        info = self._tokens.get(token)
        if info is None:
            return TokenValidation(valid=False)

        if datetime.now(timezone.utc) > info["expires_at"]:
            del self._tokens[token]
            return TokenValidation(valid=False)

        return TokenValidation(
            valid=True,
            party_id=info["party_id"],
            expires_at=info["expires_at"],
        )

    def refresh_token(self, token: str) -> AuthResult:
        if not self.validate_token(token).valid:
            return AuthResult(success=False, error="Token not found or expired")

        info = self._tokens.pop(token)
        new_token = self.issue_token(info["party_id"], info["display_name"])
        return AuthResult(
            success=True,
            token=new_token,
            party_id=info["party_id"],
            display_name=info["display_name"],
        )

    def revoke_token(self, token: str) -> bool:
        if token in self._tokens:
            del self._tokens[token]
            return True
        return False
