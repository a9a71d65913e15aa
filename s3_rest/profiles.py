from __future__ import annotations
"""Connection profiles with secrets kept in the OS keychain."""
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError

LOGGER = logging.getLogger(__name__)

KEYRING_SERVICE = "pys3rest"


@dataclass
class ConnectionProfile:
    """Endpoint and credentials for one S3-compatible service."""

    name: str
    endpoint_url: str
    access_key: str
    secret_key: str = ""
    region: Optional[str] = None


class KeychainStore:
    """Keeps secret keys out of the profile file."""

    def __init__(self, service_name: str = KEYRING_SERVICE):
        self._service_name = service_name

    def get_secret(self, profile_name: str) -> str:
        if not profile_name:
            return ""
        try:
            return keyring.get_password(self._service_name, profile_name) or ""
        except KeyringError:
            LOGGER.warning("Keychain lookup failed for profile '%s'", profile_name)
            return ""

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        if not profile_name:
            return
        if not secret_key:
            self.delete_secret(profile_name)
            return
        try:
            keyring.set_password(self._service_name, profile_name, secret_key)
        except KeyringError:
            LOGGER.warning("Could not store the secret of profile '%s'", profile_name)

    def delete_secret(self, profile_name: str) -> None:
        if not profile_name:
            return
        try:
            keyring.delete_password(self._service_name, profile_name)
        except KeyringError:
            # Nothing stored for this profile.
            return


class ProfileStorage:
    """JSON file of connection profiles, without their secret keys."""

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3rest_connections.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    def load(self) -> list[ConnectionProfile]:
        data = self._read_entries()
        profiles: list[ConnectionProfile] = []
        sanitized: list[dict[str, str]] = []
        saw_plaintext = False
        for entry in data:
            try:
                name = entry["name"]
                endpoint_url = entry["endpoint_url"]
                access_key = entry["access_key"]
            except (KeyError, TypeError):
                LOGGER.debug("Skipping malformed profile entry %r", entry)
                continue
            secret_key = entry.get("secret_key", "")
            if secret_key:
                saw_plaintext = True
                self._keychain.set_secret(name, secret_key)
            else:
                secret_key = self._keychain.get_secret(name)
            profile = ConnectionProfile(
                name=name,
                endpoint_url=endpoint_url,
                access_key=access_key,
                secret_key=secret_key,
                region=entry.get("region") or None,
            )
            profiles.append(profile)
            sanitized.append(self._serialize(profile))
        if saw_plaintext:
            LOGGER.info("Moved plaintext secrets from %s to the keychain", self._path)
            self._write_data(sanitized)
        return profiles

    def get(self, name: str) -> ConnectionProfile:
        for profile in self.load():
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    def save(self, profiles: list[ConnectionProfile]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = []
        for profile in profiles:
            self._keychain.set_secret(profile.name, profile.secret_key)
            data.append(self._serialize(profile))
        existing_names = {entry.get("name") for entry in self._read_entries() if isinstance(entry, dict)}
        current_names = {profile.name for profile in profiles}
        for name in existing_names - current_names:
            if isinstance(name, str) and name:
                self._keychain.delete_secret(name)
        self._write_data(data)

    def _read_entries(self) -> list:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable profile file %s", self._path)
            return []
        return data if isinstance(data, list) else []

    @staticmethod
    def _serialize(profile: ConnectionProfile) -> dict[str, str]:
        entry = {
            "name": profile.name,
            "endpoint_url": profile.endpoint_url,
            "access_key": profile.access_key,
        }
        if profile.region:
            entry["region"] = profile.region
        return entry

    def _write_data(self, data: list[dict[str, str]]) -> None:
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
