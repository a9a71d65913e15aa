from __future__ import annotations
"""Client settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path

from .transport import DEFAULT_PRESIGN_EXPIRES, DEFAULT_REGION, DEFAULT_TIMEOUT

LOGGER = logging.getLogger(__name__)


@dataclass
class ClientSettings:
    """Simple container for persistent client settings."""

    region: str = DEFAULT_REGION
    presign_expires: int = DEFAULT_PRESIGN_EXPIRES
    timeout: int = DEFAULT_TIMEOUT


def _positive_int(value: object, default: int) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if number <= 0:
        return default
    return number


class SettingsStorage:
    """JSON-backed persistence for :class:`ClientSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3rest_settings.json"
        self._path = Path(storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ClientSettings:
        if not self._path.exists():
            return ClientSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable settings file %s", self._path)
            return ClientSettings()
        if not isinstance(data, dict):
            return ClientSettings()
        region = data.get("region")
        if not isinstance(region, str) or not region.strip():
            region = ClientSettings.region
        return ClientSettings(
            region=region.strip(),
            presign_expires=_positive_int(data.get("presign_expires"), ClientSettings.presign_expires),
            timeout=_positive_int(data.get("timeout"), ClientSettings.timeout),
        )

    def save(self, settings: ClientSettings) -> None:
        payload = asdict(settings)
        payload["presign_expires"] = max(int(settings.presign_expires), 1)
        payload["timeout"] = max(int(settings.timeout), 1)
        payload["region"] = settings.region.strip() or ClientSettings.region
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
