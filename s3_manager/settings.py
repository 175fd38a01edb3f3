from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
from pathlib import Path


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    page_size: int = 20
    populate_workers: int = 16
    # Caps deletes running at once; 0 means unbounded. One thread per page
    # is still started either way.
    max_concurrent_deletions: int = 0
    wait_for_deletions: bool = False


def _positive_int(value: object, default: int, *, minimum: int = 1) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < minimum:
        return default
    return number


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3m_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()
        wait_for_deletions = data.get("wait_for_deletions", AppSettings.wait_for_deletions)
        return AppSettings(
            page_size=_positive_int(data.get("page_size"), AppSettings.page_size),
            populate_workers=_positive_int(data.get("populate_workers"), AppSettings.populate_workers),
            max_concurrent_deletions=_positive_int(
                data.get("max_concurrent_deletions"),
                AppSettings.max_concurrent_deletions,
                minimum=0,
            ),
            wait_for_deletions=wait_for_deletions if isinstance(wait_for_deletions, bool) else False,
        )

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        payload["page_size"] = max(int(settings.page_size), 1)
        payload["populate_workers"] = max(int(settings.populate_workers), 1)
        payload["max_concurrent_deletions"] = max(int(settings.max_concurrent_deletions), 0)
        payload["wait_for_deletions"] = bool(settings.wait_for_deletions)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return
