"""Per-profile watch state persistence."""

from __future__ import annotations

import json
import logging
from typing import Iterable, Protocol

from .config import Settings
from .database import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

WATCHED_KEY_PREFIX = "watched_videos"
CURRENT_PROFILE_KEY = "current_profile_id"


class WatchKeyPolicy(Protocol):
    """Derives the storage key holding a watch set."""

    def key_for(self, profile_id: str | None) -> str | None: ...


class ProfileScopedKeys:
    """One watch set per profile; nothing is stored without a profile."""

    def key_for(self, profile_id: str | None) -> str | None:
        if not profile_id:
            return None
        return f"{WATCHED_KEY_PREFIX}_{profile_id}"


class GlobalKey:
    """A single watch set shared by every profile."""

    def key_for(self, profile_id: str | None) -> str | None:
        return WATCHED_KEY_PREFIX


def key_policy_from_settings(settings: Settings) -> WatchKeyPolicy:
    if settings.watch_state_scope == "global":
        return GlobalKey()
    return ProfileScopedKeys()


class WatchStateStore:
    """Loads and saves watch sets; storage problems never escape."""

    def __init__(self, store: KeyValueStore, policy: WatchKeyPolicy | None = None):
        self._store = store
        self._policy = policy or ProfileScopedKeys()

    @property
    def policy(self) -> WatchKeyPolicy:
        return self._policy

    def load(self, profile_id: str | None) -> frozenset[str]:
        """Return the stored watch set, or an empty set when absent or corrupt."""

        key = self._policy.key_for(profile_id)
        if key is None:
            return frozenset()
        try:
            raw = self._store.get(key)
        except StorageError as exc:
            logger.warning("Unable to read watch state %s: %s", key, exc)
            return frozenset()
        if not raw:
            return frozenset()
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unparsable watch state under %s", key)
            return frozenset()
        if not isinstance(payload, list):
            logger.warning("Discarding malformed watch state under %s", key)
            return frozenset()
        return frozenset(entry for entry in payload if isinstance(entry, str))

    def save(self, profile_id: str | None, paths: Iterable[str]) -> None:
        """Write the full set back; failures are logged and dropped."""

        key = self._policy.key_for(profile_id)
        if key is None:
            return
        try:
            self._store.set(key, json.dumps(sorted(paths)))
        except StorageError as exc:
            logger.warning("Unable to persist watch state %s: %s", key, exc)


class ProfilePreferences:
    """Remembers the last active profile id."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    def last_profile_id(self) -> str | None:
        try:
            return self._store.get(CURRENT_PROFILE_KEY) or None
        except StorageError as exc:
            logger.warning("Unable to read the last active profile: %s", exc)
            return None

    def remember(self, profile_id: str) -> None:
        try:
            self._store.set(CURRENT_PROFILE_KEY, profile_id)
        except StorageError as exc:
            logger.warning("Unable to persist active profile %s: %s", profile_id, exc)
