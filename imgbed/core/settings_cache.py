"""Runtime tunables read from the setting table (IRuntimeSettings).

Holds the last loaded snapshot; reload() replaces it. Missing, unparseable
or out-of-range values fall back to the defaults from Settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from imgbed.domain.enums import AccessPolicy

if TYPE_CHECKING:
    from imgbed.application.interfaces.repositories import ISettingRepository
    from imgbed.core.config import Settings

logger = logging.getLogger(__name__)

RETRY_COUNT_KEY = "retry_count"
ACCESS_POLICY_KEY = "access_policy"
MAX_UPLOAD_MB_KEY = "max_upload_mb"


@dataclass(frozen=True)
class RuntimeSettingsSnapshot:
    retry_count: int
    access_policy: AccessPolicy
    max_upload_mb: int


class SettingsCache:
    """Process-wide cache of runtime tunables."""

    def __init__(
        self,
        settings: Settings,
        setting_repo: ISettingRepository | None = None,
    ) -> None:
        self.setting_repo = setting_repo
        self._defaults = RuntimeSettingsSnapshot(
            retry_count=settings.default_retry_count,
            access_policy=settings.default_access_policy,
            max_upload_mb=settings.default_max_upload_mb,
        )
        self._snapshot = self._defaults

    @property
    def retry_count(self) -> int:
        return self._snapshot.retry_count

    @property
    def access_policy(self) -> AccessPolicy:
        return self._snapshot.access_policy

    @property
    def max_upload_mb(self) -> int:
        return self._snapshot.max_upload_mb

    def apply(self, raw: dict[str, str]) -> RuntimeSettingsSnapshot:
        """Parse raw key/value rows into a snapshot and make it current."""
        self._snapshot = RuntimeSettingsSnapshot(
            retry_count=self._parse_int(
                raw, RETRY_COUNT_KEY, self._defaults.retry_count, minimum=0
            ),
            access_policy=self._parse_policy(raw),
            max_upload_mb=self._parse_int(
                raw, MAX_UPLOAD_MB_KEY, self._defaults.max_upload_mb, minimum=1
            ),
        )
        return self._snapshot

    async def reload(self) -> RuntimeSettingsSnapshot:
        """Re-read the setting table (no-op without a repository)."""
        if self.setting_repo is None:
            return self._snapshot
        raw = await self.setting_repo.get_all()
        snapshot = self.apply(raw)
        logger.info(
            "Runtime settings loaded: retry_count=%d access_policy=%s max_upload_mb=%d",
            snapshot.retry_count,
            snapshot.access_policy.value,
            snapshot.max_upload_mb,
        )
        return snapshot

    @staticmethod
    def _parse_int(raw: dict[str, str], key: str, default: int, minimum: int) -> int:
        value = raw.get(key)
        if value is None:
            return default
        try:
            parsed = int(value.strip())
        except ValueError:
            logger.warning("Setting %s=%r is not an integer; using %d", key, value, default)
            return default
        if parsed < minimum:
            logger.warning("Setting %s=%d is below %d; using %d", key, parsed, minimum, default)
            return default
        return parsed

    def _parse_policy(self, raw: dict[str, str]) -> AccessPolicy:
        value = raw.get(ACCESS_POLICY_KEY)
        if value is None:
            return self._defaults.access_policy
        try:
            return AccessPolicy(value.strip().lower())
        except ValueError:
            logger.warning(
                "Setting %s=%r is not one of %s; using %s",
                ACCESS_POLICY_KEY,
                value,
                AccessPolicy.values(),
                self._defaults.access_policy.value,
            )
            return self._defaults.access_policy
