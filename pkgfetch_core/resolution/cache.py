from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FetchCache:
    """Per-run memo of cloned providers.

    ``fetched`` maps provider names already cloned this run; ``prebuilt`` maps a
    provider name (or a resolved RPM path) to whether it was found locally.
    """

    fetched: dict[str, bool] = field(default_factory=dict)
    prebuilt: dict[str, bool] = field(default_factory=dict)

    def needs_fetch(self, provider: str) -> bool:
        return not self.fetched.get(provider, False)

    def record_fetch(self, provider: str, prebuilt: bool) -> None:
        self.fetched[provider] = True
        self.prebuilt[provider] = prebuilt

    def is_prebuilt(self, key: str) -> bool:
        return self.prebuilt.get(key, False)

    def mark_prebuilt(self, key: str) -> None:
        self.prebuilt[key] = True
