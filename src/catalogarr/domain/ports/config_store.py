"""Port for the persisted addon / metadata-provider configuration."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from catalogarr.domain.entities.addon import AddonConfig


@runtime_checkable
class ConfigStorePort(Protocol):
    """Loads and saves the complete configuration snapshot.

    ``load()`` is called at the start of every aggregation, so
    implementations should be cheap and always reflect the latest save.
    """

    def load(self) -> AddonConfig: ...

    def save(self, config: AddonConfig) -> None: ...
