"""Shared freeze behaviour for the plugin registries.

Every registry (content types, encodings, auth handlers, link parsers,
description formats) is mutable while the
:class:`~restcli.client.context.PipelineBuilder` collects registrations
and becomes read-only once :meth:`~restcli.client.context.PipelineBuilder.build`
freezes it. After that point lookups are safe from any thread.
"""

from __future__ import annotations

from restcli.exceptions import RegistryFrozenError


class FreezableRegistry:
    """Mixin tracking whether a registry still accepts registrations."""

    _kind = "registry"

    def __init__(self) -> None:
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Reject any further registration."""
        self._frozen = True

    def _check_mutable(self, key: str) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register '{key}': the {self._kind} is frozen after pipeline build"
            )
