"""Abstract base class for restcli plugins.

A plugin contributes pipeline components (content types, encodings, auth
handlers, link parsers, description formats) by registering them on the
:class:`~restcli.client.context.PipelineBuilder` before the pipeline is
built. Registration after :meth:`~restcli.client.context.PipelineBuilder.build`
raises :class:`~restcli.exceptions.RegistryFrozenError`.

Plugins are declared as entry points in the ``restcli.plugins`` group and
discovered by :class:`~restcli.plugins.manager.PluginManager`.

Example:
    A plugin adding MessagePack support::

        class MsgPackPlugin(Plugin):
            @property
            def name(self) -> str:
                return "msgpack"

            def register(self, builder: PipelineBuilder) -> None:
                builder.register_content_type("application/msgpack", 0.8, MsgPackCodec())
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from restcli.client.context import PipelineBuilder


class Plugin(ABC):
    """Base class for all restcli plugins.

    The lifecycle is: the :class:`~restcli.plugins.manager.PluginManager`
    calls the no-arg constructor, then :meth:`register` exactly once while
    the pipeline is still being assembled.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique plugin name used for discovery, filtering and logging."""
        ...

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def description(self) -> str:
        return ""

    @abstractmethod
    def register(self, builder: PipelineBuilder) -> None:
        """Register this plugin's components on *builder*."""
        ...
