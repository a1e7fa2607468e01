"""Plugin system and built-in auth handlers.

Third-party packages add pipeline components by declaring an entry point
in the ``restcli.plugins`` group; :class:`PluginManager` discovers them and
calls :meth:`Plugin.register` with the pipeline builder.

Built-in auth handlers live in sub-packages:

* :mod:`restcli.plugins.basic` -- ``http-basic``
* :mod:`restcli.plugins.api_key_header` -- ``api-key-header``
* :mod:`restcli.plugins.bearer` -- ``bearer``
* :mod:`restcli.plugins.api_key` -- ``api-key``
"""

from restcli.plugins.base import Plugin
from restcli.plugins.manager import ENTRY_POINT_GROUP, PluginManager

__all__ = ["ENTRY_POINT_GROUP", "Plugin", "PluginManager"]
