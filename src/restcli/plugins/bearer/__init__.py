"""Bearer token authentication (``bearer``)."""

from restcli.plugins.bearer.plugin import BearerAuth

__all__ = ["BearerAuth"]
