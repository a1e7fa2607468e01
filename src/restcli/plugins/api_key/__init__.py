"""Static API key authentication (``api-key``).

See Also:
    :class:`~restcli.plugins.api_key.plugin.APIKeyAuth`
"""

from restcli.plugins.api_key.plugin import APIKeyAuth

__all__ = ["APIKeyAuth"]
