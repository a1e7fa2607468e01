"""HTTP Basic authentication (``http-basic``).

See Also:
    :class:`~restcli.plugins.basic.plugin.HTTPBasicAuth`
"""

from restcli.plugins.basic.plugin import HTTPBasicAuth

__all__ = ["HTTPBasicAuth"]
