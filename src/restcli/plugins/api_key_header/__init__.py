"""API key header from a shell command (``api-key-header``)."""

from restcli.plugins.api_key_header.plugin import ShellAPIKeyHeaderAuth, parse_header_line

__all__ = ["ShellAPIKeyHeaderAuth", "parse_header_line"]
