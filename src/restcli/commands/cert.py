"""The ``cert`` command -- show the TLS certificate a server presents.

Uses the same trust settings as requests (``--ca-cert``, ``--insecure``)::

    restcli cert api.example.com
"""

from __future__ import annotations

import socket
import ssl
import time
from typing import Any
from urllib.parse import urlsplit

import typer

from restcli.commands import get_runtime
from restcli.exceptions import TransportError
from restcli.models import PipelineSettings
from restcli.output import info, print_value


def fetch_certificate(host: str, port: int, settings: PipelineSettings) -> dict[str, Any]:
    """Connect to *host* and return the peer certificate as decoded by :mod:`ssl`.

    Raises:
        TransportError: If the connection or TLS handshake fails.
    """
    context = ssl.create_default_context(cafile=settings.ca_cert)
    if settings.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    try:
        with socket.create_connection((host, port), timeout=settings.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=host) as tls:
                cert = tls.getpeercert()
                version = tls.version()
    except (OSError, ssl.SSLError) as exc:
        raise TransportError(f"TLS connection to {host}:{port} failed: {exc}", host) from exc
    return {"version": version, **(cert or {})}


def summarize_certificate(cert: dict[str, Any], now: float | None = None) -> dict[str, Any]:
    """Reduce a decoded certificate to the fields worth showing."""

    def _names(field: str) -> dict[str, str]:
        return {k: v for rdn in cert.get(field, ()) for k, v in rdn}

    summary: dict[str, Any] = {
        "tls_version": cert.get("version"),
        "subject": _names("subject"),
        "issuer": _names("issuer"),
        "serial_number": cert.get("serialNumber"),
        "not_before": cert.get("notBefore"),
        "not_after": cert.get("notAfter"),
        "alt_names": [value for _, value in cert.get("subjectAltName", ())],
    }
    if cert.get("notAfter"):
        expires = ssl.cert_time_to_seconds(cert["notAfter"])
        summary["expires_in_days"] = int((expires - (now or time.time())) // 86400)
    return summary


def cert_command(
    ctx: typer.Context,
    address: str = typer.Argument(help="Host, URL, or <api> name of a configured API."),
) -> None:
    """Show the TLS certificate presented by a server."""
    runtime = get_runtime(ctx)
    url = urlsplit(runtime.pipeline.addresses.resolve(address))
    if not url.hostname:
        raise TransportError(f"No host in address '{address}'")
    port = url.port or 443

    cert = fetch_certificate(url.hostname, port, runtime.settings)
    if len(cert) == 1:
        info("Certificate verification is disabled; no certificate details available.")
    print_value(summarize_certificate(cert))
