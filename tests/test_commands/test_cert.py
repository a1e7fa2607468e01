"""Tests for the certificate summary shown by ``restcli cert``."""

from __future__ import annotations

import ssl

from restcli.commands.cert import summarize_certificate

CERT = {
    "version": "TLSv1.3",
    "subject": ((("commonName", "api.example.com"),),),
    "issuer": ((("organizationName", "Example CA"),), (("commonName", "Example Root"),)),
    "serialNumber": "0A1B",
    "notBefore": "Jan  1 00:00:00 2026 GMT",
    "notAfter": "Jan 31 00:00:00 2026 GMT",
    "subjectAltName": (("DNS", "api.example.com"), ("DNS", "www.example.com")),
}


def test_summary_fields() -> None:
    now = ssl.cert_time_to_seconds("Jan 21 00:00:00 2026 GMT")
    summary = summarize_certificate(CERT, now=now)
    assert summary["tls_version"] == "TLSv1.3"
    assert summary["subject"] == {"commonName": "api.example.com"}
    assert summary["issuer"] == {"organizationName": "Example CA", "commonName": "Example Root"}
    assert summary["alt_names"] == ["api.example.com", "www.example.com"]
    assert summary["expires_in_days"] == 10


def test_unverified_certificate_has_no_details() -> None:
    summary = summarize_certificate({"version": "TLSv1.2"})
    assert summary["subject"] == {}
    assert summary["alt_names"] == []
    assert "expires_in_days" not in summary
