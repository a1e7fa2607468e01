"""API key header produced by a shell command.

Implements the ``api-key-header`` scheme. The ``cmd`` parameter is run with
``bash -c`` before each request; its first non-empty output line must have
the form ``Header-Name: value`` and that header is added to the request.
This lets a password manager or token helper supply short-lived keys.

The command is bounded by the auth timeout and polled for cancellation. A
non-zero exit status, a timeout or unparseable output raises, and the
registry reports it as an
:class:`~restcli.exceptions.AuthHandlerError` for this request only.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Optional

import httpx

from restcli.auth.base import AuthHandler
from restcli.cancel import CancelToken
from restcli.exceptions import CancelledError_, TimeoutError_
from restcli.models import AuthParam

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
_POLL_INTERVAL = 0.1


class ShellAPIKeyHeaderAuth(AuthHandler):
    """Add a header whose name and value are printed by a shell command."""

    def __init__(self, shell: str = "bash") -> None:
        self._shell = shell

    def parameters(self) -> list[AuthParam]:
        return [
            AuthParam(
                name="cmd",
                help="Shell command printing 'Header-Name: value'",
                required=True,
            )
        ]

    def apply(
        self,
        request: httpx.Request,
        key: str,
        params: dict[str, str],
        *,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> None:
        output = self._run(params["cmd"], cancel, timeout or DEFAULT_TIMEOUT)
        name, value = parse_header_line(output)
        request.headers[name] = value

    def _run(self, cmd: str, cancel: Optional[CancelToken], timeout: float) -> str:
        logger.debug("Running auth command with %s (timeout %.1fs)", self._shell, timeout)
        proc = subprocess.Popen(
            [self._shell, "-c", cmd],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        deadline = time.monotonic() + timeout
        while True:
            try:
                stdout, stderr = proc.communicate(timeout=_POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.cancelled:
                    _kill(proc)
                    raise CancelledError_("Cancelled while running auth command")
                if time.monotonic() >= deadline:
                    _kill(proc)
                    raise TimeoutError_(f"Auth command timed out after {timeout:g}s")

        if proc.returncode != 0:
            detail = stderr.strip() or "no error output"
            raise RuntimeError(f"Auth command exited with status {proc.returncode}: {detail}")
        return stdout


def parse_header_line(output: str) -> tuple[str, str]:
    """Parse ``Header-Name: value`` from command output.

    Only the first non-empty line is used. The value may itself contain
    colons.

    Raises:
        ValueError: If no line has a non-empty name before a colon.
    """
    for line in output.splitlines():
        if not line.strip():
            continue
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Expected 'Header-Name: value' output, got {line.strip()!r}")
        return name.strip(), value.strip()
    raise ValueError("Auth command produced no output")


def _kill(proc: subprocess.Popen) -> None:
    proc.kill()
    proc.communicate()
