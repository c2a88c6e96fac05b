"""Credential lookup through the git credential-helper protocol.

git keys stored credentials by protocol and host, so we ask
``git credential fill`` once per run and hand the result to every fetch and
pull. See ``git help credential`` for the wire format.
"""

import logging
import re
import subprocess
from dataclasses import dataclass, field
from typing import Iterable, Sequence
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

GIT_CREDENTIAL_FILL = ("git", "credential", "fill")

# Azure DevOps stores credentials under the legacy visualstudio.com host.
AZURE_DEVOPS_URL = re.compile(r"https://(?:\w+@)?dev\.azure\.com/(?P<org>\w+)/")


class CredentialError(Exception):
    """The credential helper could not supply usable credentials."""


@dataclass(frozen=True)
class Credentials:
    """Username and password (or token) for one remote host."""

    username: str
    password: str = field(repr=False)


def fix_azure_url(url: str) -> str:
    """Rewrite ``dev.azure.com`` URLs to their ``{org}.visualstudio.com`` form."""
    return AZURE_DEVOPS_URL.sub(r"https://\g<org>.visualstudio.com/", url)


def uses_credential_helper(url: str) -> bool:
    """Whether git would ask the credential helper when talking to ``url``."""
    return urlsplit(fix_azure_url(url)).scheme in ("http", "https")


def parse_credential_output(lines: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` lines from a credential helper.

    Values may contain ``=``; only the first one separates key from value.

    Raises:
        CredentialError: If a line has no ``=`` or a key repeats
    """
    values: dict[str, str] = {}
    for number, line in enumerate(lines, start=1):
        key, separator, value = line.partition("=")
        if not separator:
            raise CredentialError(f"Invalid credential format on line {number} of credential helper output")
        if key in values:
            raise CredentialError(f"Duplicate key in credential helper output: {key}")
        values[key] = value
    return values


def _credential_request(url: str) -> str:
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return f"protocol={parts.scheme}\nhost={host}\n\n"


def get_git_credentials(url: str, command: Sequence[str] = GIT_CREDENTIAL_FILL) -> Credentials:
    """Ask the git credential helper for the credentials of a remote URL.

    Args:
        url: Remote URL. Userinfo and path are not sent to the helper.
        command: Helper command line, ``git credential fill`` unless overridden

    Returns:
        The username and password the helper returned.

    Raises:
        CredentialError: If the helper cannot be run or its answer is unusable
    """
    request = _credential_request(fix_azure_url(url))
    logger.debug("Requesting credentials: %s", request.strip().replace("\n", ", "))

    try:
        with subprocess.Popen(
            list(command),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        ) as process:
            stdout, stderr = process.communicate(request)
    except OSError as err:
        raise CredentialError(f"Failed to run credential helper: {err}") from err

    if stderr:
        logger.debug("Credential helper stderr: %s", stderr.strip())

    values = parse_credential_output(stdout.splitlines())
    for key in ("username", "password"):
        if key not in values:
            raise CredentialError(f"Credential helper did not return a {key}")
    return Credentials(username=values["username"], password=values["password"])
