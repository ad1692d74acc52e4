"""
lftp command-line construction.

The command is a single shell string of the form::

    lftp -c 'open -e '"'"'<directives>'"'"' -p <port> -u <user,password> <protocol>://<host>'

Every user-supplied value (program, paths, credentials, host) is passed
through ``shlex.quote`` on its own before it is interpolated into the lftp
script, and the script is quoted once more as a whole for the shell. A remote
path like ``/data; rm -rf ~`` therefore stays a single argument to ``mirror``.
"""

from __future__ import annotations

from shlex import quote

from mirrorkeeper.mirror.types import VERBOSITY, SourceConfig

REDACTED = "******"

# Force explicit TLS on both control and data channels
FTPS_DIRECTIVES = (
    'set ftps:initial-prot ""',
    "set ftp:ssl-force true",
    "set ftp:ssl-protect-data true",
)

VERIFY_CERTIFICATE_OFF = "set ssl:verify-certificate no"


def protocol_directives(protocol: str) -> list[str]:
    """Extra lftp settings a protocol needs before mirroring."""
    if protocol == "ftps":
        return list(FTPS_DIRECTIVES)
    return []


def mirror_directives(source: SourceConfig) -> list[str]:
    """Directives run by ``open -e``, in order."""
    directives = protocol_directives(source.protocol)
    if source.ignore_unverified:
        directives.append(VERIFY_CERTIFICATE_OFF)
    directives.append(f"mirror --verbose={VERBOSITY} {quote(source.path)} {quote(source.destination)}")
    directives.append("exit")
    return directives


def auth_fragment(source: SourceConfig, redact: bool = False) -> list[str]:
    """``-u user[,password]`` when credentials are configured, else nothing."""
    if not source.username and not source.password:
        return []
    credentials = source.username or ""
    if source.password:
        credentials += "," + (REDACTED if redact else source.password)
    return ["-u", quote(credentials)]


def lftp_script(source: SourceConfig, port: int, redact: bool = False) -> str:
    """The script passed to ``lftp -c``."""
    parts = ["open", "-e", quote("; ".join(mirror_directives(source))), "-p", str(int(port))]
    parts += auth_fragment(source, redact=redact)
    parts.append(quote(f"{source.protocol}://{source.host}"))
    return " ".join(parts)


def build_command(source: SourceConfig, port: int, redact: bool = False) -> str:
    """
    Full shell command for one mirroring cycle.

    Args:
        source: Source settings
        port: Port to connect to
        redact: Replace the password with a placeholder (for logging)
    """
    return f"{quote(source.lftp_program)} -c {quote(lftp_script(source, port, redact=redact))}"
