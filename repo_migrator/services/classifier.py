"""Turn migration failures into messages that are safe to show a user."""

from urllib.parse import quote, unquote, urlsplit

from repo_migrator.core.errors import (
    NamePatternNotAllowedError,
    NameReservedError,
    ReachLimitOfRepoError,
    RepoAlreadyExistError,
)
from repo_migrator.models import User

CREDENTIALS_PLACEHOLDER = "<credentials>"

# Printed by git when the remote rejects or asks for credentials.
AUTH_FAILURE_MARKERS: tuple[str, ...] = (
    "Authentication failed",
    "could not read Username",
)
TRANSPORT_FATAL_MARKER = "fatal:"

# Shorter passwords are only redacted where they appear as URL userinfo.
MIN_BARE_SECRET_LENGTH = 4


def _encodings(secret: str) -> set[str]:
    """The forms a secret can take in a message: raw, decoded and quoted."""
    return {secret, unquote(secret), quote(secret, safe=""), quote(secret)}


def _url_credentials(remote_url: str) -> tuple[set[str], set[str]]:
    try:
        parts = urlsplit(remote_url)
    except ValueError:
        return set(), set()

    userinfo, at, _ = parts.netloc.rpartition("@")
    if not at or not userinfo:
        return set(), set()

    _, colon, password = userinfo.partition(":")
    passwords = _encodings(unquote(password)) if colon and password else set()
    return {userinfo, unquote(userinfo)}, passwords


def sanitize_message(
    message: str,
    remote_url: str = "",
    auth_password: str = "",
    auth_username: str = "",
) -> str:
    """Redact credentials of the remote endpoint from a message.

    Removes the userinfo part of ``remote_url`` and the auth password in its
    raw, percent-decoded and percent-encoded forms. A username given without
    a password is treated as a token and redacted where it precedes ``@``.
    """
    userinfos, passwords = _url_credentials(remote_url)
    if auth_password:
        passwords |= _encodings(auth_password)
    elif auth_username:
        userinfos |= _encodings(auth_username)

    for userinfo in sorted(filter(None, userinfos), key=len, reverse=True):
        message = message.replace(f"{userinfo}@", f"{CREDENTIALS_PLACEHOLDER}@")

    for password in sorted(filter(None, passwords), key=len, reverse=True):
        message = message.replace(f":{password}@", f":{CREDENTIALS_PLACEHOLDER}@")
        if len(password) >= MIN_BARE_SECRET_LENGTH:
            message = message.replace(password, CREDENTIALS_PLACEHOLDER)
    return message


def classify_error(
    err: Exception,
    owner: User | None = None,
    remote_url: str = "",
    auth_password: str = "",
    auth_username: str = "",
) -> str:
    """Map a migration failure to a user-facing message.

    Repository rule violations get fixed messages. Anything else is
    sanitized and tagged by what git reported. The result is never empty.
    """
    if isinstance(err, ReachLimitOfRepoError):
        limit = owner.max_creation_limit() if owner is not None else err.limit
        return f"You have already reached your limit of {limit} repositories."
    if isinstance(err, RepoAlreadyExistError):
        return "The repository name is already used."
    if isinstance(err, NameReservedError):
        return f"The repository name '{err.name}' is reserved."
    if isinstance(err, NamePatternNotAllowedError):
        return f"The pattern '{err.pattern}' is not allowed in a repository name."

    message = sanitize_message(str(err), remote_url, auth_password, auth_username)
    if any(marker in message for marker in AUTH_FAILURE_MARKERS):
        return f"Authentication failed: {message}"
    if TRANSPORT_FATAL_MARKER in message:
        return f"Migration failed: {message}"

    return message or type(err).__name__
