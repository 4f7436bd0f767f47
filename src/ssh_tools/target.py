"""Parse ``[user@]host[:path]`` remote target tokens."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ssh_tools.errors import UsageError


@dataclass(frozen=True)
class TargetAddress:
    """A resolved remote target."""

    host: str
    username: str | None = None  # None: let ssh pick its own default
    path: str | None = None

    @property
    def destination(self) -> str:
        """Return the ``user@host`` (or bare ``host``) form ssh expects."""
        if self.username:
            return f"{self.username}@{self.host}"
        return self.host

    def require_host(self) -> TargetAddress:
        """Return self, or raise ``UsageError`` if no host was given."""
        if not self.host:
            raise UsageError("no host given")
        return self

    def with_default_path(self, path: str) -> TargetAddress:
        """Fill in *path* when the token carried no explicit remote path."""
        if self.path:
            return self
        return replace(self, path=path)

    def with_username(self, username: str | None) -> TargetAddress:
        """Apply a ``-l`` style username override."""
        if not username:
            return self
        return replace(self, username=username)

    def __str__(self) -> str:
        if self.path is None:
            return self.destination
        return f"{self.destination}:{self.path}"


def parse_target(token: str, with_path: bool = True) -> TargetAddress:
    """Split a raw target token into username, host and path.

    The username is everything before the last ``@`` and the path everything
    after the last ``:`` of the remainder. A bracketed host (``[fe80::1]``)
    keeps its colons. With ``with_path=False`` the whole remainder is the host,
    which is what ``ssh-ping`` wants for bare IPv6 addresses.

    Never raises: an empty host is left for the caller to report (see
    ``TargetAddress.require_host``).

    >>> parse_target("alice@example.com:/etc/hosts")
    TargetAddress(host='example.com', username='alice', path='/etc/hosts')
    """
    username: str | None = None
    remainder = token

    user_part, at, rest = token.rpartition("@")
    if at:
        username = user_part or None
        remainder = rest

    if not with_path:
        return TargetAddress(host=remainder.strip("[]"), username=username)

    if remainder.startswith("[") and "]" in remainder:
        host, _, tail = remainder[1:].partition("]")
        path_part = tail[1:] if tail.startswith(":") else ""
        return TargetAddress(host=host, username=username, path=path_part or None)

    host, colon, path_part = remainder.rpartition(":")
    if not colon:
        return TargetAddress(host=remainder, username=username)

    return TargetAddress(host=host, username=username, path=path_part or None)
