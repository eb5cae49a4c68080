"""Error types shared across the unfurler.

Per-link failures (RemoteError, no match, missing project token) are absorbed
by the pipeline; only AuthMismatch is surfaced to an HTTP caller.
"""


class UnfurlerError(Exception):
    pass


class NotRegistered(UnfurlerError):
    """Team has never been stored."""

    def __init__(self, team_id: str):
        super().__init__(f"Team {team_id} is not registered")
        self.team_id = team_id


class NoUsers(UnfurlerError):
    """Team exists but holds no post-back token."""

    def __init__(self, team_id: str):
        super().__init__(f"No users registered for team {team_id}")
        self.team_id = team_id


class StorageError(UnfurlerError):
    pass


class RemoteError(UnfurlerError):
    """Network, decode or application-level failure of a remote API call."""


class ValidationError(UnfurlerError):
    """Malformed command input. The message is shown to the user as-is."""


class AuthMismatch(UnfurlerError):
    pass
