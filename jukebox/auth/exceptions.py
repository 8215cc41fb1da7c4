"""
Authentication exceptions.
"""


class AuthenticationError(Exception):
    """Authentication with Spotify failed."""

    pass


class AuthMissingError(AuthenticationError):
    """No bearer token available; the user must log in first."""

    pass
