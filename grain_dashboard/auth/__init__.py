"""Session provider boundary."""

from grain_dashboard.auth.session_client import (
    AuthServiceError,
    CallerIdentity,
    DirectoryUser,
    SupabaseAuthClient,
    bearer_token,
)

__all__ = [
    "AuthServiceError",
    "CallerIdentity",
    "DirectoryUser",
    "SupabaseAuthClient",
    "bearer_token",
]
