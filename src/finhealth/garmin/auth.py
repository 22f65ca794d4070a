"""
Garmin Connect token persistence.

garminconnect 0.2.x logs in through garth, which issues OAuth tokens that
can be dumped to a directory and later restored without the password:

    api = garminconnect.Garmin(email, password)
    api.login()
    api.garth.dump(tokens_dir)       # one-time, during setup

    api = garminconnect.Garmin()
    api.login(tokens_dir)            # every later start

The password is only needed once, in `python -m finhealth setup`. When the
tokens stop working we raise SessionExpiredError and the user re-runs setup.
"""
import os
import stat
from pathlib import Path

import garminconnect

TOKENS_DIR_DEFAULT = Path.home() / ".finhealth" / "garmin_session"


class NoSessionError(RuntimeError):
    """Raised when no saved tokens exist."""


class SessionExpiredError(RuntimeError):
    """Raised when saved tokens are rejected by Garmin's servers."""


class GarminAuth:
    """
    Owns the on-disk Garmin token directory.

    Usage:
        auth = GarminAuth()
        if not auth.has_session():
            auth.authenticate_and_save(email, password)
        api = auth.build_client()   # → garminconnect.Garmin instance
    """

    def __init__(self, tokens_dir: Path = TOKENS_DIR_DEFAULT):
        self.tokens_dir = Path(tokens_dir)

    def has_session(self) -> bool:
        """True if the token directory exists and is non-empty."""
        return self.tokens_dir.is_dir() and any(self.tokens_dir.iterdir())

    def clear(self) -> None:
        """Remove saved token files (no-op if absent)."""
        if not self.tokens_dir.is_dir():
            return
        for f in self.tokens_dir.iterdir():
            if f.is_file():
                f.unlink()

    def authenticate_and_save(self, email: str, password: str) -> garminconnect.Garmin:
        """
        Log in with email + password and dump the resulting tokens.

        Directory is created 0700 and every token file chmod'ed 0600.

        Raises:
            Any exception from garminconnect on auth failure.
        """
        api = garminconnect.Garmin(email, password)
        api.login()

        self.tokens_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.tokens_dir, stat.S_IRWXU)
        api.garth.dump(str(self.tokens_dir))
        for f in self.tokens_dir.iterdir():
            if f.is_file():
                os.chmod(f, stat.S_IRUSR | stat.S_IWUSR)
        return api

    def build_client(self) -> garminconnect.Garmin:
        """
        Restore an authenticated client from the saved tokens.

        Raises:
            NoSessionError: if setup has never been run.
            SessionExpiredError: if Garmin rejects the saved tokens.
        """
        if not self.has_session():
            raise NoSessionError(
                f"No Garmin session found at {self.tokens_dir}. "
                "Run `python -m finhealth setup` to authenticate."
            )

        api = garminconnect.Garmin()
        try:
            api.login(str(self.tokens_dir))
        except Exception as exc:
            raise SessionExpiredError(
                "Garmin session has expired. "
                "Run `python -m finhealth setup` to re-authenticate."
            ) from exc
        return api
