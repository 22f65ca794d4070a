"""Tests for Garmin token persistence and GarminAuth."""
import stat
from unittest.mock import MagicMock, patch

import pytest

from finhealth.garmin.auth import GarminAuth, NoSessionError, SessionExpiredError


@pytest.fixture
def tmp_tokens_dir(tmp_path):
    return tmp_path / "garmin_tokens"


@pytest.fixture
def auth(tmp_tokens_dir):
    return GarminAuth(tokens_dir=tmp_tokens_dir)


def _fake_dump(path: str) -> None:
    from pathlib import Path

    Path(path, "oauth1_token.json").write_text("{}")
    Path(path, "oauth2_token.json").write_text("{}")


class TestHasSession:
    def test_false_when_dir_missing(self, auth):
        assert auth.has_session() is False

    def test_false_when_dir_empty(self, auth, tmp_tokens_dir):
        tmp_tokens_dir.mkdir()
        assert auth.has_session() is False

    def test_true_with_token_files(self, auth, tmp_tokens_dir):
        tmp_tokens_dir.mkdir()
        (tmp_tokens_dir / "oauth2_token.json").write_text("{}")
        assert auth.has_session() is True


class TestClear:
    def test_removes_token_files(self, auth, tmp_tokens_dir):
        tmp_tokens_dir.mkdir()
        (tmp_tokens_dir / "oauth2_token.json").write_text("{}")
        auth.clear()
        assert auth.has_session() is False

    def test_safe_when_missing(self, auth):
        auth.clear()


class TestAuthenticateAndSave:
    def test_logs_in_and_dumps_tokens(self, auth, tmp_tokens_dir):
        api = MagicMock()
        api.garth.dump.side_effect = _fake_dump
        with patch("finhealth.garmin.auth.garminconnect.Garmin", return_value=api) as cls:
            result = auth.authenticate_and_save("me@example.com", "hunter2")

        cls.assert_called_once_with("me@example.com", "hunter2")
        api.login.assert_called_once_with()
        assert result is api
        assert auth.has_session()

    def test_token_permissions_are_owner_only(self, auth, tmp_tokens_dir):
        api = MagicMock()
        api.garth.dump.side_effect = _fake_dump
        with patch("finhealth.garmin.auth.garminconnect.Garmin", return_value=api):
            auth.authenticate_and_save("me@example.com", "hunter2")

        assert stat.S_IMODE(tmp_tokens_dir.stat().st_mode) == 0o700
        for f in tmp_tokens_dir.iterdir():
            assert stat.S_IMODE(f.stat().st_mode) == 0o600

    def test_login_failure_saves_nothing(self, auth):
        api = MagicMock()
        api.login.side_effect = RuntimeError("bad credentials")
        with patch("finhealth.garmin.auth.garminconnect.Garmin", return_value=api):
            with pytest.raises(RuntimeError):
                auth.authenticate_and_save("me@example.com", "wrong")
        assert auth.has_session() is False


class TestBuildClient:
    def test_raises_no_session_when_missing(self, auth):
        with pytest.raises(NoSessionError):
            auth.build_client()

    def test_resumes_from_token_dir(self, auth, tmp_tokens_dir):
        tmp_tokens_dir.mkdir()
        _fake_dump(str(tmp_tokens_dir))
        api = MagicMock()
        with patch("finhealth.garmin.auth.garminconnect.Garmin", return_value=api):
            result = auth.build_client()
        api.login.assert_called_once_with(str(tmp_tokens_dir))
        assert result is api

    def test_rejected_tokens_raise_session_expired(self, auth, tmp_tokens_dir):
        tmp_tokens_dir.mkdir()
        _fake_dump(str(tmp_tokens_dir))
        api = MagicMock()
        api.login.side_effect = Exception("401")
        with patch("finhealth.garmin.auth.garminconnect.Garmin", return_value=api):
            with pytest.raises(SessionExpiredError):
                auth.build_client()
