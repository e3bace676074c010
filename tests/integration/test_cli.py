"""Integration tests for the command-line interface."""

from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from nonceauth.cli import cli
from nonceauth.core.config import Settings
from nonceauth.infrastructure.persistence.reaper import ReapResult


def sqlite_settings() -> Settings:
    return Settings(_env_file=None, database_url="sqlite+aiosqlite:///./data/test.db")


def test_serve_rejects_multiple_workers_on_sqlite():
    runner = CliRunner()

    with patch("nonceauth.cli.get_settings", return_value=sqlite_settings()), patch(
        "uvicorn.run"
    ) as mock_run:
        result = runner.invoke(cli, ["serve", "--workers", "2"])

    assert result.exit_code == 1
    assert "SQLite does not support multiple worker processes" in result.output
    mock_run.assert_not_called()


def test_serve_starts_uvicorn():
    runner = CliRunner()

    with patch("nonceauth.cli.get_settings", return_value=sqlite_settings()), patch(
        "nonceauth.cli.configure_logging"
    ), patch("uvicorn.run") as mock_run:
        result = runner.invoke(cli, ["serve", "--port", "9000"])

    assert result.exit_code == 0
    mock_run.assert_called_once()
    args, kwargs = mock_run.call_args
    assert args[0] == "nonceauth.infrastructure.api.app:app"
    assert kwargs["port"] == 9000
    assert kwargs["workers"] == 1


def test_info_shows_mode():
    runner = CliRunner()

    with patch("nonceauth.cli.get_settings", return_value=sqlite_settings()):
        result = runner.invoke(cli, ["info"])

    assert result.exit_code == 0
    assert "Mode:         development" in result.output


def test_purge_expired_reports_counts():
    runner = CliRunner()
    settings = sqlite_settings()
    db = MagicMock()
    db.disconnect = AsyncMock()

    with patch("nonceauth.cli.get_settings", return_value=settings), patch(
        "nonceauth.cli.configure_logging"
    ), patch(
        "nonceauth.infrastructure.persistence.database.DatabaseManager", return_value=db
    ) as manager_class, patch(
        "nonceauth.infrastructure.persistence.reaper.ExpiryReaper.run_once",
        new=AsyncMock(return_value=ReapResult(login_tokens=2, email_change_tokens=1)),
    ):
        result = runner.invoke(cli, ["purge-expired"])

    assert result.exit_code == 0
    assert "Deleted 2 login token(s) and 1 email change token(s)." in result.output
    manager_class.assert_called_once_with(settings)
    db.disconnect.assert_awaited_once()


def test_check_email_failure():
    runner = CliRunner()
    provider = MagicMock()
    provider.test_connection = AsyncMock(return_value=(False, "SMTP connection failed: refused"))

    with patch("nonceauth.cli.get_settings", return_value=sqlite_settings()), patch(
        "nonceauth.cli.configure_logging"
    ), patch(
        "nonceauth.infrastructure.services.email_service.create_email_provider",
        return_value=provider,
    ):
        result = runner.invoke(cli, ["check-email"])

    assert result.exit_code == 1
    assert "refused" in result.output
