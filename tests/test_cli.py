"""Smoke tests for the rolapet CLI against a temporary data directory."""

from click.testing import CliRunner

from rolapet import __version__
from rolapet.cli import main


def _invoke(tmp_path, *args):
    runner = CliRunner()
    return runner.invoke(main, ["--data-dir", str(tmp_path), *args])


def _register(tmp_path, email="ana@example.com", username="ana") -> str:
    result = _invoke(tmp_path, "users", "register", email, username, "Ana")
    assert result.exit_code == 0
    for line in result.output.splitlines():
        if "id:" in line:
            return line.split("id:")[1].strip()
    raise AssertionError(result.output)


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_init_seeds_the_data_dir(tmp_path):
    result = _invoke(tmp_path, "init")
    assert result.exit_code == 0
    assert (tmp_path / "rolapet_users.json").exists()
    assert (tmp_path / "rolapet_bannedWords.json").exists()


def test_banned_words_round_trip(tmp_path):
    listed = _invoke(tmp_path, "banned-words", "list")
    assert listed.exit_code == 0
    assert "odio" in listed.output

    assert _invoke(tmp_path, "banned-words", "add", "Grosería").exit_code == 0
    assert "grosería" in _invoke(tmp_path, "banned-words", "list").output

    _invoke(tmp_path, "banned-words", "remove", "grosería")
    assert "grosería" not in _invoke(tmp_path, "banned-words", "list").output


def test_warnings_persist_across_invocations_and_ban(tmp_path):
    user_id = _register(tmp_path)

    for _ in range(2):
        assert _invoke(tmp_path, "warn", user_id, "Spam").exit_code == 0
    third = _invoke(tmp_path, "warn", user_id, "Spam", "-d", "Otra vez")
    assert "baneado" in third.output

    inactive = _invoke(tmp_path, "users", "list", "--inactive")
    assert user_id in inactive.output


def test_failed_operation_shows_error_kind(tmp_path):
    result = _invoke(tmp_path, "rate", "u1", "p1", "product", "7")
    assert result.exit_code == 0
    assert "[validation]" in result.output


def test_moderate_reports_the_action(tmp_path):
    user_id = _register(tmp_path)
    result = _invoke(tmp_path, "moderate", user_id, "odio y violencia")
    assert result.exit_code == 0
    assert "block" in result.output


def test_reset_requires_confirmation(tmp_path):
    _invoke(tmp_path, "banned-words", "add", "grosería")

    aborted = CliRunner().invoke(main, ["--data-dir", str(tmp_path), "reset"], input="n\n")
    assert aborted.exit_code != 0
    assert "grosería" in _invoke(tmp_path, "banned-words", "list").output

    assert _invoke(tmp_path, "reset", "--yes").exit_code == 0
    assert "grosería" not in _invoke(tmp_path, "banned-words", "list").output


def test_warning_log_shows_reason_and_details(tmp_path):
    user_id = _register(tmp_path)
    _invoke(tmp_path, "warn", user_id, "Spam", "-d", "Enlaces")

    log = _invoke(tmp_path, "warnings")
    assert log.exit_code == 0
    assert "Spam" in log.output
    assert "Enlaces" in log.output
    assert "Reason" in log.output

    own = _invoke(tmp_path, "warnings", user_id)
    assert "Enlaces" in own.output
