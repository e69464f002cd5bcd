# pyright: standard
import json
import shlex
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from typer.testing import CliRunner

from livediff.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Runs each command from an empty workspace with no user config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / ".xdg"))
    for var in ("LIVEDIFF_WORKSPACE_ROOT", "LIVEDIFF_SMALL_CHANGE_THRESHOLD", "LIVEDIFF_ANIMATION_DELAY"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


def mock_editor(new_content: str, return_code: int = 0) -> MagicMock:
    """Creates a mock side effect for subprocess.run to simulate an editor."""

    def _side_effect(cmd_parts: list[str], check: bool) -> subprocess.CompletedProcess[str]:  # pyright: ignore[reportUnusedParameter]
        temp_file_path = Path(cmd_parts[-1])
        if return_code == 0:
            temp_file_path.write_text(new_content)
        return subprocess.CompletedProcess(args=cmd_parts, returncode=return_code, stdout="", stderr="")

    return MagicMock(side_effect=_side_effect)


def _source(workspace: Path, content: str) -> str:
    source = workspace / "generated.txt"
    source.write_text(content)
    return str(source)


def test_apply_saves_new_file_and_prints_json(workspace: Path) -> None:
    # GIVEN generated content for a file in a new directory
    source = _source(workspace, "print('hi')\nprint('bye')\n")

    # WHEN it is applied in small chunks
    result = runner.invoke(app, ["apply", "out/hello.py", source, "--chunk-size", "5", "--json"])

    # THEN the file is written and the save result has nothing to report
    assert result.exit_code == 0, result.output
    assert (workspace / "out" / "hello.py").read_text() == "print('hi')\nprint('bye')\n"
    assert json.loads(result.stdout) == {
        "new_problems_message": "",
        "final_content": "print('hi')\nprint('bye')\n",
    }


def test_apply_reads_stdin_when_no_source_given(workspace: Path) -> None:
    # GIVEN content piped on stdin
    # WHEN it is applied without a source argument
    result = runner.invoke(app, ["apply", "notes.md", "--json"], input="# Notes\n")

    # THEN the piped content is saved
    assert result.exit_code == 0, result.output
    assert (workspace / "notes.md").read_text() == "# Notes\n"


def test_apply_modifies_existing_file_and_reports_saved(workspace: Path) -> None:
    # GIVEN an existing file
    (workspace / "app.py").write_text("x = 1\n")
    source = _source(workspace, "x = 2\n")

    # WHEN new content is applied with human-readable output
    result = runner.invoke(app, ["apply", "app.py", source])

    # THEN the file is updated and the save is reported
    assert result.exit_code == 0, result.output
    assert (workspace / "app.py").read_text() == "x = 2\n"
    assert "Saved app.py." in result.stdout


def test_apply_with_revert_removes_created_file_and_directories(workspace: Path) -> None:
    # GIVEN generated content for a file in nested new directories
    source = _source(workspace, "temporary\n")

    # WHEN it is applied with --revert
    result = runner.invoke(app, ["apply", "a/b/tmp.txt", source, "--revert", "--json"])

    # THEN nothing is left behind
    assert result.exit_code == 0, result.output
    assert not (workspace / "a").exists()
    assert json.loads(result.stdout) == {"reverted": "a/b/tmp.txt"}


def test_apply_with_revert_restores_existing_file(workspace: Path) -> None:
    # GIVEN an existing file
    (workspace / "keep.txt").write_bytes(b"original\r\n")
    source = _source(workspace, "changed\n")

    # WHEN content is applied with --revert
    result = runner.invoke(app, ["apply", "keep.txt", source, "--revert"])

    # THEN the file is unchanged
    assert result.exit_code == 0, result.output
    assert (workspace / "keep.txt").read_bytes() == b"original\r\n"
    assert "Reverted keep.txt." in result.stdout


def test_apply_reports_formatter_changes(workspace: Path) -> None:
    # GIVEN a formatter command that upper-cases its input
    format_cmd = shlex.join([sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"])
    source = _source(workspace, "hello\n")

    # WHEN content is applied with that formatter
    result = runner.invoke(app, ["apply", "shout.txt", source, "--format-cmd", format_cmd, "--json"])

    # THEN the formatted text is saved and reported as a formatting edit
    assert result.exit_code == 0, result.output
    assert (workspace / "shout.txt").read_text() == "HELLO\n"
    data = json.loads(result.stdout)
    assert "-hello\n+HELLO\n" in data["auto_formatting_edits"]
    assert "user_edits" not in data


def test_apply_reports_new_syntax_errors(workspace: Path) -> None:
    # GIVEN generated Python with a syntax error
    source = _source(workspace, "x = 1\ndef f(:\n")

    # WHEN it is applied
    result = runner.invoke(app, ["apply", "bad.py", source, "--json"])

    # THEN the new problem is reported
    assert result.exit_code == 0, result.output
    message = json.loads(result.stdout)["new_problems_message"]
    assert message.startswith("\n\nNew problems detected after saving the file:\n")
    assert "bad.py\n- [python Error] Line 2:" in message


def test_apply_with_missing_formatter_fails_and_reverts(workspace: Path) -> None:
    # GIVEN a formatter command that does not exist
    source = _source(workspace, "data\n")

    # WHEN content is applied with it
    result = runner.invoke(app, ["apply", "dir/out.txt", source, "--format-cmd", "no-such-formatter-livediff"])

    # THEN the command fails with a clear error
    assert result.exit_code == 1
    assert "Formatter command not found: 'no-such-formatter-livediff'" in result.output
    # AND the half-finished file is reverted
    assert not (workspace / "dir").exists()


def test_apply_with_edit_reports_user_edits(workspace: Path, mocker: MockerFixture) -> None:
    # GIVEN an editor that rewrites the second line
    mock_run = mocker.patch("subprocess.run", new=mock_editor("first\nSECOND\n"))
    mocker.patch.dict("os.environ", {"EDITOR": "my-editor --wait"})
    source = _source(workspace, "first\nsecond\n")

    # WHEN content is applied with --edit
    result = runner.invoke(app, ["apply", "review.txt", source, "--edit", "--json"])

    # THEN the editor was launched on a temp file
    assert result.exit_code == 0, result.output
    cmd_parts = mock_run.call_args.args[0]
    assert cmd_parts[:2] == ["my-editor", "--wait"]
    # AND the human change is saved and reported
    assert (workspace / "review.txt").read_text() == "first\nSECOND\n"
    data = json.loads(result.stdout)
    assert "-second\n+SECOND\n" in data["user_edits"]


def test_apply_rejects_invalid_chunk_size(workspace: Path) -> None:
    source = _source(workspace, "x\n")

    result = runner.invoke(app, ["apply", "x.txt", source, "--chunk-size", "0"])

    assert result.exit_code == 1
    assert "--chunk-size must be at least 1" in result.output
    assert not (workspace / "x.txt").exists()


def test_apply_rejects_relative_workspace_root(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # GIVEN a relative workspace root in the environment
    monkeypatch.setenv("LIVEDIFF_WORKSPACE_ROOT", "not/absolute")
    source = _source(workspace, "x\n")

    # WHEN a command runs
    result = runner.invoke(app, ["apply", "x.txt", source])

    # THEN the configuration error is reported
    assert result.exit_code == 1
    assert "LIVEDIFF_WORKSPACE_ROOT must be an absolute path" in result.output


def test_config_command_prints_settings(workspace: Path) -> None:
    # GIVEN a config file
    config_dir = workspace / ".xdg" / "livediff"
    config_dir.mkdir(parents=True)
    (config_dir / "config.json").write_text('{"small_change_threshold": 3}')

    # WHEN the config command runs with --json
    result = runner.invoke(app, ["config", "--json"])

    # THEN the effective settings are printed
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["small_change_threshold"] == 3
    assert data["workspace_root"] == str(workspace)
    assert data["severity_filter"] == ["error"]


def test_no_command_shows_help() -> None:
    result = runner.invoke(app, [])

    assert " apply " in result.output
    assert " config " in result.output


def test_editor_round_trips_non_ascii_as_utf8(mocker: MockerFixture) -> None:
    # GIVEN generated text outside ASCII and an editor that checks the file it is given
    from livediff.commands.apply import _edit_text_in_editor  # pyright: ignore[reportPrivateUsage]

    text = "café ✓ naïve\r\n"
    seen: list[bytes] = []

    def _side_effect(cmd_parts: list[str], check: bool) -> subprocess.CompletedProcess[str]:  # pyright: ignore[reportUnusedParameter]
        temp_file_path = Path(cmd_parts[-1])
        seen.append(temp_file_path.read_bytes())
        return subprocess.CompletedProcess(args=cmd_parts, returncode=0, stdout="", stderr="")

    _ = mocker.patch("subprocess.run", new=MagicMock(side_effect=_side_effect))
    mocker.patch.dict("os.environ", {"EDITOR": "my-editor"})

    # WHEN the text is opened in the editor and left unchanged
    edited = _edit_text_in_editor(text, ".txt")

    # THEN the editor saw UTF-8 bytes with the line endings intact
    assert seen == [text.encode("utf-8")]
    # AND the text comes back unchanged
    assert edited == text
