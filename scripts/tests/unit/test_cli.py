"""
Unit tests for the promptgen command line.
"""
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from promptgen import promptgen as cli
from promptgen.utils.errors import PromptGenError, PromptLoadError


PERSONA = """\
persona: You are Ada.
tts_friendly: false
facts:
  - Ada likes puzzles.
stop:
  - "<END>"
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host configuration out of the CLI."""
    for name in ("PROMPTGEN_PROVIDER", "PROMPTGEN_MODEL", "PROMPTGEN_API_KEY", "PROMPTGEN_PERSONA_PATH",
                 "PROMPTGEN_TEMPERATURE", "PROMPTGEN_LOG_LEVEL", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def persona_file(tmp_path):
    """Write a persona file to a temporary directory."""
    path = tmp_path / "ada.yaml"
    path.write_text(PERSONA, encoding="utf-8")
    return path


def test_inspect(persona_file):
    """Test rendering a persona file with a transcript."""
    result = cli.inspect(persona_file, roles=["user"], contents=["hi"])

    assert result["system_prompt"] == "You are Ada.\n=== Memory Context ===\n1) Ada likes puzzles."
    assert result["messages"][-1] == {"role": "user", "content": "hi"}
    assert result["stop"] == ["<END>"]
    assert result["spec"]["facts"] == ["Ada likes puzzles."]
    assert "benchmark" not in result


def test_inspect_benchmark(persona_file):
    """Test token counts in benchmark mode."""
    with patch.object(cli, "_count_tokens", side_effect=len):
        result = cli.inspect(persona_file, benchmark=True)

    bm = result["benchmark"]
    assert bm["system_prompt"]["chars"] == len(result["system_prompt"])
    assert bm["system_prompt"]["tokens"] == len(result["system_prompt"])


def test_inspect_missing_file(tmp_path):
    """Test that unreadable files raise PromptLoadError."""
    with pytest.raises(PromptLoadError):
        cli.inspect(tmp_path / "missing.yaml")


def test_inspect_batch(tmp_path, persona_file):
    """Test batch parsing of a directory."""
    nested = tmp_path / "more"
    nested.mkdir()
    (nested / "other.yml").write_text("persona: Other\nfew_shots:\n  - user: hi\n", encoding="utf-8")

    result = cli.inspect_batch(tmp_path)

    assert result["processed"] == 2
    assert result["successful"] == 2
    assert result["failed"] == 0
    by_name = {Path(r["file"]).name: r for r in result["files"]}
    assert by_name["ada.yaml"]["facts"] == 1
    assert by_name["other.yml"]["few_shots"] == 1


def test_inspect_batch_empty_dir(tmp_path):
    """Test that an empty directory is an error."""
    with pytest.raises(PromptGenError, match="No persona files"):
        cli.inspect_batch(tmp_path)


@pytest.mark.parametrize("name", ["missing", "empty"])
def test_main_batch_without_personas_exits(tmp_path, capsys, name):
    """Test that a missing or empty batch directory exits with status 1."""
    (tmp_path / "empty").mkdir()

    with pytest.raises(SystemExit) as exc:
        cli.main(["--batch", str(tmp_path / name)])

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert "error: No persona files" in err
    assert "Traceback" not in err


def test_load_transcript(tmp_path):
    """Test reading a JSON transcript."""
    path = tmp_path / "chat.json"
    path.write_text(json.dumps([
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]), encoding="utf-8")

    assert cli.load_transcript(path) == (["user", "assistant"], ["hi", "hello"])


@pytest.mark.parametrize("payload", ["not json", '{"role": "user"}', '[{"role": "user"}]'])
def test_load_transcript_invalid(tmp_path, payload):
    """Test that malformed transcripts raise PromptGenError."""
    path = tmp_path / "chat.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(PromptGenError):
        cli.load_transcript(path)


def test_main_show_system(persona_file, capsys):
    """Test printing the system prompt."""
    cli.main([str(persona_file), "--show-system"])

    out = capsys.readouterr().out
    assert out.strip() == "You are Ada.\n=== Memory Context ===\n1) Ada likes puzzles."


def test_main_default_prints_messages(persona_file, capsys):
    """Test that messages are printed when no output flag is given."""
    cli.main([str(persona_file), "--say", "hello", "--say", "again"])

    messages = json.loads(capsys.readouterr().out)
    assert [m["role"] for m in messages] == ["system", "user", "user"]
    assert messages[-1]["content"] == "again"


def test_main_request(persona_file, capsys):
    """Test printing the request body."""
    cli.main([str(persona_file), "--say", "hi", "--request", "--model", "test-model", "--temperature", "0.3"])

    body = json.loads(capsys.readouterr().out)
    assert body["model"] == "test-model"
    assert body["temperature"] == 0.3
    assert body["stop"] == ["<END>"]
    assert body["messages"][-1] == {"role": "user", "content": "hi"}


def test_main_send(persona_file, capsys):
    """Test sending through the chat client."""
    with patch.object(cli.ChatClient, "send", return_value="Hello from Ada") as mock_send:
        cli.main([str(persona_file), "--say", "hi", "--send"])

    assert capsys.readouterr().out.strip() == "Hello from Ada"
    mock_send.assert_called_once_with(["user"], ["hi"], temperature=None)


def test_main_send_error_exits(persona_file, capsys):
    """Test that send failures exit with status 1."""
    with pytest.raises(SystemExit) as exc:
        cli.main([str(persona_file), "--send"])

    assert exc.value.code == 1
    assert "Invalid messages" in capsys.readouterr().err


def test_main_missing_file_exits(tmp_path, capsys):
    """Test that an unreadable persona file exits with status 1."""
    with pytest.raises(SystemExit) as exc:
        cli.main([str(tmp_path / "missing.yaml")])

    assert exc.value.code == 1
    assert "missing.yaml" in capsys.readouterr().err


def test_main_uses_configured_persona_path(persona_file, monkeypatch, capsys):
    """Test the PROMPTGEN_PERSONA_PATH default."""
    monkeypatch.setenv("PROMPTGEN_PERSONA_PATH", str(persona_file))

    cli.main(["--json"])

    spec = json.loads(capsys.readouterr().out)
    assert spec["persona"] == "You are Ada."
