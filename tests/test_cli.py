"""
tests/test_cli.py
End-to-end CLI runs against a temporary SQLite database.
The Ollama classifier is replaced by a stub at the composition root.
"""

import json
from datetime import datetime, timezone

import pytest

from factories import StubClassifier
from sentiscope import cli


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("sentiscope.container._make_classifier", lambda config: StubClassifier())
    letter = tmp_path / "carta.txt"
    letter.write_text("Gracias por resolver mi problema tan rápido.", encoding="utf-8")
    return tmp_path


def _run(workdir, *argv):
    return cli.main(["--db", str(workdir / "cli.db"), *argv])


class TestCli:
    def test_analyze_then_history_and_stats(self, workdir, capsys):
        assert _run(workdir, "analyze", str(workdir / "carta.txt"),
                    "--client", "Acme", "--channel", "email", "--text") == 0
        out = capsys.readouterr().out
        assert "positive" in out
        assert "Stored in   : sqlite" in out

        assert _run(workdir, "history", "--client", "acme") == 0
        out = capsys.readouterr().out
        assert "1 total" in out
        assert "carta.txt" in out

        assert _run(workdir, "stats") == 0
        assert "Positive" in capsys.readouterr().out

    def test_export_json(self, workdir, capsys):
        _run(workdir, "analyze", str(workdir / "carta.txt"),
             "--client", "Acme", "--channel", "chat", "--text", "--document-id", "c-1")
        target = workdir / "out.json"
        assert _run(workdir, "export", "-f", "json", "--output", str(target), "--emotions") == 0
        doc = json.loads(target.read_text(encoding="utf-8"))
        assert doc["records"][0]["document_id"] == "c-1"
        assert "emotion_scores" in doc["records"][0]

    def test_export_with_nothing_stored_fails(self, workdir, capsys):
        assert _run(workdir, "export") == 1
        assert "No analyses found" in capsys.readouterr().out

    def test_missing_file(self, workdir, capsys):
        assert _run(workdir, "analyze", "nope.pdf", "--client", "A", "--channel", "email") == 1
        assert "File not found" in capsys.readouterr().out

    def test_empty_history(self, workdir, capsys):
        assert _run(workdir, "history") == 0
        assert "No analyses found" in capsys.readouterr().out

    def test_models(self, workdir, capsys):
        assert _run(workdir, "models") == 0
        assert "stub:latest" in capsys.readouterr().out

    def test_bad_environment_config(self, workdir, capsys, monkeypatch):
        monkeypatch.setenv("SENTISCOPE_TEMPERATURE", "9")
        assert _run(workdir, "stats") == 2
        assert "Configuration error" in capsys.readouterr().out

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_date_only_to_covers_the_whole_day(self):
        args = cli.build_parser().parse_args(["history", "--to", "2024-03-01"])
        assert args.date_to == datetime(2024, 3, 1, 23, 59, 59, 999999)
        args = cli.build_parser().parse_args(["history", "--to", "2024-03-01T08:30"])
        assert args.date_to == datetime(2024, 3, 1, 8, 30)
        args = cli.build_parser().parse_args(["history", "--from", "2024-03-01"])
        assert args.date_from == datetime(2024, 3, 1)

    def test_history_to_today_includes_todays_analyses(self, workdir, capsys):
        _run(workdir, "analyze", str(workdir / "carta.txt"), "--client", "Acme", "--channel", "email", "--text")
        capsys.readouterr()
        today = datetime.now(timezone.utc).date().isoformat()
        assert _run(workdir, "history", "--to", today) == 0
        assert "1 total" in capsys.readouterr().out

    def test_bad_date_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["history", "--to", "yesterday"])
