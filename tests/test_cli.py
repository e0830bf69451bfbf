"""
Tests for the command line entry point.
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from exitbetter.cli import main


class TestCli:
    def test_show_tree_and_validate(self, capsys):
        code = main(["--company", "Globex Corporation", "--project", "proj-alpha", "--show-tree", "--validate"])
        out = capsys.readouterr().out
        assert code == 0
        assert "- workStatus: What is your employment status?" in out
        assert "relocationPaid" in out and "[hidden]" in out
        assert "Validation: 0 issue(s)" in out

    def test_answers_file(self, tmp_path, capsys):
        answers = tmp_path / "answers.json"
        answers.write_text(json.dumps({
            "profile": {"birthYear": "1990"},
            "assessment": {"workStatus": "Laid off"},
        }))
        code = main(["--company", "Initech", "--answers", str(answers)])
        out = capsys.readouterr().out
        assert code == 0
        assert "File for unemployment benefits" in out
        assert "Tasks: 2" in out

    def test_unknown_company(self, capsys):
        code = main(["--company", "Umbrella"])
        assert code == 1
        assert "Unknown company" in capsys.readouterr().err

    def test_missing_snapshot(self, tmp_path, capsys):
        code = main(["--company", "Initech", "--snapshot", str(tmp_path / "nope.json")])
        assert code == 1
        assert "Cannot read catalog" in capsys.readouterr().err
