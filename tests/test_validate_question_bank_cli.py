import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts import validate_question_bank


def _write(tmp_path: Path, document) -> str:
    path = tmp_path / "questions.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


def test_clean_bank_passes(tmp_path, bank_document, capsys):
    exit_code = validate_question_bank.main(["--questions", _write(tmp_path, bank_document)])
    captured = capsys.readouterr()
    assert exit_code == 0
    report = json.loads(captured.out)
    assert report["questions"] == 4
    assert report["start_question"] == "Q1"
    assert report["problems"] == []
    assert captured.err == ""


def test_duplicates_and_dangling_edges_fail(tmp_path, bank_document, capsys):
    bank_document["questions"].append({"id": "Q2", "followUps": {"default": "Q99"}})
    exit_code = validate_question_bank.main(["--questions", _write(tmp_path, bank_document)])
    captured = capsys.readouterr()
    assert exit_code == 1
    assert "duplicate question id 'Q2'" in captured.err
    assert "'Q2' follow-up 'default' points to missing 'Q99'" in captured.err


def test_strict_mode_flags_unreachable_questions(tmp_path, bank_document, capsys):
    bank_document["questions"].append({"id": "orphan", "category": "Design"})
    path = _write(tmp_path, bank_document)

    assert validate_question_bank.main(["--questions", path]) == 0
    capsys.readouterr()
    assert validate_question_bank.main(["--questions", path, "--strict"]) == 1
    assert "unreachable questions: orphan" in capsys.readouterr().err


def test_missing_file_exits_with_usage_error(tmp_path, capsys):
    assert validate_question_bank.main(["--questions", str(tmp_path / "nope.json")]) == 2
    assert "not found" in capsys.readouterr().err


def test_bundled_bank_is_clean(capsys):
    assert validate_question_bank.main(["--questions", str(ROOT / "questions.json"), "--strict"]) == 0
