"""
Command-line tests: main() is called in-process with argument lists.
"""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from main import main  # noqa: E402


PREVIOUS = [["id", "name", "status"], ["1", "Ann", "Active"], ["2", "Bob", "Active"]]
CURRENT = [["id", "name", "status"], ["1", "Ann", "1"], ["3", "Cy", "1"]]


def test_flags_only_run(write_csv, tmp_path, read_csv):
    previous = write_csv("p.csv", PREVIOUS)
    current = write_csv("c.csv", CURRENT)
    report = tmp_path / "out.csv"

    code = main(["--previous", str(previous), "--current", str(current),
                 "--anchor", "id", "--output", str(report),
                 "--transform", "status", "Active", "1"])

    assert code == 0
    rows = read_csv(report)
    assert [(r[0], r[1]) for r in rows[1:]] == [("2", "Delete"), ("3", "Add")]


def test_config_file_with_overrides(write_csv, tmp_path, read_csv):
    previous = write_csv("p.csv", PREVIOUS)
    current = write_csv("c.csv", CURRENT)
    config = tmp_path / "run.yaml"
    config.write_text(
        "comparison:\n"
        f"  previous: '{previous}'\n"
        f"  current: '{current}'\n"
        "  anchor: id\n"
        "  strategy: streaming\n",
        encoding="utf-8",
    )
    report = tmp_path / "detailed.csv"

    code = main([str(config), "--detailed", "--strategy", "sort-merge",
                 "--temp-dir", str(tmp_path), "--output", str(report)])

    assert code == 0
    rows = read_csv(report)
    assert rows[1][:2] == ["SUMMARY", "---"]
    assert "match status" in rows[0]


def test_no_changes_is_success(write_csv, tmp_path):
    previous = write_csv("p.csv", PREVIOUS)
    copy = write_csv("copy.csv", PREVIOUS)

    code = main(["--previous", str(previous), "--current", str(copy),
                 "--anchor", "ID"])

    assert code == 0
    assert not (tmp_path / "copy_changes.csv").exists()


def test_default_output_beside_current(write_csv, tmp_path):
    previous = write_csv("p.csv", PREVIOUS)
    current = write_csv("c.csv", CURRENT)

    assert main(["--previous", str(previous), "--current", str(current),
                 "--anchor", "id", "--ignore", "status"]) == 0
    assert (tmp_path / "c_changes.csv").exists()


def test_validation_failure_exit_code(write_csv, tmp_path):
    previous = write_csv("p.csv", PREVIOUS)
    current = write_csv("c.csv", [["id", "other"], ["1", "x"]])

    code = main(["--previous", str(previous), "--current", str(current),
                 "--anchor", "id"])
    assert code == 1


def test_missing_anchor_is_configuration_error(write_csv):
    previous = write_csv("p.csv", PREVIOUS)
    assert main(["--previous", str(previous), "--current", str(previous)]) == 1


def test_missing_config_file(tmp_path):
    assert main([str(tmp_path / "absent.yaml")]) == 2


def test_create_sample(tmp_path):
    target = tmp_path / "sample.yaml"
    assert main([str(target), "--create-sample"]) == 0
    assert "comparison:" in target.read_text(encoding="utf-8")


def test_log_file_receives_json_entries(write_csv, tmp_path):
    previous = write_csv("p.csv", PREVIOUS)
    current = write_csv("c.csv", CURRENT)
    log_file = tmp_path / "run.log"

    try:
        main(["--previous", str(previous), "--current", str(current),
              "--anchor", "id", "--log-file", str(log_file)])
    finally:
        from recdiff.utils.logger import get_logger
        get_logger().set_log_file(None)

    assert '"pipeline.completed"' in log_file.read_text(encoding="utf-8")


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert "Record Diff" in capsys.readouterr().out


def test_numeric_column_names_in_config(write_csv, tmp_path, read_csv):
    previous = write_csv("p.csv", [["2024", "v", "2025"], ["1", "a", "x"], ["2", "b", "y"]])
    current = write_csv("c.csv", [["2024", "v", "2025"], ["1", "a", "z"], ["2", "c", "y"]])
    report = tmp_path / "numeric.csv"
    config = tmp_path / "numeric.yaml"
    config.write_text(
        "comparison:\n"
        f"  previous: '{previous}'\n"
        f"  current: '{current}'\n"
        f"  output: '{report}'\n"
        "  anchor: 2024\n"
        "  ignore_columns: [2025]\n",
        encoding="utf-8",
    )

    assert main([str(config)]) == 0
    rows = read_csv(report)
    assert rows == [["2024", "Change", "old v", "new v"], ["2", "Update", "b", "c"]]
