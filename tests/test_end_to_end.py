"""
End-to-end tests: files in, change report out, for every join strategy.
"""

import pytest

from recdiff.config.manager import RunConfig
from recdiff.core.errors import (
    ColumnMismatchError,
    DuplicateAnchorError,
    InvalidTransformError,
    RowLengthError,
)
from recdiff.pipeline.runner import run_comparison


STRATEGIES = ["memory", "streaming", "sort-merge"]

DATASET_A = [
    ["key", "name", "salary", "status"],
    ["k01", "Ann", "100", "Active"],
    ["k02", "Bob", "200", "Active"],
    ["k03", "Cy", "300", "Inactive"],
    ["k04", "Dee", "400", "Active"],
]

DATASET_B = [
    ["Status", "Key", "Name", "Salary"],
    ["Active", "k02", "Bob", "250"],
    ["Inactive", "k03", "Cy", "300"],
    ["Active", "k05", "Eli", "500"],
    ["Active", "k06", "Flo", "600"],
    ["Inactive", "k04", "Dee", "400"],
]


def _config(previous, current, tmp_path, **kwargs):
    kwargs.setdefault("anchor", "key")
    kwargs.setdefault("output", str(tmp_path / "report.csv"))
    kwargs.setdefault("temp_dir", str(tmp_path))
    return RunConfig(previous=str(previous), current=str(current), **kwargs)


class TestComparisonProperties:

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_direction_swaps_adds_and_deletes(self, strategy, write_csv, tmp_path):
        a = write_csv("a.csv", DATASET_A)
        b = write_csv("b.csv", DATASET_B)

        forward = run_comparison(_config(a, b, tmp_path, strategy=strategy,
                                         output=str(tmp_path / "ab.csv")))
        backward = run_comparison(_config(b, a, tmp_path, strategy=strategy,
                                          output=str(tmp_path / "ba.csv")))

        assert (forward.added, forward.deleted) == (2, 1)
        assert (backward.added, backward.deleted) == (forward.deleted, forward.added)
        assert backward.updated == forward.updated == 2
        assert backward.unchanged == forward.unchanged == 1

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_every_key_reported_exactly_once(self, strategy, write_csv, tmp_path, read_csv):
        a = write_csv("a.csv", DATASET_A)
        b = write_csv("b.csv", DATASET_B)

        result = run_comparison(_config(a, b, tmp_path, strategy=strategy, detailed=True))
        rows = read_csv(tmp_path / "report.csv")

        anchors = [r[0] for r in rows[2:]]
        assert sorted(anchors) == ["k01", "k02", "k03", "k04", "k05", "k06"]
        assert len(anchors) == len(set(anchors))
        assert result.total == 6

    def test_strategies_produce_same_classifications(self, write_csv, tmp_path, read_csv):
        a = write_csv("a.csv", DATASET_A)
        b = write_csv("b.csv", DATASET_B)

        outcomes = []
        for strategy in STRATEGIES:
            output = tmp_path / f"{strategy}.csv"
            run_comparison(_config(a, b, tmp_path, strategy=strategy, output=str(output)))
            outcomes.append(sorted((r[0], r[1]) for r in read_csv(output)[1:]))

        assert outcomes[0] == outcomes[1] == outcomes[2]
        assert ("k01", "Delete") in outcomes[0]

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_transform_affects_comparison_only(self, strategy, write_csv, tmp_path, read_csv):
        previous = write_csv("p.csv", [["id", "status", "name"],
                                       ["1", "Active", "Ann"], ["2", "Active", "Bob"]])
        current = write_csv("c.csv", [["id", "status", "name"],
                                      ["1", "1", "Ann"], ["2", "1", "Bo"]])

        run_comparison(_config(previous, current, tmp_path, anchor="id",
                               strategy=strategy, detailed=True,
                               transforms={"status": {"Active": "1"}}))
        rows = read_csv(tmp_path / "report.csv")
        header = rows[0]
        first = dict(zip(header, rows[2]))

        assert first["id"] == "1"
        assert first["Change"] == "None"
        assert first["match status"] == "TRUE"
        assert first["old status"] == "Active"
        assert first["new status"] == "1"

        summary = dict(zip(header, rows[1]))
        assert summary["old status"] == "Active => 1 [2]"
        assert summary["match status"] == "0 of 2 FALSE"
        assert summary["match name"] == "1 of 2 FALSE"

    def test_wildcard_appends_before_comparison(self, write_csv, tmp_path, read_csv):
        previous = write_csv("p.csv", [["key", "id"], ["r1", "A1"], ["r2", "B2"]])
        current = write_csv("c.csv", [["key", "id"], ["r1", "A10"], ["r2", "B2"]])

        result = run_comparison(_config(previous, current, tmp_path,
                                        transforms={"id": {"*": ">>0"}}))

        assert result.unchanged == 1
        assert result.updated == 1
        rows = read_csv(tmp_path / "report.csv")
        assert rows[1] == ["r2", "Update", "B2", "B2"]

    def test_summary_counts_mismatches(self, write_csv, tmp_path, read_csv):
        previous = [["id", "salary"]] + [[str(i), "100"] for i in range(10)]
        current = [["id", "salary"]] + [
            [str(i), "150" if i in (2, 5, 7) else "100"] for i in range(10)
        ]
        result = run_comparison(_config(write_csv("p.csv", previous),
                                        write_csv("c.csv", current), tmp_path,
                                        anchor="id", detailed=True))
        rows = read_csv(tmp_path / "report.csv")
        summary = dict(zip(rows[0], rows[1]))

        assert summary["id"] == "SUMMARY"
        assert summary["Change"] == "---"
        assert summary["match salary"] == "3 of 10 FALSE"
        assert result.column_mismatches == {"salary": 3}
        assert [r[0] for r in rows[2:]] == [str(i) for i in range(10)]

    @pytest.mark.parametrize("strategy", ["memory", "streaming"])
    def test_duplicate_anchor_tolerated(self, strategy, write_csv, tmp_path):
        previous = write_csv("p.csv", [["id", "v"], ["X", "1"], ["X", "2"], ["Y", "3"]])
        current = write_csv("c.csv", [["id", "v"], ["X", "1"], ["Y", "4"]])

        result = run_comparison(_config(previous, current, tmp_path,
                                        anchor="id", strategy=strategy))

        assert result.unchanged == 1
        assert result.updated == 1
        assert [d.rows for d in result.duplicates] == [[2, 3]]

    def test_duplicate_anchor_fatal_for_sort_merge(self, write_csv, tmp_path):
        previous = write_csv("p.csv", [["id", "v"], ["X", "1"], ["X", "2"], ["Y", "3"]])
        current = write_csv("c.csv", [["id", "v"], ["X", "1"], ["Y", "4"]])

        with pytest.raises(DuplicateAnchorError):
            run_comparison(_config(previous, current, tmp_path,
                                   anchor="id", strategy="sort-merge"))

    @pytest.mark.parametrize("strategy", STRATEGIES)
    @pytest.mark.parametrize("detailed", [False, True])
    def test_identical_datasets_write_no_report(self, strategy, detailed, write_csv, tmp_path):
        a = write_csv("a.csv", DATASET_A)
        copy = write_csv("copy.csv", DATASET_A)

        result = run_comparison(_config(a, copy, tmp_path, strategy=strategy,
                                        detailed=detailed))

        assert not result.has_changes
        assert result.report_path is None
        assert result.unchanged == 4
        assert not (tmp_path / "report.csv").exists()


class TestReportShape:

    def test_rerun_without_changes_clears_previous_report(self, write_csv, tmp_path):
        a = write_csv("a.csv", DATASET_A)
        b = write_csv("b.csv", DATASET_B)
        first = run_comparison(_config(a, b, tmp_path))
        assert (tmp_path / "report.csv").exists()

        b = write_csv("b.csv", DATASET_A)
        second = run_comparison(_config(a, b, tmp_path))

        assert first.report_path is not None
        assert second.report_path is None
        assert not (tmp_path / "report.csv").exists()

    def test_plain_report_follows_join_order(self, write_csv, tmp_path, read_csv):
        a = write_csv("a.csv", DATASET_A)
        b = write_csv("b.csv", DATASET_B)

        run_comparison(_config(a, b, tmp_path, strategy="streaming", batch_size=1))
        rows = read_csv(tmp_path / "report.csv")

        assert rows[0] == ["Key", "Change",
                           "old name", "new name", "old salary", "new salary",
                           "old status", "new status"]
        assert [(r[0], r[1]) for r in rows[1:]] == [
            ("k02", "Update"), ("k05", "Add"), ("k06", "Add"),
            ("k04", "Update"), ("k01", "Delete"),
        ]
        assert rows[1] == ["k02", "Update", "", "", "200", "250", "", ""]

    def test_ignored_column_is_not_compared(self, write_csv, tmp_path, read_csv):
        a = write_csv("a.csv", DATASET_A)
        b = write_csv("b.csv", DATASET_B)

        result = run_comparison(_config(a, b, tmp_path, ignore_columns=["status"]))
        header = read_csv(tmp_path / "report.csv")[0]

        assert result.updated == 1
        assert "old status" not in header

    def test_case_insensitive_run(self, write_csv, tmp_path):
        previous = write_csv("p.csv", [["id", "name"], ["a1", "ANN"]])
        current = write_csv("c.csv", [["ID", "Name"], ["A1", "ann"]])

        result = run_comparison(_config(previous, current, tmp_path, anchor="Id",
                                        case_sensitive=False))
        assert result.unchanged == 1
        assert result.report_path is None

    def test_pipe_delimited_run(self, write_csv, tmp_path, read_csv):
        previous = write_csv("p.psv", [["id", "v"], ["1", "a"]], delimiter="|")
        current = write_csv("c.psv", [["id", "v"], ["1", "b"]], delimiter="|")

        run_comparison(_config(previous, current, tmp_path, anchor="id", delimiter="pipe"))
        rows = read_csv(tmp_path / "report.csv", delimiter="|")
        assert rows == [["id", "Change", "old v", "new v"], ["1", "Update", "a", "b"]]


class TestFailures:

    def test_column_mismatch(self, write_csv, tmp_path):
        previous = write_csv("p.csv", [["id", "a"], ["1", "x"]])
        current = write_csv("c.csv", [["id", "b"], ["1", "x"]])
        with pytest.raises(ColumnMismatchError):
            run_comparison(_config(previous, current, tmp_path, anchor="id"))

    def test_transform_on_unknown_column(self, write_csv, tmp_path):
        previous = write_csv("p.csv", [["id", "a"], ["1", "x"]])
        current = write_csv("c.csv", [["id", "a"], ["1", "x"]])
        with pytest.raises(InvalidTransformError):
            run_comparison(_config(previous, current, tmp_path, anchor="id",
                                   transforms={"missing": {"*": ">>0"}}))

    def test_bad_row_aborts_run(self, write_csv, tmp_path):
        previous = write_csv("p.csv", [["id", "a"], ["1", "x"]])
        current = write_csv("c.csv", [["id", "a"], ["1", "x", "extra"]])
        with pytest.raises(RowLengthError):
            run_comparison(_config(previous, current, tmp_path, anchor="id"))
        assert not (tmp_path / "report.csv").exists()
