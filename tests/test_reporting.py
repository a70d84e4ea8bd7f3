"""
Tests for suppression filtering and output formatting.
"""

import json

from covenant.checks.violation import Violation
from covenant.reporting import Reporter, format_violation
from covenant.suppress.directives import IgnoreDirective
from covenant.suppress.index import IgnoreIndex


def violation(code, pos, file="a.go", line=None):
    return Violation(code=code, pos=pos, message=f"{code} message", type_name="Order",
                     line=line if line is not None else pos // 100, file=file)


def index_of(*directives):
    return IgnoreIndex.build([IgnoreDirective(frozenset(codes), start, end) for codes, start, end in directives])


class TestFiltering:

    def test_suppressed_violation_dropped(self):
        reporter = Reporter(index_of(({"IMM"}, 100, 200)))
        assert reporter.add(violation("IMM01", 150)) is False
        assert reporter.add(violation("IMM01", 250)) is True
        assert [v.pos for v in reporter.violations] == [250]
        assert [v.pos for v in reporter.suppressed] == [150]

    def test_conformance_never_suppressed(self):
        reporter = Reporter(index_of(({"ALL"}, 0, 1000), ({"IMPL03"}, 0, 1000)))
        reporter.add_all([violation("IMPL03", 500), violation("CTOR01", 500)])
        assert [v.code for v in reporter.violations] == ["IMPL03"]

    def test_no_index_keeps_everything(self):
        reporter = Reporter()
        reporter.add_all([violation("IMM01", 1), violation("TONL01", 2)])
        assert len(reporter) == 2
        assert reporter

    def test_extend_and_counts(self):
        a = Reporter()
        a.add(violation("IMM01", 300))
        b = Reporter(index_of(({"CTOR"}, 0, 10)))
        b.add_all([violation("CTOR01", 5), violation("CTOR02", 50), violation("IMM03", 60)])
        a.extend(b)
        assert a.counts() == {"IMM": 2, "CTOR": 1}
        assert len(a.suppressed) == 1


class TestOutput:

    def test_format_violation(self):
        v = violation("IMM01", 1204)
        assert format_violation(v) == "a.go:12: error: [IMM01] IMM01 message"

    def test_format_without_file(self):
        v = Violation(code="CTOR01", pos=42, message="m")
        assert format_violation(v) == "@42: error: [CTOR01] m"

    def test_human_clean(self):
        assert Reporter().render_human() == "covenant: OK - no violations"

    def test_human_clean_with_suppressed(self):
        reporter = Reporter(index_of(({"ALL"}, 0, 10)))
        reporter.add(violation("IMM01", 5))
        assert reporter.render_human() == "covenant: OK - no violations (1 suppressed)"

    def test_human_sorted_with_summary(self):
        reporter = Reporter()
        reporter.add_all([violation("TONL01", 900, "b.go"), violation("IMM01", 700), violation("IMM02", 300)])
        lines = reporter.render_human().splitlines()
        assert lines[0] == "Violations: 3  IMM=2  TONL=1"
        assert [line.split(":")[0] + ":" + line.split(":")[1] for line in lines[2:]] == ["a.go:3", "a.go:7", "b.go:9"]

    def test_jsonl(self):
        reporter = Reporter()
        reporter.add_all([violation("IMM02", 300), violation("IMM01", 100)])
        records = [json.loads(line) for line in reporter.to_jsonl().splitlines()]
        assert [r["code"] for r in records] == ["IMM01", "IMM02"]
        assert records[0] == {
            "code": "IMM01", "pos": 100, "message": "IMM01 message",
            "type_name": "Order", "line": 1, "file": "a.go",
        }
