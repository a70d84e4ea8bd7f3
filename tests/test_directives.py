"""
Tests for @ignore parsing and range resolution.
"""

import pytest

from covenant.program.model import If
from covenant.program.spans import BoundaryIndex
from covenant.suppress.directives import collect_directives, parse_ignore

from helpers import SHOP, T, assign, comment, func, incdec, module, renumber, sel, source, span, struct


class TestParseIgnore:

    @pytest.mark.parametrize("text,expected", [
        ("// @ignore IMM01", {"IMM01"}),
        ("//@ignore IMM01, CTOR", {"IMM01", "CTOR"}),
        ("# @ignore imm01 ,  ctor02 ", {"IMM01", "CTOR02"}),
        ("@ignore ALL", {"ALL"}),
    ])
    def test_codes(self, text, expected):
        assert parse_ignore(text) == frozenset(expected)

    @pytest.mark.parametrize("text", [
        "// @ignore",
        "// @ignore   ",
        "// @ignore , ,",
        "// nothing here",
        "// see @ignore IMM01 below",
    ])
    def test_not_a_directive(self, text):
        assert parse_ignore(text) is None


def order_ref():
    return T("Order", ptr=True)


def build_module():
    """
    a.go, module header on line 3:

         1  // @ignore IMM                 (module-wide)
         5  // @ignore CTOR01              (above Order)
         6  type Order struct { ... }      (6-9)
        12  func Touch() {                 (12-20)
        13      o.ID = 1  // @ignore IMM02 (trailing)
        14      // @ignore IMM01
        15      o.ID = 1
        16      o.ID++
        17      // @ignore TONL
        18      o.ID = 1
        22  func Other() {                 (22-29)
        23      if ... {                   (23-27)
        24          o.ID = 1
        25          // @ignore PKGO
        26          o.ID = 1
        33  // @ignore ALL                 (nothing follows)
        34  // @ignore                     (dropped)
    """
    o = order_ref()
    touch = func("Touch", 12, 20, body=[
        assign(sel("o", o, "ID", 13), 13),
        assign(sel("o", o, "ID", 15), 15),
        incdec(sel("o", o, "ID", 16), 16),
        assign(sel("o", o, "ID", 18), 18),
    ])
    branch = If(
        body=[assign(sel("o", o, "ID", 24, col=8), 24, col=8), assign(sel("o", o, "ID", 26, col=8), 26, col=8)],
        **span(23, 4, 27, 5),
    )
    other = func("Other", 22, 29, body=[branch])
    comments = [
        comment("// @ignore IMM", 1),
        comment("// @ignore CTOR01", 5),
        comment("// @ignore IMM02", 13, col=62),
        comment("// @ignore IMM01", 14, col=4),
        comment("// @ignore TONL", 17, col=4),
        comment("// @ignore PKGO", 25, col=8),
        comment("// @ignore ALL", 33),
        comment("// @ignore", 34),
    ]
    f = source("a.go", [struct("Order", 6, 9), touch, other], 1, 40, comments, package_line=3)
    return module(SHOP, [f])


class TestRanges:
    """Each placement rule, resolved against one module."""

    @pytest.fixture
    def ranges(self):
        mod = build_module()
        directives = collect_directives(mod, BoundaryIndex.build(mod))
        return {next(iter(d.codes)): (d.start, d.end) for d in directives}

    def test_payloadless_directive_dropped(self, ranges):
        assert len(ranges) == 7

    def test_before_module_header_covers_module(self, ranges):
        assert ranges["IMM"] == (100, 4099)

    def test_above_declaration(self, ranges):
        assert ranges["CTOR01"] == (500, 901)

    def test_trailing_covers_statement_line(self, ranges):
        start, end = ranges["IMM02"]
        assert start == 1304
        assert end == 1362 + len("// @ignore IMM02")

    def test_inside_function_next_statement_to_sibling(self, ranges):
        assert ranges["IMM01"] == (1504, 1604)

    def test_inside_function_last_statement(self, ranges):
        assert ranges["TONL"] == (1804, 1860)

    def test_inside_nested_block(self, ranges):
        assert ranges["PKGO"] == (2608, 2660)

    def test_nothing_follows(self, ranges):
        assert ranges["ALL"] == (3300, 3300 + len("// @ignore ALL"))

    def test_file_subset(self):
        mod = build_module()
        assert collect_directives(mod, files=[]) == []


class TestTrailingPlacement:

    def test_after_closing_brace_covers_only_that_line(self):
        o = order_ref()
        branch = If(
            body=[assign(sel("o", o, "ID", 11, col=8), 11, col=8), assign(sel("o", o, "ID", 12, col=8), 12, col=8)],
            **span(10, 4, 13, 5),
        )
        f = source("a.go", [func("Touch", 9, 14, body=[branch])], 1, 20,
                   [comment("// @ignore IMM01", 13, col=6)])
        [directive] = collect_directives(module(SHOP, [f]))
        assert (directive.start, directive.end) == (1300, 1306 + len("// @ignore IMM01"))
        assert not directive.covers(1108)
        assert not directive.covers(1208)

    def test_same_line_number_in_another_file(self):
        # b.go restarts at line 1: its directive sits on line 3, like a.go's write
        o = order_ref()
        a = source("a.go", [func("Touch", 2, 4, body=[assign(sel("o", o, "ID", 3), 3)])], 1, 9)
        b = renumber(source("b.go", [func("Bar", 14, 17, body=[assign(sel("o", o, "ID", 15), 15)])], 11, 19,
                            [comment("// @ignore IMM01", 13)]), 1)
        assert b.comments[0].line == 3
        [directive] = collect_directives(module(SHOP, [a, b]))
        assert (directive.start, directive.end) == (1300, 1701)

    def test_declaration_in_next_file_not_covered(self):
        a = source("a.go", [func("Touch", 2, 4)], 1, 9, [comment("// @ignore ALL", 8)])
        b = source("b.go", [func("Bar", 14, 17)], 11, 19)
        [directive] = collect_directives(module(SHOP, [a, b]))
        assert (directive.start, directive.end) == (800, 800 + len("// @ignore ALL"))
