"""
Tests for the TestOnly checker (TONL codes).
"""

from covenant.checks.testonly import check_testonly
from covenant.config import AnalysisConfig
from covenant.program.model import Assign, Selector

from helpers import (
    APP,
    SHOP,
    T,
    call,
    codes_of,
    composite,
    expr_stmt,
    field,
    func,
    func_ref,
    ident,
    lines_of,
    method,
    method_ref,
    module,
    param,
    program,
    sel,
    source,
    span,
    struct,
    var_decl,
)


def shop_decls():
    return [
        struct("Fake", 3, 5, doc_lines=["// @testonly"]),
        func("ResetAll", 8, 10, doc_lines=["// @testonly"]),
        struct("Store", 12, 14),
        method("s", T("Store", ptr=True), "Poke", 17, 19, doc_lines=["// @testonly"]),
    ]


def run_check(facts_for, decls, path=APP, is_test=False, cfg=None):
    shop = module(SHOP, [source("shop.go", shop_decls(), 1, 30)])
    if path == SHOP:
        target = module(SHOP, [source("shop.go", shop_decls() + list(decls), 1, 99, is_test=is_test)])
        mods = [target]
    else:
        target = module(APP, [source("main.go", list(decls), 1, 99, is_test=is_test)], imports={"shop": SHOP})
        mods = [shop, target]
    _, index = facts_for(program(*mods))
    return check_testonly(target, index, cfg)


def shop_call(name, line):
    """shop.name() resolved to a function of the shop module."""
    callee = Selector(target=ident("shop", line), name=name, ref=func_ref(SHOP, name), **span(line, 4))
    return expr_stmt(call(callee, line), line)


class TestCalls:

    def test_function_call(self, facts_for):
        violations = run_check(facts_for, [func("main", 40, 42, body=[shop_call("ResetAll", 41)])])
        assert codes_of(violations) == ["TONL02"]
        assert "ResetAll" in violations[0].message

    def test_local_function_call_without_ref(self, facts_for):
        body = [expr_stmt(call(ident("ResetAll", 41), 41), 41)]
        violations = run_check(facts_for, [func("use", 40, 42, body=body)], path=SHOP)
        assert codes_of(violations) == ["TONL02"]

    def test_method_call_by_ref(self, facts_for):
        s = T("Store", SHOP, ptr=True)
        callee = sel("s", s, "Poke", 41, ref=method_ref(SHOP, "Store", "Poke"))
        violations = run_check(facts_for, [func("main", 40, 42, body=[expr_stmt(call(callee, 41), 41)])])
        assert codes_of(violations) == ["TONL03"]
        assert violations[0].type_name == "Store"

    def test_method_call_by_receiver_type(self, facts_for):
        s = T("Store", SHOP, ptr=True)
        callee = sel("s", s, "Poke", 41)
        violations = run_check(facts_for, [func("main", 40, 42, body=[expr_stmt(call(callee, 41), 41)])])
        assert codes_of(violations) == ["TONL03"]

    def test_other_method_fine(self, facts_for):
        s = T("Store", SHOP, ptr=True)
        callee = sel("s", s, "Get", 41)
        assert run_check(facts_for, [func("main", 40, 42, body=[expr_stmt(call(callee, 41), 41)])]) == []


class TestTypeUsage:

    def test_reported_once_per_file(self, facts_for):
        fake = T("Fake", SHOP)
        body = [
            var_decl("a", fake, 41),
            Assign(targets=[ident("b", 42)], values=[composite(fake, 42)], op=":=", **span(42, 4)),
        ]
        violations = run_check(facts_for, [func("main", 40, 44, body=body, params=[param("f", fake, 40)])])
        assert codes_of(violations) == ["TONL01"]
        assert lines_of(violations) == [40]

    def test_struct_field(self, facts_for):
        holder = struct("Holder", 40, 42, fields=[field("F", T("Fake", SHOP, ptr=True), 41)])
        violations = run_check(facts_for, [holder])
        assert codes_of(violations) == ["TONL01"]

    def test_result_type(self, facts_for):
        violations = run_check(facts_for, [func("make", 40, 42, results=[T("Fake", SHOP)])])
        assert codes_of(violations) == ["TONL01"]


class TestExemptions:

    def test_test_files_never_checked(self, facts_for):
        decls = [func("TestX", 40, 42, body=[shop_call("ResetAll", 41)])]
        assert run_check(facts_for, decls, is_test=True, cfg=AnalysisConfig(scan_tests=True)) == []

    def test_testonly_function_body_exempt(self, facts_for):
        body = [expr_stmt(call(ident("ResetAll", 41), 41), 41)]
        decls = [func("Helper", 40, 42, body=body, doc_lines=["// @testonly"])]
        assert run_check(facts_for, decls, path=SHOP) == []

    def test_testonly_method_body_exempt(self, facts_for):
        body = [expr_stmt(call(ident("ResetAll", 41), 41), 41)]
        decls = [method("s", T("Store", ptr=True), "Reset", 40, 42, body=body, doc_lines=["// @testonly"])]
        assert run_check(facts_for, decls, path=SHOP) == []
