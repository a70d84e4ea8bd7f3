"""
Tests for the PackageOnly checker (PKGO codes).
"""

import pytest

from covenant.checks.packageonly import check_packageonly
from covenant.program.model import DeclRef, Selector

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

BILLING = "example.com/billing"


def shop_decls():
    return [
        struct("Ledger", 3, 5, doc_lines=["// @packageonly billing"]),
        func("Charge", 8, 10, doc_lines=["// @packageonly " + APP]),
        struct("Cart", 12, 14),
        method("c", T("Cart", ptr=True), "Close", 17, 19, doc_lines=["// @packageonly billing"]),
    ]


def run_check(facts_for, path, decls):
    shop = module(SHOP, [source("shop.go", shop_decls(), 1, 30)])
    user = module(path, [source("user.go", list(decls), 1, 99)], imports={"shop": SHOP})
    _, index = facts_for(program(shop, user))
    return check_packageonly(user, index)


def qualified(name, line, ref):
    return Selector(target=ident("shop", line), name=name, ref=ref, **span(line, 4))


def charge_call(line):
    return expr_stmt(call(qualified("Charge", line, func_ref(SHOP, "Charge")), line), line)


class TestFunctions:

    def test_listed_by_full_path(self, facts_for):
        assert run_check(facts_for, APP, [func("main", 40, 42, body=[charge_call(41)])]) == []

    def test_unlisted_module(self, facts_for):
        violations = run_check(facts_for, BILLING, [func("main", 40, 42, body=[charge_call(41)])])
        assert codes_of(violations) == ["PKGO02"]
        v = violations[0]
        assert v.message == (
            f"Charge function is @packageonly and cannot be used from {BILLING}. "
            f"Allowed packages: [{APP}]"
        )

    def test_function_value_reference(self, facts_for):
        ref_only = Selector(target=ident("shop", 41), name="Charge", ref=func_ref(SHOP, "Charge"), **span(41, 10))
        stmt = var_decl("f", None, 41, values=[ref_only])
        assert codes_of(run_check(facts_for, BILLING, [func("main", 40, 42, body=[stmt])])) == ["PKGO02"]

    def test_declaring_module_always_allowed(self, facts_for):
        local = expr_stmt(call(ident("Charge", 41, ref=func_ref(SHOP, "Charge")), 41), 41)
        shop = module(SHOP, [source("shop.go", shop_decls() + [func("inner", 40, 42, body=[local])], 1, 99)])
        _, index = facts_for(program(shop))
        assert check_packageonly(shop, index) == []


class TestTypes:

    @pytest.mark.parametrize("path,expected", [
        (BILLING, []),
        ("example.com/other/billing", []),
        (APP, ["PKGO01"]),
    ])
    def test_short_name_match(self, facts_for, path, expected):
        body = [var_decl("l", T("Ledger", SHOP), 41)]
        assert codes_of(run_check(facts_for, path, [func("main", 40, 42, body=body)])) == expected

    def test_every_type_position(self, facts_for):
        ledger = T("Ledger", SHOP, ptr=True)
        decls = [
            struct("Holder", 35, 37, fields=[field("L", ledger, 36)]),
            func("main", 40, 44, params=[param("l", ledger, 40)], results=[ledger], body=[
                expr_stmt(composite(T("Ledger", SHOP), 41), 41),
            ]),
        ]
        violations = run_check(facts_for, APP, decls)
        assert codes_of(violations) == ["PKGO01"] * 4
        assert "Allowed packages: [billing]" in violations[0].message

    def test_type_name_reference(self, facts_for):
        ref = DeclRef(SHOP, "Ledger")
        stmt = expr_stmt(qualified("Ledger", 41, ref), 41)
        assert codes_of(run_check(facts_for, APP, [func("main", 40, 42, body=[stmt])])) == ["PKGO01"]


class TestMethods:

    def test_method_by_ref(self, facts_for):
        cart = T("Cart", SHOP, ptr=True)
        callee = sel("c", cart, "Close", 41, ref=method_ref(SHOP, "Cart", "Close"))
        violations = run_check(facts_for, APP, [func("main", 40, 42, body=[expr_stmt(call(callee, 41), 41)])])
        assert codes_of(violations) == ["PKGO03"]
        assert violations[0].message.startswith("Cart.Close method is @packageonly")

    def test_method_by_receiver_type(self, facts_for):
        cart = T("Cart", SHOP, ptr=True)
        callee = sel("c", cart, "Close", 41)
        violations = run_check(facts_for, APP, [func("main", 40, 42, body=[expr_stmt(call(callee, 41), 41)])])
        assert codes_of(violations) == ["PKGO03"]

    def test_method_allowed_module(self, facts_for):
        cart = T("Cart", SHOP, ptr=True)
        callee = sel("c", cart, "Close", 41)
        assert run_check(facts_for, BILLING, [func("main", 40, 42, body=[expr_stmt(call(callee, 41), 41)])]) == []
