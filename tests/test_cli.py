"""
Tests for the covenant command line.
"""

import json

import pytest

from covenant import config as config_module
from covenant.cli import build_parser, main
from covenant.program.serde import dump_program

from helpers import SHOP, T, assign, func, module, program, sel, source, struct


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, no_env):
    """Ignore any covenant.yaml on the developer's machine."""
    monkeypatch.setattr(config_module, "config_search_paths", lambda: [])


@pytest.fixture
def program_file(tmp_path):
    o = T("Order", ptr=True)
    decls = [
        struct("Order", 3, 6, doc_lines=["// @immutable"]),
        func("Touch", 10, 13, body=[assign(sel("o", o, "ID", 11), 11)]),
    ]
    path = tmp_path / "program.json"
    path.write_text(dump_program(program(module(SHOP, [source("order.go", decls, 1, 20)]))), encoding="utf-8")
    return path


class TestCheck:

    def test_violations_exit_one(self, program_file, capsys):
        assert main(["check", str(program_file)]) == 1
        out = capsys.readouterr().out
        assert "order.go:11: error: [IMM01]" in out
        assert out.startswith("Violations: 1  IMM=1")

    def test_json_output(self, program_file, capsys):
        assert main(["check", str(program_file), "--json"]) == 1
        [line] = capsys.readouterr().out.strip().splitlines()
        assert json.loads(line)["code"] == "IMM01"

    def test_exclude_checks_clean(self, program_file, capsys):
        assert main(["check", str(program_file), "--exclude-checks", "imm"]) == 0
        assert capsys.readouterr().out.strip() == "covenant: OK - no violations (1 suppressed)"

    def test_env_exclude_checks(self, program_file, monkeypatch):
        monkeypatch.setenv("COVENANT_EXCLUDE_CHECKS", "IMM01")
        assert main(["check", str(program_file)]) == 0

    def test_config_file(self, program_file, tmp_path):
        cfg = tmp_path / "covenant.yaml"
        cfg.write_text("exclude_checks: ALL\n", encoding="utf-8")
        assert main(["check", str(program_file), "--config", str(cfg)]) == 0

    def test_missing_config_is_error(self, program_file, tmp_path, capsys):
        assert main(["check", str(program_file), "--config", str(tmp_path / "none.yaml")]) == 2
        assert "Config file not found" in capsys.readouterr().err

    def test_bad_program_is_error(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text('{"modules": 3}', encoding="utf-8")
        assert main(["check", str(path)]) == 2
        assert capsys.readouterr().err.startswith("Error:")

    def test_unknown_module_is_error(self, program_file):
        assert main(["check", str(program_file), "-m", "example.com/none"]) == 2


class TestFacts:

    def test_print(self, program_file, capsys):
        assert main(["facts", str(program_file)]) == 0
        [document] = json.loads(capsys.readouterr().out)
        assert document["module_path"] == SHOP
        assert document["facts"][0]["kind"] == "immutable"

    def test_export_then_check_with_facts_dir(self, program_file, tmp_path, capsys):
        out_dir = tmp_path / "facts"
        assert main(["facts", str(program_file), "--export", str(out_dir)]) == 0
        assert (out_dir / "example.com__shop.json").exists()
        assert main(["check", str(program_file), "--facts-dir", str(out_dir)]) == 1


class TestMisc:

    def test_codes(self, capsys):
        assert main(["codes"]) == 0
        out = capsys.readouterr().out
        assert "IMM01" in out
        assert "IMPL03" in out and "(not suppressible)" in out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: covenant" in capsys.readouterr().out

    def test_parser_defaults(self):
        args = build_parser().parse_args(["check", "p.json", "-m", "a", "-m", "b", "--workers", "3"])
        assert args.module == ["a", "b"]
        assert args.workers == 3
        assert args.json is False
