"""
covenant - annotation-declared source contracts, enforced.

Annotations in doc comments declare rules; covenant checks a parsed,
type-checked program against them:

    @immutable                  no mutation outside constructors
    @constructor New            instances only built by New
    @implements &io.Writer      structural interface conformance
    @testonly                   usable from test files only
    @packageonly billing        usable from the listed modules only
    @mutable                    field exempt from @immutable
    @ignore IMM01, CTOR         suppress violations in scope

Usage:
    from covenant.analyzer import analyze_program
    from covenant.program.serde import load_program

    result = analyze_program(load_program("program.json"))
"""

__version__ = "0.1.0"
