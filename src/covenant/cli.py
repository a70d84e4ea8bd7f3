"""
CLI entry point for covenant.

Usage:
    covenant check <program.json>      Check contracts, print violations
    covenant facts <program.json>      Show or export extracted contract facts
    covenant codes                     List check codes

The program file is a Program Model dump produced by a host-language front
end (see covenant.program.serde).
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .codes import REGISTRY
from .config import load_config, parse_list
from .errors import CovenantError

logger = logging.getLogger(__name__)


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S',
    )


def _config_from_args(args):
    cfg = load_config(Path(args.config) if args.config else None)
    if args.scan_tests:
        cfg = cfg.with_scan_tests(True)
    if args.exclude_paths is not None:
        cfg = cfg.with_exclude_paths(parse_list(args.exclude_paths))
    if args.exclude_checks is not None:
        cfg = cfg.with_exclude_checks(parse_list(args.exclude_checks, upper=True))
    if args.workers is not None:
        cfg = cfg.with_workers(args.workers)
    return cfg


def _fact_provider(program, cfg, facts_dir):
    from .facts.store import ChainedFactProvider, ExportedFactProvider, ProgramFactProvider

    provider = ProgramFactProvider(program, cfg)
    if facts_dir:
        exported = ExportedFactProvider.from_directory(Path(facts_dir))
        provider = ChainedFactProvider([provider, exported])
    return provider


def cmd_check(args):
    """Check contracts and print surviving violations."""
    from .analyzer import analyze_program
    from .program.serde import load_program

    cfg = _config_from_args(args)
    program = load_program(args.program)
    result = analyze_program(
        program,
        cfg,
        modules=args.module or None,
        provider=_fact_provider(program, cfg, args.facts_dir),
    )
    reporter = result.reporter()

    if args.json:
        output = reporter.to_jsonl()
        if output:
            print(output)
    else:
        print(reporter.render_human())

    return 1 if reporter else 0


def cmd_facts(args):
    """Show or export the contract facts of each module."""
    from .facts.export import export_all, facts_as_json
    from .facts.store import FactStore
    from .program.serde import load_program

    cfg = _config_from_args(args)
    program = load_program(args.program)
    store = FactStore(_fact_provider(program, cfg, None))
    paths = args.module or program.module_paths()
    bundles = [store.require(p) for p in paths]

    if args.export:
        written = export_all(Path(args.export), bundles)
        print(f"Exported facts for {len(written)} modules to {args.export}")
    else:
        print(facts_as_json(bundles))
    return 0


def cmd_codes(args):
    """List check codes."""
    for code in sorted(REGISTRY):
        entry = REGISTRY[code]
        flag = "" if entry.suppressible else "  (not suppressible)"
        print(f"{entry.code:7} {entry.description}{flag}")
    return 0


def _add_common(p):
    p.add_argument('program', help='Program Model JSON dump')
    p.add_argument('-m', '--module', action='append', metavar='PATH',
                   help='Only this module (repeatable)')
    p.add_argument('--config', help='YAML config file (default: ./covenant.yaml)')
    p.add_argument('--scan-tests', action='store_true', help='Also check test files')
    p.add_argument('--exclude-paths', metavar='LIST',
                   help='Comma-separated file name substrings to skip')
    p.add_argument('--exclude-checks', metavar='LIST',
                   help='Comma-separated codes, categories or ALL to ignore everywhere')
    p.add_argument('--workers', type=int, help='Modules analyzed in parallel')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='covenant',
        description="Enforce annotation-declared source contracts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    covenant check program.json
    covenant check program.json --exclude-checks CTOR --json
    covenant facts program.json --export build/facts
    covenant check program.json --facts-dir build/facts
"""
    )
    parser.add_argument('--version', action='version', version=f'covenant {__version__}')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='More logging (-v info, -vv debug)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # check
    check_p = subparsers.add_parser('check', help='Check contracts')
    _add_common(check_p)
    check_p.add_argument('--json', action='store_true', help='JSON lines output')
    check_p.add_argument('--facts-dir', help='Directory of facts exported by an earlier run')
    check_p.set_defaults(func=cmd_check)

    # facts
    facts_p = subparsers.add_parser('facts', help='Show or export contract facts')
    _add_common(facts_p)
    facts_p.add_argument('--export', metavar='DIR', help='Write one JSON document per module')
    facts_p.set_defaults(func=cmd_facts)

    # codes
    codes_p = subparsers.add_parser('codes', help='List check codes')
    codes_p.set_defaults(func=cmd_codes)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except CovenantError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
