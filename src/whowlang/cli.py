"""
CLI entry point for whowlang.

Usage:
    whowlang lex <file>...             Print the token stream of each file
    whowlang parse <file>...           Parse files and print the result as JSON
    whowlang check <file>...           Report whether each file parses
    whowlang config [--init [PATH]]    Show or create the configuration file
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from whowlang import __version__

logger = logging.getLogger(__name__)


def _read_failed(path, error) -> int:
    print(f"Error: cannot read {path}: {error}", file=sys.stderr)
    return 1


def cmd_lex(args, config):
    """Print the token stream of each file."""
    from .parser import LexerError, tokenize_file

    status = 0
    for path in args.files:
        if len(args.files) > 1:
            print(f"==> {path} <==")
        try:
            tokens = tokenize_file(path, encodings=config.encodings)
        except OSError as e:
            status = _read_failed(path, e)
            continue
        except LexerError as e:
            print(f"{path}: {e}", file=sys.stderr)
            status = 1
            continue

        for token in tokens:
            print(token)
        logger.info(f"Lexed {path}: {len(tokens)} tokens")

    return status


def cmd_parse(args, config):
    """Parse files and print the resulting mapping as JSON."""
    from .parser import LexerError, ParseError, parse_file
    from .parser.value_serde import serialize_documents, serialize_values

    typed = args.typed or config.output_format == "typed"
    indent = args.indent if args.indent is not None else config.json_indent
    sort_keys = args.sort_keys or config.sort_keys

    status = 0
    results = {}
    for path in args.files:
        try:
            values = parse_file(path, encodings=config.encodings)
        except OSError as e:
            status = _read_failed(path, e)
            continue
        except (LexerError, ParseError) as e:
            print(f"{path}: {e}", file=sys.stderr)
            status = 1
            continue

        results[path] = values
        logger.info(f"Parsed {path}: {len(values)} top-level keys")

    if len(args.files) == 1:
        values = results.get(args.files[0])
        if values is None:
            return status
        output = serialize_values(values, typed=typed, indent=indent, sort_keys=sort_keys)
    else:
        output = serialize_documents(results, typed=typed, indent=indent, sort_keys=sort_keys)

    print(output.decode('utf-8'))
    return status


def cmd_check(args, config):
    """Report OK or a diagnostic for each file."""
    from .parser import LexerError, ParseError, diagnostic_from_error, parse_file

    status = 0
    report = []
    for path in args.files:
        entry = {"file": path, "ok": True, "diagnostic": None}
        try:
            parse_file(path, encodings=config.encodings)
        except OSError as e:
            status = _read_failed(path, e)
            entry["ok"] = False
            entry["error"] = str(e)
        except (LexerError, ParseError) as e:
            diagnostic = diagnostic_from_error(e, filename=path)
            status = 1
            entry["ok"] = False
            entry["diagnostic"] = diagnostic.to_dict()
            if not args.json:
                print(diagnostic)
        else:
            if not args.json:
                print(f"{path}: OK")
        report.append(entry)

    if args.json:
        print(json.dumps(report, indent=2))

    return status


def cmd_config(args, config):
    """Show the effective configuration, or write a default config file."""
    from .config import write_default_config

    if args.init is not None:
        path = write_default_config(Path(args.init) if args.init else None)
        print(f"Wrote default config: {path}")
        return 0

    print(json.dumps(config.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="whowlang",
        description="Whowlang configuration language tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    whowlang lex server.wl
    whowlang parse server.wl --indent 4
    whowlang parse a.wl b.wl --typed
    whowlang check configs/*.wl --json
"""
    )
    parser.add_argument('--version', action='version', version=f'whowlang {__version__}')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase log output (-v info, -vv debug)')
    parser.add_argument('--config', help='Path to a YAML config file')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # lex
    lex_p = subparsers.add_parser('lex', help='Print the token stream of files')
    lex_p.add_argument('files', nargs='+', help='Files to tokenize')
    lex_p.set_defaults(func=cmd_lex)

    # parse
    parse_p = subparsers.add_parser('parse', help='Parse files and print JSON')
    parse_p.add_argument('files', nargs='+', help='Files to parse')
    parse_p.add_argument('-t', '--typed', action='store_true', help='Emit _type-tagged JSON')
    parse_p.add_argument('--indent', type=int, default=None, help='JSON indentation')
    parse_p.add_argument('--sort-keys', action='store_true', help='Sort keys in output')
    parse_p.set_defaults(func=cmd_parse)

    # check
    check_p = subparsers.add_parser('check', help='Check that files parse')
    check_p.add_argument('files', nargs='+', help='Files to check')
    check_p.add_argument('--json', action='store_true', help='Machine-readable report')
    check_p.set_defaults(func=cmd_check)

    # config
    config_p = subparsers.add_parser('config', help='Show or create configuration')
    config_p.add_argument('--init', nargs='?', const='', default=None, metavar='PATH',
                          help='Write a default config file (default ~/.whowlang/config.yaml)')
    config_p.set_defaults(func=cmd_config)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    from .config import ConfigError, get_config

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = get_config(Path(args.config) if args.config else None)
        level = config.log_level
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        level = "DEBUG" if args.verbose > 1 else "INFO"
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args, config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
