import argparse
import os
import sys

from compiler import translate_source, render, set_verbose
from rhocore.errors import RhoCompileError


def log(message):
    """Log informational messages to stderr."""
    print(f"\033[92m\033[1mINFO:\033[0m {message}", file=sys.stderr)


def read_source(filepath):
    """Return (source_code, filepath); '-' or None reads stdin."""
    if filepath is None or filepath == "-":
        return sys.stdin.read(), "<stdin>"
    if not os.path.exists(filepath):
        print(f"Error: File '{filepath}' not found.", file=sys.stderr)
        sys.exit(1)
    with open(filepath, 'r') as f:
        return f.read(), filepath


def translate(args):
    set_verbose(args.verbose)
    source_code, filepath = read_source(args.filename)
    is_json = args.json or filepath.endswith(".json")
    try:
        return translate_source(source_code, file_path=filepath, is_json=is_json)
    except RhoCompileError as e:
        print(f"Error: Compilation Failed:\n{e}", file=sys.stderr)
        sys.exit(1)


def report_diagnostics(compilation, strict):
    count = len(compilation.diagnostics)
    if count:
        log(f"{count} unsupported construct(s) replaced by placeholders.")
        if strict:
            sys.exit(1)


def cmd_compile(args):
    compilation = translate(args)
    if args.output:
        with open(args.output, 'w') as f:
            render(compilation.process, f)
        log(f"Wrote {args.output}")
    else:
        render(compilation.process, sys.stdout)
    report_diagnostics(compilation, args.strict)


def cmd_check(args):
    compilation = translate(args)
    report_diagnostics(compilation, args.strict)
    if not compilation.diagnostics:
        log("✅ No issues found.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="js2rho: compile an ECMAScript subset to Rholang")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (("compile", "Compile a file to Rholang"),
                            ("check", "Compile without writing output; report diagnostics")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("filename", nargs="?", default="-", help="Source file (default: read from stdin)")
        sub.add_argument("--json", action="store_true", help="Input is ESTree JSON (implied by a .json file name)")
        sub.add_argument("--strict", action="store_true", help="Exit with status 1 if any placeholder was emitted")
        if name == "compile":
            sub.add_argument("-o", "--output", help="Output file (default: stdout)")

    args = parser.parse_args(argv)

    if args.command == "compile": cmd_compile(args)
    elif args.command == "check": cmd_check(args)
    else: parser.print_help()

if __name__ == "__main__":
    main()
