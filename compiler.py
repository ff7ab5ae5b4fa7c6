import sys
from functools import lru_cache

from lark import Lark
from lark.exceptions import UnexpectedEOF, UnexpectedInput, VisitError
from pydantic import ValidationError

# Import from the core package
from rhocore.errors import (
    RhoCompileError,
    get_line_context,
    detect_common_error_patterns,
)
from rhocore.estree import load_estree_json
from rhocore.grammar import js_subset_grammar
from rhocore.printer import Printer
from rhocore.transformer import EsTreeTransformer
from rhocore.translator import compile_tree

# Global verbose flag
_VERBOSE = False

def set_verbose(value):
    """Set the global verbose flag."""
    global _VERBOSE
    _VERBOSE = value

def debug_log(message):
    """Log a debug message to stderr if verbose mode is enabled."""
    if _VERBOSE:
        print(f"\033[94mDEBUG:\033[0m {message}", file=sys.stderr)

def warn(message):
    """Log a warning to stderr; used for constructs replaced by placeholders."""
    print(f"\033[93mWARNING:\033[0m {message}", file=sys.stderr)


@lru_cache(maxsize=None)
def get_parser():
    # LALR keeps keywords (`await`, `case`, ...) out of NAME deterministically
    return Lark(js_subset_grammar, parser='lalr', propagate_positions=True)


def parse_source(source_code):
    """Parse source text of the accepted subset into an estree.Program."""
    try:
        tree = get_parser().parse(source_code)
    except UnexpectedInput as e:
        line_number = getattr(e, 'line', None)
        column = getattr(e, 'column', None)
        if isinstance(e, UnexpectedEOF) or not line_number or line_number < 0:
            line_number, column = None, None
        elif column:
            column -= 1

        context = get_line_context(source_code, line_number) if line_number else None
        suggestion_text = detect_common_error_patterns(source_code) or "Check syntax around this line"

        raise RhoCompileError(
            message="Syntax error",
            line_number=line_number,
            column=column,
            context=context,
            suggestion=suggestion_text
        ) from e

    try:
        return EsTreeTransformer().transform(tree)
    except VisitError as e:
        raise RhoCompileError(
            message=f"Could not build syntax tree: {e.orig_exc}",
            suggestion="Check string escapes and number formats"
        ) from e


def load_tree(json_text):
    """Decode an ESTree JSON document (e.g. `esprima --loc` output)."""
    try:
        return load_estree_json(json_text)
    except ValidationError as e:
        raise RhoCompileError(
            message=f"Invalid ESTree input ({e.error_count()} error(s)):\n{e}",
            suggestion="Every node needs a string `type`; known node kinds need their required fields"
        ) from e


def _report(diagnostic):
    warn(str(diagnostic))


def translate_source(source_code, file_path="<input>", is_json=False):
    """Parse and compile; returns a Compilation (process term + diagnostics)."""
    debug_log(f"Compiling source: {file_path}")

    # STEP 1: PARSE
    tree = load_tree(source_code) if is_json else parse_source(source_code)
    debug_log(f"{tree.type}: {len(getattr(tree, 'body', []))} top-level statements")

    # STEP 2: TRANSLATE
    try:
        compilation = compile_tree(tree, on_warning=_report)
    except RhoCompileError as e:
        if not is_json:
            e.with_context(source_code)
        raise

    debug_log(f"{len(compilation.diagnostics)} placeholder(s) emitted")
    return compilation


def render(process, out=None):
    """Write a process term as Rholang text; returns the printer."""
    printer = Printer(out)
    process.render(printer)
    return printer


def compile_source(source_code, file_path="<input>", is_json=False):
    """Compile source text (or ESTree JSON) to Rholang text."""
    compilation = translate_source(source_code, file_path=file_path, is_json=is_json)
    return render(compilation.process).getvalue()
