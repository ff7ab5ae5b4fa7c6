"""
Error handling utilities for the js2rho compiler.

Two tiers: RhoCompileError aborts the whole compilation, Diagnostic records a
recoverable shape the compiler replaced with a placeholder term.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict


def loc_label(line, column):
    """Format a source position the way every compiler message cites it."""
    return f"{line}c{column}"


class RhoCompileError(Exception):
    """Custom exception for js2rho compilation errors with line numbers and hints."""
    def __init__(self, message, line_number=None, column=None, expected=None, found=None,
                 context=None, suggestion=None):
        self.message = message
        self.line_number = line_number
        self.column = column
        self.expected = expected
        self.found = found
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    @classmethod
    def unexpected(cls, expected, line, column, found):
        """Build the shape error raised when a node is not of the expected kind."""
        return cls(
            f"{loc_label(line, column)}: expected {expected}; found {found}",
            line_number=line,
            column=column,
            expected=expected,
            found=found,
        )

    def with_context(self, source_code):
        """Attach the offending source line, if the source text is known."""
        if self.context is None:
            self.context = get_line_context(source_code, self.line_number)
        return self

    def _format_error(self):
        """Header with the location, then the message, the source line and the hint."""
        where = ""
        if self.line_number:
            where = f" at line {self.line_number}"
            if self.column is not None:
                where += f", column {self.column}"
        parts = [f"\n❌ Compilation Error{where}:\n", f"   {self.message}\n"]
        if self.context:
            parts.append(f"   > {self.context}\n")
        if self.suggestion:
            parts.append(f"   💡 {self.suggestion}\n")
        return "".join(parts)

    def __str__(self):
        return self._format_error()


class Diagnostic(BaseModel):
    """A soft error: an unsupported shape replaced by a placeholder term."""
    model_config = ConfigDict(frozen=True)

    line: int
    column: int
    expected: str
    found: str

    def __str__(self):
        return f"{loc_label(self.line, self.column)}: expected {self.expected}; found {self.found}"


def get_line_context(source_code, line_number):
    """The stripped source line at a 1-based line number, or None when out of range."""
    if not source_code or not line_number or line_number < 1:
        return None
    source_lines = source_code.splitlines()
    if line_number > len(source_lines):
        return None
    return source_lines[line_number - 1].strip()


def detect_common_error_patterns(source_code):
    """Detect common mistakes in the accepted subset and return a hint."""
    open_braces = source_code.count('{')
    close_braces = source_code.count('}')
    if open_braces != close_braces:
        brace = '{'
        return f"Unmatched braces: found {open_braces} '{brace}' but {close_braces} " + "'}'"

    open_parens = source_code.count('(')
    close_parens = source_code.count(')')
    if open_parens != close_parens:
        return f"Unmatched parentheses: found {open_parens} '(' but {close_parens} ')'"

    for keyword in ('class ', 'while ', 'for '):
        if keyword in source_code:
            return f"'{keyword.strip()}' is outside the supported subset"

    return None
