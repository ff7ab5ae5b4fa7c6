"""
Indenting text emitter used by every term's render().
"""
import io

INDENT = '  '


class Printer:
    """
    Writes calculus text to a writer, tracking one indentation level.

    All rendering goes through print(), begin(), newline() and end(); the
    indentation depth is the only state and lasts for one render pass.
    """

    def __init__(self, out=None):
        self._out = out if out is not None else io.StringIO()
        self.indent = 0

    def print(self, txt):
        """Append raw text."""
        self._out.write(txt)

    def begin(self, txt):
        """Append text, open a nested level and start its first line."""
        self._out.write(txt)
        self.indent += 1
        self.newline()

    def newline(self):
        """Start a new line at the current indentation."""
        self._out.write('\n' + INDENT * self.indent)

    def end(self, txt):
        """Close the current level with txt and continue at the outer level."""
        self.newline()
        self._out.write(txt)
        self.indent -= 1
        self.newline()

    def getvalue(self):
        """Text written so far; only available for in-memory writers."""
        return self._out.getvalue()


def render_to_string(term):
    """Render a process or name term into a new string."""
    printer = Printer()
    term.render(printer)
    return printer.getvalue()
