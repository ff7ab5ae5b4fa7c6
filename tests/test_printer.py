"""
Unit tests for rhocore/printer.py.
"""
import io

from rhocore.printer import Printer, render_to_string
from rhocore import terms as rho


class TestPrinter:
    """Tests for the indenting emitter."""

    def test_print_appends_raw_text(self):
        out = Printer()
        out.print("a")
        out.print("b")
        assert out.getvalue() == "ab"

    def test_begin_and_end_wrap_a_nested_level(self):
        out = Printer()
        out.begin("in {")
        out.print("x")
        out.end("}")
        assert out.getvalue() == "in {\n  x\n  }\n"
        assert out.indent == 0

    def test_nested_levels_indent_by_two_spaces(self):
        out = Printer()
        out.begin("a {")
        out.begin("b {")
        out.print("x")
        out.end("}")
        out.end("}")
        assert out.getvalue() == "a {\n  b {\n    x\n    }\n  \n  }\n"

    def test_newline_uses_current_indent(self):
        out = Printer()
        out.indent = 2
        out.newline()
        assert out.getvalue() == "\n    "

    def test_writes_to_given_writer(self):
        buf = io.StringIO()
        out = Printer(buf)
        out.print("Nil")
        assert buf.getvalue() == "Nil"


class TestRenderToString:
    def test_render_name(self):
        assert render_to_string(rho.var("x")) == "x"

    def test_render_process(self):
        assert render_to_string(rho.nil()) == "Nil"

    def test_each_call_starts_fresh(self):
        term = rho.send(rho.var("c"), [rho.primitive(1)])
        assert render_to_string(term) == render_to_string(term) == "c!(1)"
