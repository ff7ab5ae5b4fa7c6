"""
Unit tests for rhocore/translator.py - ESTree to Rholang terms.
"""
import json

import pytest

from compiler import compile_source, parse_source, translate_source
from rhocore import estree as es
from rhocore import terms as rho
from rhocore.errors import Diagnostic, RhoCompileError
from rhocore.translator import RHO_CONSOLE, Translation, compile_tree


def v(name):
    return rho.var(name)


def d(name):
    return rho.drop(rho.var(name))


def p(value):
    return rho.primitive(value)


def program(body):
    """Wrap a body the way every module is wrapped."""
    return rho.new([RHO_CONSOLE], body)


@pytest.fixture
def translate():
    """Parse source text and compile it; returns the Compilation."""
    def run(code, on_warning=None):
        return compile_tree(parse_source(code), on_warning=on_warning)
    return run


@pytest.fixture
def term(translate):
    """Process term of a program that compiles without diagnostics."""
    def run(code):
        compilation = translate(code)
        assert compilation.diagnostics == ()
        return compilation.process
    return run


class TestProgram:
    """Tests for module-level translation."""

    def test_empty_program_is_nil(self, term):
        assert term("") == rho.nil()

    def test_imports_only(self, term):
        assert term("import E from '@agoric/eventual-send';") == program(rho.nil())

    def test_hello_rendering(self):
        assert compile_source('console.log("hi");') == '\nnew console(`rho:io:stdout`)\nin {\n  console!("hi")\n  }\n'

    def test_rho_import_binds_before_console(self, term):
        code = "import log from 'rho:io:stdout';\nconsole.log(1);"
        expected = rho.new([("log", "rho:io:stdout"), RHO_CONSOLE], rho.send(v("console"), [p(1)]))
        assert term(code) == expected

    def test_builtin_imports_bind_nothing(self, term):
        code = """
        import { bundlePlus, tuple, console } from '@rchain-community/js2rho';
        import harden from '@agoric/harden';
        import Nat from '@agoric/nat';
        import { E } from '@agoric/eventual-send';
        console.log(1);
        """
        assert term(code) == program(rho.send(v("console"), [p(1)]))

    def test_export_default_body(self, term):
        code = "export default async function main() { console.log(1); }"
        assert term(code) == program(rho.send(v("console"), [p(1)]))

    def test_export_default_must_be_last(self, translate):
        code = "export default function main() { }\nconsole.log(1);"
        with pytest.raises(RhoCompileError) as exc:
            translate(code)
        assert exc.value.message == "2c0: expected end of module; found ExpressionStatement"


class TestImportErrors:
    def test_rho_import_requires_default(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("import { x } from 'rho:io:stdout';")
        assert exc.value.message == "1c0: must import default from rho:io:stdout"

    def test_unknown_source(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("import _ from 'lodash';")
        assert exc.value.message == "1c0: not supported: import ... from lodash"

    def test_unrecognized_names(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("import { Nat, foo, bar } from '@agoric/nat';")
        assert exc.value.message == "1c0: unrecognized name(s) foo, bar from @agoric/nat"

    def test_imports_after_statements_are_not_imports(self, translate):
        compilation = translate("console.log(1);\nimport E from '@agoric/eventual-send';")
        assert [diag.found for diag in compilation.diagnostics] == ["ImportDeclaration"]


class TestAwait:
    """Tests for awaited eventual sends."""

    def test_awaited_method_call_rendering(self):
        code = ("import { E } from '@agoric/eventual-send';\n"
                "const x = await E(svc).get(1);\n"
                "console.log(x);\n")
        expected = ("\nnew console(`rho:io:stdout`)\nin {\n  \n  new AwaitExpression_2c10_0\n  in {\n"
                    "    svc!(\"get\", 1, *AwaitExpression_2c10_0)\n    |\n"
                    "    for(x <- AwaitExpression_2c10_0) {\n      console!(*x)\n      }\n    \n    }\n  \n  }\n")
        assert compile_source(code) == expected

    def test_awaited_plain_call(self, term):
        k = "AwaitExpression_1c10_0"
        expected = program(rho.new([k], rho.par(
            rho.send(v("svc"), [p(1), d(k)]),
            rho.receiving([([v("x")], v(k))], rho.nil()))))
        assert term("const x = await E(svc)(1);") == expected

    def test_tuple_pattern(self, term):
        k = "AwaitExpression_1c25_0"
        pattern = rho.quote(rho.tuple_expr([d("a"), d("b")]))
        expected = program(rho.new([k], rho.par(
            rho.send(v("svc"), [p("pair"), d(k)]),
            rho.receiving([([pattern], v(k))], rho.nil()))))
        assert term("const { _0: a, _1: b } = await E(svc).pair();") == expected

    def test_tuple_pattern_keys_must_be_positional(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const { _1: a } = await E(svc).pair();")
        assert "expected tuple pattern" in exc.value.message

    def test_promise_all_fan_out(self, term):
        code = "const [a, b] = await Promise.all([E(x).get(), E(y).get()]);"
        k0, k1 = "CallExpression_1c34_0", "CallExpression_1c46_1"
        expected = program(rho.new([k0, k1], rho.par(
            rho.par(rho.send(v("x"), [p("get"), d(k0)]), rho.send(v("y"), [p("get"), d(k1)])),
            rho.receiving([([v("a")], v(k0)), ([v("b")], v(k1))], rho.nil()))))
        assert term(code) == expected

    def test_promise_all_count_mismatch(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const [a] = await Promise.all([E(x).get(), E(y).get()]);")
        assert exc.value.message == "1c6: Promise.all mismatch: 2 expressions to 1 patterns"

    def test_await_requires_e(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const x = await F(svc).get();")
        assert exc.value.message == "1c16: expected E(...); found CallExpression"

    def test_e_takes_one_argument(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const x = await E(a, b).get();")
        assert "expected E(_1 arg_); found 2 arguments" in exc.value.message

    def test_fresh_names_restart_per_compilation(self):
        code = "const [a, b] = await Promise.all([E(x).get(), E(y).get()]);"
        first = compile_source(code)
        assert compile_source(code) == first

    def test_reused_translation_restarts_counter(self):
        tree = parse_source("const x = await E(svc).get();")
        translation = Translation()
        assert translation.compile(tree) == translation.compile(tree)


class TestDeclarations:
    def test_literal_binding(self, term):
        expected = program(rho.match(p(1), [(d("x"), rho.send(v("console"), [d("x")]))]))
        assert term("const x = 1;\nconsole.log(x);") == expected

    def test_empty_object_allocates_name(self, term):
        expected = program(rho.new(["store"], rho.send(v("console"), [d("store")])))
        assert term("const store = {};\nconsole.log(store);") == expected

    def test_non_empty_object_is_rejected(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const store = { 'a': 1 };")
        assert exc.value.message == "1c14: expected {}; found non-empty ObjectExpression"

    def test_let_is_rejected(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("let x = 1;")
        assert exc.value.message == "1c0: expected const; found let"

    def test_multiple_declarators_are_rejected(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const a = 1, b = 2;")
        assert "expected 1 declaration; found 2 declarations" in exc.value.message

    def test_unsupported_initializer_is_soft(self, translate):
        compilation = translate("const y = x;\nconsole.log(1);")
        assert compilation.process == program(rho.par(p("TODO@@ Identifier"), rho.send(v("console"), [p(1)])))
        assert compilation.diagnostics == (
            Diagnostic(line=1, column=10, expected="{} | AwaitExpression | harden({...}) | Literal",
                       found="Identifier"),
        )

    def test_call_initializer_must_be_harden(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const x = freeze({});")
        assert exc.value.message == "1c10: expected harden; found freeze"


class TestMethodSuites:
    """Tests for harden({...}) contracts."""

    def test_one_contract_per_method(self, term):
        code = """const svc = harden({
            get(key) { return key; },
            put(key, value, __return) { return true; },
        });"""
        get = rho.contract(v("svc"), [rho.quote(p("get")), v("key"), v("__return")],
                           rho.send(v("__return"), [d("key")]))
        put = rho.contract(v("svc"), [rho.quote(p("put")), v("key"), v("value"), v("__return")],
                           rho.send(v("__return"), [p(True)]))
        assert term(code) == program(rho.new(["svc"], rho.par(get, put)))

    def test_rest_of_block_runs_beside_contracts(self, term):
        code = "const svc = harden({ ping() { return; } });\nconsole.log(1);"
        ping = rho.contract(v("svc"), [rho.quote(p("ping")), v("__return")],
                            rho.send(v("__return"), [rho.nil()]))
        assert term(code) == program(rho.new(["svc"], rho.par(ping, rho.send(v("console"), [p(1)]))))

    def test_contract_rendering(self):
        out = compile_source("const svc = harden({ get(x) { return x; } });")
        assert 'contract svc(@{ "get" }, x, __return) = {\n' in out
        assert "__return!(*x)" in out

    def test_method_value_must_be_function(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const svc = harden({ 'get': 1 });")
        assert "expected FunctionExpression; found Literal" in exc.value.message

    def test_harden_takes_one_argument(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("const svc = harden({}, {});")
        assert "expected harden(1 arg); found 2 arguments" in exc.value.message


class TestStatements:
    def test_switch(self, term):
        code = """switch (x) {
            case 1: console.log("one");
            case "b": console.log("bee");
        }"""
        expected = program(rho.match(d("x"), [
            (p(1), rho.send(v("console"), [p("one")])),
            (p("b"), rho.send(v("console"), [p("bee")])),
        ]))
        assert term(code) == expected

    def test_switch_default_is_rejected(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("switch (x) { default: console.log(1); }")
        assert "expected case <test>; found default" in exc.value.message

    def test_return_sends_on_reply_channel(self, term):
        code = "export default function main() { return tuple(1, 2); }"
        assert term(code) == program(rho.send(v("__return"), [rho.tuple_expr([p(1), p(2)])]))

    def test_return_must_end_block(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("export default function main() {\n  return 1;\n  console.log(2);\n}")
        assert exc.value.message == "3c2: expected end of block; found ExpressionStatement"

    def test_fire_and_forget_method(self, term):
        assert term("E(svc).put(1);") == program(rho.send(v("svc"), [p("put"), p(1)]))

    def test_fire_and_forget_plain(self, term):
        assert term("E(svc)(1, 2);") == program(rho.send(v("svc"), [p(1), p(2)]))

    def test_fire_and_forget_must_end_block(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("E(svc).put(1);\nconsole.log(2);")
        assert exc.value.message == "2c0: expected end of block; found ExpressionStatement"

    def test_other_call_statement_is_rejected(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("foo(1);")
        assert exc.value.message == "1c0: expected CallExpression | MemberExpression; found Identifier"

    def test_logging_runs_beside_rest(self, term):
        expected = program(rho.par(rho.send(v("console"), [p(1)]), rho.send(v("console"), [p(2)])))
        assert term("console.log(1);\nconsole.log(2);") == expected


class TestSoftErrors:
    """Unsupported statements become placeholders and diagnostics."""

    def test_if_statement_placeholder(self, translate):
        seen = []
        compilation = translate("if (a) { f(); }\nconsole.log(1);", on_warning=seen.append)
        assert compilation.process == program(rho.par(p("TODO@@ IfStatement"), rho.send(v("console"), [p(1)])))
        assert len(compilation.diagnostics) == 1
        assert seen == list(compilation.diagnostics)
        diag = compilation.diagnostics[0]
        assert (diag.line, diag.column, diag.found) == (1, 0, "IfStatement")

    def test_non_call_expression_statement(self, translate):
        compilation = translate("x;")
        assert compilation.process == program(p("TODO@@ Identifier"))
        assert str(compilation.diagnostics[0]) == "1c0: expected console.log(...) | E(...)...(...); found Identifier"

    def test_placeholder_rendering(self):
        assert 'TODO@@ IfStatement' in compile_source("if (a) { f(); }")


class TestExpressions:
    """Tests for expression translation."""

    def test_operators(self, term):
        expected = program(rho.send(v("console"), [
            rho.binop("or", rho.binop("and", d("a"), d("b")), rho.binop("==", d("c"), p(1)))]))
        assert term("console.log(a && b || c === 1);") == expected

    def test_unsupported_operator(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("console.log(a + b);")
        assert exc.value.message == "1c12: expected && || ===; found +"

    def test_bundle_plus_and_tuple(self, term):
        expected = program(rho.send(v("console"), [
            rho.tuple_expr([p(1), rho.unary("bundle+", d("x"))])]))
        assert term("console.log(tuple(1, bundlePlus(x)));") == expected

    def test_unknown_function_call(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("console.log(foo(1));")
        assert "expected bundlePlus | tuple; found foo" in exc.value.message

    def test_map_literal(self, term):
        expected = program(rho.send(v("console"), [rho.map_expr([("k", p(1)), ("j", d("x"))])]))
        assert term('console.log({"k": 1, "j": x});') == expected

    def test_map_key_must_be_string(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("console.log({k: 1});")
        assert "expected string literal key; found Identifier" in exc.value.message

    def test_null_is_nil(self, term):
        assert term("console.log(null);") == program(rho.send(v("console"), [rho.nil()]))

    def test_unsupported_expression(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("console.log(!a);")
        assert "found UnaryExpression" in exc.value.message


class TestEntryPoints:
    """compile_tree accepts programs, blocks and expression statements."""

    def test_block_statement(self, at):
        block = es.BlockStatement(body=[
            es.ReturnStatement(argument=es.Literal(value=1, loc=at(1, 7)), loc=at(1, 0)),
        ])
        assert compile_tree(block).process == rho.send(v("__return"), [p(1)])

    def test_expression_statement(self, ident):
        stmt = es.ExpressionStatement(expression=ident("x"))
        assert compile_tree(stmt).process == d("x")

    def test_other_node_is_soft(self, ident):
        compilation = compile_tree(ident("x", line=4, column=2))
        assert compilation.process == p("TODO@@ Identifier")
        assert compilation.diagnostics[0].line == 4

    def test_fresh_name_uses_node_position(self, at, ident):
        call = es.CallExpression(
            callee=es.MemberExpression(
                object=es.CallExpression(callee=ident("E"), arguments=[ident("svc")]),
                property=ident("get")),
            arguments=[])
        decl = es.VariableDeclaration(kind="const", declarations=[
            es.VariableDeclarator(id=ident("x"), init=es.AwaitExpression(argument=call, loc=at(7, 3)))])
        process = compile_tree(es.BlockStatement(body=[decl])).process
        assert process.bindings == ("AwaitExpression_7c3_0",)

    def test_esprima_json_input(self):
        text = """{"type": "Program", "body": [{"type": "ExpressionStatement",
          "expression": {"type": "CallExpression",
            "callee": {"type": "MemberExpression", "computed": false,
              "object": {"type": "Identifier", "name": "console"},
              "property": {"type": "Identifier", "name": "log"}},
            "arguments": [{"type": "Literal", "value": 5, "raw": "5"}]}}]}"""
        assert compile_source(text, is_json=True) == compile_source("console.log(5);")


def console_log(value):
    return {
        "type": "ExpressionStatement",
        "expression": {
            "type": "CallExpression",
            "callee": {"type": "MemberExpression",
                       "object": {"type": "Identifier", "name": "console"},
                       "property": {"type": "Identifier", "name": "log"}},
            "arguments": [{"type": "Literal", "value": value}],
        },
    }


class TestUnsupportedStatements:
    """Statement kinds outside the subset are soft errors on both front ends."""

    def test_json_statement_outside_vocabulary(self):
        doc = {"type": "Program", "body": [
            {"type": "ForStatement", "init": None, "test": None, "update": None,
             "body": {"type": "BlockStatement", "body": []},
             "loc": {"start": {"line": 1, "column": 0}}},
            console_log(1),
        ]}
        compilation = translate_source(json.dumps(doc), is_json=True)
        assert compilation.process == program(rho.par(p("TODO@@ ForStatement"), rho.send(v("console"), [p(1)])))
        assert [(diag.line, diag.found) for diag in compilation.diagnostics] == [(1, "ForStatement")]

    def test_json_switch_case_ending_in_break(self):
        doc = {"type": "Program", "body": [{
            "type": "SwitchStatement",
            "discriminant": {"type": "Identifier", "name": "x"},
            "cases": [{
                "type": "SwitchCase",
                "test": {"type": "Literal", "value": 1},
                "consequent": [console_log("one"), {"type": "BreakStatement", "label": None}],
            }],
        }]}
        compilation = translate_source(json.dumps(doc), is_json=True)
        expected = program(rho.match(d("x"), [
            (p(1), rho.par(rho.send(v("console"), [p("one")]), p("TODO@@ BreakStatement"))),
        ]))
        assert compilation.process == expected
        assert [diag.found for diag in compilation.diagnostics] == ["BreakStatement"]

    def test_break_is_reported_by_name(self, translate):
        compilation = translate("switch (x) { case 1: console.log(1); break; }")
        assert [diag.found for diag in compilation.diagnostics] == ["BreakStatement"]

    def test_throw_is_reported_by_name(self, translate):
        compilation = translate("throw x;")
        assert compilation.process == program(p("TODO@@ ThrowStatement"))

    def test_this_is_a_hard_error_in_expressions(self, translate):
        with pytest.raises(RhoCompileError) as exc:
            translate("console.log(this);")
        assert exc.value.message.endswith("found ThisExpression")

    def test_unsupported_node_outside_statement_position(self):
        doc = {"type": "Program", "body": [console_log(1)]}
        doc["body"][0]["expression"]["arguments"] = [{"type": "TemplateLiteral", "quasis": []}]
        with pytest.raises(RhoCompileError) as exc:
            translate_source(json.dumps(doc), is_json=True)
        assert exc.value.message.endswith("found TemplateLiteral")


class TestStringEscapes:
    def test_js_escapes_reach_the_output(self):
        assert 'console!("ad")' in compile_source(r'console.log("\a\d");')

    def test_unicode_escapes(self):
        assert 'console!("AB")' in compile_source(r'console.log("\u{41}\x42");')
