"""
js2rho compiler - Converts ESTree nodes of the supported subset to Rholang terms.

This is not a general compiler: it recognizes a fixed set of shapes (imports
of known bundles, `const` declarations with awaited eventual sends,
`harden({...})` method suites, `console.log`, `switch`, `return`) and maps
each to process terms. Anything else either raises RhoCompileError (the
whole compilation aborts) or, at statement level, is reported as a
Diagnostic and replaced by a placeholder term.
"""
from functools import reduce
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from rhocore import estree as es
from rhocore import terms as rho
from rhocore.errors import Diagnostic, RhoCompileError, loc_label

RHO_SCHEME = 'rho:'

# Import sources we know, with the names each one may bind.
BUILTINS = {
    '@rchain-community/js2rho': ('bundlePlus', 'tuple', 'console'),
    '@agoric/nat': ('Nat',),
    '@agoric/harden': ('harden',),
    '@agoric/eventual-send': ('E',),
}

RHO_CONSOLE = ('console', 'rho:io:stdout')
RETURN_CHANNEL = '__return'

BINOPS = {'&&': 'and', '||': 'or', '===': '=='}


class Compilation(BaseModel):
    """Result of one compilation: the process term and the soft errors met on the way."""
    model_config = ConfigDict(frozen=True)

    process: rho.Process
    diagnostics: Tuple[Diagnostic, ...] = ()


def vn(name):
    return rho.var(name)


def par_all(procs):
    return reduce(rho.par, procs)


def _name_of(node):
    return node.name if isinstance(node, es.Identifier) else None


def _property_key(prop):
    """Plain (non-computed) key of an object property, or None."""
    if not isinstance(prop, es.Property) or prop.computed:
        return None
    if isinstance(prop.key, es.Identifier):
        return prop.key.name
    if isinstance(prop.key, es.Literal) and isinstance(prop.key.value, str):
        return prop.key.value
    return None


class Translation:
    """
    Compiler state: the fresh-name counter and the diagnostics list.

    Both are reset by every compile() call, so repeated runs over the same
    input produce identical names.
    """

    def __init__(self, on_warning=None):
        self._on_warning = on_warning
        self._tmp_ix = 0
        self._diagnostics: List[Diagnostic] = []

    def compile(self, node) -> Compilation:
        self._tmp_ix = 0
        self._diagnostics = []
        if isinstance(node, es.Program):
            proc = self.of_program(node.body)
        elif isinstance(node, es.BlockStatement):
            proc = self.of_block(node.body)
        elif isinstance(node, es.ExpressionStatement):
            proc = self.to_proc(node.expression)
        else:
            proc = self._todo_warn('Program | BlockStatement | ExpressionStatement', node)
        return Compilation(process=proc, diagnostics=tuple(self._diagnostics))

    # --- Names and errors ---

    def fresh(self, node):
        name = f"{node.type}_{loc_label(node.line, node.column)}_{self._tmp_ix}"
        self._tmp_ix += 1
        return name

    def _unexpected(self, expected, node, found=None, suggestion=None):
        err = RhoCompileError.unexpected(expected, node.line, node.column, found or node.type)
        err.suggestion = suggestion
        return err

    def _error(self, message, node):
        return RhoCompileError(f"{loc_label(node.line, node.column)}: {message}",
                               line_number=node.line, column=node.column)

    def _todo_warn(self, expected, node):
        diagnostic = Diagnostic(line=node.line, column=node.column, expected=expected, found=node.type)
        self._diagnostics.append(diagnostic)
        if self._on_warning is not None:
            self._on_warning(diagnostic)
        return rho.primitive('TODO@@ ' + node.type)

    def _expect_block_end(self, stmt, rest):
        if rest:
            raise self._unexpected(
                'end of block', rest[0],
                suggestion=f"nothing may follow this {stmt.type} in its block")

    def the_literal(self, js):
        if not isinstance(js, es.Literal):
            raise self._unexpected('Literal', js)
        return js.value

    def the_identifier(self, js):
        if not isinstance(js, es.Identifier):
            raise self._unexpected('Identifier', js)
        return js.name

    # --- Program and imports ---

    def of_program(self, body):
        if not body:
            return rho.nil()

        new_names = []
        ix = 0
        while ix < len(body) and isinstance(body[ix], es.ImportDeclaration):
            new_names.extend(self.of_import(body[ix]))
            ix += 1
        rest = body[ix:]
        bindings = new_names + [RHO_CONSOLE]

        if rest and isinstance(rest[0], es.ExportDefaultDeclaration):
            fn0 = rest[0].declaration
            if not isinstance(fn0, es.FunctionDeclaration):
                raise self._unexpected('FunctionDeclaration', fn0)
            if len(rest) > 1:
                raise self._unexpected(
                    'end of module', rest[1],
                    suggestion="the default export must be the only top-level statement")
            return rho.new(bindings, self.of_block(fn0.body.body))
        return rho.new(bindings, self.of_block(rest))

    def of_import(self, decl):
        """Binding list contributed by one import declaration."""
        specifier = self.the_literal(decl.source)
        if isinstance(specifier, str) and specifier.startswith(RHO_SCHEME):
            if len(decl.specifiers) != 1 or not isinstance(decl.specifiers[0], es.ImportDefaultSpecifier):
                raise self._error(f"must import default from {specifier}", decl)
            return [(decl.specifiers[0].local.name, specifier)]

        candidates = BUILTINS.get(specifier) if isinstance(specifier, str) else None
        if candidates is None:
            raise self._error(f"not supported: import ... from {specifier}", decl)
        unknowns = [s.local.name for s in decl.specifiers if s.local.name not in candidates]
        if unknowns:
            raise self._error(f"unrecognized name(s) {', '.join(unknowns)} from {specifier}", decl)
        return []

    # --- Statements ---

    def of_block(self, body):
        """Translate a statement list; each statement scopes over the ones after it."""
        if not body:
            return rho.nil()
        s0, rest = body[0], body[1:]

        if isinstance(s0, es.VariableDeclaration):
            return self.of_declaration(s0, rest)
        if isinstance(s0, es.ExpressionStatement):
            return self.of_expression_statement(s0, rest)
        if isinstance(s0, es.SwitchStatement):
            specimen = self.to_proc(s0.discriminant)
            cases = [self.of_case(case) for case in s0.cases]
            return rho.par(rho.match(specimen, cases), self.of_block(rest))
        if isinstance(s0, es.ReturnStatement):
            self._expect_block_end(s0, rest)
            ret_proc = self.to_proc(s0.argument) if s0.argument is not None else rho.nil()
            return rho.send(vn(RETURN_CHANNEL), [ret_proc])

        placeholder = self._todo_warn(
            'VariableDeclaration | ExpressionStatement | SwitchStatement | ReturnStatement', s0)
        return rho.par(placeholder, self.of_block(rest))

    def of_declaration(self, s0, rest):
        decl = self.the_decl(s0)
        init = decl.init

        if isinstance(init, es.AwaitExpression):
            chans, rx, proc = self.await2for(decl)
            rest_proc = self.of_block(rest)
            return rho.new(chans, rho.par(proc, rho.receiving(rx, rest_proc)))

        if isinstance(init, es.ObjectExpression):
            if init.properties:
                raise self._unexpected('{}', init, found='non-empty ObjectExpression')
            name = self.the_identifier(decl.id)
            return rho.new([name], self.of_block(rest))

        if isinstance(init, es.CallExpression):
            callee = init.callee
            if not isinstance(callee, es.Identifier):
                raise self._unexpected('Identifier', callee)
            if callee.name != 'harden':
                raise self._unexpected('harden', callee, found=callee.name)
            target, methods = self.of_method_suite(decl)
            return rho.new([target], par_all(methods + [self.of_block(rest)]))

        if isinstance(init, es.Literal):
            name = self.the_identifier(decl.id)
            return rho.match(self.to_proc(init), [(rho.drop(vn(name)), self.of_block(rest))])

        placeholder = self._todo_warn('{} | AwaitExpression | harden({...}) | Literal', init or decl)
        return rho.par(placeholder, self.of_block(rest))

    def the_decl(self, js):
        if js.kind != 'const':
            raise self._unexpected('const', js, found=js.kind)
        if len(js.declarations) != 1:
            raise self._unexpected('1 declaration', js, found=f"{len(js.declarations)} declarations")
        decl = js.declarations[0]
        if not isinstance(decl, es.VariableDeclarator):
            raise self._unexpected('VariableDeclarator', decl)
        return decl

    def of_expression_statement(self, s0, rest):
        expr = s0.expression
        arg = self.match_console_log(expr)
        if arg is not None:
            # TODO: sequence statements after console.log on an ack channel (rho:io:stdoutAck)
            return rho.par(rho.send(vn('console'), [self.to_proc(arg)]), self.of_block(rest))

        if not isinstance(expr, es.CallExpression):
            placeholder = self._todo_warn('console.log(...) | E(...)...(...)', expr)
            return rho.par(placeholder, self.of_block(rest))

        # send only; no return channel
        target, method, args = self.match_eventual_call(expr)
        self._expect_block_end(s0, rest)
        return self._dispatch(target, method, [self.to_proc(a) for a in args])

    def of_case(self, case):
        if case.test is None:
            raise self._error("expected case <test>; found default", case)
        lhs = self.to_proc(case.test)
        rhs = self.of_block(case.consequent)
        return lhs, rhs

    def match_console_log(self, js):
        """The single argument of `console.log(arg)`, or None for any other shape."""
        if (isinstance(js, es.CallExpression)
                and isinstance(js.callee, es.MemberExpression)
                and not js.callee.computed
                and _name_of(js.callee.object) == 'console'
                and _name_of(js.callee.property) == 'log'
                and len(js.arguments) == 1):
            return js.arguments[0]
        return None

    # --- Method suites ---

    def of_method_suite(self, decl):
        """`const target = harden({ m(a) {...}, ... })`: one contract per method."""
        target = self.the_identifier(decl.id)
        rhs = decl.init
        if len(rhs.arguments) != 1:
            raise self._unexpected('harden(1 arg)', rhs, found=f"{len(rhs.arguments)} arguments")
        object_literal = rhs.arguments[0]
        if not isinstance(object_literal, es.ObjectExpression):
            raise self._unexpected('ObjectExpression', object_literal)
        methods = [self.of_method(target, prop) for prop in object_literal.properties]
        return target, methods

    def of_method(self, target, prop):
        key = _property_key(prop)
        if key is None:
            raise self._unexpected('method name', prop.key if isinstance(prop, es.Property) else prop)
        fn = prop.value
        if not isinstance(fn, es.FunctionExpression):
            raise self._unexpected('FunctionExpression', fn)
        params = [self.the_identifier(p) for p in fn.params]
        formals = [rho.quote(rho.primitive(key))] + [vn(p) for p in params]
        if RETURN_CHANNEL not in params:
            formals.append(vn(RETURN_CHANNEL))
        return rho.contract(vn(target), formals, self.of_block(fn.body.body))

    # --- Awaited eventual sends ---

    def await2for(self, decl):
        """Channels, receipt and dispatch process for `const pat = await ...`."""
        rhs = decl.init
        expr = rhs.argument
        if (isinstance(expr, es.CallExpression)
                and isinstance(expr.callee, es.MemberExpression)
                and _name_of(expr.callee.object) == 'Promise'):
            chans, proc = self.of_promise_all(expr)
            patts = self.of_array_pattern(decl.id)
            if len(chans) != len(patts):
                raise self._error(
                    f"Promise.all mismatch: {len(chans)} expressions to {len(patts)} patterns", decl.id)
            rx = [([lhs], vn(chans[ix])) for ix, lhs in enumerate(patts)]
            return chans, rx, proc

        chan = self.fresh(rhs)
        proc = self.of_eventual_call(expr, chan)
        lhs = self.of_pattern(decl.id)
        return [chan], [([lhs], vn(chan))], proc

    def of_promise_all(self, js):
        """Parallel dispatches for `Promise.all([call, ...])`, one fresh channel each."""
        callee = js.callee
        if (not isinstance(callee, es.MemberExpression)
                or _name_of(callee.object) != 'Promise'
                or _name_of(callee.property) != 'all'):
            raise self._unexpected('Promise.all', callee)
        if len(js.arguments) != 1 or not isinstance(js.arguments[0], es.ArrayExpression):
            raise self._unexpected('ArrayExpression[1]', js, found=f"{len(js.arguments)} arguments")
        items = js.arguments[0].elements
        if not items or any(item is None for item in items):
            raise self._unexpected('[call, ...]', js.arguments[0], found='empty or sparse array')
        chans = [self.fresh(item) for item in items]
        procs = [self.of_eventual_call(expr, chans[ix]) for ix, expr in enumerate(items)]
        return chans, par_all(procs)

    def of_eventual_call(self, js, k):
        target, method, args = self.match_eventual_call(js)
        procs = [self.to_proc(a) for a in args] + [rho.drop(vn(k))]
        return self._dispatch(target, method, procs)

    def _dispatch(self, target, method, procs):
        if method is None:
            return rho.send(vn(target), procs)
        return rho.send(vn(target), [rho.primitive(method)] + procs)

    def match_eventual_call(self, js) -> Tuple[str, Optional[str], list]:
        if not isinstance(js, es.CallExpression):
            raise self._unexpected('CallExpression', js)
        target, method = self.match_eventual_target(js.callee)
        return target, method, js.arguments

    def match_eventual_target(self, js):
        """`E(x)` -> (x, None); `E(x).m` -> (x, "m")."""
        if isinstance(js, es.CallExpression):
            return self.match_e(js), None
        if isinstance(js, es.MemberExpression):
            if js.computed or not isinstance(js.property, es.Identifier):
                raise self._unexpected('method name', js.property)
            return self.match_e(js.object), js.property.name
        raise self._unexpected('CallExpression | MemberExpression', js)

    def match_e(self, js):
        if not isinstance(js, es.CallExpression) or _name_of(js.callee) != 'E':
            raise self._unexpected('E(...)', js)
        if len(js.arguments) != 1:
            raise self._unexpected('E(_1 arg_)', js, found=f"{len(js.arguments)} arguments")
        return self.the_identifier(js.arguments[0])

    # --- Patterns ---

    def of_pattern(self, js):
        if isinstance(js, es.Identifier):
            return vn(js.name)
        if isinstance(js, es.ObjectPattern):
            unk = [p for ix, p in enumerate(js.properties) if _property_key(p) != f"_{ix}"]
            if unk:
                raise self._unexpected('tuple pattern { _0: ..., _1: ..., _2: ..., ... }', js)
            parts = [self.to_proc(p.value) for p in js.properties]
            return rho.quote(rho.tuple_expr(parts))
        raise self._unexpected('Identifier | ObjectPattern', js)

    def of_array_pattern(self, js):
        if not isinstance(js, es.ArrayPattern):
            raise self._unexpected('ArrayPattern', js)
        if any(element is None for element in js.elements):
            raise self._unexpected('pattern', js, found='array hole')
        return [self.of_pattern(element) for element in js.elements]

    # --- Expressions ---

    def to_proc(self, js):
        if isinstance(js, es.Literal):
            if js.value is None:
                return rho.nil()
            return rho.primitive(js.value)
        if isinstance(js, es.Identifier):
            return rho.drop(vn(js.name))
        if isinstance(js, (es.LogicalExpression, es.BinaryExpression)):
            op = BINOPS.get(js.operator)
            if op is None:
                raise self._unexpected('&& || ===', js, found=js.operator)
            return rho.binop(op, self.to_proc(js.left), self.to_proc(js.right))
        if isinstance(js, es.CallExpression):
            callee = js.callee
            if not isinstance(callee, es.Identifier):
                raise self._unexpected('Identifier', callee)
            if callee.name == 'bundlePlus':
                if len(js.arguments) != 1:
                    raise self._unexpected('bundlePlus(1 arg)', js, found=f"{len(js.arguments)} arguments")
                return rho.unary('bundle+', self.to_proc(js.arguments[0]))
            if callee.name == 'tuple':
                return rho.tuple_expr([self.to_proc(a) for a in js.arguments])
            raise self._unexpected('bundlePlus | tuple', callee, found=callee.name)
        if isinstance(js, es.ObjectExpression):
            return rho.map_expr([self.of_map_entry(prop) for prop in js.properties])
        raise self._unexpected('Literal | Identifier | && || === | bundlePlus(...) | tuple(...) | {...}', js)

    def of_map_entry(self, prop):
        if not isinstance(prop, es.Property) or prop.method:
            raise self._unexpected('Property', prop)
        if not isinstance(prop.key, es.Literal) or not isinstance(prop.key.value, str):
            raise self._unexpected('string literal key', prop.key)
        return prop.key.value, self.to_proc(prop.value)


def compile_tree(node, on_warning=None) -> Compilation:
    """Compile a Program (or a bare block or expression statement) to a process term."""
    return Translation(on_warning).compile(node)
