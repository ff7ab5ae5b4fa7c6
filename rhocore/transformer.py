"""
js2rho tree builder - Converts the Lark parse tree into ESTree nodes.

Positions follow ESTree conventions: 1-based lines, 0-based columns.
"""

import re

from lark import Token, Transformer, v_args

from rhocore import estree as es


def _location(line, column, end_line=None, end_column=None):
    end = None
    if end_line is not None and end_column is not None:
        end = es.Position(line=end_line, column=end_column - 1)
    return es.SourceLocation(start=es.Position(line=line, column=column - 1), end=end)


def meta_loc(meta):
    """Source location of a rule match, or None for an empty match."""
    if getattr(meta, 'empty', True):
        return None
    return _location(meta.line, meta.column, meta.end_line, meta.end_column)


def token_loc(tok):
    return _location(tok.line, tok.column, tok.end_line, tok.end_column)


_SINGLE_ESCAPES = {'b': '\b', 'f': '\f', 'n': '\n', 'r': '\r', 't': '\t', 'v': '\v', '0': '\0'}
_ESCAPE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)


def _unescape(match):
    esc = match.group(1)
    if esc.startswith('u{'):
        return chr(int(esc[2:-1], 16))
    if len(esc) > 1:
        return chr(int(esc[1:], 16))
    if esc in 'ux':
        raise ValueError(f"malformed escape sequence \\{esc}")
    if esc in '\r\n\u2028\u2029':
        return ''
    return _SINGLE_ESCAPES.get(esc, esc)


def decode_string(raw):
    """Decode a quoted string token by JavaScript escape rules."""
    text = _ESCAPE.sub(_unescape, raw[1:-1])
    # \uD83D\uDE00 style pairs become one code point
    return text.encode('utf-16', 'surrogatepass').decode('utf-16', 'surrogatepass')


def decode_number(raw):
    if any(c in raw for c in '.eE'):
        return float(raw)
    return int(raw)


def _is_token(item, kind):
    return isinstance(item, Token) and item.type == kind


@v_args(meta=True)
class EsTreeTransformer(Transformer):
    """
    Transforms parse trees of the js2rho grammar into estree nodes.

    One method per grammar rule (or alias). The result of transforming a
    `start` tree is an estree.Program.
    """

    def start(self, meta, items):
        loc = meta_loc(meta) or _location(1, 1)
        return es.Program(body=items, loc=loc)

    # --- Imports ---

    def import_decl(self, meta, children):
        specifiers, source = children
        return es.ImportDeclaration(specifiers=specifiers, source=self._string(source), loc=meta_loc(meta))

    def import_bare(self, meta, children):
        """`import "x";` binds nothing."""
        return es.ImportDeclaration(specifiers=[], source=self._string(children[0]), loc=meta_loc(meta))

    def default_only(self, meta, children):
        return [self._default_specifier(children[0])]

    def default_and_named(self, meta, children):
        return [self._default_specifier(children[0])] + children[1]

    def default_and_namespace(self, meta, children):
        return [self._default_specifier(children[0]), children[1]]

    def named_only(self, meta, children):
        return children[0]

    def namespace_only(self, meta, children):
        return [children[0]]

    def named_imports(self, meta, children):
        return list(children)

    def import_spec(self, meta, children):
        """`a` or `a as b`; the last name is the local binding."""
        imported = self._identifier(children[0])
        local = self._identifier(children[-1])
        return es.ImportSpecifier(imported=imported, local=local, loc=meta_loc(meta))

    def namespace_import(self, meta, children):
        return es.ImportNamespaceSpecifier(local=self._identifier(children[-1]), loc=meta_loc(meta))

    def _default_specifier(self, tok):
        return es.ImportDefaultSpecifier(local=self._identifier(tok), loc=token_loc(tok))

    # --- Functions ---

    def export_default(self, meta, children):
        return es.ExportDefaultDeclaration(declaration=children[0], loc=meta_loc(meta))

    def function_decl(self, meta, children):
        return es.FunctionDeclaration(loc=meta_loc(meta), **self._function_parts(children))

    def function_expr(self, meta, children):
        return es.FunctionExpression(loc=meta_loc(meta), **self._function_parts(children))

    def _function_parts(self, children):
        """Split `async? function name? (params) block` children."""
        is_async = _is_token(children[0], 'ASYNC')
        rest = children[1:] if is_async else children
        fn_id = None
        if _is_token(rest[0], 'NAME'):
            fn_id = self._identifier(rest[0])
            rest = rest[1:]
        params, body = rest
        return dict(is_async=is_async, id=fn_id, params=params, body=body)

    def param_list(self, meta, children):
        return list(children)

    def block(self, meta, children):
        return es.BlockStatement(body=children, loc=meta_loc(meta))

    # --- Statements ---

    def var_decl(self, meta, children):
        kind, *declarators = children
        return es.VariableDeclaration(kind=str(kind), declarations=declarators, loc=meta_loc(meta))

    def declarator(self, meta, children):
        init = children[1] if len(children) > 1 else None
        return es.VariableDeclarator(id=children[0], init=init, loc=meta_loc(meta))

    def if_stmt(self, meta, children):
        alternate = children[2] if len(children) > 2 else None
        return es.IfStatement(test=children[0], consequent=children[1], alternate=alternate, loc=meta_loc(meta))

    def switch_stmt(self, meta, children):
        discriminant, *cases = children
        return es.SwitchStatement(discriminant=discriminant, cases=cases, loc=meta_loc(meta))

    def case_clause(self, meta, children):
        test, *consequent = children
        return es.SwitchCase(test=test, consequent=consequent, loc=meta_loc(meta))

    def default_clause(self, meta, children):
        return es.SwitchCase(test=None, consequent=children, loc=meta_loc(meta))

    def return_stmt(self, meta, children):
        argument = children[0] if children else None
        return es.ReturnStatement(argument=argument, loc=meta_loc(meta))

    def expr_stmt(self, meta, children):
        return es.ExpressionStatement(expression=children[0], loc=meta_loc(meta))

    def break_stmt(self, meta, children):
        label = self._identifier(children[0]) if children else None
        return es.BreakStatement(label=label, loc=meta_loc(meta))

    def throw_stmt(self, meta, children):
        return es.ThrowStatement(argument=children[0], loc=meta_loc(meta))

    # --- Patterns ---

    def identifier(self, meta, children):
        return self._identifier(children[0])

    def object_pattern(self, meta, children):
        return es.ObjectPattern(properties=children, loc=meta_loc(meta))

    def array_pattern(self, meta, children):
        return es.ArrayPattern(elements=children, loc=meta_loc(meta))

    def pattern_prop(self, meta, children):
        key, value = children
        return es.Property(key=key, value=value, loc=meta_loc(meta))

    def shorthand_pattern_prop(self, meta, children):
        name = self._identifier(children[0])
        return es.Property(key=name, value=name, shorthand=True, loc=meta_loc(meta))

    # --- Expressions ---

    def logical_expr(self, meta, children):
        left, op, right = children
        return es.LogicalExpression(operator=str(op), left=left, right=right, loc=meta_loc(meta))

    def binary_expr(self, meta, children):
        left, op, right = children
        return es.BinaryExpression(operator=str(op), left=left, right=right, loc=meta_loc(meta))

    def await_expr(self, meta, children):
        return es.AwaitExpression(argument=children[0], loc=meta_loc(meta))

    def unary_expr(self, meta, children):
        op, argument = children
        return es.UnaryExpression(operator=str(op), argument=argument, loc=meta_loc(meta))

    def member_expr(self, meta, children):
        obj, name = children
        return es.MemberExpression(object=obj, property=self._identifier(name), loc=meta_loc(meta))

    def call_expr(self, meta, children):
        callee, args = children
        return es.CallExpression(callee=callee, arguments=args, loc=meta_loc(meta))

    def arg_list(self, meta, children):
        return list(children)

    def string_lit(self, meta, children):
        return self._string(children[0])

    def number_lit(self, meta, children):
        tok = children[0]
        return es.Literal(value=decode_number(str(tok)), raw=str(tok), loc=token_loc(tok))

    def boolean_lit(self, meta, children):
        tok = children[0]
        return es.Literal(value=tok.type == 'TRUE', raw=str(tok), loc=token_loc(tok))

    def null_lit(self, meta, children):
        tok = children[0]
        return es.Literal(value=None, raw=str(tok), loc=token_loc(tok))

    def this_expr(self, meta, children):
        return es.ThisExpression(loc=token_loc(children[0]))

    def object_literal(self, meta, children):
        return es.ObjectExpression(properties=children, loc=meta_loc(meta))

    def init_prop(self, meta, children):
        key, value = children
        return es.Property(key=key, value=value, loc=meta_loc(meta))

    def method_prop(self, meta, children):
        """Method shorthand `name(params) { ... }`, as esprima reports it."""
        is_async = _is_token(children[0], 'ASYNC')
        key, params, body = children[1:] if is_async else children
        value = es.FunctionExpression(params=params, body=body, is_async=is_async, loc=meta_loc(meta))
        return es.Property(key=key, value=value, method=True, loc=meta_loc(meta))

    def array_literal(self, meta, children):
        return es.ArrayExpression(elements=children, loc=meta_loc(meta))

    # --- Tokens ---

    def _identifier(self, tok):
        return es.Identifier(name=str(tok), loc=token_loc(tok))

    def _string(self, tok):
        return es.Literal(value=decode_string(str(tok)), raw=str(tok), loc=token_loc(tok))
