"""
Input syntax tree for the accepted ECMAScript subset.

Nodes follow ESTree naming (https://github.com/estree/estree) so a tree can
come either from our own lark front end or from an esprima JSON dump with
`loc` enabled. A `type` outside the vocabulary decodes as UnsupportedNode,
which the compiler treats as a soft error at statement position.
"""
import typing
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int
    column: int


class SourceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Position
    end: Optional[Position] = None


class EsNode(BaseModel):
    """Common base: every node may carry its source location."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')

    loc: Optional[SourceLocation] = None

    @property
    def line(self):
        return self.loc.start.line if self.loc else 0

    @property
    def column(self):
        return self.loc.start.column if self.loc else 0


# --- Module level ---

class Program(EsNode):
    type: typing.Literal['Program'] = 'Program'
    body: List['Node'] = []


class ImportDeclaration(EsNode):
    type: typing.Literal['ImportDeclaration'] = 'ImportDeclaration'
    specifiers: List['Node'] = []
    source: 'Node'


class ImportDefaultSpecifier(EsNode):
    type: typing.Literal['ImportDefaultSpecifier'] = 'ImportDefaultSpecifier'
    local: 'Node'


class ImportSpecifier(EsNode):
    type: typing.Literal['ImportSpecifier'] = 'ImportSpecifier'
    local: 'Node'
    imported: 'Node'


class ImportNamespaceSpecifier(EsNode):
    type: typing.Literal['ImportNamespaceSpecifier'] = 'ImportNamespaceSpecifier'
    local: 'Node'


class ExportDefaultDeclaration(EsNode):
    type: typing.Literal['ExportDefaultDeclaration'] = 'ExportDefaultDeclaration'
    declaration: 'Node'


class FunctionDeclaration(EsNode):
    type: typing.Literal['FunctionDeclaration'] = 'FunctionDeclaration'
    id: Optional['Node'] = None
    params: List['Node'] = []
    body: 'Node'
    is_async: bool = Field(False, alias='async')


class FunctionExpression(EsNode):
    type: typing.Literal['FunctionExpression'] = 'FunctionExpression'
    id: Optional['Node'] = None
    params: List['Node'] = []
    body: 'Node'
    is_async: bool = Field(False, alias='async')


# --- Statements ---

class BlockStatement(EsNode):
    type: typing.Literal['BlockStatement'] = 'BlockStatement'
    body: List['Node'] = []


class VariableDeclaration(EsNode):
    type: typing.Literal['VariableDeclaration'] = 'VariableDeclaration'
    declarations: List['Node'] = []
    kind: str = 'const'


class VariableDeclarator(EsNode):
    type: typing.Literal['VariableDeclarator'] = 'VariableDeclarator'
    id: 'Node'
    init: Optional['Node'] = None


class ExpressionStatement(EsNode):
    type: typing.Literal['ExpressionStatement'] = 'ExpressionStatement'
    expression: 'Node'


class IfStatement(EsNode):
    type: typing.Literal['IfStatement'] = 'IfStatement'
    test: 'Node'
    consequent: 'Node'
    alternate: Optional['Node'] = None


class SwitchStatement(EsNode):
    type: typing.Literal['SwitchStatement'] = 'SwitchStatement'
    discriminant: 'Node'
    cases: List['Node'] = []


class SwitchCase(EsNode):
    type: typing.Literal['SwitchCase'] = 'SwitchCase'
    test: Optional['Node'] = None  # None for `default:`
    consequent: List['Node'] = []


class ReturnStatement(EsNode):
    type: typing.Literal['ReturnStatement'] = 'ReturnStatement'
    argument: Optional['Node'] = None


class BreakStatement(EsNode):
    type: typing.Literal['BreakStatement'] = 'BreakStatement'
    label: Optional['Node'] = None


class ThrowStatement(EsNode):
    type: typing.Literal['ThrowStatement'] = 'ThrowStatement'
    argument: 'Node'


# --- Expressions ---

class CallExpression(EsNode):
    type: typing.Literal['CallExpression'] = 'CallExpression'
    callee: 'Node'
    arguments: List['Node'] = []


class MemberExpression(EsNode):
    type: typing.Literal['MemberExpression'] = 'MemberExpression'
    object: 'Node'
    property: 'Node'
    computed: bool = False


class AwaitExpression(EsNode):
    type: typing.Literal['AwaitExpression'] = 'AwaitExpression'
    argument: 'Node'


class BinaryExpression(EsNode):
    type: typing.Literal['BinaryExpression'] = 'BinaryExpression'
    operator: str
    left: 'Node'
    right: 'Node'


class LogicalExpression(EsNode):
    type: typing.Literal['LogicalExpression'] = 'LogicalExpression'
    operator: str
    left: 'Node'
    right: 'Node'


class UnaryExpression(EsNode):
    type: typing.Literal['UnaryExpression'] = 'UnaryExpression'
    operator: str
    argument: 'Node'
    prefix: bool = True


class ThisExpression(EsNode):
    type: typing.Literal['ThisExpression'] = 'ThisExpression'


class Identifier(EsNode):
    type: typing.Literal['Identifier'] = 'Identifier'
    name: str


class Literal(EsNode):
    type: typing.Literal['Literal'] = 'Literal'
    value: Union[bool, int, float, str, None] = None
    raw: Optional[str] = None


class ObjectExpression(EsNode):
    type: typing.Literal['ObjectExpression'] = 'ObjectExpression'
    properties: List['Node'] = []


class Property(EsNode):
    type: typing.Literal['Property'] = 'Property'
    key: 'Node'
    value: 'Node'
    kind: str = 'init'
    method: bool = False
    shorthand: bool = False
    computed: bool = False


class ArrayExpression(EsNode):
    type: typing.Literal['ArrayExpression'] = 'ArrayExpression'
    elements: List[Optional['Node']] = []


# --- Patterns ---

class ObjectPattern(EsNode):
    type: typing.Literal['ObjectPattern'] = 'ObjectPattern'
    properties: List['Node'] = []


class ArrayPattern(EsNode):
    type: typing.Literal['ArrayPattern'] = 'ArrayPattern'
    elements: List[Optional['Node']] = []


NODE_TYPES = (
    Program,
    ImportDeclaration,
    ImportDefaultSpecifier,
    ImportSpecifier,
    ImportNamespaceSpecifier,
    ExportDefaultDeclaration,
    FunctionDeclaration,
    FunctionExpression,
    BlockStatement,
    VariableDeclaration,
    VariableDeclarator,
    ExpressionStatement,
    IfStatement,
    SwitchStatement,
    SwitchCase,
    ReturnStatement,
    BreakStatement,
    ThrowStatement,
    CallExpression,
    MemberExpression,
    AwaitExpression,
    BinaryExpression,
    LogicalExpression,
    UnaryExpression,
    ThisExpression,
    Identifier,
    Literal,
    ObjectExpression,
    Property,
    ArrayExpression,
    ObjectPattern,
    ArrayPattern,
)

KNOWN_TYPES = frozenset(cls.__name__ for cls in NODE_TYPES)


class UnsupportedNode(EsNode):
    """Any node kind outside the vocabulary; its children are not decoded."""
    type: str


def node_tag(value):
    """Union tag of a node: its own type if known, else UnsupportedNode."""
    kind = value.get('type') if isinstance(value, dict) else getattr(value, 'type', None)
    if not isinstance(kind, str):
        return None
    return kind if kind in KNOWN_TYPES else UnsupportedNode.__name__


Node = Annotated[
    Union[tuple(Annotated[cls, Tag(cls.__name__)] for cls in NODE_TYPES + (UnsupportedNode,))],
    Discriminator(node_tag),
]

for _cls in NODE_TYPES:
    _cls.model_rebuild()

_node_adapter = TypeAdapter(Node)


def load_estree(data):
    """Validate a decoded ESTree document (dicts and lists) into nodes."""
    return _node_adapter.validate_python(data)


def load_estree_json(text):
    """Validate ESTree JSON text into nodes."""
    return _node_adapter.validate_json(text)
