"""
Rholang term builder.

Process and name terms are frozen pydantic models; each one renders itself
through a Printer. The lower-case functions at the bottom of the module are
the constructors the compiler uses, see
https://github.com/rchain/rchain/blob/dev/rholang/src/main/bnfc/rholang_mercury.cf
"""
import json
import math
from decimal import Decimal
from typing import Tuple, Union

from pydantic import BaseModel, ConfigDict

# A binding in `new`: a bare name, or (name, uri) for a system resource.
VDecl = Union[str, Tuple[str, str]]


class Process(BaseModel):
    """A term denoting a (possibly terminated) concurrent behavior."""
    model_config = ConfigDict(frozen=True)

    def render(self, out):
        raise NotImplementedError(type(self).__name__)

    def quote(self) -> "Name":
        return Quote(process=self)


class Name(BaseModel):
    """A term denoting a channel."""
    model_config = ConfigDict(frozen=True)

    def render(self, out):
        raise NotImplementedError(type(self).__name__)

    def dereference(self) -> Process:
        raise NotImplementedError(type(self).__name__)


def print_list(out, items):
    """Render items separated by commas."""
    first = True
    for item in items:
        if not first:
            out.print(", ")
        item.render(out)
        first = False


def format_number(v):
    """
    Number text as JavaScript's JSON.stringify writes it.

    Integers print in full below 2**53; otherwise the shortest round-trip
    digits are laid out by the ECMAScript Number::toString rules
    (plain notation for exponents in (-7, 21), else `1.5e+21` style).
    """
    if isinstance(v, int):
        if abs(v) < 2 ** 53:
            return str(v)
        try:
            v = float(v)
        except OverflowError:
            v = math.copysign(math.inf, v)
    if not math.isfinite(v):
        return "null"
    if v == 0:
        return "0"

    sign = "-" if v < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(v))).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
        text = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + text


def format_primitive(v):
    """Canonical JSON text for a ground value."""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return format_number(v)
    return json.dumps(v, ensure_ascii=False)


class Nil(Process):
    def render(self, out):
        out.print("Nil")


class Primitive(Process):
    value: Union[bool, int, float, str]

    def render(self, out):
        out.print(format_primitive(self.value))


class ListExpr(Process):
    items: Tuple[Process, ...]

    def render(self, out):
        out.print('[')
        print_list(out, self.items)
        out.print(']')


class TupleExpr(Process):
    items: Tuple[Process, ...]

    def render(self, out):
        out.print('(')
        print_list(out, self.items)
        out.print(')')


class MapExpr(Process):
    """Map literal; entries keep insertion order and may repeat keys."""
    entries: Tuple[Tuple[str, Process], ...]

    def render(self, out):
        first = True
        out.print('{')
        for key, value in self.entries:
            if not first:
                out.print(', ')
            out.print(format_primitive(key))
            out.print(': ')
            value.render(out)
            first = False
        out.print('}')


class Match(Process):
    """Cases are (pattern, body) pairs, tried in order."""
    specimen: Process
    cases: Tuple[Tuple[Process, Process], ...]

    def render(self, out):
        out.newline()
        out.print("match (")
        self.specimen.render(out)
        out.begin(") {")
        for lhs, rhs in self.cases:
            lhs.render(out)
            out.begin(" => {")
            rhs.render(out)
            out.end("}")
        out.end("}")


class Send(Process):
    destination: Name
    arguments: Tuple[Process, ...]

    def render(self, out):
        self.destination.render(out)
        out.print("!(")
        print_list(out, self.arguments)
        out.print(")")


class BinOp(Process):
    """Infix operator: "==", "!=", "and", "or", arithmetic and comparisons."""
    op: str
    lhs: Process
    rhs: Process

    def render(self, out):
        self.lhs.render(out)
        out.print(" " + self.op + " ")
        self.rhs.render(out)


class UnOp(Process):
    op: str
    arg: Process

    def render(self, out):
        out.print(self.op)
        out.print('{')
        self.arg.render(out)
        out.print('}')


class Receiving(Process):
    """Join over (patterns, channel) clauses; the continuation runs once all fire."""
    receipt: Tuple[Tuple[Tuple[Name, ...], Name], ...]
    continuation: Process

    def render(self, out):
        out.print("for(")
        first = True
        for lhs, rhs in self.receipt:
            if not first:
                out.print("; ")
            print_list(out, lhs)
            out.print(" <- ")
            rhs.render(out)
            first = False
        out.begin(") {")
        self.continuation.render(out)
        out.end("}")


class Contract(Process):
    name: Name
    formals: Tuple[Name, ...]
    body: Process

    def render(self, out):
        out.print("contract ")
        self.name.render(out)
        out.print("(")
        print_list(out, self.formals)
        out.begin(") = {")
        self.body.render(out)
        out.end("}")


class Drop(Process):
    name: Name

    def render(self, out):
        out.print("*")
        self.name.render(out)

    def quote(self):
        return self.name


class Par(Process):
    left: Process
    right: Process

    def render(self, out):
        self.left.render(out)
        out.newline()
        out.print("|")
        out.newline()
        self.right.render(out)


def format_vdecl(vd):
    if isinstance(vd, str):
        return vd
    return f"{vd[0]}(`{vd[1]}`)"


class New(Process):
    bindings: Tuple[VDecl, ...]
    body: Process

    def render(self, out):
        out.newline()
        out.print("new ")
        first = True
        for item in self.bindings:
            if not first:
                if isinstance(item, str):
                    out.print(', ')
                else:
                    out.print(',')
                    out.newline()
            out.print(format_vdecl(item))
            first = False
        out.newline()
        out.begin("in {")
        self.body.render(out)
        out.end("}")


class Var(Name):
    identifier: str

    def render(self, out):
        out.print(self.identifier)

    def dereference(self):
        return Drop(name=self)


class Quote(Name):
    process: Process

    def render(self, out):
        out.print("@{ ")
        self.process.render(out)
        out.print(" }")

    def dereference(self):
        return self.process


_THE_NIL = Nil()


def nil():
    return _THE_NIL


def primitive(v):
    return Primitive(value=v)


def list_expr(procs):
    return ListExpr(items=tuple(procs))


def tuple_expr(procs):
    return TupleExpr(items=tuple(procs))


def map_expr(entries):
    """entries: iterable of (key, process) pairs."""
    return MapExpr(entries=tuple((key, value) for key, value in entries))


def match(specimen, cases):
    """cases: iterable of (pattern, body) pairs."""
    return Match(specimen=specimen, cases=tuple((lhs, rhs) for lhs, rhs in cases))


def send(dest, procs):
    return Send(destination=dest, arguments=tuple(procs))


def binop(op, lhs, rhs):
    return BinOp(op=op, lhs=lhs, rhs=rhs)


def unary(op, arg):
    return UnOp(op=op, arg=arg)


def receiving(rx, proc):
    """rx: iterable of (patterns, channel) clauses."""
    return Receiving(receipt=tuple((tuple(lhs), rhs) for lhs, rhs in rx), continuation=proc)


def contract(name, args, body):
    return Contract(name=name, formals=tuple(args), body=body)


def drop(name):
    return Drop(name=name)


def par(p, q):
    """Parallel composition; Nil is the identity on either side."""
    if isinstance(p, Nil):
        return q
    if isinstance(q, Nil):
        return p
    return Par(left=p, right=q)


def var(v):
    return Var(identifier=v)


def quote(p):
    return Quote(process=p)


def new(vlist, body):
    return New(bindings=tuple(vd if isinstance(vd, str) else tuple(vd) for vd in vlist), body=body)
