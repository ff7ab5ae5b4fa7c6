# js2rho - Core Compiler Components
"""
Core modules for the js2rho compiler:
- errors: Hard compile errors and soft diagnostics
- estree: The input syntax tree (ESTree subset)
- grammar: Lark grammar for the accepted ECMAScript subset
- transformer: Lark parse tree to ESTree nodes
- terms: Rholang process and name terms
- printer: Indenting text emitter for terms
- translator: ESTree to Rholang terms
"""

from .errors import RhoCompileError, Diagnostic
from .grammar import js_subset_grammar
from .transformer import EsTreeTransformer
from .printer import Printer, render_to_string
from .translator import Compilation, compile_tree

__all__ = [
    'RhoCompileError',
    'Diagnostic',
    'js_subset_grammar',
    'EsTreeTransformer',
    'Printer',
    'render_to_string',
    'Compilation',
    'compile_tree',
]
