"""
js2rho Grammar Definition.

This module contains the Lark grammar for the ECMAScript module subset that
the compiler recognizes. It is deliberately small: imports, one default
exported function, const declarations, switch, return and call expressions.
`break`, `throw` and `this` are recognized so they can be reported by name.
"""

js_subset_grammar = r"""
    start: module_item*

    ?module_item: import_decl
                | export_default
                | statement

    // --- Imports ---
    import_decl: "import" import_clause "from" STRING ";"
               | "import" STRING ";"                        -> import_bare
    import_clause: NAME                                     -> default_only
                 | NAME "," named_imports                   -> default_and_named
                 | NAME "," namespace_import                -> default_and_namespace
                 | named_imports                            -> named_only
                 | namespace_import                         -> namespace_only
    named_imports: "{" (import_spec ("," import_spec)* ","?)? "}"
    import_spec: NAME ("as" NAME)?
    namespace_import: "*" "as" NAME

    export_default: "export" "default" function_decl
    function_decl: ASYNC? "function" NAME? "(" param_list ")" block

    param_list: (pattern ("," pattern)*)?
    block: "{" statement* "}"

    // --- Statements ---
    ?statement: var_decl
              | if_stmt
              | switch_stmt
              | return_stmt
              | break_stmt
              | throw_stmt
              | expr_stmt

    var_decl: (CONST | LET | VAR) declarator ("," declarator)* ";"
    declarator: pattern ("=" expr)?
    if_stmt: "if" "(" expr ")" block ("else" (block | if_stmt))?
    switch_stmt: "switch" "(" expr ")" "{" switch_case* "}"
    switch_case: "case" expr ":" statement*                 -> case_clause
               | "default" ":" statement*                   -> default_clause
    return_stmt: "return" expr? ";"
    break_stmt: "break" NAME? ";"
    throw_stmt: "throw" expr ";"
    expr_stmt: expr ";"

    // --- Patterns ---
    ?pattern: NAME                                                   -> identifier
            | "{" (prop_pattern ("," prop_pattern)* ","?)? "}"       -> object_pattern
            | "[" (pattern ("," pattern)* ","?)? "]"                 -> array_pattern
    ?prop_pattern: prop_key ":" pattern                              -> pattern_prop
                 | NAME                                              -> shorthand_pattern_prop

    // --- Expressions ---
    ?expr: or_expr
    ?or_expr: and_expr
            | or_expr OR and_expr                           -> logical_expr
    ?and_expr: eq_expr
             | and_expr AND eq_expr                         -> logical_expr
    ?eq_expr: rel_expr
            | eq_expr (STRICT_EQ | STRICT_NE | EQ | NE) rel_expr   -> binary_expr
    ?rel_expr: add_expr
             | rel_expr (LE | GE | LT | GT) add_expr        -> binary_expr
    ?add_expr: mul_expr
             | add_expr (PLUS | MINUS) mul_expr             -> binary_expr
    ?mul_expr: unary
             | mul_expr (STAR | PERCENT) unary              -> binary_expr
    ?unary: postfix
          | "await" unary                                   -> await_expr
          | (NOT | MINUS) unary                             -> unary_expr
    ?postfix: primary
            | postfix "." NAME                              -> member_expr
            | postfix "(" arg_list ")"                      -> call_expr
    arg_list: (expr ("," expr)*)?

    ?primary: NAME                                          -> identifier
            | STRING                                        -> string_lit
            | NUMBER                                        -> number_lit
            | (TRUE | FALSE)                                -> boolean_lit
            | NULL                                          -> null_lit
            | THIS                                          -> this_expr
            | object_literal
            | array_literal
            | function_expr
            | "(" expr ")"

    object_literal: "{" (prop ("," prop)* ","?)? "}"
    ?prop: prop_key ":" expr                                -> init_prop
         | ASYNC? prop_key "(" param_list ")" block         -> method_prop
    ?prop_key: NAME                                         -> identifier
             | STRING                                       -> string_lit
             | NUMBER                                       -> number_lit
    array_literal: "[" (expr ("," expr)* ","?)? "]"
    function_expr: ASYNC? "function" NAME? "(" param_list ")" block

    // --- Terminals ---
    CONST: "const"
    LET: "let"
    VAR: "var"
    ASYNC: "async"
    TRUE: "true"
    FALSE: "false"
    NULL: "null"
    THIS: "this"

    OR: "||"
    AND: "&&"
    STRICT_EQ: "==="
    STRICT_NE: "!=="
    EQ: "=="
    NE: "!="
    LE: "<="
    GE: ">="
    LT: "<"
    GT: ">"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    PERCENT: "%"
    NOT: "!"

    STRING: /"(?:[^"\\\n]|\\.)*"/ | /'(?:[^'\\\n]|\\.)*'/
    NUMBER: /\d+(\.\d+)?([eE][+-]?\d+)?/
    NAME: /[a-zA-Z_$][\w$]*/

    COMMENT_1: /\/\/[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore COMMENT_1
    %ignore BLOCK_COMMENT
"""
