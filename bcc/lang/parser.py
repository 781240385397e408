"""Recursive descent parser for bcc language. Consumes the full token list produced by lexical.py and builds the syntax
tree defined in syntax.py, one precedence level per method.

Two constructs need lookahead past the current token: a "{" at statement position may open either a block or a dict
literal, and an identifier in an argument list may start either a keyword argument or a positional expression. Both
are resolved with bounded lookahead that never builds any nodes.
"""

import sys

from bcc.lang.error import ParseError, Span
from bcc.lang.lexical import TokenType
from bcc.lang.syntax import (Assign, BinaryOp, Binary, Block, Call, CallWithKwargs, DictExpr, ExpressionStmt, For,
                             Grouping, If, IgnoreTarget, KeywordArg, ListExpr, Literal, Logical, LogicalOp,
                             MultiAssign, MultiReturn, Program, PropertyAccess, TupleExpr, Unary, UnaryOp, Variable,
                             VariableTarget, While)

BINARY_OPS = {
    TokenType.EQUAL_EQUAL: BinaryOp.EQUAL,
    TokenType.BANG_EQUAL: BinaryOp.NOT_EQUAL,
    TokenType.GREATER: BinaryOp.GREATER,
    TokenType.GREATER_EQUAL: BinaryOp.GREATER_EQUAL,
    TokenType.LESS: BinaryOp.LESS,
    TokenType.LESS_EQUAL: BinaryOp.LESS_EQUAL,
    TokenType.IN: BinaryOp.IN,
    TokenType.PLUS: BinaryOp.ADD,
    TokenType.MINUS: BinaryOp.SUBTRACT,
    TokenType.STAR: BinaryOp.MULTIPLY,
    TokenType.SLASH: BinaryOp.DIVIDE,
}

UNARY_OPS = {
    TokenType.BANG: UnaryOp.NOT,
    TokenType.NOT: UnaryOp.NOT,
    TokenType.MINUS: UnaryOp.NEGATE,
}

LITERALS = {
    TokenType.FALSE: lambda lexeme: False,
    TokenType.TRUE: lambda lexeme: True,
    TokenType.NIL: lambda lexeme: None,
    TokenType.INTEGER: int,
    TokenType.DOUBLE: float,
    TokenType.STRING: str,
}

UNEXPECTED_HELP = {  # help for a token found where an expression should start
    TokenType.RIGHT_PAREN: "Found ')' without matching '('. Check for unbalanced parentheses.",
    TokenType.RIGHT_BRACE: "Found '}' without matching '{'. Check for unbalanced braces.",
    TokenType.RIGHT_BRACKET: "Found ']' without matching '['. Check for unbalanced brackets.",
    TokenType.EOF: "Reached end of input while expecting an expression.",
}
GENERIC_HELP = "Expected a literal value, variable, or parenthesized expression here."

CALL_HELP = "Function calls must be closed with ')' after the arguments. Example: func(arg1, arg2)"


class Parser:
    """Single-use parser over a list of tokens ending with EOF."""
    DICT_LOOKAHEAD = 20        # max tokens scanned past "{" when telling dicts and blocks apart
    RECURSION_LIMIT = 10000    # roughly 11 frames are used per level of nesting

    def __init__(self, tokens):
        self.tokens = tokens
        self.current = 0

    def parse(self):
        """Returns Program of all statements in tokens. Raises ParseError on the first syntax error.

        The interpreter's recursion limit is raised to at least RECURSION_LIMIT while parsing, so that deeply nested
        source parses, and restored afterwards.
        """
        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(limit, Parser.RECURSION_LIMIT))
        try:
            statements = []
            while not self.is_at_end():
                statements.append(self.statement())
        finally:
            sys.setrecursionlimit(limit)

        return Program(statements, Span(0, self.tokens[-1].span.start))

    # -----------------------------------------------------------------------------------------------------------------
    # Statements

    def statement(self):
        if self.check(TokenType.LEFT_BRACE):
            if self.is_dictionary_literal():
                return self.expression_statement()

            start = self.advance().span
            statements = self.block()
            return Block(statements, start.to(self.previous().span))

        elif self.match(TokenType.IF):
            return self.if_statement()
        elif self.match(TokenType.WHILE):
            return self.while_statement()
        elif self.match(TokenType.FOR):
            return self.for_statement()
        elif self.match(TokenType.RETURN):
            return self.return_statement()
        return self.expression_statement()

    def block(self):
        """Parses statements up to and including the closing "}". The opening "{" must already be consumed."""
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            statements.append(self.statement())

        self.consume(TokenType.RIGHT_BRACE, "Expected '}' after block",
                     "Block statements must be closed with '}' after the opening '{'.")
        return statements

    def if_statement(self):
        start = self.previous().span

        self.consume(TokenType.LEFT_PAREN, "Expected '(' after 'if'",
                     "If statements require parentheses around the condition: if (condition) { ... }")
        condition = self.expression(allow_tuple=False)
        self.consume(TokenType.RIGHT_PAREN, "Expected ')' after if condition",
                     "If conditions must be enclosed in parentheses: if (condition) { ... }")

        then_branch = self.statement()
        else_branch = self.statement() if self.match(TokenType.ELSE) else None

        last = else_branch if else_branch is not None else then_branch
        return If(condition, then_branch, else_branch, start.to(last.span))

    def while_statement(self):
        start = self.previous().span

        self.consume(TokenType.LEFT_PAREN, "Expected '(' after 'while'",
                     "While loops require parentheses around the condition: while (condition) { ... }")
        condition = self.expression(allow_tuple=False)
        self.consume(TokenType.RIGHT_PAREN, "Expected ')' after while condition",
                     "While conditions must be enclosed in parentheses: while (condition) { ... }")

        body = self.statement()
        return While(condition, body, start.to(body.span))

    def for_statement(self):
        start = self.previous().span
        usage = "For loops take three clauses separated by ';': for (i = 0; i < 10; i = i + 1) { ... }"

        self.consume(TokenType.LEFT_PAREN, "Expected '(' after 'for'", usage)

        initializer = None
        if not self.match(TokenType.SEMICOLON):
            initializer = self.expression_statement()  # consumes the ";" when there is one

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression(allow_tuple=False)
        self.consume(TokenType.SEMICOLON, "Expected ';' after loop condition", usage)

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expected ')' after for clauses", usage)

        body = self.statement()
        return For(initializer, condition, increment, body, start.to(body.span))

    def return_statement(self):
        start = self.previous().span

        values = []
        if not (self.check(TokenType.SEMICOLON) or self.check(TokenType.RIGHT_BRACE) or self.is_at_end()):
            values.append(self.expression(allow_tuple=False))
            while self.match(TokenType.COMMA):
                values.append(self.expression(allow_tuple=False))

        expr = MultiReturn(values, start.to(self.previous().span))
        self.match(TokenType.SEMICOLON)
        return ExpressionStmt(expr, start.to(self.previous().span))

    def expression_statement(self):
        start = self.peek().span
        expr = self.expression()
        self.match(TokenType.SEMICOLON)  # optional
        return ExpressionStmt(expr, start.to(self.previous().span))

    # -----------------------------------------------------------------------------------------------------------------
    # Expressions

    def expression(self, allow_tuple=True, closing=None):
        """Parses an expression, including assignments. If allow_tuple, a comma-separated list of expressions is
        parsed as a tuple; closing is the token kind that may follow a trailing comma in that list.
        """
        expr = self.or_()
        if allow_tuple and self.check(TokenType.COMMA):
            expr = self.tuple_(expr, closing)

        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.expression(allow_tuple, closing)
            return self.assignment(expr, equals, value)

        return expr

    def tuple_(self, first, closing):
        elements = [first]
        while self.match(TokenType.COMMA):
            if closing is not None and self.check(closing):
                break
            elements.append(self.or_())

        return TupleExpr(elements, first.span.to(self.previous().span))

    def assignment(self, target, equals, value):
        """Returns Assign or MultiAssign of value to target, which has already been parsed as an expression."""
        span = target.span.to(self.previous().span)

        if isinstance(target, Variable):
            return Assign(target.name, value, span)

        elif isinstance(target, TupleExpr):
            targets = []
            for element in target.elements:
                if not isinstance(element, Variable):
                    raise ParseError("Invalid assignment target in multi-assignment", element.span,
                                     "Multi-assignment targets must be variables or underscores. Example: "
                                     "'a, b, _ = expr'")
                elif element.name == "_":
                    targets.append(IgnoreTarget(element.span))
                else:
                    targets.append(VariableTarget(element.name, element.span))

            return MultiAssign(targets, value, span)

        raise ParseError("Invalid assignment target", equals.span,
                         "Only variables and tuples can be assigned to. Examples: 'x = 10' or 'a, b = expr'")

    def or_(self):
        return self._logical(self.and_, TokenType.OR, LogicalOp.OR)

    def and_(self):
        return self._logical(self.equality, TokenType.AND, LogicalOp.AND)

    def equality(self):
        return self._binary(self.comparison, (TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL),
                            "Equality operators like '==' and '!=' require expressions on both sides.")

    def comparison(self):
        return self._binary(self.term, (TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS,
                                        TokenType.LESS_EQUAL, TokenType.IN),
                            "Comparison operators like '>', '<', '>=', '<=' and 'in' require expressions on both sides.")

    def term(self):
        return self._binary(self.factor, (TokenType.MINUS, TokenType.PLUS),
                            "Arithmetic operators like '+' and '-' require expressions on both sides.")

    def factor(self):
        return self._binary(self.unary, (TokenType.SLASH, TokenType.STAR),
                            "Multiplication and division operators require expressions on both sides.")

    def _logical(self, operand, kind, op):
        expr = operand()
        while self.match(kind):
            right = operand()
            expr = Logical(expr, op, right, expr.span.to(right.span))
        return expr

    def _binary(self, operand, kinds, help):
        """Parses a left-associative chain of operand separated by any operator in kinds. A malformed right operand is
        reported against the operator rather than wherever the inner error happened.
        """
        expr = operand()
        while self.match(*kinds):
            operator = self.previous()
            try:
                right = operand()
            except ParseError:
                raise ParseError(f"Expected expression after '{operator.lexeme}'", operator.span, help) from None

            expr = Binary(expr, BINARY_OPS[operator.kind], right, expr.span.to(right.span))
        return expr

    def unary(self):
        if self.match(*UNARY_OPS):
            operator = self.previous()
            operand = self.unary()
            return Unary(UNARY_OPS[operator.kind], operand, operator.span.to(operand.span))

        return self.call()

    def call(self):
        expr = self.primary()

        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expected property name after '.'",
                                    "Properties are accessed by name. Example: case(true, 1).result")
                expr = PropertyAccess(expr, name.lexeme, expr.span.to(name.span))
            else:
                break

        return expr

    def finish_call(self, callee):
        """Parses arguments of a call up to and including ")". The opening "(" must already be consumed."""
        args = []
        kwargs = []

        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if self.is_at_end():
                    raise ParseError("Unexpected end of input in function call", self._error_span(), CALL_HELP)
                elif self.check(TokenType.RIGHT_BRACE) or self.check(TokenType.RIGHT_BRACKET):
                    raise ParseError("Expected ')' to close function call", self.peek().span, CALL_HELP)

                kwarg = self.keyword_arg()
                if kwarg is not None:
                    kwargs.append(kwarg)
                elif kwargs:
                    raise ParseError("Positional argument after keyword argument", self.peek().span,
                                     "All positional arguments must come before keyword arguments. Example: "
                                     "func(pos1, pos2, kw1=val1, kw2=val2)")
                else:
                    args.append(self.expression(allow_tuple=False))

                if not self.match(TokenType.COMMA):
                    break

                if self.is_at_end():
                    raise ParseError("Unexpected end of input after ',' in function call", self._error_span(),
                                     "Function calls must be closed with ')' after the arguments. You have a trailing "
                                     "comma.")
                elif self.check(TokenType.RIGHT_PAREN):
                    raise ParseError("Expected argument after ','", self.peek().span,
                                     "Trailing commas are not allowed in function calls. Example: func(arg1, arg2)")

        paren = self.consume(TokenType.RIGHT_PAREN, "Expected ')' after arguments", CALL_HELP)
        span = callee.span.to(paren.span)

        if kwargs:
            return CallWithKwargs(callee, args, kwargs, span)
        return Call(callee, args, span)

    def keyword_arg(self):
        """Returns KeywordArg if the next tokens are <identifier> "=", otherwise returns None and consumes nothing."""
        if not self.check(TokenType.IDENTIFIER):
            return None

        checkpoint = self.current
        name = self.advance()
        if not self.match(TokenType.EQUAL):
            self.current = checkpoint
            return None

        value = self.expression(allow_tuple=False)
        return KeywordArg(name.lexeme, value, name.span.to(value.span))

    def primary(self):
        if self.is_at_end():
            raise ParseError("Unexpected end of input", self._error_span(),
                             "Expected an expression here. Check for unmatched parentheses, brackets, or incomplete "
                             "statements.")

        token = self.advance()

        if token.kind in LITERALS:
            return Literal(LITERALS[token.kind](token.lexeme), token.span)
        elif token.kind is TokenType.IDENTIFIER:
            return Variable(token.lexeme, token.span)
        elif token.kind is TokenType.LEFT_PAREN:
            return self.grouping(token)
        elif token.kind is TokenType.LEFT_BRACKET:
            return self.list_literal(token)
        elif token.kind is TokenType.LEFT_BRACE:
            return self.dict_literal(token)

        raise ParseError(f"Expected expression, found '{token.lexeme}'", token.span,
                         UNEXPECTED_HELP.get(token.kind, GENERIC_HELP))

    def grouping(self, paren):
        """Parses a parenthesized expression: a Grouping, or a TupleExpr if it contains a top-level comma."""
        if self.is_at_end():
            raise ParseError("Expected expression after '('", paren.span,
                             "Opening parentheses '(' must contain a valid expression. Example: (x + 1)")
        elif self.check(TokenType.RIGHT_PAREN):
            raise ParseError("Empty parentheses are not allowed", paren.span.to(self.peek().span),
                             "Parentheses must contain an expression. Use 'nil' for a null value: (nil)")

        expr = self.expression(closing=TokenType.RIGHT_PAREN)
        end = self.consume(TokenType.RIGHT_PAREN, "Expected ')' after expression",
                           "Every opening parenthesis '(' must have a matching closing parenthesis ')'.")

        if isinstance(expr, TupleExpr):
            return TupleExpr(expr.elements, paren.span.to(end.span))
        return Grouping(expr, paren.span.to(end.span))

    def list_literal(self, bracket):
        elements = []
        if not self.check(TokenType.RIGHT_BRACKET):
            elements.append(self.expression(allow_tuple=False))
            while self.match(TokenType.COMMA):
                elements.append(self.expression(allow_tuple=False))

        end = self.consume(TokenType.RIGHT_BRACKET, "Expected ']' after list elements",
                           "List literals must be closed with ']' after the opening '['. Example: [1, 2, 3]")
        return ListExpr(elements, bracket.span.to(end.span))

    def dict_literal(self, brace):
        pairs = []
        if not self.check(TokenType.RIGHT_BRACE):
            while True:
                key = self.expression(allow_tuple=False)
                self.consume(TokenType.COLON, "Expected ':' after dictionary key",
                             "Dictionary entries require a colon ':' between key and value. Example: "
                             "{\"key\": \"value\"}")
                pairs.append((key, self.expression(allow_tuple=False)))

                if not self.match(TokenType.COMMA):
                    break

        end = self.consume(TokenType.RIGHT_BRACE, "Expected '}' after dictionary pairs",
                           "Dictionary literals must be closed with '}' after the opening '{'. Example: "
                           "{\"key\": \"value\"}")
        return DictExpr(pairs, brace.span.to(end.span))

    # -----------------------------------------------------------------------------------------------------------------
    # Lookahead

    def is_dictionary_literal(self):
        """Returns whether the "{" at the cursor opens a dict literal rather than a block. "{}" is always a dict;
        otherwise the first top-level ":" (dict) or ";", "}" or EOF (block) decides. Undecided after DICT_LOOKAHEAD
        tokens means block.
        """
        assert self.check(TokenType.LEFT_BRACE), "is_dictionary_literal called when current token is not '{'"

        if self.tokens[self.current + 1].kind is TokenType.RIGHT_BRACE:
            return True

        depth = {TokenType.LEFT_PAREN: 0, TokenType.LEFT_BRACKET: 0}
        closers = {TokenType.RIGHT_PAREN: TokenType.LEFT_PAREN, TokenType.RIGHT_BRACKET: TokenType.LEFT_BRACKET}

        start = self.current + 1
        for token in self.tokens[start:start + Parser.DICT_LOOKAHEAD]:
            top_level = not any(depth.values())

            if token.kind in depth:
                depth[token.kind] += 1
            elif token.kind in closers:
                depth[closers[token.kind]] -= 1
            elif token.kind is TokenType.EOF:
                return False
            elif top_level and token.kind is TokenType.COLON:
                return True
            elif top_level and token.kind in (TokenType.SEMICOLON, TokenType.RIGHT_BRACE):
                return False

        return False

    # -----------------------------------------------------------------------------------------------------------------
    # Cursor

    def match(self, *kinds):
        """Consumes next token only if it is any of kinds."""
        for kind in kinds:
            if self.check(kind):
                self.advance()
                return True
        return False

    def check(self, kind):
        return not self.is_at_end() and self.peek().kind is kind

    def advance(self):
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def consume(self, kind, message, help=None):
        """Consumes and returns next token if it is of kind, raises ParseError otherwise."""
        if self.check(kind):
            return self.advance()
        raise ParseError(message, self._error_span(), help)

    def _error_span(self):
        """Span of the unexpected next token. At EOF, points just past the last real token instead."""
        if self.is_at_end() and self.current > 0:
            return Span.single(self.previous().span.end)
        return self.peek().span

    def is_at_end(self):
        return self.peek().kind is TokenType.EOF

    def peek(self):
        return self.tokens[self.current]

    def previous(self):
        return self.tokens[self.current - 1]


def parse(tokens):
    """Returns Program parsed from tokens. Raises ParseError if tokens are not valid bcc syntax."""
    return Parser(tokens).parse()
