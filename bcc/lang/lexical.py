"""Lexical analysis for bcc language. Turns arbitrary source text into a list of spanned tokens, the last of which is
always EOF.

Tokens can be loosely defined as follows:

```
<punctuation> ::= "(" | ")" | "{" | "}" | "[" | "]" | "," | ":" | "." | "-" | "+" | ";" | "/" | "*"
<operator>    ::= "!" | "!=" | "=" | "==" | "<" | "<=" | ">" | ">="     ; longest match wins
<string>      ::= '"' <char>* '"'                                      ; no escape sequences
<integer>     ::= <digit>+
<double>      ::= <digit>+ "." <digit>+                                ; "1." is an integer followed by a dot
<identifier>  ::= (<letter> | "_") (<letter> | <digit> | "_")*         ; unless it is a keyword

<comment>     ::= "//" <char>*                                         ; up to end of line
```

Spans are byte offsets into the UTF-8 encoded source, even though scanning walks over characters.
"""

from dataclasses import dataclass
from enum import Enum

from bcc.lang.error import LexError, Span
from bcc.lang.numerical import check_int


class TokenType(Enum):
    """Kinds of token. Values are the fixed lexemes where there is one, and a readable name otherwise."""
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    COMMA = ","
    COLON = ":"
    DOT = "."
    MINUS = "-"
    PLUS = "+"
    SEMICOLON = ";"
    SLASH = "/"
    STAR = "*"

    BANG = "!"
    BANG_EQUAL = "!="
    EQUAL = "="
    EQUAL_EQUAL = "=="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LESS = "<"
    LESS_EQUAL = "<="

    IDENTIFIER = "identifier"
    STRING = "string"
    INTEGER = "integer"
    DOUBLE = "double"

    AND = "and"
    ELSE = "else"
    FALSE = "false"
    FOR = "for"
    FUN = "fun"
    IF = "if"
    IN = "in"
    NIL = "nil"
    NOT = "not"
    OR = "or"
    RETURN = "return"
    TRUE = "true"
    WHILE = "while"

    EOF = "end of input"


KEYWORDS = {kind.value: kind for kind in (
    TokenType.AND, TokenType.ELSE, TokenType.FALSE, TokenType.FOR, TokenType.FUN, TokenType.IF, TokenType.IN,
    TokenType.NIL, TokenType.NOT, TokenType.OR, TokenType.RETURN, TokenType.TRUE, TokenType.WHILE,
)}

SINGLE = {kind.value: kind for kind in (
    TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN, TokenType.LEFT_BRACE, TokenType.RIGHT_BRACE, TokenType.LEFT_BRACKET,
    TokenType.RIGHT_BRACKET, TokenType.COMMA, TokenType.COLON, TokenType.DOT, TokenType.MINUS, TokenType.PLUS,
    TokenType.SEMICOLON, TokenType.STAR,
)}

ONE_OR_TWO = {  # char: (kind alone, kind when followed by "=")
    "!": (TokenType.BANG, TokenType.BANG_EQUAL),
    "=": (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
    "<": (TokenType.LESS, TokenType.LESS_EQUAL),
    ">": (TokenType.GREATER, TokenType.GREATER_EQUAL),
}

WHITESPACE = " \r\t\n"


@dataclass(frozen=True)
class Token:
    """Single token. lexeme is the source text of the token, except for strings, where the quotes are left out."""
    kind: TokenType
    lexeme: str
    span: Span

    def __str__(self):
        return self.lexeme if self.kind is not TokenType.EOF else self.kind.value


def _is_digit(char):
    return "0" <= char <= "9"


def _is_alpha(char):
    return char.isalpha() or char == "_"


def _is_alnum(char):
    return char.isalnum() or char == "_"


class Lexer:
    """Single-use scanner over source. Walks characters by index while keeping track of the matching byte offset."""

    def __init__(self, source):
        self.source = source
        self.tokens = []

        self._idx = 0       # character index of next char
        self.current = 0    # byte offset of next char
        self._start = 0     # character index of token being scanned
        self.start = 0      # byte offset of token being scanned

    def scan(self):
        """Returns list of tokens in source, ending with EOF. Raises LexError on the first malformed token."""
        while not self.is_at_end():
            self._start, self.start = self._idx, self.current
            self.scan_token()

        self.tokens.append(Token(TokenType.EOF, "", Span.single(self.current)))
        return self.tokens

    def scan_token(self):
        char = self.advance()

        if char in SINGLE:
            self.add_token(SINGLE[char])

        elif char in ONE_OR_TWO:
            alone, with_equal = ONE_OR_TWO[char]
            self.add_token(with_equal if self.match("=") else alone)

        elif char == "/":
            if self.match("/"):
                while self.peek() != "\n" and not self.is_at_end():
                    self.advance()
            else:
                self.add_token(TokenType.SLASH)

        elif char in WHITESPACE:
            pass

        elif char == "\"":
            self.string()

        elif _is_digit(char):
            self.number()

        elif _is_alpha(char):
            self.identifier()

        else:
            raise LexError(f"Unexpected character: '{char}'", Span.single(self.start),
                           "Remove this character, or put it inside a string literal.")

    def string(self):
        while self.peek() != "\"" and not self.is_at_end():
            self.advance()

        if self.is_at_end():
            raise LexError("Unterminated string", Span(self.start, self.current),
                           "Add a closing '\"' to end the string.")

        self.advance()  # closing quote
        self.add_token(TokenType.STRING, self.source[self._start + 1:self._idx - 1])

    def number(self):
        while _is_digit(self.peek()):
            self.advance()

        kind = TokenType.INTEGER
        if self.peek() == "." and _is_digit(self.peek_next()):
            kind = TokenType.DOUBLE
            self.advance()  # the "."
            while _is_digit(self.peek()):
                self.advance()

        text = self.lexeme()
        try:
            if kind is TokenType.INTEGER:
                check_int(int(text))
            else:
                float(text)
        except (ValueError, OverflowError):
            raise LexError(f"Invalid {kind.value}: {text}", Span(self.start, self.current),
                           "Integers must lie between -2^63 and 2^63 - 1." if kind is TokenType.INTEGER else None)

        self.add_token(kind)

    def identifier(self):
        while _is_alnum(self.peek()):
            self.advance()

        text = self.lexeme()
        self.add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def lexeme(self):
        """Returns text of token being scanned."""
        return self.source[self._start:self._idx]

    def add_token(self, kind, lexeme=None):
        self.tokens.append(Token(kind, self.lexeme() if lexeme is None else lexeme, Span(self.start, self.current)))

    def advance(self):
        char = self.source[self._idx]
        if "\ud800" <= char <= "\udfff":  # lone surrogate, e.g. an undecodable byte read with surrogateescape
            escaped = char.encode("unicode_escape").decode("ascii")
            raise LexError(f"Unexpected character: '{escaped}'", Span.single(self.current),
                           "Source text must be valid UTF-8. Remove this character.")
        self._idx += 1
        self.current += len(char.encode("utf-8"))
        return char

    def match(self, expected):
        """Consumes next char only if it is expected."""
        if self.peek() != expected:
            return False
        self.advance()
        return True

    def peek(self):
        return self.source[self._idx] if not self.is_at_end() else "\0"

    def peek_next(self):
        return self.source[self._idx + 1] if self._idx + 1 < len(self.source) else "\0"

    def is_at_end(self):
        return self._idx >= len(self.source)


def scan(source):
    """Returns list of tokens in source. Raises LexError if source is malformed."""
    return Lexer(source).scan()
