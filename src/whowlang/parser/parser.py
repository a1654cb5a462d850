"""
Whowlang Parser

Converts a token list from the lexer into a tree of typed values.
Handles key/value statements, $variable bindings, arrays and nested tables.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Optional, Union

from whowlang.parser.lexer import (
    ErrorKind,
    Lexer,
    LexerError,
    Token,
    TokenKind,
    read_source,
)

logger = logging.getLogger(__name__)

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
FLOAT32_MAX = 3.4028234663852886e38

# Maximum combined depth of nested arrays and tables
MAX_NESTING_DEPTH = 100


class ValueType(Enum):
    """Types of parsed values."""
    STRING = auto()
    INT = auto()
    FLOAT = auto()
    BOOL = auto()
    NULL = auto()
    ARRAY = auto()
    TABLE = auto()


@dataclass
class Value:
    """Base class for parsed values."""
    value_type: ValueType = field(default=None, init=False, repr=False)

    def to_python(self) -> Any:
        """Convert to plain Python data (str, int, float, bool, None, list, dict)."""
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the typed dictionary representation."""
        raise NotImplementedError


@dataclass
class StringValue(Value):
    value: str = ""

    def __post_init__(self):
        self.value_type = ValueType.STRING

    def __repr__(self):
        return f"String({self.value!r})"

    def to_python(self) -> str:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {'_type': 'string', 'value': self.value}


@dataclass
class IntValue(Value):
    """Signed 32-bit integer."""
    value: int = 0

    def __post_init__(self):
        self.value_type = ValueType.INT

    def __repr__(self):
        return f"Int({self.value})"

    def to_python(self) -> int:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {'_type': 'int', 'value': self.value}


@dataclass
class FloatValue(Value):
    """Float within the finite 32-bit range."""
    value: float = 0.0

    def __post_init__(self):
        self.value_type = ValueType.FLOAT

    def __repr__(self):
        return f"Float({self.value})"

    def to_python(self) -> float:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {'_type': 'float', 'value': self.value}


@dataclass
class BoolValue(Value):
    value: bool = False

    def __post_init__(self):
        self.value_type = ValueType.BOOL

    def __repr__(self):
        return f"Bool({self.value})"

    def to_python(self) -> bool:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {'_type': 'bool', 'value': self.value}


@dataclass
class NullValue(Value):
    def __post_init__(self):
        self.value_type = ValueType.NULL

    def __repr__(self):
        return "Null"

    def to_python(self) -> None:
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {'_type': 'null'}


@dataclass
class ArrayValue(Value):
    """Ordered sequence of values: [ item1 item2 item3 ]"""
    items: List[Value] = field(default_factory=list)

    def __post_init__(self):
        self.value_type = ValueType.ARRAY

    def __repr__(self):
        return f"Array({self.items})"

    def to_python(self) -> List[Any]:
        return [item.to_python() for item in self.items]

    def to_dict(self) -> Dict[str, Any]:
        return {'_type': 'array', 'items': [item.to_dict() for item in self.items]}


@dataclass
class TableValue(Value):
    """Nested table: { key value ... }"""
    entries: Dict[str, Value] = field(default_factory=dict)

    def __post_init__(self):
        self.value_type = ValueType.TABLE

    def __repr__(self):
        return f"Table({self.entries})"

    def __getitem__(self, key: str) -> Value:
        return self.entries[key]

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def get(self, key: str, default: Optional[Value] = None) -> Optional[Value]:
        return self.entries.get(key, default)

    def to_python(self) -> Dict[str, Any]:
        return {key: value.to_python() for key, value in self.entries.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            '_type': 'table',
            'entries': {key: value.to_dict() for key, value in self.entries.items()},
        }


# Error code -> broad category
ERROR_KINDS = {
    "INVALID_TOKEN": ErrorKind.SYNTACTIC,
    "UNEXPECTED_EOF": ErrorKind.SYNTACTIC,
    "UNSUPPORTED_SYNTAX": ErrorKind.SYNTACTIC,
    "NESTING_TOO_DEEP": ErrorKind.SYNTACTIC,
    "INVALID_VARIABLE": ErrorKind.SEMANTIC,
    "INVALID_LITERAL": ErrorKind.SEMANTIC,
    "TOO_MANY_DECIMALS": ErrorKind.SEMANTIC,
}


class ParseError(Exception):
    """Error during parsing."""
    def __init__(self, message: str, token: Token = None, code: str = "INVALID_TOKEN"):
        self.token = token
        self.line = token.line if token else 0
        self.column = token.column if token else 0
        self.message = message
        self.code = code
        if token:
            super().__init__(f"Parse error at line {token.line}, column {token.column}: {message}")
        else:
            super().__init__(f"Parse error: {message}")

    @property
    def kind(self) -> ErrorKind:
        return ERROR_KINDS.get(self.code, ErrorKind.SYNTACTIC)


@dataclass
class ParseDiagnostic:
    """A diagnostic describing why a file failed to lex or parse."""
    line: int
    column: int
    severity: str  # "error"
    code: str
    kind: str
    message: str
    filename: str = "<unknown>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "line": self.line,
            "column": self.column,
            "severity": self.severity,
            "code": self.code,
            "kind": self.kind,
            "message": self.message,
        }

    def __str__(self):
        return f"{self.filename}:{self.line}:{self.column}: {self.severity}: [{self.code}] {self.message}"


def diagnostic_from_error(error: Union[LexerError, ParseError], filename: str = "<unknown>") -> ParseDiagnostic:
    """Build a diagnostic from a lexer or parser exception."""
    return ParseDiagnostic(
        line=error.line,
        column=error.column,
        severity="error",
        code=error.code,
        kind=error.kind.value,
        message=error.message,
        filename=filename,
    )


def parse_literal(text: str, token: Token = None) -> Value:
    """Resolve the raw text of a literal token into a typed value."""
    if not text:
        raise ParseError("Empty literal", token, code="INVALID_LITERAL")

    quote = text[0]
    if quote in ('"', "'"):
        body = text[1:]
        if body.endswith(quote):
            body = body[:-1]
        return StringValue(body)

    if text in ('true', 'yes'):
        return BoolValue(True)
    if text in ('false', 'no'):
        return BoolValue(False)
    if text in ('nil', 'null'):
        return NullValue()

    digits = text[1:] if text[0] == '-' else text
    if not digits or any(ch not in "0123456789." for ch in digits):
        raise ParseError(f"Invalid literal {text!r}", token, code="INVALID_LITERAL")

    decimals = digits.count('.')
    if decimals >= 2:
        raise ParseError(f"Too many decimals in {text!r}", token, code="TOO_MANY_DECIMALS")

    if decimals == 1:
        try:
            number = float(text)
        except ValueError:
            raise ParseError(f"Malformed float literal {text!r}", token, code="INVALID_LITERAL") from None
        if abs(number) > FLOAT32_MAX:
            raise ParseError(f"Float literal {text!r} out of range", token, code="INVALID_LITERAL")
        return FloatValue(number)

    number = int(text)
    if not INT32_MIN <= number <= INT32_MAX:
        raise ParseError(f"Integer literal {text!r} out of range", token, code="INVALID_LITERAL")
    return IntValue(number)


class Parser:
    """
    Parser for whowlang token lists.

    Usage:
        parser = Parser(tokens)
        table = parser.parse()

    A parser owns a private copy of its tokens and a private variable table.
    Nested tables are parsed by fresh Parser instances, so variables bound in
    an outer scope are not visible inside them. parse() may only run once.
    """

    def __init__(self, tokens: Iterable[Token], filename: str = "<unknown>", depth: int = 0):
        self.tokens = list(tokens)
        self.filename = filename
        self.depth = depth
        self.pos = 0
        self.length = len(self.tokens)
        self.variables: Dict[str, Value] = {}
        self._consumed = False

    def _current(self) -> Optional[Token]:
        """Get current token or None if at end."""
        if self.pos >= self.length:
            return None
        return self.tokens[self.pos]

    def _advance(self) -> Optional[Token]:
        """Advance one token and return the previous one."""
        token = self._current()
        if token is not None:
            self.pos += 1
        return token

    def _expect_value_token(self, after: Token) -> Token:
        """Return the token following a key/variable, or fail at end of stream."""
        token = self._current()
        if token is None:
            raise ParseError(f"Unexpected end of token stream after {after.text!r}", after,
                             code="UNEXPECTED_EOF")
        return token

    def _resolve_variable(self, token: Token) -> Value:
        try:
            return self.variables[token.text]
        except KeyError:
            raise ParseError(f"Invalid variable name {token.text!r}", token,
                             code="INVALID_VARIABLE") from None

    def parse(self) -> Dict[str, Value]:
        """Parse the token list into a mapping of key -> value."""
        if self._consumed:
            raise RuntimeError("Parser.parse() can only be called once per instance")
        self._consumed = True

        result: Dict[str, Value] = {}

        while True:
            token = self._current()
            if token is None:
                break

            if token.kind == TokenKind.KEY:
                self._advance()
                result[token.text] = self._parse_value(self._expect_value_token(token))
            elif token.kind == TokenKind.IDENT:
                self._advance()
                self._parse_binding(token)
            elif token.kind == TokenKind.SEPARATOR and token.text in '{[(':
                # Keyless aggregate: parsed for validity, result dropped
                self._parse_separator()
            else:
                raise ParseError(f"Invalid token {token.text!r} in statement position", token)

        return result

    def _parse_binding(self, name_token: Token) -> None:
        """Parse `$name value`, where value is a literal or another variable."""
        token = self._expect_value_token(name_token)

        if token.kind == TokenKind.LITERAL:
            self._advance()
            value = parse_literal(token.text, token)
        elif token.kind == TokenKind.IDENT:
            self._advance()
            value = self._resolve_variable(token)
        else:
            raise ParseError(
                f"Expected literal or variable after variable {name_token.text!r}, got {token.text!r}",
                token,
            )

        logger.debug(f"Bound variable {name_token.text!r} = {value!r}")
        self.variables[name_token.text] = value

    def _parse_value(self, token: Token) -> Value:
        """Parse the value of a key statement starting at the current token."""
        if token.kind == TokenKind.LITERAL:
            self._advance()
            return parse_literal(token.text, token)
        if token.kind == TokenKind.IDENT:
            self._advance()
            return self._resolve_variable(token)
        if token.kind == TokenKind.SEPARATOR:
            return self._parse_separator()
        raise ParseError(f"Expected literal, variable or aggregate, got key {token.text!r}", token)

    def _parse_separator(self) -> Value:
        """Parse the aggregate opened by the separator at the current token."""
        token = self._current()
        if token.text in '[{' and self.depth >= MAX_NESTING_DEPTH:
            raise ParseError(f"Nesting deeper than {MAX_NESTING_DEPTH} levels", token,
                             code="NESTING_TOO_DEEP")
        if token.text == '[':
            self.depth += 1
            try:
                return self._parse_array()
            finally:
                self.depth -= 1
        if token.text == '{':
            return self._parse_table()
        if token.text == '(':
            raise ParseError("Parenthesized expressions are not supported", token,
                             code="UNSUPPORTED_SYNTAX")
        raise ParseError(f"Unexpected closing separator {token.text!r}", token)

    def _parse_array(self) -> ArrayValue:
        """Parse `[ ... ]`, consuming up to and including the matching `]`."""
        open_token = self._advance()
        items: List[Value] = []

        while True:
            token = self._current()
            if token is None:
                raise ParseError("Unexpected end of token stream in array (missing ']')",
                                 open_token, code="UNEXPECTED_EOF")

            if token.kind == TokenKind.SEPARATOR:
                if token.text == ']':
                    self._advance()
                    break
                items.append(self._parse_separator())
            elif token.kind == TokenKind.LITERAL:
                self._advance()
                items.append(parse_literal(token.text, token))
            elif token.kind == TokenKind.IDENT:
                self._advance()
                items.append(self._resolve_variable(token))
            else:
                raise ParseError(f"Expected literal or variable within array, got key {token.text!r}", token)

        return ArrayValue(items)

    def _parse_table(self) -> TableValue:
        """Collect the tokens of `{ ... }` and parse them with a fresh parser."""
        open_token = self._advance()
        depth = 1
        body: List[Token] = []

        while True:
            token = self._advance()
            if token is None:
                raise ParseError("Unexpected end of token stream in table (missing '}')",
                                 open_token, code="UNEXPECTED_EOF")
            if token.kind == TokenKind.SEPARATOR:
                if token.text == '{':
                    depth += 1
                elif token.text == '}':
                    depth -= 1
                    if depth == 0:
                        break
            body.append(token)

        logger.debug(f"Parsing nested table at line {open_token.line} ({len(body)} tokens, depth {self.depth + 1})")
        entries = Parser(body, filename=self.filename, depth=self.depth + 1).parse()
        return TableValue(entries)


def parse_tokens(tokens: Iterable[Token], filename: str = "<unknown>") -> Dict[str, Value]:
    """Parse an already tokenized source into a mapping."""
    return Parser(tokens, filename).parse()


def parse_source(source: str, filename: str = "<unknown>", sigil: str = "$") -> Dict[str, Value]:
    """Parse source text into a mapping of key -> value."""
    lexer = Lexer(source, filename, sigil=sigil)
    tokens = lexer.tokenize_all()
    return Parser(tokens, filename).parse()


def parse_file(filepath: str, encodings: Optional[List[str]] = None, **kwargs) -> Dict[str, Value]:
    """Parse a file into a mapping. Handles encoding fallback."""
    source = read_source(filepath, encodings)
    return parse_source(source, str(filepath), **kwargs)
