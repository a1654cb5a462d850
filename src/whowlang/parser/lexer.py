"""
Whowlang Lexer (Tokenizer)

Converts raw source text into a list of tokens.
Handles: keys, $variables, literals (strings, numbers, keywords), separators, comments.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    """Kinds of tokens in whowlang source."""
    KEY = auto()        # name, server_port, foo.bar
    IDENT = auto()      # $name (stored without the sigil)
    LITERAL = auto()    # "quoted", 'quoted', 42, -1.5, yes, nil
    SEPARATOR = auto()  # { } ( ) [ ]


class ErrorKind(Enum):
    """Broad category of a lexing/parsing failure."""
    LEXICAL = "lexical"
    SYNTACTIC = "syntactic"
    SEMANTIC = "semantic"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    kind: TokenKind
    text: str
    line: int
    column: int

    def __repr__(self):
        return f"Token({self.kind.name}, {self.text!r}, L{self.line}:{self.column})"


class LexerError(Exception):
    """Error during lexical analysis."""
    kind = ErrorKind.LEXICAL

    def __init__(self, message: str, line: int, column: int, code: str = "LEXER_ERROR"):
        self.line = line
        self.column = column
        self.code = code
        self.message = message
        super().__init__(f"Lexer error at line {line}, column {column}: {message}")


class Lexer:
    """
    Tokenizer for whowlang source text.

    Usage:
        lexer = Lexer(source_text)
        tokens = lexer.tokenize_all()

    Lines are 1-based, columns are 0-based offsets from the start of the line.
    """

    WHITESPACE = frozenset(" \t\n\r\f\v")
    SEPARATORS = frozenset("{}()[]")
    QUOTES = frozenset("\"'")
    DIGITS = frozenset("0123456789")
    KEYWORDS = frozenset(("yes", "no", "true", "false", "null", "nil"))
    ESCAPES = {'n': '\n', 'r': '\r', '"': '"', "'": "'"}

    def __init__(self, source: str, filename: str = "<unknown>", sigil: str = "$"):
        if len(sigil) != 1:
            raise ValueError(f"Variable sigil must be a single character, got {sigil!r}")
        self.source = source
        self.filename = filename
        self.sigil = sigil
        self.pos = 0
        self.line = 1
        self.line_start = 0
        self.length = len(source)

    @property
    def column(self) -> int:
        return self.pos - self.line_start

    def _current(self) -> Optional[str]:
        """Get current character or None if at end."""
        if self.pos >= self.length:
            return None
        return self.source[self.pos]

    def _advance(self) -> Optional[str]:
        """Advance one character and return it."""
        ch = self._current()
        if ch is not None:
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.line_start = self.pos
        return ch

    def _is_delimiter(self, ch: Optional[str]) -> bool:
        return ch is None or ch in self.WHITESPACE or ch in self.SEPARATORS

    def _skip_whitespace_and_comments(self) -> None:
        """Skip whitespace and # comments until real input or end of source."""
        while True:
            while self._current() is not None and self._current() in self.WHITESPACE:
                self._advance()
            if self._current() != '#':
                return
            # Stop at the newline; the whitespace pass consumes it
            while self._current() is not None and self._current() != '\n':
                self._advance()

    def _scan_run(self, start: int) -> str:
        """Return the whitespace/separator-delimited run starting at start (no consumption)."""
        end = start
        while end < self.length and not self._is_delimiter(self.source[end]):
            end += 1
        return self.source[start:end]

    def _consume(self, count: int) -> None:
        # Runs never contain newlines, so line tracking is unaffected
        self.pos += count

    def _next_separator(self) -> Optional[Token]:
        ch = self._current()
        if ch not in self.SEPARATORS:
            return None
        token = Token(TokenKind.SEPARATOR, ch, self.line, self.column)
        self._advance()
        return token

    def _next_string(self) -> Optional[Token]:
        """Read a quoted string, handling escapes. The quote is kept at both ends."""
        quote = self._current()
        if quote not in self.QUOTES:
            return None

        start_line = self.line
        start_col = self.column
        self._advance()

        result = [quote]
        while True:
            ch = self._current()
            if ch is None:
                raise LexerError("Unterminated string literal", start_line, start_col,
                                 code="UNTERMINATED_STRING")
            if ch == quote:
                self._advance()
                break
            if ch == '\\':
                self._advance()
                esc = self._current()
                if esc is None:
                    raise LexerError("Unterminated string literal", start_line, start_col,
                                     code="UNTERMINATED_STRING")
                # Unknown escapes pass the escaped character through
                result.append(self.ESCAPES.get(esc, esc))
                self._advance()
            else:
                result.append(ch)
                self._advance()

        result.append(quote)
        return Token(TokenKind.LITERAL, ''.join(result), start_line, start_col)

    def _next_literal(self) -> Optional[Token]:
        """Read a numeric or keyword literal. Nothing is consumed on a miss."""
        raw = self._scan_run(self.pos)
        if not raw:
            return None
        # lower() may change the length; consume by the raw run
        run = raw.lower()
        if not (run[0] in self.DIGITS or run[0] == '-' or run in self.KEYWORDS):
            return None

        token = Token(TokenKind.LITERAL, run, self.line, self.column)
        self._consume(len(raw))
        return token

    def _next_ident(self) -> Optional[Token]:
        if self._current() != self.sigil:
            return None

        line = self.line
        col = self.column
        name = self._scan_run(self.pos + 1)
        if not name:
            raise LexerError(f"Missing variable name after {self.sigil!r}", line, col,
                             code="EMPTY_VARIABLE_NAME")
        self._consume(len(name) + 1)
        return Token(TokenKind.IDENT, name, line, col)

    def _next_key(self) -> Token:
        text = self._scan_run(self.pos)
        token = Token(TokenKind.KEY, text, self.line, self.column)
        self._consume(len(text))
        return token

    def next_token(self) -> Optional[Token]:
        """Return the next token, or None once the source is exhausted."""
        self._skip_whitespace_and_comments()
        if self._current() is None:
            return None

        return (
            self._next_separator()
            or self._next_string()
            or self._next_literal()
            or self._next_ident()
            or self._next_key()
        )

    def tokenize_all(self) -> List[Token]:
        """Tokenize the whole source and return all tokens as a list."""
        tokens = []
        while True:
            token = self.next_token()
            if token is None:
                break
            tokens.append(token)

        logger.debug(f"Tokenized {self.filename}: {len(tokens)} tokens over {self.line} lines")
        return tokens


def tokenize(source: str, filename: str = "<unknown>", sigil: str = "$") -> List[Token]:
    """Tokenize source text and return all tokens."""
    return Lexer(source, filename, sigil=sigil).tokenize_all()


def read_source(filepath: str, encodings: Optional[List[str]] = None) -> str:
    """Read a source file, trying each encoding in turn."""
    # latin-1 always succeeds, so the default chain never falls through
    encodings = encodings or ['utf-8-sig', 'utf-8', 'latin-1']
    last_error = None
    for encoding in encodings:
        try:
            with open(filepath, 'r', encoding=encoding) as f:
                return f.read()
        except UnicodeDecodeError as e:
            logger.debug(f"{filepath} is not valid {encoding}, trying next encoding")
            last_error = e
    raise last_error


def tokenize_file(filepath: str, encodings: Optional[List[str]] = None, **kwargs) -> List[Token]:
    """Tokenize a file and return all tokens. Handles encoding fallback."""
    source = read_source(filepath, encodings)
    return tokenize(source, filename=str(filepath), **kwargs)
