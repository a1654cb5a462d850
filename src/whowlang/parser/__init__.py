"""
whowlang.parser - Whowlang Tokenizer and Parser

Lexer and parser for whowlang configuration files.
Converts source text into a mapping of keys to typed values.
"""

from whowlang.parser.lexer import (
    ErrorKind,
    Lexer,
    LexerError,
    Token,
    TokenKind,
    read_source,
    tokenize,
    tokenize_file,
)
from whowlang.parser.parser import (
    MAX_NESTING_DEPTH,
    Parser,
    ParseError,
    ParseDiagnostic,
    diagnostic_from_error,
    parse_file,
    parse_literal,
    parse_source,
    parse_tokens,
    # Value types
    Value,
    ValueType,
    StringValue,
    IntValue,
    FloatValue,
    BoolValue,
    NullValue,
    ArrayValue,
    TableValue,
)

__all__ = [
    # Lexer
    "ErrorKind",
    "Lexer",
    "LexerError",
    "Token",
    "TokenKind",
    "read_source",
    "tokenize",
    "tokenize_file",
    # Parser
    "MAX_NESTING_DEPTH",
    "Parser",
    "ParseError",
    "ParseDiagnostic",
    "diagnostic_from_error",
    "parse_file",
    "parse_literal",
    "parse_source",
    "parse_tokens",
    # Values
    "Value",
    "ValueType",
    "StringValue",
    "IntValue",
    "FloatValue",
    "BoolValue",
    "NullValue",
    "ArrayValue",
    "TableValue",
]
