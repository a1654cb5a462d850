"""
whowlang - A small declarative configuration language

Tokenizes and parses whowlang source into a tree of typed values.
"""

__version__ = "0.1.0"
__author__ = "whowlang contributors"

from whowlang.parser import parse_file, parse_source
