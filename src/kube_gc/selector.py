"""
Label selector parsing and the annotation filter built from it.

parse_selector() turns an expression such as "app=legacy,tier in (a,b),!x"
into Requirement records. existence_filter() rewrites each requirement to
"key exists", which is how the --filter expression is applied to an
object's annotations: only key presence is tested, any operator or value
in the expression is dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .errors import SelectorError

EQUALS = "="
DOUBLE_EQUALS = "=="
NOT_EQUALS = "!="
IN = "in"
NOT_IN = "notin"
EXISTS = "exists"
DOES_NOT_EXIST = "!"
GREATER_THAN = "gt"
LESS_THAN = "lt"

_SET_OPERATORS = {IN: IN, NOT_IN: NOT_IN}
_EQUALITY_OPERATORS = {"=": EQUALS, "==": DOUBLE_EQUALS, "!=": NOT_EQUALS}
_NUMERIC_OPERATORS = {">": GREATER_THAN, "<": LESS_THAN}
_SYMBOLS = frozenset({"==", "!=", "=", "!", "(", ")", ",", ">", "<"})

_TOKEN_RE = re.compile(r"\s*(==|!=|=|!|\(|\)|,|>|<|[^\s=!(),<>]+)")

_NAME_RE = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$")
_DNS_SUBDOMAIN_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")
MAX_NAME_LENGTH = 63
MAX_PREFIX_LENGTH = 253


def validate_key(key: str) -> None:
    """Raise SelectorError unless key is a qualified name ([prefix/]name)."""
    prefix, sep, name = key.rpartition("/")
    if sep:
        if not prefix or len(prefix) > MAX_PREFIX_LENGTH or not _DNS_SUBDOMAIN_RE.match(prefix):
            raise SelectorError(f"invalid key {key!r}: prefix must be a DNS subdomain")
    if not name or len(name) > MAX_NAME_LENGTH or not _NAME_RE.match(name):
        raise SelectorError(
            f"invalid key {key!r}: name must be at most {MAX_NAME_LENGTH} alphanumeric "
            "characters, '-', '_' or '.', starting and ending with an alphanumeric character"
        )


def validate_value(value: str) -> None:
    """Raise SelectorError unless value is a valid label value (may be empty)."""
    if value and (len(value) > MAX_NAME_LENGTH or not _NAME_RE.match(value)):
        raise SelectorError(f"invalid value {value!r}")


@dataclass(frozen=True)
class Requirement:
    """One (key, operator, values) term of a selector."""

    key: str
    operator: str
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class Selector:
    """
    Requirements applied to an annotation set.

    Built by existence_filter(), so every requirement is a key-existence test:
    a mapping matches when it carries every key. No requirements matches
    everything.
    """

    requirements: tuple[Requirement, ...] = ()

    def matches(self, annotations: Optional[Mapping[str, str]]) -> bool:
        annotations = annotations or {}
        return all(req.key in annotations for req in self.requirements)

    def __str__(self) -> str:
        return ",".join(req.key for req in self.requirements)


def _tokenize(expr: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    stripped = expr.rstrip()
    while pos < len(stripped):
        m = _TOKEN_RE.match(stripped, pos)
        if not m:
            raise SelectorError(f"unable to parse selector {expr!r} at position {pos}")
        tokens.append(m.group(1))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, expr: str):
        self.expr = expr
        self.tokens = _tokenize(expr)
        self.pos = 0

    def peek(self) -> Optional[str]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def next(self) -> Optional[str]:
        tok = self.peek()
        self.pos += 1
        return tok

    def error(self, message: str) -> SelectorError:
        return SelectorError(f"unable to parse selector {self.expr!r}: {message}")

    def identifier(self, what: str) -> str:
        tok = self.next()
        if tok is None or tok in _SYMBOLS:
            raise self.error(f"expected {what}, found {tok or 'end of input'}")
        return tok

    def at_term_end(self) -> bool:
        return self.peek() in (None, ",")

    def parse(self) -> tuple[Requirement, ...]:
        if not self.tokens:
            return ()
        requirements = [self.requirement()]
        while self.peek() == ",":
            self.next()
            requirements.append(self.requirement())
        if self.peek() is not None:
            raise self.error(f"unexpected {self.peek()!r}")
        return tuple(requirements)

    def requirement(self) -> Requirement:
        if self.peek() == "!":
            self.next()
            key = self.identifier("key")
            validate_key(key)
            if not self.at_term_end():
                raise self.error(f"unexpected {self.peek()!r} after !{key}")
            return Requirement(key, DOES_NOT_EXIST)

        key = self.identifier("key")
        validate_key(key)
        if self.at_term_end():
            return Requirement(key, EXISTS)

        op = self.next()
        if op in _EQUALITY_OPERATORS:
            value = "" if self.at_term_end() else self.identifier("value")
            validate_value(value)
            return Requirement(key, _EQUALITY_OPERATORS[op], (value,))
        if op in _NUMERIC_OPERATORS:
            value = self.identifier("integer value")
            try:
                int(value)
            except ValueError:
                raise self.error(f"{key}{op}{value}: value must be an integer")
            return Requirement(key, _NUMERIC_OPERATORS[op], (value,))
        if op in _SET_OPERATORS:
            return Requirement(key, _SET_OPERATORS[op], self.value_set())
        raise self.error(f"unknown operator {op!r} after key {key!r}")

    def value_set(self) -> tuple[str, ...]:
        if self.next() != "(":
            raise self.error("expected '(' to open value set")
        values: list[str] = []
        while True:
            tok = self.peek()
            if tok in (",", ")"):
                value = ""
            else:
                value = self.identifier("value")
            validate_value(value)
            values.append(value)
            tok = self.next()
            if tok == ")":
                break
            if tok != ",":
                raise self.error(f"expected ',' or ')' in value set, found {tok or 'end of input'}")
        if values == [""]:
            raise self.error("value set cannot be empty")
        return tuple(values)


def parse_selector(expr: str) -> tuple[Requirement, ...]:
    """
    Parse a label selector expression into requirements.

    Supports "k", "!k", "k=v", "k==v", "k!=v", "k in (a,b)", "k notin (a,b)",
    "k>1" and "k<1", joined by commas. An empty expression has no
    requirements.

    Raises:
        SelectorError: the expression is malformed or a key/value is invalid.
    """
    return _Parser(expr).parse()


def existence_filter(requirements: Sequence[Requirement]) -> Selector:
    """Map every requirement to a (key, exists) requirement."""
    return Selector(tuple(Requirement(req.key, EXISTS) for req in requirements))


def build_filter(expr: str) -> Selector:
    """Parse a --filter expression into an annotation key-existence filter."""
    return existence_filter(parse_selector(expr))
