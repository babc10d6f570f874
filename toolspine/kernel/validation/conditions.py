"""Restricted condition language for cross-field rules.

Conditions are boolean expressions over the validated ``input`` and
``config`` namespaces::

    input.advanced == true and not config.sandbox
    input.count >= 10 or input.mode != "fast"

Grammar::

    expression  := or_expr
    or_expr     := and_expr (("or" | "||") and_expr)*
    and_expr    := not_expr (("and" | "&&") not_expr)*
    not_expr    := ("not" | "!") not_expr | comparison
    comparison  := operand (("==" | "!=" | "<" | "<=" | ">" | ">=") operand)?
    operand     := literal | reference | "(" expression ")"
    reference   := ("input" | "config") ("." identifier)+
    literal     := number | string | true | false | null

Expressions are tokenized and parsed into a small tree and evaluated by
walking it; nothing is ever executed as Python code. Anything outside the
grammar is rejected with ConditionSyntaxError when the rule is declared.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping

from toolspine.kernel.validation.errors import SchemaDefinitionError

NAMESPACES = ("input", "config")

_MISSING = object()


class ConditionSyntaxError(SchemaDefinitionError):
    """Raised when a condition does not conform to the grammar."""


class ConditionEvaluationError(Exception):
    """Raised when a well-formed condition cannot be evaluated on the data."""


# ===== TOKENIZER =====

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<number>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<op>===|!==|==|!=|<=|>=|&&|\|\||<|>|!|\(|\))
    |(?P<name>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)
    """,
    re.VERBOSE,
)

_KEYWORDS = {
    "and": "and",
    "or": "or",
    "not": "not",
    "&&": "and",
    "||": "or",
    "!": "not",
}

_LITERALS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
}

_COMPARISONS = {"==", "!=", "<", "<=", ">", ">="}


@dataclass(frozen=True)
class Token:
    kind: str  # number | string | op | name | keyword | end
    text: str
    position: int


def tokenize(text: str) -> list[Token]:
    """Split a condition into tokens.

    Raises:
        ConditionSyntaxError: On any character sequence outside the grammar
    """
    tokens: list[Token] = []
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None:
            raise ConditionSyntaxError(
                f"Unexpected character {text[position]!r} at position {position} in condition {text!r}"
            )
        kind = match.lastgroup or ""
        lexeme = match.group()
        if kind != "ws":
            if lexeme in _KEYWORDS:
                tokens.append(Token("keyword", _KEYWORDS[lexeme], position))
            elif lexeme in ("===", "!=="):
                # JavaScript-style strict operators mean the same thing here
                tokens.append(Token("op", lexeme[:2], position))
            else:
                tokens.append(Token(kind, lexeme, position))
        position = match.end()
    tokens.append(Token("end", "", len(text)))
    return tokens


# ===== SYNTAX TREE =====


class Node(ABC):
    """A node of a parsed condition."""

    @abstractmethod
    def evaluate(self, namespace: Mapping[str, Any]) -> Any:
        """Evaluate against ``{"input": ..., "config": ...}``."""

    @abstractmethod
    def references(self) -> list[str]:
        """Dotted field references used by this node."""


@dataclass(frozen=True)
class Literal(Node):
    value: Any

    def evaluate(self, namespace: Mapping[str, Any]) -> Any:
        return self.value

    def references(self) -> list[str]:
        return []


@dataclass(frozen=True)
class Reference(Node):
    path: tuple[str, ...]

    def evaluate(self, namespace: Mapping[str, Any]) -> Any:
        value = resolve_path(namespace, self.path)
        return None if value is _MISSING else value

    def references(self) -> list[str]:
        return [".".join(self.path)]


@dataclass(frozen=True)
class Not(Node):
    operand: Node

    def evaluate(self, namespace: Mapping[str, Any]) -> Any:
        return not truthy(self.operand.evaluate(namespace))

    def references(self) -> list[str]:
        return self.operand.references()


@dataclass(frozen=True)
class Logic(Node):
    operator: str  # "and" | "or"
    operands: tuple[Node, ...]

    def evaluate(self, namespace: Mapping[str, Any]) -> Any:
        if self.operator == "and":
            return all(truthy(operand.evaluate(namespace)) for operand in self.operands)
        return any(truthy(operand.evaluate(namespace)) for operand in self.operands)

    def references(self) -> list[str]:
        return [ref for operand in self.operands for ref in operand.references()]


@dataclass(frozen=True)
class Comparison(Node):
    operator: str
    left: Node
    right: Node

    def evaluate(self, namespace: Mapping[str, Any]) -> Any:
        left = self.left.evaluate(namespace)
        right = self.right.evaluate(namespace)
        if self.operator == "==":
            return _equal(left, right)
        if self.operator == "!=":
            return not _equal(left, right)
        if not _orderable(left, right):
            raise ConditionEvaluationError(
                f"Cannot compare {type(left).__name__} and {type(right).__name__} with '{self.operator}'"
            )
        if self.operator == "<":
            return left < right
        if self.operator == "<=":
            return left <= right
        if self.operator == ">":
            return left > right
        return left >= right

    def references(self) -> list[str]:
        return self.left.references() + self.right.references()


def truthy(value: Any) -> bool:
    return bool(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equal(left: Any, right: Any) -> bool:
    # True must not equal 1 the way it does in Python
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _orderable(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return True
    return isinstance(left, str) and isinstance(right, str)


def resolve_path(namespace: Mapping[str, Any], path: tuple[str, ...] | list[str]) -> Any:
    """Follow ``path`` through nested mappings; return ``_MISSING`` if absent."""
    current: Any = namespace
    for key in path:
        if isinstance(current, Mapping) and key in current:
            current = current[key]
        else:
            return _MISSING
    return current


def is_present(namespace: Mapping[str, Any], dotted: str) -> bool:
    """True when ``dotted`` resolves to a value other than ``None``."""
    value = resolve_path(namespace, tuple(dotted.split(".")))
    return value is not _MISSING and value is not None


# ===== PARSER =====


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _error(self, message: str) -> ConditionSyntaxError:
        return ConditionSyntaxError(
            f"{message} at position {self.current.position} in condition {self.text!r}"
        )

    def parse(self) -> Node:
        if self.current.kind == "end":
            raise self._error("Empty condition")
        node = self._or()
        if self.current.kind != "end":
            raise self._error(f"Unexpected token {self.current.text!r}")
        return node

    def _or(self) -> Node:
        operands = [self._and()]
        while self.current.kind == "keyword" and self.current.text == "or":
            self._advance()
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else Logic("or", tuple(operands))

    def _and(self) -> Node:
        operands = [self._not()]
        while self.current.kind == "keyword" and self.current.text == "and":
            self._advance()
            operands.append(self._not())
        return operands[0] if len(operands) == 1 else Logic("and", tuple(operands))

    def _not(self) -> Node:
        if self.current.kind == "keyword" and self.current.text == "not":
            self._advance()
            return Not(self._not())
        return self._comparison()

    def _comparison(self) -> Node:
        left = self._operand()
        if self.current.kind == "op" and self.current.text in _COMPARISONS:
            operator = self._advance().text
            right = self._operand()
            if self.current.kind == "op" and self.current.text in _COMPARISONS:
                raise self._error("Chained comparisons are not supported")
            return Comparison(operator, left, right)
        return left

    def _operand(self) -> Node:
        token = self.current
        if token.kind == "number":
            self._advance()
            if re.fullmatch(r"-?\d+", token.text):
                return Literal(int(token.text))
            return Literal(float(token.text))
        if token.kind == "string":
            self._advance()
            return Literal(_unquote(token.text))
        if token.kind == "name":
            self._advance()
            if token.text in _LITERALS:
                return Literal(_LITERALS[token.text])
            parts = tuple(token.text.split("."))
            if parts[0] not in NAMESPACES or len(parts) < 2:
                raise ConditionSyntaxError(
                    f"Unknown reference {token.text!r} in condition {self.text!r}; "
                    f"references must start with 'input.' or 'config.'"
                )
            return Reference(parts)
        if token.kind == "op" and token.text == "(":
            self._advance()
            node = self._or()
            if not (self.current.kind == "op" and self.current.text == ")"):
                raise self._error("Expected ')'")
            self._advance()
            return node
        if token.kind == "end":
            raise self._error("Unexpected end of condition")
        raise self._error(f"Unexpected token {token.text!r}")


def _unquote(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


@lru_cache(maxsize=1024)
def parse_condition(text: str) -> Node:
    """Parse a condition into an evaluable tree.

    Args:
        text: Condition source

    Returns:
        Root node of the parsed condition

    Raises:
        ConditionSyntaxError: If the condition is not in the grammar
    """
    return _Parser(text).parse()


def evaluate_condition(text: str, namespace: Mapping[str, Any]) -> bool:
    """Parse (cached) and evaluate a condition to a boolean.

    Raises:
        ConditionSyntaxError: If the condition is not in the grammar
        ConditionEvaluationError: If the data makes the condition meaningless
    """
    return truthy(parse_condition(text).evaluate(namespace))
