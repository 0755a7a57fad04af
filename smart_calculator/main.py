# main.py

"""
Smart Calculator
----------------
An interactive arbitrary-precision integer calculator with variables. Every input line is either an
assignment (`name = value`), a slash command (`/help`, `/exit`) or an arithmetic expression over
integers, parentheses and `+ - * /`.

Expressions go through a fixed pipeline:

    raw line -> tokenize() -> infix_to_postfix() -> evaluate_postfix() -> int

The converter is a shunting-yard over two precedence levels (`+ -` below `* /`), all left-associative.
Python ints give unbounded precision, and division truncates toward zero.

Modules, Classes, and Functions Implemented
-------------------------------------------
- Error classes: CalculatorError, InvalidExpressionError, UnknownVariableError, InvalidIdentifierError,
  CalculationError
- Settings: CalculatorSettings
- Tokenizer: simplify_operators, tokenize
- Converter: is_balanced, infix_to_postfix
- Evaluator: evaluate_postfix
- Variables: VariableStore, assign
- Dispatcher: Calculator
- REPL: REPL
- Main entry point: main()
"""

from __future__ import annotations

import logging
import operator
import re
import sys
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

# Results and literals may run past the default 4300-digit int <-> str limit (Python 3.11+).
if hasattr(sys, "set_int_max_str_digits"):
    sys.set_int_max_str_digits(0)


# ---------------------------
# Error Classes
# ---------------------------

class CalculatorError(Exception):
    """Base class for calculator errors; the default message is what the user sees."""
    message = "Calculator error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class InvalidExpressionError(CalculatorError):
    """Malformed parentheses, `**` or `//`, or a postfix reduction that cannot complete."""
    message = "Invalid expression"


class UnknownVariableError(CalculatorError):
    """Reference to an unset variable, or an evaluation that leaves the wrong number of values."""
    message = "Unknown variable"


class InvalidIdentifierError(CalculatorError):
    """Assignment target or source that is neither a letters-only name nor an integer."""
    message = "Invalid identifier"


class CalculationError(CalculatorError):
    """Arithmetic failure, e.g. division by zero."""
    message = "Calculation error"


# ---------------------------
# Settings
# ---------------------------

_LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')


class CalculatorSettings(BaseModel):
    """Presentation and logging settings for a calculator session."""
    prompt: str = "> "
    farewell: str = "Bye!"
    help_text: str = (
        "The program evaluates integer expressions with + - * / and parentheses; "
        "assign variables with name = value and use them by name"
    )
    unknown_command: str = "Unknown command."
    log_level: str = "WARNING"

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level


# ---------------------------
# Tokenizer
# ---------------------------

_OPERATORS = frozenset('+-*/')
_SPLIT_PATTERN = re.compile(r'(?<=[-+*/()])|(?=[-+*/()])')
_SIGN_RULES = (('++', '+'), ('--', '+'), ('+-', '-'), ('-+', '-'))
_NUMBER_PATTERN = re.compile(r'-?[0-9]+')
_IDENTIFIER_PATTERN = re.compile(r'[a-zA-Z]+')
_OPERAND_PATTERN = re.compile(r'-?[0-9]+(\.[0-9]+)?')


def is_number(text: str) -> bool:
    return _NUMBER_PATTERN.fullmatch(text) is not None


def is_identifier(text: str) -> bool:
    return _IDENTIFIER_PATTERN.fullmatch(text) is not None


def simplify_operators(expression: str) -> str:
    """
    Collapses runs of `+`/`-` until nothing changes: `++` and `--` become `+`, `+-` and `-+` become `-`.
    Raises InvalidExpressionError for `**` and `//`.
    """
    if '**' in expression or '//' in expression:
        raise InvalidExpressionError()
    previous = None
    while expression != previous:
        previous = expression
        for pattern, replacement in _SIGN_RULES:
            expression = expression.replace(pattern, replacement)
    return expression


def _fold_unary_signs(tokens: List[str]) -> List[str]:
    # A sign at the start, after an operator or after '(' belongs to the operand that follows it.
    folded: List[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        prefix_position = not folded or folded[-1] in _OPERATORS or folded[-1] == '('
        if (token in ('+', '-') and prefix_position and i + 1 < len(tokens)
                and (_OPERAND_PATTERN.fullmatch(tokens[i + 1]) or is_identifier(tokens[i + 1]))):
            operand = tokens[i + 1]
            folded.append(operand if token == '+' else '-' + operand)
            i += 2
            continue
        folded.append(token)
        i += 1
    return folded


def tokenize(line: str) -> List[str]:
    """
    Splits a line into trimmed, non-empty tokens around `- + * / ( )`.
    Digits and letters between operators stay together, so `12 ab` is a single token.
    """
    pieces = _SPLIT_PATTERN.split(simplify_operators(line).strip())
    return _fold_unary_signs([piece.strip() for piece in pieces if piece.strip()])


# ---------------------------
# Infix -> Postfix
# ---------------------------

_PRECEDENCE = {'+': 1, '-': 1, '*': 2, '/': 2}


def is_balanced(expression: str) -> bool:
    stack: List[str] = []
    for ch in expression:
        if ch == '(':
            stack.append(ch)
        elif ch == ')':
            if not stack or stack.pop() != '(':
                return False
    return not stack


def _resolve_variable(token: str, variables: Mapping[str, int]) -> Optional[int]:
    negate = token.startswith('-')
    name = token[1:] if negate else token
    if name not in variables:
        return None
    value = variables[name]
    return -value if negate else value


def infix_to_postfix(infix: str, variables: Mapping[str, int]) -> str:
    """
    Converts an infix expression to a space-separated postfix string with the shunting-yard algorithm.

    Variables are replaced by their values. Identifiers that are not set are left out of the output,
    so the evaluator reports them as a malformed expression or an unknown variable.
    Raises InvalidExpressionError if the parentheses in `infix` do not balance.
    """
    if not is_balanced(infix):
        raise InvalidExpressionError()

    stack: List[str] = []
    output: List[str] = []
    tokens = tokenize(infix)
    logger.debug("Tokens: %s", tokens)

    for token in tokens:
        if token[0].isdigit() or _OPERAND_PATTERN.fullmatch(token):
            output.append(token)
        elif token == '(':
            stack.append(token)
        elif token == ')':
            while stack and stack[-1] != '(':
                output.append(stack.pop())
            if stack:
                stack.pop()
        elif token in _PRECEDENCE:
            while stack and stack[-1] != '(' and (
                _PRECEDENCE[stack[-1]] >= _PRECEDENCE[token]
                # no-op next to >=, kept so chained subtraction stays left to right
                or (stack[-1] == '-' and token == '-')
            ):
                output.append(stack.pop())
            stack.append(token)
        else:
            value = _resolve_variable(token, variables)
            if value is None:
                logger.debug("Dropping unresolved token %r", token)
            else:
                output.append(str(value))

    while stack:
        output.append(stack.pop())

    postfix = ' '.join(output)
    logger.debug("Postfix: %s", postfix)
    return postfix


# ---------------------------
# Postfix Evaluator
# ---------------------------

def _divide_toward_zero(left: int, right: int) -> int:
    if right == 0:
        raise CalculationError("Division by zero")
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


_BINARY_OPS: Dict[str, Callable[[int, int], int]] = {
    '+': operator.add,
    '-': operator.sub,
    '*': operator.mul,
    '/': _divide_toward_zero,
}


def evaluate_postfix(postfix: str) -> int:
    """
    Evaluates a space-separated postfix expression.

    Operands with a fractional part keep only their integer digits ("3.5" -> 3).
    Raises InvalidExpressionError when an operator lacks two operands or is not one of `+ - * /`,
    UnknownVariableError when the expression does not reduce to exactly one value,
    and CalculationError on division by zero.
    """
    stack: List[int] = []
    for token in postfix.split(' '):
        if not token:
            continue
        if _OPERAND_PATTERN.fullmatch(token):
            stack.append(int(token.split('.')[0]))
            continue
        if len(stack) < 2:
            raise InvalidExpressionError()
        right = stack.pop()
        left = stack.pop()
        func = _BINARY_OPS.get(token)
        if func is None:
            raise InvalidExpressionError()
        stack.append(func(left, right))

    if len(stack) != 1:
        raise UnknownVariableError()
    return stack[0]


# ---------------------------
# Variables
# ---------------------------

class VariableStore:
    """Name -> integer mapping. Assignment adds or overwrites entries; nothing removes them."""

    def __init__(self):
        self._values: Dict[str, int] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> int:
        return self._values[name]

    def __len__(self) -> int:
        return len(self._values)

    def set(self, name: str, value: int) -> None:
        self._values[name] = value


def assign(statement: str, variables: VariableStore) -> Tuple[str, int]:
    """
    Handles `name = value`, where value is an integer literal or the name of a set variable.
    Only the first `=` splits the statement. The store is untouched if anything is invalid.
    """
    name, _, source = statement.partition('=')
    name = name.strip()
    source = source.strip()
    if not is_identifier(name):
        raise InvalidIdentifierError()
    if not is_number(source) and not is_identifier(source):
        raise InvalidIdentifierError()

    if is_number(source):
        value = int(source)
    elif source in variables:
        value = variables[source]
    else:
        raise UnknownVariableError()

    variables.set(name, value)
    logger.info("Assigned %s = %d", name, value)
    return name, value


# ---------------------------
# Dispatcher
# ---------------------------

class Calculator:
    """Routes a statement to assignment or expression evaluation against one variable store."""

    def __init__(self, variables: Optional[VariableStore] = None):
        self.variables = variables if variables is not None else VariableStore()

    def evaluate(self, expression: str) -> int:
        return evaluate_postfix(infix_to_postfix(expression, self.variables))

    def execute(self, line: str) -> Optional[int]:
        """Returns the value of an expression, or None for an assignment."""
        if '=' in line:
            assign(line, self.variables)
            return None
        return self.evaluate(line)


# ---------------------------
# REPL
# ---------------------------

class REPL:
    """Read-Eval-Print Loop around a Calculator."""

    def __init__(self, settings: Optional[CalculatorSettings] = None,
                 calculator: Optional[Calculator] = None, session=None):
        self.settings = settings or CalculatorSettings()
        self.calculator = calculator or Calculator()
        self.session = session

    def _read_line(self) -> str:
        if self.session is None:
            self.session = PromptSession(history=InMemoryHistory())
        return self.session.prompt(self.settings.prompt)

    def process_command(self, line: str) -> str:
        """Handles a `/` command. Raises EOFError for /exit so the loop can shut down."""
        if line == '/exit':
            raise EOFError()
        if line == '/help':
            return self.settings.help_text
        return self.settings.unknown_command

    def evaluate_line(self, line: str) -> Tuple[bool, Optional[str]]:
        """Evaluate a single stripped line. Returns (ok, output); output is None when nothing is printed."""
        if line.startswith('/'):
            return True, self.process_command(line)
        try:
            result = self.calculator.execute(line)
            output = None if result is None else str(result)
        except CalculatorError as e:
            logger.debug("Rejected %r: %s", line, e)
            return False, str(e)
        except Exception as e:
            logger.exception("Unexpected error while evaluating %r", line)
            return False, f"Unhandled error: {e}"
        return True, output

    def run(self) -> None:
        logger.info("Calculator session started")
        while True:
            try:
                line = self._read_line()
            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                break
            line = line.strip()
            if not line:
                continue
            try:
                _, out = self.evaluate_line(line)
            except EOFError:
                break
            if out is not None:
                print(out)
        print(self.settings.farewell)
        logger.info("Calculator session ended")


# ---------------------------
# Main Entry Point
# ---------------------------

def main(settings: Optional[CalculatorSettings] = None, session=None) -> int:
    settings = settings or CalculatorSettings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    REPL(settings=settings, session=session).run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
