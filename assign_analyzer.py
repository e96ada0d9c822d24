"""Analyzer for Modula-2 style assignment statements: lexer, parser, role classification, and CLI."""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


MAX_IDENTIFIER_LENGTH = 8
CONSTANT_MIN = 1
CONSTANT_MAX = 32767
# Digit runs that do not fit a signed 32-bit integer cannot be converted at all.
INT32_MAX = 2**31 - 1

ACCEPTED_MESSAGE = "The line belongs to the language."
EMPTY_INPUT_MESSAGE = "Enter something to analyze (o_O)"


# ---------------------------------------------------------------------------
# Diagnostic infrastructure


class ErrorKind(Enum):
	LEXICAL = "Lexical"
	SYNTAX = "Syntax"
	SEMANTIC = "Semantic"


class AnalysisError(Exception):
	"""First (and only) error found in a line. Once `line` is attached, ``str()`` is the cursor report."""

	def __init__(self, kind: ErrorKind, offset: int, message: str) -> None:
		super().__init__(message)
		self.kind = kind
		self.offset = offset
		self.message = message
		self.line: Optional[str] = None

	def render(self, line: Optional[str] = None) -> str:
		source = line if line is not None else (self.line or "")
		return format_error_with_cursor(source, self.offset, f"{self.kind.value} error: {self.message}")

	def __str__(self) -> str:
		if self.line is None:
			return self.message
		return self.render()


def format_error_with_cursor(line: str, offset: int, message: str) -> str:
	cursor = min(offset, len(line))
	return f"{line}\n{' ' * cursor}^\n{message}"


# ---------------------------------------------------------------------------
# Lexer


class TokenKind(Enum):
	IDENT = auto()
	NUMBER = auto()
	LBRACKET = auto()
	RBRACKET = auto()
	COMMA = auto()
	ASSIGN = auto()
	OPERATOR = auto()
	SEMI = auto()
	EOF = auto()


SYMBOLS: Dict[str, TokenKind] = {
	"[": TokenKind.LBRACKET,
	"]": TokenKind.RBRACKET,
	",": TokenKind.COMMA,
	";": TokenKind.SEMI,
}

OPERATORS = frozenset("+-*/><=#")

WHITESPACE = frozenset(" \t\n\r\v\f")


@dataclass(frozen=True)
class Token:
	kind: TokenKind
	lexeme: str
	offset: int
	value: Optional[Any] = None


def _is_letter(ch: str) -> bool:
	return ch.isascii() and ch.isalpha()


def _is_digit(ch: str) -> bool:
	return ch.isascii() and ch.isdigit()


class Lexer:
	def __init__(self, source: str) -> None:
		self.source = source
		self.length = len(source)
		self.index = 0

	def tokenize(self) -> List[Token]:
		tokens: List[Token] = []
		while True:
			token = self.next_token()
			if token.kind == TokenKind.EOF:
				break
			tokens.append(token)
		logger.debug("tokens: %s", [(t.offset, t.kind.name, t.value) for t in tokens])
		return tokens

	def next_token(self) -> Token:
		self._skip_spaces()
		start = self.index
		if self._is_eof():
			return Token(TokenKind.EOF, "", start)
		ch = self._peek()
		if _is_letter(ch):
			return self._consume_identifier()
		if _is_digit(ch):
			return self._consume_number()
		self._advance()
		if ch in SYMBOLS:
			return Token(SYMBOLS[ch], ch, start)
		if ch in OPERATORS:
			return Token(TokenKind.OPERATOR, ch, start, ch)
		if ch == ":":
			if not self._is_eof() and self._peek() == "=":
				self._advance()
				return Token(TokenKind.ASSIGN, ":=", start)
			raise AnalysisError(ErrorKind.SYNTAX, start, "expected '=' after ':'")
		raise AnalysisError(ErrorKind.SYNTAX, start, f"invalid character: '{ch}'")

	def _consume_identifier(self) -> Token:
		start = self.index
		lexeme = self._consume_while(lambda c: _is_letter(c) or _is_digit(c))
		name = lexeme.upper()
		if len(name) > MAX_IDENTIFIER_LENGTH:
			raise AnalysisError(ErrorKind.SEMANTIC, start, f"identifier too long: {name}")
		return Token(TokenKind.IDENT, lexeme, start, name)

	def _consume_number(self) -> Token:
		start = self.index
		lexeme = self._consume_while(_is_digit)
		# `12X` reads as an identifier that starts with a digit, whatever the number itself.
		if not self._is_eof() and _is_letter(self._peek()):
			raise AnalysisError(ErrorKind.SYNTAX, start, "identifier cannot start with a digit")
		try:
			value: Optional[int] = int(lexeme)
		except ValueError:
			value = None
		if value is None or value > INT32_MAX:
			raise AnalysisError(ErrorKind.LEXICAL, start, f"cannot convert to a number: {lexeme}")
		if not CONSTANT_MIN <= value <= CONSTANT_MAX:
			raise AnalysisError(ErrorKind.SEMANTIC, start, f"constant out of range [{CONSTANT_MIN}..{CONSTANT_MAX}]: {value}")
		return Token(TokenKind.NUMBER, lexeme, start, value)

	def _skip_spaces(self) -> None:
		while not self._is_eof() and self._peek() in WHITESPACE:
			self._advance()

	def _consume_while(self, predicate) -> str:
		start_index = self.index
		while not self._is_eof() and predicate(self._peek()):
			self._advance()
		return self.source[start_index:self.index]

	def _advance(self) -> str:
		ch = self.source[self.index]
		self.index += 1
		return ch

	def _peek(self) -> str:
		return self.source[self.index]

	def _is_eof(self) -> bool:
		return self.index >= self.length


def tokenize(line: str) -> List[Token]:
	return Lexer(line).tokenize()


# ---------------------------------------------------------------------------
# Role sets


@dataclass
class RoleSets:
	array_identifiers: Set[str] = field(default_factory=set)
	index_identifiers: Set[str] = field(default_factory=set)
	expression_identifiers: Set[str] = field(default_factory=set)
	index_constants: Set[int] = field(default_factory=set)
	expression_constants: Set[int] = field(default_factory=set)

	def is_empty(self) -> bool:
		return not (
			self.array_identifiers
			or self.index_identifiers
			or self.expression_identifiers
			or self.index_constants
			or self.expression_constants
		)

	def as_dict(self) -> Dict[str, List[Any]]:
		return {
			"array_identifiers": sorted(self.array_identifiers),
			"index_identifiers": sorted(self.index_identifiers),
			"expression_identifiers": sorted(self.expression_identifiers),
			"index_constants": sorted(self.index_constants),
			"expression_constants": sorted(self.expression_constants),
		}


# ---------------------------------------------------------------------------
# Parser
#
#   statement  := target ':=' expression ';'
#   target     := identifier ( '[' index_list ']' )?
#   index_list := index ( ',' index )*
#   index      := identifier | constant
#   expression := term ( operator term )*
#   term       := identifier | constant


class Parser:
	def __init__(self, tokens: List[Token], source: str) -> None:
		self.tokens = tokens
		self.source = source
		self.index = 0
		self.current_offset = 0
		self.roles = RoleSets()
		self.left_array_name: Optional[str] = None

	def parse(self) -> RoleSets:
		self._parse_target()
		self._expect(TokenKind.ASSIGN, "expected ':='", "expected ':=', but reached the end of input")
		self._parse_expression()
		self._expect(TokenKind.SEMI, "expected ';' or an operator", "expected ';', but reached the end of input")
		if self._advance_token() is not None:
			raise self._syntax_error("nothing is expected after ';'")
		return self.roles

	def _parse_target(self) -> None:
		name = self._parse_identifier()
		if self._check(TokenKind.LBRACKET):
			self._advance_token()
			self.roles.array_identifiers.add(name)
			self.left_array_name = name
			self._parse_index_list()
			self._expect(TokenKind.RBRACKET, "expected ']'", "expected ']', but reached the end of input")
		else:
			self.left_array_name = None
			self.roles.expression_identifiers.add(name)

	def _parse_index_list(self) -> None:
		self._parse_index()
		while self._check(TokenKind.COMMA):
			self._advance_token()
			self._parse_index()

	def _parse_index(self) -> None:
		token = self._peek()
		if token is None:
			raise self._syntax_error("expected an index, but reached the end of input")
		if token.kind == TokenKind.IDENT:
			self.roles.index_identifiers.add(self._parse_identifier())
		elif token.kind == TokenKind.NUMBER:
			self.roles.index_constants.add(self._parse_constant())
		else:
			self._advance_token()
			raise self._syntax_error("expected an identifier or constant in the index")

	def _parse_expression(self) -> None:
		self._parse_term()
		while self._check(TokenKind.OPERATOR):
			self._advance_token()
			self._parse_term()

	def _parse_term(self) -> None:
		token = self._peek()
		if token is not None and token.kind == TokenKind.IDENT:
			name = self._parse_identifier()
			if self.left_array_name is not None and name == self.left_array_name:
				raise AnalysisError(ErrorKind.SEMANTIC, self.current_offset, "array cannot appear on the right-hand side")
			self.roles.expression_identifiers.add(name)
		elif token is not None and token.kind == TokenKind.NUMBER:
			self.roles.expression_constants.add(self._parse_constant())
		else:
			self._advance_token()
			raise self._syntax_error("expected an identifier or constant in the right-hand side")

	def _parse_identifier(self) -> str:
		token = self._advance_token()
		if token is None or token.kind != TokenKind.IDENT:
			raise self._syntax_error("expected an identifier")
		return token.value

	def _parse_constant(self) -> int:
		token = self._advance_token()
		if token is None or token.kind != TokenKind.NUMBER:
			raise self._syntax_error("expected a constant")
		return token.value

	# Utility parsing helpers -------------------------------------------------

	def _expect(self, kind: TokenKind, message: str, end_message: str) -> Token:
		token = self._advance_token()
		if token is None:
			raise self._syntax_error(end_message)
		if token.kind != kind:
			raise self._syntax_error(message)
		return token

	def _check(self, kind: TokenKind) -> bool:
		token = self._peek()
		return token is not None and token.kind == kind

	def _peek(self) -> Optional[Token]:
		if self.index < len(self.tokens):
			return self.tokens[self.index]
		return None

	def _advance_token(self) -> Optional[Token]:
		"""Consume one token; past the end the current offset moves to the last input character."""
		token = self._peek()
		if token is not None:
			self.index += 1
			self.current_offset = token.offset
		else:
			self.current_offset = max(len(self.source) - 1, 0)
		return token

	def _syntax_error(self, message: str) -> AnalysisError:
		return AnalysisError(ErrorKind.SYNTAX, self.current_offset, message)


# ---------------------------------------------------------------------------
# Reports


IDENTIFIER_ROLES: Tuple[Tuple[str, str], ...] = (
	("array_identifiers", "array"),
	("index_identifiers", "index"),
	("expression_identifiers", "expression"),
)

CONSTANT_ROLES: Tuple[Tuple[str, str], ...] = (
	("index_constants", "index"),
	("expression_constants", "expression"),
)


def _role_lines(roles: RoleSets, layout: Tuple[Tuple[str, str], ...]) -> str:
	lines: List[str] = []
	for attr, label in layout:
		for item in sorted(getattr(roles, attr)):
			lines.append(f"{item} - {label}\n")
	return "".join(lines)


def format_reports(roles: RoleSets) -> Tuple[Optional[str], Optional[str]]:
	"""Return (identifiers report, constants report), or (None, None) if nothing was classified."""
	if roles.is_empty():
		return None, None
	return _role_lines(roles, IDENTIFIER_ROLES), _role_lines(roles, CONSTANT_ROLES)


# ---------------------------------------------------------------------------
# Analysis pipeline


def analyze(line: str) -> Tuple[Optional[str], Optional[str]]:
	"""
	Analyze one assignment statement.

	Returns the identifiers and constants reports. Raises AnalysisError on the
	first lexical, syntax or semantic error; ``str(error)`` is the cursor report.
	"""
	try:
		tokens = tokenize(line)
		roles = Parser(tokens, line).parse()
	except AnalysisError as err:
		err.line = line
		raise
	return format_reports(roles)


@dataclass
class AnalysisArtifacts:
	line: str
	tokens: List[Token]
	roles: RoleSets
	identifiers: Optional[str]
	constants: Optional[str]
	error: Optional[AnalysisError]
	duration_ms: float

	@property
	def accepted(self) -> bool:
		return self.error is None

	@property
	def error_text(self) -> Optional[str]:
		return self.error.render(self.line) if self.error else None

	def verdict(self) -> str:
		if self.error is not None:
			return self.error.render(self.line)
		return f"{self.line}\n{ACCEPTED_MESSAGE}"

	def semantics(self) -> str:
		if self.error is not None:
			return self.error.render(self.line)
		return f"{self.identifiers or ''}\n{self.constants or ''}"


class AssignmentAnalyzerEngine:
	def analyze(self, line: str) -> AnalysisArtifacts:
		start = time.perf_counter()
		tokens: List[Token] = []
		roles = RoleSets()
		identifiers: Optional[str] = None
		constants: Optional[str] = None
		error: Optional[AnalysisError] = None
		try:
			tokens = tokenize(line)
			parser = Parser(tokens, line)
			roles = parser.parse()
			identifiers, constants = format_reports(roles)
		except AnalysisError as err:
			err.line = line
			error = err
			logger.debug("analysis failed at %d: %s", err.offset, err.message)
		duration_ms = (time.perf_counter() - start) * 1000
		return AnalysisArtifacts(
			line=line,
			tokens=tokens,
			roles=roles,
			identifiers=identifiers,
			constants=constants,
			error=error,
			duration_ms=duration_ms,
		)


# ---------------------------------------------------------------------------
# Command line


USAGE = "Usage: assign_analyzer.py [--verbose] <line> | [--verbose] --file <path>"


def _print_artifacts(artifacts: AnalysisArtifacts) -> None:
	print(artifacts.verdict())
	if artifacts.accepted:
		print()
		print("Identifiers:")
		print(artifacts.identifiers or "", end="")
		print("Constants:")
		print(artifacts.constants or "", end="")
	print(f"Tokens: {len(artifacts.tokens)} | Time: {artifacts.duration_ms:.2f} ms")


def main(argv: Optional[List[str]] = None) -> int:
	args = list(sys.argv[1:] if argv is None else argv)
	if args and args[0] == "--verbose":
		logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
		args = args[1:]
	if not args:
		print(USAGE)
		return 2
	if args[0] == "--file":
		if len(args) < 2:
			print(USAGE)
			return 2
		lines = [ln for ln in Path(args[1]).read_text(encoding="utf-8").splitlines() if ln.strip()]
	else:
		lines = [" ".join(args)]

	engine = AssignmentAnalyzerEngine()
	failed = False
	for index, line in enumerate(lines):
		if index:
			print()
		if not line:
			print(EMPTY_INPUT_MESSAGE)
			failed = True
			continue
		artifacts = engine.analyze(line)
		_print_artifacts(artifacts)
		failed = failed or not artifacts.accepted
	return 1 if failed else 0


if __name__ == "__main__":
	sys.exit(main())
