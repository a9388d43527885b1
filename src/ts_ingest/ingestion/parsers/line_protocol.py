"""
Line protocol tokenizer.

Parses text of the form

    measurement[,tag=value...] field=value[,field=value...] [timestamp]

one character at a time. The tokenizer is an explicit state machine:
each character is first checked against three orthogonal modifiers
(escape, quote, bracket) and only then dispatched through a transition
table keyed by (state, character class).

Values are kept as the literal text that appeared in the line; quotes
around string values are dropped, escaped characters are kept verbatim.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from ..base import Point, now_ns
from ..exceptions import ParseError

logger = logging.getLogger(__name__)


class TokenState(Enum):
    """Tokenizer state within a single line."""

    MEASUREMENT = "measurement"
    TAG_KEY = "tag_key"
    TAG_VALUE = "tag_value"
    FIELD_KEY = "field_key"
    FIELD_VALUE = "field_value"
    TIMESTAMP = "timestamp"


class CharClass(Enum):
    """Structural character classes seen by the transition table."""

    COMMA = ","
    EQUALS = "="
    SPACE = " "
    OPEN_BRACKET = "["
    CLOSE_BRACKET = "]"
    OTHER = ""


class Effect(Enum):
    """What a transition does with the current character."""

    APPEND = "append"  # Accumulate into the current buffer
    ADVANCE = "advance"  # Commit pending pair, move to next state
    IGNORE = "ignore"  # Drop the character
    REJECT = "reject"  # Parse error
    STOP = "stop"  # End tokenization of the line body
    OPEN_BRACKET = "open_bracket"
    CLOSE_BRACKET = "close_bracket"


@dataclass(frozen=True)
class Transition:
    effect: Effect
    next_state: Optional[TokenState] = None


_APPEND = Transition(Effect.APPEND)
_IGNORE = Transition(Effect.IGNORE)
_REJECT = Transition(Effect.REJECT)

_S = TokenState
_C = CharClass

# Transitions not listed here append the character to the current buffer.
TRANSITIONS: dict[tuple[TokenState, CharClass], Transition] = {
    (_S.MEASUREMENT, _C.COMMA): Transition(Effect.ADVANCE, _S.TAG_KEY),
    (_S.MEASUREMENT, _C.SPACE): Transition(Effect.ADVANCE, _S.FIELD_KEY),
    (_S.MEASUREMENT, _C.OPEN_BRACKET): _REJECT,
    (_S.MEASUREMENT, _C.CLOSE_BRACKET): _REJECT,
    (_S.TAG_KEY, _C.COMMA): _IGNORE,
    (_S.TAG_KEY, _C.EQUALS): Transition(Effect.ADVANCE, _S.TAG_VALUE),
    (_S.TAG_KEY, _C.SPACE): Transition(Effect.ADVANCE, _S.FIELD_KEY),
    (_S.TAG_KEY, _C.OPEN_BRACKET): _REJECT,
    (_S.TAG_KEY, _C.CLOSE_BRACKET): _REJECT,
    (_S.TAG_VALUE, _C.COMMA): Transition(Effect.ADVANCE, _S.TAG_KEY),
    (_S.TAG_VALUE, _C.SPACE): Transition(Effect.ADVANCE, _S.FIELD_KEY),
    (_S.TAG_VALUE, _C.OPEN_BRACKET): Transition(Effect.OPEN_BRACKET),
    (_S.TAG_VALUE, _C.CLOSE_BRACKET): Transition(Effect.CLOSE_BRACKET),
    (_S.FIELD_KEY, _C.COMMA): _IGNORE,
    (_S.FIELD_KEY, _C.EQUALS): Transition(Effect.ADVANCE, _S.FIELD_VALUE),
    (_S.FIELD_KEY, _C.SPACE): Transition(Effect.ADVANCE, _S.TIMESTAMP),
    (_S.FIELD_KEY, _C.OPEN_BRACKET): _REJECT,
    (_S.FIELD_KEY, _C.CLOSE_BRACKET): _REJECT,
    (_S.FIELD_VALUE, _C.COMMA): Transition(Effect.ADVANCE, _S.FIELD_KEY),
    (_S.FIELD_VALUE, _C.SPACE): Transition(Effect.ADVANCE, _S.TIMESTAMP),
    (_S.FIELD_VALUE, _C.OPEN_BRACKET): _REJECT,
    (_S.FIELD_VALUE, _C.CLOSE_BRACKET): _REJECT,
    (_S.TIMESTAMP, _C.COMMA): _IGNORE,
    (_S.TIMESTAMP, _C.SPACE): Transition(Effect.STOP),
    (_S.TIMESTAMP, _C.OPEN_BRACKET): _REJECT,
    (_S.TIMESTAMP, _C.CLOSE_BRACKET): _REJECT,
}

# Structural characters that a quoted section turns into literals
_QUOTE_LITERALS = frozenset(
    [_C.COMMA, _C.SPACE, _C.OPEN_BRACKET, _C.CLOSE_BRACKET]
)

_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")

_CHAR_CLASSES = {c.value: c for c in CharClass if c is not CharClass.OTHER}


def classify(char: str) -> CharClass:
    """Return the structural class of a character."""
    return _CHAR_CLASSES.get(char, CharClass.OTHER)


def transition_for(state: TokenState, char_class: CharClass) -> Transition:
    """Look up the transition for a state and character class."""
    if char_class is CharClass.OTHER:
        return _APPEND
    return TRANSITIONS.get((state, char_class), _APPEND)


class _LineTokenizer:
    """Tokenizer state for exactly one line."""

    def __init__(self, line: str, time_multiplier: int = 1):
        self.line = line
        self.time_multiplier = time_multiplier
        self.state = TokenState.MEASUREMENT
        self.escape = False
        self.quote = False
        self.bracket = False
        self.measurement: list[str] = []
        self.key: list[str] = []
        self.value: list[str] = []
        self.timestamp: list[str] = []
        self.tags: dict[str, str] = {}
        self.fields: dict[str, str] = {}

    def run(self) -> Point:
        for char in self.line:
            if not self._step(char):
                break
        self._commit()
        return self._build()

    def _step(self, char: str) -> bool:
        """Consume one character. Returns False to stop tokenizing."""
        if self.escape:
            self.escape = False
            self._append(char)
            return True
        if char == "\\":
            self.escape = True
            return True
        if char == '"':
            self.quote = not self.quote
            return True

        char_class = classify(char)
        if self.quote and char_class in _QUOTE_LITERALS:
            self._append(char)
            return True
        if (
            self.bracket
            and char_class is CharClass.COMMA
            and self.state is TokenState.TAG_VALUE
        ):
            self._append(char)
            return True

        transition = transition_for(self.state, char_class)
        effect = transition.effect

        if effect is Effect.APPEND:
            self._append(char)
        elif effect is Effect.ADVANCE:
            if transition.next_state not in (
                TokenState.TAG_VALUE,
                TokenState.FIELD_VALUE,
            ):
                self._commit()
            self.state = transition.next_state
        elif effect is Effect.OPEN_BRACKET:
            self.bracket = True
            self._append(char)
        elif effect is Effect.CLOSE_BRACKET:
            self.bracket = False
            self._append(char)
        elif effect is Effect.REJECT:
            raise ParseError(
                f"invalid tag value token: '{char}'", line_content=self.line
            )
        elif effect is Effect.STOP:
            return False
        return True

    def _append(self, char: str) -> None:
        if self.state is TokenState.MEASUREMENT:
            self.measurement.append(char)
        elif self.state in (TokenState.TAG_KEY, TokenState.FIELD_KEY):
            self.key.append(char)
        elif self.state in (TokenState.TAG_VALUE, TokenState.FIELD_VALUE):
            self.value.append(char)
        else:
            self.timestamp.append(char)

    def _commit(self) -> None:
        """Store the pending key/value pair, if any."""
        if not self.key:
            self.value = []
            return
        key = "".join(self.key)
        value = "".join(self.value)
        if self.state in (TokenState.TAG_KEY, TokenState.TAG_VALUE):
            self.tags[key] = value
        elif self.state in (TokenState.FIELD_KEY, TokenState.FIELD_VALUE):
            self.fields[key] = value
        self.key = []
        self.value = []

    def _build(self) -> Point:
        text = "".join(self.timestamp)
        if text:
            if not _INTEGER_PATTERN.match(text):
                raise ParseError(
                    f"invalid timestamp: {text!r}", line_content=self.line
                )
            timestamp = int(text) * self.time_multiplier
        else:
            timestamp = now_ns()

        if not self.fields:
            raise ParseError("no fields input", line_content=self.line)
        return Point(
            measurement="".join(self.measurement),
            tags=self.tags,
            fields=self.fields,
            timestamp=timestamp,
        )


def parse_line(line: str, time_multiplier: int = 1) -> Optional[Point]:
    """
    Parse a single line of line protocol.

    Args:
        line: One line, without the trailing newline
        time_multiplier: Scale applied to an explicit timestamp

    Returns:
        The parsed Point, or None for comment lines

    Raises:
        ParseError: If the line is malformed
    """
    line = line.strip()
    if not line or line[0] == "#":
        return None
    return _LineTokenizer(line, time_multiplier).run()


class LineProtocolParser:
    """
    Parser for a block of line protocol text.

    Usage:
        parser = LineProtocolParser("cpu,host=a usage=0.5 1700000000000000000")
        points = parser.parse()

    Every call to parse() or iter_points() rescans the whole text, so a
    parser can be reused.
    """

    def __init__(self, raw: str):
        self.raw = raw

    def iter_points(self, time_multiplier: int = 1) -> Iterator[Point]:
        """
        Lazily parse the text, one Point per data line.

        Blank lines and lines starting with '#' are skipped.

        Raises:
            ParseError: On the first malformed line
        """
        for line_number, line in enumerate(self.raw.splitlines(), start=1):
            try:
                point = parse_line(line, time_multiplier)
            except ParseError as e:
                raise ParseError(
                    e.message, line_number=line_number, line_content=line.strip()
                ) from e
            if point is not None:
                yield point

    def parse(self, time_multiplier: int = 1) -> list[Point]:
        """
        Parse the whole text.

        Returns:
            All parsed points; no partial list is returned on error

        Raises:
            ParseError: On the first malformed line
        """
        points = list(self.iter_points(time_multiplier))
        logger.debug(f"Parsed {len(points)} points from line protocol text")
        return points
