"""
Argosy token layer: classification, cursors and params-file expansion.

Overview
- Token: one raw token with its derived classification
  • end  → the token is exactly the end marker ("--")
  • flag → lookup key when the token starts with the flag prefix, else None
  • file → the token starts with the params-file marker ("@")
- Cursor: a position over a token list with has-more/peek/take operations.
  Iterating a cursor consumes it.
- BoundedCursor: a view over another cursor that reports no more input once
  the next unconsumed token satisfies a stop predicate (by default: starts
  with the flag prefix). Peeking never moves the underlying position.
- expand(tokens): splice @file tokens with the lines of the named file,
  exactly once and only over the input list.

Example
    >>> cursor = Cursor(["hop", "hop", "--mammal", "bunny"])
    >>> list(BoundedCursor(cursor))
    ['hop', 'hop']
    >>> cursor.peek()
    '--mammal'
"""
import logging
from pathlib import Path
from typing import NamedTuple

from .faults import MissingValueError, ParamsFileError

logger = logging.getLogger(__name__)

FLAG_PREFIX = "--"
END_MARKER = FLAG_PREFIX
PARAMS_MARKER = "@"


def isflag(token, /):
    """True when `token` starts with the flag prefix (the end marker included)."""
    return token.startswith(FLAG_PREFIX)


class Token(NamedTuple):
    """
    A raw token and its classification; classification never consumes input.
    """
    raw: str
    end: bool
    flag: str | None
    file: bool

    @classmethod
    def classify(cls, raw, /):
        if not isinstance(raw, str):
            raise TypeError("tokens must be strings")
        return cls(
            raw=raw,
            end=raw == END_MARKER,
            flag=raw.removeprefix(FLAG_PREFIX) if raw.startswith(FLAG_PREFIX) else None,
            file=raw.startswith(PARAMS_MARKER),
        )


class Cursor:
    """
    A consuming position over a list of tokens.

    Operations
    - more(): True while unconsumed tokens remain.
    - peek(): the next token without consuming it.
    - take(): consume and return the next token.
    - rest(): consume and return every remaining token.
    - iteration: yields (and consumes) tokens until more() is False.

    peek() and take() raise MissingValueError("expected argument") when
    nothing is available.
    """

    def __init__(self, tokens=(), /):
        self._tokens = list(tokens)
        self._index = 0

    @property
    def position(self):
        return self._index

    def more(self):
        return self._index < len(self._tokens)

    def peek(self):
        if not self.more():
            raise MissingValueError()
        return self._tokens[self._index]

    def take(self):
        token = self.peek()
        self._index += 1
        return token

    def rest(self):
        tokens = []
        while self.more():
            tokens.append(self.take())
        return tokens

    def __iter__(self):
        return self

    def __next__(self):
        if not self.more():
            raise StopIteration
        return self.take()

    def __repr__(self):
        return f"{type(self).__name__}(position={self._index}, remaining={self._tokens[self._index:]!r})"


class BoundedCursor(Cursor):
    """
    A cursor view that stops before the next token matching `done`.

    The bounded view shares its position with the underlying cursor: what a
    converter takes is consumed from the parse, what it only peeks is not.
    The stop rule is enforced no matter how the converter reads.
    """

    def __init__(self, cursor, /, done=isflag):
        if not isinstance(cursor, Cursor):
            raise TypeError("BoundedCursor() argument must be a cursor")
        if not callable(done):
            raise TypeError("BoundedCursor() 'done' must be callable")
        self._cursor = cursor
        self._done = done

    @property
    def position(self):
        return self._cursor.position

    def more(self):
        return self._cursor.more() and not self._done(self._cursor.peek())

    def peek(self):
        if not self.more():
            raise MissingValueError()
        return self._cursor.peek()

    def take(self):
        if not self.more():
            raise MissingValueError()
        return self._cursor.take()

    def __repr__(self):
        return f"{type(self).__name__}({self._cursor!r})"


def expand(tokens, /, *, encoding="utf-8"):
    """
    Replace every @file token of `tokens` with the lines of that file.

    - one file line becomes one token, order preserved; lines break only at
      line endings, other control characters stay inside the token;
    - lines produced by a file are never expanded again;
    - a read failure raises ParamsFileError (chained from the OSError).
    """
    expanded = []
    for token in tokens:
        if not Token.classify(token).file:
            expanded.append(token)
            continue
        path = Path(token.removeprefix(PARAMS_MARKER))
        try:
            text = path.read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError) as error:
            raise ParamsFileError(f"unable to read params file {str(path)!r}: {error}") from error
        # universal newlines already folded \r and \r\n into \n
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()
        logger.debug("expanded params file %s into %d tokens", path, len(lines))
        expanded.extend(lines)
    return expanded


__all__ = (
    "FLAG_PREFIX",
    "END_MARKER",
    "PARAMS_MARKER",
    "isflag",
    "Token",
    "Cursor",
    "BoundedCursor",
    "expand",
)
