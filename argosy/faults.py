"""
Argosy faults (collected parse errors, contract violations) and rendering.

Scope
- FaultCode: stable numeric identifiers for every recoverable parse problem.
- ParseError and its subclasses: recoverable problems collected by the parsing
  loop. They are never raised by the loop itself; the result exposes them and
  their messages (str(fault) is the message).
- ParseExit: an exception group bundling collected parse errors for callers
  that prefer raising over inspecting the result.
- Contract violations: raised immediately because they are caller bugs
  (redefinitions, reading unbound values, a second task instantiation).
- ParamsFileError: fatal I/O failure while expanding an @file token.

Rendering
- Parse errors and ParseExit implement __rich__ and honor the host overrides
  __styles__, __prog__ and __codes__ looked up on __main__.
- Options carried by a fault: title, code, hint and any context (token, flag,
  task, cause). Rendering options (colorful, fancy) are supplied by the caller.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes for collected parse errors (stable identifiers).

    grouping
    - arguments (1110x): UNEXPECTED_ARGUMENT
    - flags (1111x): CONVERSION_FAILED, REQUIRED_FLAG
    - tasks (1112x): TASK_CREATION_FAILED, TASK_ALREADY_CREATED
    """
    # --- argument errors ---
    UNEXPECTED_ARGUMENT         = 11101

    # --- flag errors ---
    CONVERSION_FAILED           = 11111
    REQUIRED_FLAG               = 11112

    # --- task errors ---
    TASK_CREATION_FAILED        = 11121
    TASK_ALREADY_CREATED        = 11122

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _palette(defaults):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


def _prog():
    return getattr(__import__("__main__"), "__prog__", "argosy")


class ParseError(Exception):
    """
    A recoverable problem found while parsing; collected, never raised by the loop.

    Attributes
    - message: the user-facing message (also str(self)).
    - options: read-only mapping with title, code, hint and fault context.
    """

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    @property
    def code(self):
        return self.options.get("code")

    def render(self, *, colorful=True, fancy=False, width=None):
        """
        Build a rich renderable: a "[ prog — code | title ]" header, the message
        and a single hint line.
        """
        styles = _palette({
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

        def text(fragment, style):
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.code
        header = Text.assemble(
            "[ ",
            text(_prog(), "prog-name"),
            " — ",
            text(code.normalize() if code is not None else "-", "code"),
            " | ",
            text(self.options.get("title", "parse error").title(), "error-title"),
            " ]",
        )
        message = text(self.message, "error-message")
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.options.get("hint", ""), "hint"))

        if fancy:
            return Panel(Group(message, hint), title=header, title_align="left", width=width)
        return Group(header, message, hint)

    def __rich__(self):
        return self.render()


class UnexpectedArgumentError(ParseError): ...
class ConversionError(ParseError): ...
class RequiredFlagError(ParseError): ...
class TaskCreationError(ParseError): ...


class ParseExit(ExceptionGroup):
    """
    Exception group carrying every collected ParseError of one parse.
    """

    def __new__(cls, exceptions, /, **options):
        return super().__new__(cls, "bad arguments", tuple(exceptions))

    def __init__(self, exceptions, /, **options):
        super().__init__("bad arguments", tuple(exceptions))
        self.options = MappingProxyType(options)

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)

    def render(self, *, colorful=True, fancy=False):
        styles = _palette({
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        })
        header = Text.assemble(
            "[ ",
            Text(_prog(), styles["prog-name"] if colorful else ""),
            " — ",
            Text(self.message.title(), styles["title"] if colorful else ""),
            " ]",
        )
        renders = [exception.render(colorful=colorful, fancy=fancy) for exception in self.exceptions]
        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __rich__(self):
        return self.render(
            colorful=self.options.get("colorful", True),
            fancy=self.options.get("fancy", False),
        )


class RedefinitionError(ValueError):
    """A flag or task name was registered twice in one parsing context."""


class TaskAlreadyCreatedError(RuntimeError):
    """A second task was instantiated after one already succeeded."""


class UnboundValueError(RuntimeError):
    """A handle was read before its parsing context finished."""


class MissingValueError(LookupError):
    """A cursor was read past its available input."""

    def __init__(self, message=Unset, /):
        super().__init__(coalesce(message, "expected argument"))


class ParamsFileError(OSError):
    """An @file token could not be expanded."""


_OWN_ERRORS = (
    RedefinitionError,
    TaskAlreadyCreatedError,
    UnboundValueError,
    MissingValueError,
    ParamsFileError,
)


def describe(error, /):
    """
    Detail text for an exception caught from a converter or a task factory.

    Foreign exceptions read "TypeName: message" (just "TypeName" when the
    message is empty). argosy's own errors already carry a complete sentence
    and are reported by message alone.
    """
    if isinstance(error, _OWN_ERRORS):
        return str(error)
    if message := str(error):
        return f"{type(error).__name__}: {message}"
    return type(error).__name__


__all__ = (
    "FaultCode",
    "ParseError",
    "UnexpectedArgumentError",
    "ConversionError",
    "RequiredFlagError",
    "TaskCreationError",
    "ParseExit",
    "RedefinitionError",
    "TaskAlreadyCreatedError",
    "UnboundValueError",
    "MissingValueError",
    "ParamsFileError",
    "describe",
)
