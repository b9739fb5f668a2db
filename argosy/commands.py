"""
Argosy command layer: parse a token stream into a command object.

What this module provides
- Arguments: one parsing context. It owns the flag registry and the task
  dispatch table, hands out registration functions (flag, custom, task) to the
  command being built, and runs a single classification pass over the tokens.
- ParseResult: the outcome of one pass, with the constructed command, the
  collected errors, the unconsumed tail and the help renderer.

Core ideas
- Commands declare themselves: constructing the command object with the
  context registers its flags and task groups; values are read from the
  returned handles only after parsing completed.
- Tasks share the namespace: a task factory receives the very same context,
  so the task's flags land in the same registry and are satisfied by the
  tokens following the task name (`parent-flags... <task> task-flags...`).
- Errors are collected, never raised: unknown flags, conversion failures,
  unexpected positionals, task failures and missing required flags all end up
  in the result after one full pass.

Quick start
    from argosy import Arguments

    class Bopping:
        def __init__(self, a):
            self.mouse = a.flag("mouse", "poor mouse appendage", "tail")

    class Forest:
        def __init__(self, a):
            with a.task() as group:
                group.of("bopping", "action", Bopping)
            self.action = group.slot
            self.little = a.flag("little", "suspect mammal", "fox")

    result = Arguments(["--little", "bunny", "bopping", "--mouse", "head"]).parse_into(Forest)
    forest = result.if_error(lambda r: print(r.help())).then(lambda forest: None)

Token syntax
- "--name" references a flag; "--" alone ends parsing and everything after
  it is returned untouched in ParseResult.remaining.
- "@path" tokens are replaced by the lines of the file before parsing starts.
- Any other token must name a task.
"""
import logging
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .arguments import Flag, Handle, Tasks
from .faults import *
from .tokens import Token, Cursor, BoundedCursor, expand
from .utils import *

logger = logging.getLogger(__name__)


class Arguments:
    """
    A parsing context over one token list.

    Parameters
    - tokens: Iterable[str]
      The raw tokens (typically sys.argv[1:]); @file tokens are expanded when
      parse_into() starts.
    - allow_unused: bool
      Silently skip unknown flags and tokens naming no task instead of
      reporting "unexpected argument".
      An unknown flag is reported with its raw token, prefix included
      ("unexpected argument: --nope"), so the message shows what was typed.
    - encoding: str
      Encoding used to read params files.

    Lifecycle
    - registration happens while the command object is constructed inside
      parse_into() (and again while a task is created during the pass);
    - parse_into() runs exactly once per context;
    - handles become readable when parse_into() returns.
    """

    def __init__(self, tokens=(), /, *, allow_unused=False, encoding="utf-8"):
        if isinstance(tokens, str):
            raise TypeError("Arguments() argument must be an iterable of strings, not a string")
        self._tokens = list(tokens)
        for token in self._tokens:
            if not isinstance(token, str):
                raise TypeError("Arguments() argument must be an iterable of strings")
        self._allow_unused = bool(allow_unused)
        self._encoding = encoding
        self._flags = {}
        self._tasks = {}
        self._groups = []
        self._created = Unset
        self._state = Unset  # Unset → parsing → parsed

    @property
    def allow_unused(self):
        return self._allow_unused

    @property
    def parsed(self):
        return self._state == "parsed"

    @property
    def flags(self):
        return MappingProxyType(self._flags)

    @property
    def tasks(self):
        return MappingProxyType({name: group.tasks[name] for name, group in self._tasks.items()})

    def _register(self, flag):
        if flag.name in self._flags:
            raise RedefinitionError(f"flag {flag.name!r} is already registered")
        if flag.name in self._tasks:
            raise RedefinitionError(f"flag {flag.name!r} collides with a registered task")
        self._flags[flag.name] = flag
        return Handle(flag, self)

    def _install(self, group):
        names = group.tasks.keys()
        for name in names:
            if name in self._tasks:
                raise RedefinitionError(f"task {name!r} is already registered")
            if name in self._flags:
                raise RedefinitionError(f"task {name!r} collides with a registered flag")
        for name in names:
            self._tasks[name] = group
        self._groups.append(group)

    def flag(self, name, descr, default="", required=False, convert=Unset):
        """
        Register a single-token flag "--name" and return its read handle.

        - Without `convert`, the flag is string valued: every occurrence
          replaces the value with the token following it.
        - With `convert`, every occurrence calls convert(token, previous) and
          stores the result, which lets repeated flags accumulate.
        - A missing value (end of input or the next flag) is a conversion
          failure with the detail "expected argument".
        """
        return self._register(Flag(name, descr, default, required, convert))

    def custom(self, name, descr, default=None, required=False, convert=Unset):
        """
        Register a variadic flag "--name"; convert(cursor, previous) reads as
        many tokens as it wants from a cursor bounded to the next flag.

        Direct and decorator forms:
            loco = a.custom("loco", "moving", "wiggle", convert=lambda c, _: ",".join(c))

            @a.custom("loco", "moving", "wiggle")
            def loco(cursor, previous):
                return ",".join(cursor)
            # loco is now the Handle
        """
        if convert is not Unset:
            return self._register(Flag(name, descr, default, required, convert, variadic=True))

        @rename("custom")
        def wrapper(convert, /):
            if not callable(convert):
                raise TypeError("@custom() must be applied to a callable")
            return self._register(Flag(name, descr, default, required, convert, variadic=True))

        return wrapper

    def task(self):
        """
        Start a group of alternative tasks; see Tasks.
        """
        return Tasks(self)

    def help(self):
        """
        Render the tasks of every group, then every flag in registration order.

            Tasks:
              bopping: action
            Flags:
              --little: suspect mammal
        """
        lines = []
        if self._tasks:
            lines.append("Tasks:")
            for group in self._groups:
                lines.extend(f"  {task.name}: {task.descr}" for task in group.tasks.values())
        lines.append("Flags:")
        lines.extend(f"  --{flag.name}: {flag.descr}" for flag in self._flags.values())
        return "\n".join(lines)

    def parse_into(self, factory, /):
        """
        Build the command with factory(self), parse the tokens and return a ParseResult.

        Raises
        - ParamsFileError: when an @file token cannot be read (before any
          classification happens).
        - RuntimeError: when the context was already parsed.
        """
        if not callable(factory):
            raise TypeError("parse_into() argument must be callable")
        if self._state is not Unset:
            raise RuntimeError("parse_into() can only be called once per arguments")
        self._state = "parsing"

        tokens = expand(self._tokens, encoding=self._encoding)
        command = factory(self)
        faults = {}

        def collect(fault):
            faults.setdefault(fault.message, fault)

        remaining = self._parse(Cursor(tokens), collect)

        logger.debug("checking %d registered flags for required values", len(self._flags))
        for flag in self._flags.values():
            if not flag.satisfied:
                collect(RequiredFlagError(
                    f"--{flag.name} is required",
                    title="missing required flag",
                    code=FaultCode.REQUIRED_FLAG,
                    flag=flag.name,
                    hint=f"add --{flag.name} <value>",
                ))

        self._state = "parsed"
        return ParseResult(self, command, tuple(faults.values()), tuple(remaining))

    def _parse(self, cursor, collect):
        while cursor.more():
            token = Token.classify(cursor.take())
            if token.end:
                return cursor.rest()
            if token.flag is not None:
                self._parse_flag(token, cursor, collect)
            elif token.raw in self._tasks:
                self._dispatch(token, collect)
            elif not self._allow_unused:
                collect(UnexpectedArgumentError(
                    f"unexpected argument: {token.raw}",
                    title="unexpected argument",
                    code=FaultCode.UNEXPECTED_ARGUMENT,
                    token=token.raw,
                    hint="remove it or name one of the declared tasks",
                ))
        return []

    def _parse_flag(self, token, cursor, collect):
        try:
            flag = self._flags[token.flag]
        except KeyError:
            if not self._allow_unused:
                collect(UnexpectedArgumentError(
                    f"unexpected argument: {token.raw}",
                    title="unexpected argument",
                    code=FaultCode.UNEXPECTED_ARGUMENT,
                    token=token.raw,
                    hint="check the spelling against the flags listed in the help",
                ))
            return
        logger.debug("parsing flag %s at position %d", flag.name, cursor.position)
        try:
            flag.parse(BoundedCursor(cursor))
        except Exception as error:
            collect(ConversionError(
                f"Failed to parse {flag.name}: {describe(error)}",
                title="invalid flag value",
                code=FaultCode.CONVERSION_FAILED,
                flag=flag.name,
                cause=error,
                hint=f"check the value given to --{flag.name}",
            ))

    def _dispatch(self, token, collect):
        name = token.raw
        try:
            if self._created is not Unset:
                raise TaskAlreadyCreatedError(f"cannot create {name}, task {self._created} already created")
            self._tasks[name].slot.create(name)
        except TaskAlreadyCreatedError as error:
            collect(TaskCreationError(
                f"Unable to create task {name}: {describe(error)}",
                title="task already created",
                code=FaultCode.TASK_ALREADY_CREATED,
                task=name,
                cause=error,
                hint="name a single task per invocation",
            ))
        except Exception as error:
            collect(TaskCreationError(
                f"Unable to create task {name}: {describe(error)}",
                title="task creation failed",
                code=FaultCode.TASK_CREATION_FAILED,
                task=name,
                cause=error,
                hint=f"check the declarations of task {name}",
            ))
        else:
            logger.debug("created task %s", name)
            self._created = name

    def __repr__(self):
        return f"arguments(tokens={self._tokens!r}, allow_unused={self._allow_unused!r})"


class ParseResult:
    """
    Outcome of Arguments.parse_into().

    Attributes
    - command: the constructed command object (always present, even with errors).
    - faults: collected ParseError objects, first-seen order, one per message.
    - errors: frozenset of the fault messages.
    - remaining: tokens after the end marker, untouched.

    Continuations
    - if_error(handle): handle(result) runs only when errors exist.
    - then(enact): enact(command) runs only without errors and the command is
      returned; otherwise None is returned and enact is not called.
    Both are reads over this result; nothing is parsed again.
    """

    __slots__ = ("_arguments", "_command", "_faults", "_remaining")

    def __init__(self, arguments, command, faults, remaining, /):
        self._arguments = arguments
        self._command = command
        self._faults = tuple(faults)
        self._remaining = tuple(remaining)

    @property
    def arguments(self):
        return self._arguments

    @property
    def command(self):
        return self._command

    @property
    def faults(self):
        return self._faults

    @property
    def errors(self):
        return frozenset(fault.message for fault in self._faults)

    @property
    def remaining(self):
        return self._remaining

    def help(self):
        return self._arguments.help()

    def if_error(self, handle, /):
        if not callable(handle):
            raise TypeError("if_error() argument must be callable")
        if self._faults:
            handle(self)
        return self

    def then(self, enact, /):
        if not callable(enact):
            raise TypeError("then() argument must be callable")
        if self._faults:
            return None
        enact(self._command)
        return self._command

    def raise_for_errors(self):
        """Raise a ParseExit grouping every collected fault, if any."""
        if self._faults:
            raise ParseExit(self._faults)

    def render(self, *, colorful=True, fancy=False):
        renders = []
        if self._faults:
            renders.append(ParseExit(self._faults).render(colorful=colorful, fancy=fancy))
        renders.append(Text(self.help()))
        return Group(*renders)

    def __rich__(self):
        return self.render()

    def report(self, console=Unset, /, *, colorful=True, fancy=False):
        """
        Print collected faults followed by the help text (stderr by default).
        """
        if console is Unset:
            console = Console(stderr=True)
        console.print(self.render(colorful=colorful, fancy=fancy))

    def __repr__(self):
        return f"parse-result(command={self._command!r}, errors={sorted(self.errors)!r}, remaining={list(self._remaining)!r})"


__all__ = (
    "Arguments",
    "ParseResult",
)
