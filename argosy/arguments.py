r"""
Argosy argument declarations: flags, tasks and their read handles.

Overview
- Declarations
  • Flag: a named value cell with a description, a default, a required bit and
    a converter. A flag is either single-token (the converter receives one
    token and the previous value) or variadic (the converter receives a
    bounded cursor and the previous value and consumes what it needs).
  • Task: a named subcommand with a description and a factory building the
    task's command object from the live parsing context.
  • Tasks: a group of alternative tasks declared together; all of them bind
    into one TaskSlot.

- Read handles
  • Handle: returned when a flag is registered; exposes the bound value.
  • TaskSlot: returned by a task group; exposes the created task command, or
    None when no task of the group was named.
  Both refuse to be read before their parsing context finished.

- Introspection
  • SpecType metaclass exposes the names listed in __introspectable__ as
    read-only properties and provides stable __repr__/__rich_repr__.

Validation highlights
- Names are strings without whitespace that start neither with "-" nor "@".
- Descriptions are strings (empty allowed) and are trimmed.
- Converters and factories must be callable.

Quick example:
    >>> def forest(a):
    ...     little = a.flag("little", "frolicking animal", "rabbit")
    ...     bops = a.flag("bop", "head bop count", 0, convert=lambda token, last: int(token) + last)
    ...     return little, bops
"""
import functools
import operator
import re

from .faults import RedefinitionError, UnboundValueError
from .tokens import BoundedCursor
from .utils import *


class SpecType(type):
    """
    Metaclass for declaration types.

    Responsibilities
    - Expose fields listed in __introspectable__ as read-only properties backed
      by "_{name}" attributes (see mirror()).
    - Provide compact __repr__ and __rich_repr__ for diagnostics.
    - Derive __typename__ from the class name ("TaskSlot" → "task-slot").
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                field: mirror(field) for field in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for field in type(self).__introspectable__:
                yield field, getattr(self, field)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, name, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} name must be a string")
    elif not name:
        raise ValueError(f"{cls.__typename__} name cannot be empty")
    elif not re.fullmatch(r"[^\s@-]\S*", name):
        raise ValueError(f"{cls.__typename__} name {name!r} must not contain spaces or start with '-' or '@'")
    return name


def _sanitize_descr(cls, descr, /):
    if not isinstance(descr, str):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    return descr.strip()


def _passthrough(token, previous, /):
    return token


class Flag(metaclass=SpecType):
    """
    A registered flag: declaration plus its mutable value cell.

    The cell starts at `default` and is replaced by every successful converter
    call, once per occurrence of the flag in the token stream. `satisfied` is
    True from the start for optional flags and becomes True for required flags
    after their first successful parse.
    """

    __introspectable__ = (
        "name",
        "descr",
        "default",
        "required",
        "variadic",
    )

    def __new__(cls, name, descr, default=None, required=False, convert=Unset, *, variadic=False):
        if convert is Unset and variadic:
            raise TypeError(f"variadic {cls.__typename__} must specify a converter")
        if not callable(convert := coalesce(convert, _passthrough)):
            raise TypeError(f"{cls.__typename__} 'convert' must be callable")

        self = super().__new__(cls)
        self._name = _sanitize_name(cls, name)
        self._descr = _sanitize_descr(cls, descr)
        self._default = default
        self._required = bool(required)
        self._variadic = bool(variadic)
        self._convert = convert
        self._value = default
        self._satisfied = not self._required
        return self

    @property
    def satisfied(self):
        return self._satisfied

    @property
    def value(self):
        """The current cell value (no parse-state check; see Handle)."""
        return self._value

    def parse(self, cursor, /):
        """
        Run the converter against `cursor` (bounded to the next flag).

        Converter failures propagate and leave the cell and the satisfied bit
        untouched.
        """
        view = cursor if isinstance(cursor, BoundedCursor) else BoundedCursor(cursor)
        if self._variadic:
            value = self._convert(view, self._value)
        else:
            value = self._convert(view.take(), self._value)
        self._value = value
        self._satisfied = True
        return value


class Handle:
    """
    Read handle for a flag value; readable once its context finished parsing.
    """

    __slots__ = ("_flag", "_context")

    def __init__(self, flag, context, /):
        self._flag = flag
        self._context = context

    @property
    def flag(self):
        return self._flag

    @property
    def name(self):
        return self._flag.name

    @property
    def value(self):
        if not self._context.parsed:
            raise UnboundValueError(f"flag {self._flag.name!r} cannot be read before parsing completed")
        return self._flag.value

    def __repr__(self):
        if not self._context.parsed:
            return f"handle({self._flag.name!r}, unbound)"
        return f"handle({self._flag.name!r}, value={self._flag.value!r})"


class Task(metaclass=SpecType):
    """
    A task declaration: `factory(arguments)` builds the task's command object.
    """

    __introspectable__ = (
        "name",
        "descr",
        "factory",
    )

    def __new__(cls, name, descr, factory):
        if not callable(factory):
            raise TypeError(f"{cls.__typename__} 'factory' must be callable")
        self = super().__new__(cls)
        self._name = _sanitize_name(cls, name)
        self._descr = _sanitize_descr(cls, descr)
        self._factory = factory
        return self


class TaskSlot:
    """
    Binding handle of a task group: the created task command, or None.
    """

    __slots__ = ("_group", "_context", "_name", "_value")

    def __init__(self, group, context, /):
        self._group = group
        self._context = context
        self._name = Unset
        self._value = Unset

    @property
    def group(self):
        return self._group

    @property
    def created(self):
        return self._value is not Unset

    @property
    def name(self):
        """Name of the created task, None when none was created."""
        if not self._context.parsed:
            raise UnboundValueError("task slot cannot be read before parsing completed")
        return coalesce(self._name)

    @property
    def value(self):
        if not self._context.parsed:
            raise UnboundValueError("task slot cannot be read before parsing completed")
        return coalesce(self._value)

    def create(self, name, /):
        """
        Build the task `name` of this group against the shared context.
        """
        task = self._group.tasks[name]
        self._value = task.factory(self._context)
        self._name = name
        return self._value

    def __repr__(self):
        names = ", ".join(map(repr, self._group.tasks))
        if not self._context.parsed:
            return f"task-slot({names}, unbound)"
        return f"task-slot({names}, value={coalesce(self._value)!r})"


class Tasks(metaclass=SpecType):
    """
    Builder for a group of alternative tasks sharing one slot.

    Usage
        with arguments.task() as group:
            group.of("bopping", "action", Bopping)
            group.of("hopping", "other action", Hopping)
        action = group.slot

    Leaving the `with` block (without an exception) installs every task name
    into the context's dispatch table; declaring afterwards is an error.
    """

    __introspectable__ = (
        "tasks",
        "installed",
    )

    def __new__(cls, context, /):
        self = super().__new__(cls)
        self._context = context
        self._tasks = {}
        self._installed = False
        self._slot = TaskSlot(self, context)
        return self

    @property
    def slot(self):
        return self._slot

    def of(self, name, descr, factory, /):
        """Declare one alternative task; returns the group for chaining."""
        if self._installed:
            raise RuntimeError("tasks cannot be declared after the group was installed")
        task = Task(name, descr, factory)
        if task.name in self._tasks:
            raise RedefinitionError(f"task {task.name!r} is already declared in this group")
        self._tasks[task.name] = task
        return self

    def install(self):
        """Install the group's names into the shared dispatch table (once)."""
        if self._installed:
            raise RuntimeError("task group is already installed")
        self._context._install(self)
        self._installed = True
        return self._slot

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback, /):
        if type is None:
            self.install()


__all__ = (
    "Flag",
    "Handle",
    "Task",
    "TaskSlot",
    "Tasks",
)

del SpecType
