"""
Arbor grammar nodes: the frozen tree a command line is matched against.

Node variants (closed set)
- RootNode: the single entry point; its successors are the top-level commands.
- CommandNode: a named command with declared parameters and an optional handler.
- WrapperNode: a command that aliases another command by path; execution is
  redirected to the target's handler with the wrapper's own bindings.
- FlagParameterNode: presence-only parameter (e.g., --verbose).
- NamedParameterNode: key/value parameter (e.g., --level 3).
- SimpleParameterNode: positional value acceptor (no literal).

Shape
- Every node is immutable once constructed: attributes are read-only
  properties (see IntrospectableType) and containers are tuples.
- Parameter nodes are shared by identity between a command's `parameters`
  (used for verification) and its `successors` (used for matching).
- Priorities break ties between sibling candidates; see the PRIORITY_*
  constants. Equal priorities never resolve silently.

Diagnostics
- help_symbol: canonical printed form ("show", "--level <value>", "<target>").
- help_text: help string or "" when none was given.
- hidden nodes match normally but never appear in listings.
"""
import re
from collections.abc import Iterable, Sequence

from .utils import *

PRIORITY_MINIMUM = -10000
PRIORITY_PARAMETER = -10
PRIORITY_DEFAULT = 0


def _sanitize_name(cls, name, /, label="name"):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {label!r} must be a string")
    elif not name:
        raise ValueError(f"{cls.__typename__} {label!r} cannot be empty")
    elif re.search(r"\s", name):
        raise ValueError(f"{cls.__typename__} {label!r} cannot contain whitespace")
    return name


def _sanitize_symbol(cls, metadata, /):
    """
    Internal: validate the fields every symbol node shares.

    - name: non-empty string without whitespace.
    - descr: None or a string (stripped; an empty string becomes None).
    - hidden: bool.
    - priority: int (bool rejected).
    - successors: iterable of symbol nodes, frozen into a tuple.
    """
    metadata["name"] = _sanitize_name(cls, metadata["name"])

    if not isinstance(descr := metadata["descr"], str | None):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    metadata["descr"] = descr.strip() or None if isinstance(descr, str) else None

    if not isinstance(metadata["hidden"], bool):
        raise TypeError(f"{cls.__typename__} 'hidden' must be a boolean")

    if not isinstance(priority := metadata["priority"], int) or isinstance(priority, bool):
        raise TypeError(f"{cls.__typename__} 'priority' must be an integer")

    metadata["successors"] = _sanitize_successors(cls, metadata["successors"])


def _sanitize_successors(cls, successors, /):
    if not isinstance(successors, Iterable) or isinstance(successors, str):
        raise TypeError(f"{cls.__typename__} 'successors' must be an iterable of nodes")
    successors = freeze(list(successors))
    for node in successors:
        if not isinstance(node, SymbolNode):
            raise TypeError(f"{cls.__typename__} 'successors' must be an iterable of nodes")
    return successors


class Node(metaclass=IntrospectableType):
    """
    Base of every grammar node: an ordered tuple of successor nodes.
    """
    __introspectable__ = ("successors",)

    hidden = False

    def __setattr__(self, name, value):
        if getattr(self, "_frozen", False):
            raise AttributeError(f"{type(self).__typename__} is immutable")
        super().__setattr__(name, value)

    def _freeze(self, metadata):
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._frozen = True


class RootNode(Node):
    """
    The root of a grammar. Exactly one per frozen tree.
    """
    __introspectable__ = ("successors",)

    def __init__(self, successors=(), /):
        successors = _sanitize_successors(type(self), successors)
        if not all(isinstance(node, CommandNode) for node in successors):
            raise TypeError(f"{type(self).__typename__} 'successors' must be an iterable of command nodes")
        self._freeze({"successors": successors})

    def resolve(self, path, /):
        """
        Return the command reached by following command names from the root.

        The path is a space-separated string ("show interface") or a sequence
        of names. Only exact names of command/wrapper nodes are considered.

        Raises
        - LookupError: when a step of the path does not exist.
        """
        steps = path.split() if isinstance(path, str) else list(path)
        if not steps:
            raise LookupError("empty command path")
        node = self
        for step in steps:
            for successor in node.successors:
                if isinstance(successor, CommandNode) and successor.name == step:
                    node = successor
                    break
            else:
                raise LookupError(f"unknown command path {' '.join(steps)!r}")
        return node


class SymbolNode(Node):
    """
    A node with a display name, help text, visibility and priority.
    """
    __introspectable__ = (
        "name",
        "descr",
        "hidden",
        "priority",
        "successors",
    )
    __displayable__ = ("name", "priority", "hidden")

    @property
    def literals(self):
        """
        Strings this node matches literally (exactly or by prefix).
        """
        return (self.name,)

    @property
    def help_symbol(self):
        return self.name

    @property
    def help_text(self):
        return self.descr or ""

    def sort_key(self):
        """
        Listing order: priority descending, then name ascending.
        """
        return -self.priority, self.name


class CommandNode(SymbolNode):
    """
    A command: matched by name, then its successors become the frontier.

    `parameters` keeps declaration order for verification; `successors`
    holds the very same parameter objects (plus nested commands) for matching.
    """
    __introspectable__ = (
        "name",
        "descr",
        "hidden",
        "priority",
        "successors",
        "handler",
        "parameters",
    )
    __displayable__ = ("name", "priority", "hidden", "parameters")

    def __init__(
            self,
            name,
            /,
            descr=None,
            hidden=False,
            priority=PRIORITY_DEFAULT,
            successors=Unset,
            handler=None,
            parameters=(),
    ):
        cls = type(self)
        if not isinstance(parameters, Iterable) or isinstance(parameters, str):
            raise TypeError(f"{cls.__typename__} 'parameters' must be an iterable of parameter nodes")
        parameters = freeze(list(parameters))
        names = set()
        for parameter in parameters:
            if not isinstance(parameter, ParameterNode):
                raise TypeError(f"{cls.__typename__} 'parameters' must be an iterable of parameter nodes")
            if parameter.name in names:
                raise ValueError(f"{cls.__typename__} parameter name {parameter.name!r} is already in use")
            names.add(parameter.name)

        if handler is not None and not callable(handler):
            raise TypeError(f"{cls.__typename__} 'handler' must be callable")

        metadata = {
            "name": name,
            "descr": descr,
            "hidden": hidden,
            "priority": priority,
            # successors default to the declared parameters (same objects, same order)
            "successors": coalesce(successors, parameters),
            "handler": handler,
            "parameters": parameters,
        }
        _sanitize_symbol(cls, metadata)
        self._freeze(metadata)


class WrapperNode(CommandNode):
    """
    A command that redirects execution to the command found at `wrapped`.
    """
    __introspectable__ = (
        "name",
        "descr",
        "hidden",
        "priority",
        "successors",
        "handler",
        "parameters",
        "wrapped",
    )
    __displayable__ = ("name", "priority", "hidden", "wrapped")

    def __init__(
            self,
            name,
            wrapped,
            /,
            descr=None,
            hidden=False,
            priority=PRIORITY_DEFAULT,
            successors=Unset,
            parameters=(),
    ):
        cls = type(self)
        if isinstance(wrapped, str):
            wrapped = tuple(wrapped.split())
        elif isinstance(wrapped, Sequence):
            wrapped = tuple(wrapped)
        else:
            raise TypeError(f"{cls.__typename__} 'wrapped' must be a command path")
        if not wrapped:
            raise ValueError(f"{cls.__typename__} 'wrapped' cannot be empty")
        for step in wrapped:
            _sanitize_name(cls, step, "wrapped")
        self._wrapped = wrapped
        super().__init__(name, descr, hidden, priority, successors, None, parameters)


class ParameterNode(SymbolNode):
    """
    Shared shape of the three parameter kinds.

    Fields
    - aliases: alternative literals (flag/named kinds only).
    - repeatable: may match more than once; bindings accumulate into a list.
    - required: must be bound for verification to pass.
    """
    __introspectable__ = (
        "name",
        "aliases",
        "descr",
        "hidden",
        "priority",
        "successors",
        "repeatable",
        "required",
    )
    __displayable__ = ("name", "aliases", "priority", "hidden", "repeatable", "required")

    default_priority = PRIORITY_PARAMETER

    def __init__(
            self,
            name,
            /,
            descr=None,
            hidden=False,
            priority=Unset,
            successors=(),
            repeatable=False,
            aliases=(),
            required=False,
    ):
        cls = type(self)
        if isinstance(aliases, str) or not isinstance(aliases, Iterable):
            raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
        aliases = freeze([_sanitize_name(cls, alias, "aliases") for alias in aliases])
        if len(set(aliases) | {name}) != len(aliases) + 1:
            raise ValueError(f"{cls.__typename__} 'aliases' cannot contain duplicates")

        if not isinstance(repeatable, bool):
            raise TypeError(f"{cls.__typename__} 'repeatable' must be a boolean")
        if not isinstance(required, bool):
            raise TypeError(f"{cls.__typename__} 'required' must be a boolean")

        metadata = {
            "name": name,
            "aliases": aliases,
            "descr": descr,
            "hidden": hidden,
            "priority": coalesce(priority, cls.default_priority),
            "successors": successors,
            "repeatable": repeatable,
            "required": required,
        }
        _sanitize_symbol(cls, metadata)
        self._freeze(metadata)

    @property
    def literals(self):
        return (self.name, *self.aliases)


class FlagParameterNode(ParameterNode):
    """
    Presence-only parameter: matching its literal binds True.
    """
    default_priority = PRIORITY_DEFAULT


class NamedParameterNode(ParameterNode):
    """
    Key/value parameter: matching its literal consumes the next token as value.
    """

    @property
    def help_symbol(self):
        return f"{self.name} <value>"


class SimpleParameterNode(ParameterNode):
    """
    Positional parameter: binds the token itself, no literal required.
    """

    def __init__(
            self,
            name,
            /,
            descr=None,
            hidden=False,
            priority=Unset,
            successors=(),
            repeatable=False,
            aliases=(),
            required=False,
    ):
        if aliases:
            raise ValueError(f"{type(self).__typename__} cannot have aliases")
        super().__init__(name, descr, hidden, priority, successors, repeatable, aliases, required)

    @property
    def literals(self):
        return ()

    @property
    def help_symbol(self):
        return f"<{self.name}>"


__all__ = (
    "PRIORITY_MINIMUM",
    "PRIORITY_PARAMETER",
    "PRIORITY_DEFAULT",
    "Node",
    "RootNode",
    "SymbolNode",
    "CommandNode",
    "WrapperNode",
    "ParameterNode",
    "FlagParameterNode",
    "NamedParameterNode",
    "SimpleParameterNode",
)
