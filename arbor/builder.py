"""
Arbor construction API: describe commands and parameters, then freeze a tree.

What this module provides
- ParameterKind: which parameter node a description produces (flag/named/simple).
- Parameter: description of one parameter (name, kind, aliases, flags, priority).
- Command: description of one command (parameters, nested commands, handler,
  or a wrapped command path).
- CommandTree: collects command descriptions and builds a frozen RootNode.

Defaulting rules
- Flag parameters default to PRIORITY_DEFAULT; named and simple parameters
  default to PRIORITY_PARAMETER, so literal commands and flags win ties
  against value acceptors unless a priority is given explicitly.
- Commands default to PRIORITY_DEFAULT.

Quick start
    from arbor import CommandTree, Command, Parameter, ParameterKind

    tree = CommandTree()

    @tree.command("set", Parameter("--level", ParameterKind.NAMED, required=True))
    def set_level(bindings):
        print(bindings["--level"])

    tree.command(Command("lvl", Parameter("--level", ParameterKind.NAMED), wraps="set"))
    root = tree.finalize()

Validation
- Descriptions validate eagerly: wrong types raise TypeError, bad values raise
  ValueError (empty names, whitespace in names, duplicate aliases or
  parameter names, wrappers with handlers).
- finalize() validates wrapper targets (unknown paths and cycles raise
  ValueError) and warns (AmbiguousGrammarWarning) about sibling literals that
  can only ever produce ambiguity faults.
"""
import logging
import re
from collections import defaultdict
from collections.abc import Iterable, Sequence
from enum import Enum

from .faults import AmbiguousGrammarWarning, FaultCode, trigger
from .nodes import *
from .utils import *

logger = logging.getLogger(__name__)


class ParameterKind(Enum):
    """
    Kind tag selecting the parameter node class built from a description.
    """
    FLAG = "flag"
    NAMED = "named"
    SIMPLE = "simple"


def _sanitize_description(cls, metadata, /):
    """
    Internal: normalize the fields every description shares.

    - name: non-empty string without whitespace.
    - descr: Unset | str; trimmed, empty rejected, Unset becomes None.
    - hidden: bool.
    - priority: Unset | int (bool rejected).
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not name:
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif re.search(r"\s", name):
        raise ValueError(f"{cls.__typename__} 'name' cannot contain whitespace")

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(metadata["hidden"], bool):
        raise TypeError(f"{cls.__typename__} 'hidden' must be a boolean")

    if not isinstance(priority := metadata["priority"], int | Unset) or isinstance(priority, bool):
        raise TypeError(f"{cls.__typename__} 'priority' must be an integer")


class Parameter(metaclass=IntrospectableType):
    """
    Description of a parameter to be added to a Command.

    Parameters
    - name: the binding key and, for flag/named kinds, the literal to match.
    - kind: ParameterKind (or its string value); defaults to SIMPLE.
    - aliases: alternative literals (flag/named kinds only).
    - descr: help text.
    - required: verification fails when the parameter is never bound.
    - repeatable: may be given several times; values accumulate in order.
    - priority: overrides the per-kind default priority.
    - hidden: matched normally, never listed.
    """
    __introspectable__ = (
        "name",
        "kind",
        "aliases",
        "descr",
        "required",
        "repeatable",
        "priority",
        "hidden",
    )

    def __init__(
            self,
            name,
            /,
            kind=ParameterKind.SIMPLE,
            aliases=(),
            descr=Unset,
            *,
            required=False,
            repeatable=False,
            priority=Unset,
            hidden=False,
    ):
        cls = type(self)
        metadata = {
            "name": name,
            "kind": kind,
            "aliases": aliases,
            "descr": descr,
            "required": required,
            "repeatable": repeatable,
            "priority": priority,
            "hidden": hidden,
        }
        _sanitize_description(cls, metadata)

        try:
            metadata["kind"] = ParameterKind(kind)
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'kind' must be one of 'flag', 'named', or 'simple'") from None

        if isinstance(aliases, str) or not isinstance(aliases, Iterable):
            raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
        seen = {name}
        for alias in (aliases := list(aliases)):
            if not isinstance(alias, str):
                raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
            elif not alias or re.search(r"\s", alias):
                raise ValueError(f"{cls.__typename__} 'aliases' must be non-empty strings without whitespace")
            elif alias in seen:
                raise ValueError(f"{cls.__typename__} 'aliases' cannot contain duplicates")
            seen.add(alias)
        if aliases and metadata["kind"] is ParameterKind.SIMPLE:
            raise ValueError(f"{cls.__typename__} simple parameters cannot have aliases")
        metadata["aliases"] = freeze(aliases)

        for flag in ("required", "repeatable"):
            if not isinstance(metadata[flag], bool):
                raise TypeError(f"{cls.__typename__} {flag!r} must be a boolean")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def build(self):
        """
        Produce the immutable parameter node this description stands for.
        """
        match self.kind:
            case ParameterKind.FLAG:
                cls = FlagParameterNode
            case ParameterKind.NAMED:
                cls = NamedParameterNode
            case ParameterKind.SIMPLE:
                cls = SimpleParameterNode
            case _:
                raise RuntimeError("unreachable")
        return cls(
            self.name,
            self.descr,
            self.hidden,
            self.priority,
            (),
            self.repeatable,
            self.aliases,
            self.required,
        )


class Command(metaclass=IntrospectableType):
    """
    Description of a command to be added to a CommandTree.

    Parameters
    - name: the literal matched for this command.
    - *parameters: Parameter descriptions, in matching precedence order.
    - descr: help text.
    - handler: callable invoked with the read-only bindings on execution.
    - wraps: command path (string or sequence of names); produces a wrapper
      that runs the target's handler with this command's own bindings.
    - commands: nested Command descriptions (sub-commands).
    - priority / hidden: tie-break key and listing visibility.
    """
    __introspectable__ = (
        "name",
        "parameters",
        "commands",
        "descr",
        "handler",
        "wraps",
        "priority",
        "hidden",
    )
    __displayable__ = ("name", "parameters", "commands", "wraps", "priority", "hidden")

    def __init__(
            self,
            name,
            /,
            *parameters,
            descr=Unset,
            handler=Unset,
            wraps=Unset,
            commands=(),
            priority=PRIORITY_DEFAULT,
            hidden=False,
    ):
        cls = type(self)
        metadata = {
            "name": name,
            "parameters": parameters,
            "commands": commands,
            "descr": descr,
            "handler": handler,
            "wraps": wraps,
            "priority": priority,
            "hidden": hidden,
        }
        _sanitize_description(cls, metadata)
        if metadata["priority"] is Unset:
            metadata["priority"] = PRIORITY_DEFAULT

        names = set()
        for parameter in parameters:
            if not isinstance(parameter, Parameter):
                raise TypeError(f"{cls.__typename__} parameters must be parameter descriptions")
            elif parameter.name in names:
                raise ValueError(f"{cls.__typename__} parameter name {parameter.name!r} is already in use")
            names.add(parameter.name)
        metadata["parameters"] = freeze(parameters)

        if isinstance(commands, str) or not isinstance(commands, Iterable):
            raise TypeError(f"{cls.__typename__} 'commands' must be an iterable of command descriptions")
        metadata["commands"] = freeze(list(commands))
        if not all(isinstance(command, Command) for command in metadata["commands"]):
            raise TypeError(f"{cls.__typename__} 'commands' must be an iterable of command descriptions")

        if handler is not Unset and not callable(handler):
            raise TypeError(f"{cls.__typename__} 'handler' must be callable")
        metadata["handler"] = coalesce(handler)

        if wraps is not Unset:
            if isinstance(wraps, str):
                wraps = tuple(wraps.split())
            elif isinstance(wraps, Sequence) and all(isinstance(step, str) for step in wraps):
                wraps = tuple(wraps)
            else:
                raise TypeError(f"{cls.__typename__} 'wraps' must be a command path")
            if not wraps:
                raise ValueError(f"{cls.__typename__} 'wraps' cannot be empty")
            if handler is not Unset:
                raise ValueError(f"{cls.__typename__} wrapper cannot have a handler of its own")
            if metadata["commands"]:
                raise ValueError(f"{cls.__typename__} wrapper cannot have sub-commands")
        metadata["wraps"] = coalesce(wraps)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def build(self):
        """
        Produce the immutable command (or wrapper) node, sub-commands included.

        The parameter nodes are built once and shared by identity between the
        node's `parameters` and `successors`.
        """
        parameters = [parameter.build() for parameter in self.parameters]
        successors = parameters + [command.build() for command in self.commands]
        if self.wraps is not None:
            return WrapperNode(
                self.name,
                self.wraps,
                self.descr,
                self.hidden,
                self.priority,
                successors,
                parameters,
            )
        return CommandNode(
            self.name,
            self.descr,
            self.hidden,
            self.priority,
            successors,
            self.handler,
            parameters,
        )


def _walk(node):
    yield node
    for successor in node.successors:
        yield from _walk(successor)


def _check_wrappers(root):
    """
    Resolve every wrapper chain once so dispatch never meets a dangling path.
    """
    for node in _walk(root):
        if not isinstance(node, WrapperNode):
            continue
        seen = {node}
        target = node
        while isinstance(target, WrapperNode):
            try:
                target = root.resolve(target.wrapped)
            except LookupError:
                raise ValueError(
                    f"wrapper {node.name!r} wraps unknown command {' '.join(target.wrapped)!r}"
                ) from None
            if target in seen:
                raise ValueError(f"wrapper {node.name!r} wraps itself through {target.name!r}")
            seen.add(target)


def _check_ambiguities(root):
    """
    Warn about siblings that share a literal at equal priority.
    """
    for node in _walk(root):
        literals = defaultdict(list)
        for successor in node.successors:
            for literal in successor.literals:
                literals[literal, successor.priority].append(successor)
        for (literal, priority), siblings in literals.items():
            if len(siblings) < 2:
                continue
            trigger(AmbiguousGrammarWarning(
                "literal %r is shared by %d siblings at priority %d" % (literal, len(siblings), priority),
                title="ambiguous grammar",
                code=FaultCode.AMBIGUOUS_GRAMMAR,
                literal=literal,
                candidates=tuple(siblings),
                hint="give one of them a higher priority or rename it",
            ))


class CommandTree:
    """
    Store command descriptions while populating a grammar, then freeze it.
    """

    def __init__(self):
        self._commands = []

    @property
    def commands(self):
        return tuple(self._commands)

    def command(self, source, /, *parameters, **options):
        """
        Register a command description, or return a decorator that does.

        Forms
        - tree.command(Command("show", ...)) -> the description
        - @tree.command("show", Parameter(...), descr=...) -> decorator that
          registers Command("show", ..., handler=function) and returns the
          function unchanged.
        """
        if isinstance(source, Command):
            if parameters or options:
                raise TypeError("command() takes no further arguments with a command description")
            self._commands.append(source)
            return source

        if not isinstance(source, str):
            raise TypeError("command() argument must be a command description or a name")
        # fail before decoration when the description itself is invalid
        Command(source, *parameters, **options)

        @rename("command")
        def wrapper(handler, /):
            self._commands.append(Command(source, *parameters, handler=handler, **options))
            return handler

        return wrapper

    def finalize(self):
        """
        Build a new frozen RootNode from the registered descriptions.

        Raises
        - ValueError: a wrapper targets an unknown command or a wrapper cycle.
        """
        root = RootNode([command.build() for command in self._commands])
        _check_wrappers(root)
        _check_ambiguities(root)
        logger.debug("finalized grammar with %d top-level commands", len(root.successors))
        return root


__all__ = (
    "ParameterKind",
    "Parameter",
    "Command",
    "CommandTree",
)
