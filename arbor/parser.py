"""
Arbor parser: match tokens against a frozen grammar, verify, and dispatch.

Pipeline (one input line)
- parse(tokens, root) → ParseState
  Walks the tree one token at a time. Each token is resolved against the
  current frontier (the nodes eligible at this point):
  • exact literal matches (name or alias) first; prefix matches only when no
    exact match exists (abbreviation, e.g. "sh" for "show");
  • the first positional (simple) parameter of the frontier acts as a
    catch-all, but only wins when its priority is strictly higher than every
    literal candidate;
  • the highest priority wins; a tie at the top raises AmbiguousMatchError;
  • nothing at all raises NoMatchesError with the visible frontier as
    candidates (priority descending, then name).
- verify(state)
  Raises MissingRequiredError naming every required parameter of the matched
  command that was never bound.
- execute(state)
  Calls the matched command's handler (or, for a wrapper, the handler of the
  command it wraps) with a read-only mapping of this parse's bindings.

Extras
- complete(tokens, root): literal completions for the last (partial) token.
- Parser(root): keeps the last state so callers can chain parse → verify → execute.

Invariants
- No backtracking: a consumed token is never reconsidered.
- Non-repeatable parameters leave the frontier once matched; repeatable ones
  stay and accumulate their values in encounter order.
- Parsing is deterministic and never mutates the tree.
"""
import difflib
import logging
from collections.abc import Iterable
from types import MappingProxyType

from .faults import *
from .nodes import *
from .utils import *

logger = logging.getLogger(__name__)


class ParseState:
    """
    Mutable state of one parse call (never shared across calls).

    Attributes
    - root: the RootNode being matched against.
    - frontier: nodes eligible for the next token, in declaration order.
    - bindings: parameter node → value (list of values when repeatable),
      keyed by identity so same-named parameters of nested commands never
      collide; see namespace() for the name-keyed view.
    - command: the matched CommandNode/WrapperNode, or None.
    - trace: matched nodes in order (diagnostics only).
    - tokens: consumed tokens in order (values of named parameters included).
    """
    __slots__ = ("root", "frontier", "bindings", "command", "trace", "tokens")

    def __init__(self, root, /):
        if not isinstance(root, RootNode):
            raise TypeError("parse-state 'root' must be a root node")
        self.root = root
        self.frontier = list(root.successors)
        self.bindings = {}
        self.command = None
        self.trace = []
        self.tokens = []

    def __rich_repr__(self):
        yield "command", self.command
        yield "bindings", self.bindings
        yield "tokens", self.tokens

    def namespace(self):
        """
        Name-keyed view of the bindings, as handlers receive them.

        Parameters declared by the matched command shadow same-named
        parameters bound earlier by an enclosing command.
        """
        own = set(self.command.parameters) if self.command is not None else set()
        namespace = {node.name: value for node, value in self.bindings.items() if node not in own}
        namespace.update((node.name, value) for node, value in self.bindings.items() if node in own)
        return namespace

    def __repr__(self):
        return "parse-state(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def _sanitize_tokens(tokens, /):
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("parse() argument must be an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() argument must be an iterable of strings")
    return tokens


def _visible(nodes):
    return sorted((node for node in nodes if not node.hidden), key=SymbolNode.sort_key)


def _candidates(state, token):
    """
    Split the frontier into literal candidates and the positional catch-all.
    """
    exact = []
    prefix = []
    positional = None
    for node in state.frontier:
        match node:
            case SimpleParameterNode():
                # positionals are consumed strictly in declaration order
                if positional is None:
                    positional = node
            case CommandNode() | FlagParameterNode() | NamedParameterNode():
                if token in node.literals:
                    exact.append(node)
                elif any(literal.startswith(token) for literal in node.literals):
                    prefix.append(node)
            case _:
                raise RuntimeError("unreachable")
    return exact or prefix, positional


def _select(state, token, index):
    literals, positional = _candidates(state, token)
    top = max((node.priority for node in literals), default=None)

    if positional is not None and (top is None or positional.priority > top):
        return positional

    if top is None:
        candidates = _visible(state.frontier)
        suggestions = difflib.get_close_matches(
            token, [literal for node in candidates for literal in node.literals], 5
        )
        if suggestions:
            hint = "did you mean %r?" % suggestions[0]
        elif candidates:
            hint = "pick one of the possible options"
        else:
            hint = "nothing else is accepted here, remove the extra input"
        logger.debug("no match for %r at position %d", token, index)
        raise NoMatchesError(
            "no match for %r at %s position" % (token, ordinal(index)),
            title="no matches",
            code=FaultCode.NO_MATCHES,
            token=token,
            index=index,
            candidates=tuple(candidates),
            suggestions=tuple(suggestions),
            consumed=tuple(state.tokens),
            hint=hint,
        )

    tied = [node for node in literals if node.priority == top]
    if len(tied) > 1:
        logger.debug("ambiguous match for %r at position %d: %r", token, index, tied)
        raise AmbiguousMatchError(
            "ambiguous input %r at %s position matches %d options" % (token, ordinal(index), len(tied)),
            title="ambiguous match",
            code=FaultCode.AMBIGUOUS_MATCH,
            token=token,
            index=index,
            candidates=tuple(tied),
            consumed=tuple(state.tokens),
            hint="type more of the word to tell them apart",
        )

    return tied[0]


def _bind(state, node, value):
    if node.repeatable:
        state.bindings.setdefault(node, []).append(value)
    else:
        state.bindings[node] = value


def _advance(state, node):
    remaining = [successor for successor in state.frontier if successor is not node or node.repeatable]
    state.frontier = list(node.successors) + [
        successor for successor in remaining if successor not in node.successors
    ]


def parse(tokens, root, /):
    """
    Match an ordered token sequence against the grammar rooted at `root`.

    Returns
    - ParseState: success, whether or not required parameters are present
      (see verify()).

    Raises
    - NoMatchesError: a token matched nothing in the frontier, or a named
      parameter had no value token after it (code MISSING_VALUE, token "").
    - AmbiguousMatchError: a token matched several nodes at the top priority.
    - TypeError: tokens is not an iterable of strings, or root is not a RootNode.
    """
    tokens = _sanitize_tokens(tokens)
    state = ParseState(root)
    stream = iter(enumerate(tokens, 1))

    for index, token in stream:
        node = _select(state, token, index)
        logger.debug("matched %r at position %d to %r", token, index, node)
        consumed = [token]

        match node:
            case CommandNode():
                state.command = node
                state.frontier = list(node.successors)
            case FlagParameterNode():
                _bind(state, node, True)
                _advance(state, node)
            case NamedParameterNode():
                try:
                    _, value = next(stream)
                except StopIteration:
                    raise NoMatchesError(
                        "missing value for %r at %s position" % (node.name, ordinal(index + 1)),
                        title="missing value",
                        code=FaultCode.MISSING_VALUE,
                        token="",
                        index=index + 1,
                        candidates=() if node.hidden else (node,),
                        consumed=tuple(state.tokens + consumed),
                        hint="add a value after %r (for example: %s <value>)" % (token, node.name),
                    ) from None
                consumed.append(value)
                _bind(state, node, value)
                _advance(state, node)
            case SimpleParameterNode():
                _bind(state, node, token)
                _advance(state, node)
            case _:
                raise RuntimeError("unreachable")

        state.trace.append(node)
        state.tokens.extend(consumed)

    return state


def verify(state, /):
    """
    Check that every required parameter of the matched command is bound.

    Inspects the command's full declared parameter list, so required
    parameters never reached during the walk are reported too. Never mutates
    the state.

    Raises
    - MissingRequiredError: carries the ordered tuple of missing names.
    """
    if not isinstance(state, ParseState):
        raise TypeError("verify() argument must be a parse state")
    if state.command is None:
        return

    missing = tuple(
        parameter.name
        for parameter in state.command.parameters
        if parameter.required and parameter not in state.bindings
    )
    if not missing:
        return

    label = "parameter" if len(missing) == 1 else pluralize("parameter")
    raise MissingRequiredError(
        "missing required %s %s for command %r" % (
            label, ", ".join(map(repr, missing)), state.command.name
        ),
        title="missing required %s" % label,
        code=FaultCode.MISSING_REQUIRED,
        missing=missing,
        command=state.command,
        hint="add %s to the command line" % " and ".join(missing),
    )


def _target(state):
    target = state.command
    seen = set()
    while isinstance(target, WrapperNode):
        if target in seen:
            raise LookupError(f"wrapper cycle through {target.name!r}")
        seen.add(target)
        target = state.root.resolve(target.wrapped)
    return target


def execute(state, /):
    """
    Invoke the handler of the matched command with this parse's bindings.

    - CommandNode: its own handler.
    - WrapperNode: the handler of the command the wrapper chain ends at; the
      bindings passed are the wrapper's (what the user actually typed).
    - No matched command or no handler: no-op (returns None).

    The handler receives one argument: a read-only mapping of parameter names
    to values (repeated values as tuples). Its return value is returned;
    its exceptions propagate.
    """
    if not isinstance(state, ParseState):
        raise TypeError("execute() argument must be a parse state")

    match state.command:
        case None:
            return None
        case WrapperNode() | CommandNode():
            target = _target(state)
        case _:
            raise RuntimeError("unreachable")

    if target.handler is None:
        logger.debug("command %r has no handler", target.name)
        return None

    bindings = MappingProxyType({name: freeze(value) for name, value in state.namespace().items()})
    logger.debug("executing %r with %r", target.name, dict(bindings))
    return target.handler(bindings)


def complete(tokens, root, /):
    """
    Return literal completions for the last (partial) token.

    All tokens but the last are parsed; the last one is a partial word ("" for
    a fresh word). Completions are the literals (names and aliases) of visible
    frontier nodes starting with it, ordered by priority descending, then
    literal. A named parameter waiting for its value completes to nothing.
    """
    tokens = _sanitize_tokens(tokens)
    head, partial = (tokens[:-1], tokens[-1]) if tokens else ([], "")

    try:
        state = parse(head, root)
    except NoMatchesError as fault:
        # the partial word is the value of a named parameter
        if fault.options.get("code") is FaultCode.MISSING_VALUE:
            return ()
        raise

    matches = sorted(
        (-node.priority, literal)
        for node in state.frontier
        if not node.hidden
        for literal in node.literals
        if literal.startswith(partial)
    )
    return tuple(dict.fromkeys(literal for _, literal in matches))


class Parser:
    """
    Convenience facade over parse/verify/execute for a single frozen root.

    The root is shared read-only; each parse() creates a fresh ParseState,
    which is kept so verify()/execute() can follow.
    """

    def __init__(self, root, /):
        if not isinstance(root, RootNode):
            raise TypeError("parser 'root' must be a root node")
        self._root = root
        self._state = None

    @property
    def root(self):
        return self._root

    @property
    def state(self):
        return self._state

    def parse(self, tokens, /):
        self._state = None
        self._state = parse(tokens, self._root)
        return self._state

    def verify(self):
        if self._state is None:
            raise RuntimeError("verify() requires a successful parse()")
        verify(self._state)

    def execute(self):
        if self._state is None:
            raise RuntimeError("execute() requires a successful parse()")
        return execute(self._state)

    def complete(self, tokens, /):
        return complete(tokens, self._root)


__all__ = (
    "ParseState",
    "Parser",
    "parse",
    "verify",
    "execute",
    "complete",
)
