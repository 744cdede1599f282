"""
Arbor faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- NoMatchesError / AmbiguousMatchError / MissingRequiredError / TokenizeError:
  the recoverable failures of one input line (tokenize → parse → verify).
- trigger(): central entry point to surface any fault (raise, or print in shell mode).

UX goals
- Token-first messages: every matching message names the offending token and
  its ordinal position so users can learn by trying.
- Candidate listings: no-match and ambiguity faults list what would have been
  accepted (help symbol + help text), hidden nodes never shown.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The parser raises faults directly; callers may catch CommandException.
- Interactive callers use trigger(fault, shell=True, ...) to render via rich.
"""
import inspect
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the grammar engine (stable identifiers).

    grouping (by high-level domain)
    - matching (211xx)
      • NO_MATCHES, AMBIGUOUS_MATCH, MISSING_VALUE
    - verification (212xx)
      • MISSING_REQUIRED
    - tokenizing (213xx)
      • UNTERMINATED_QUOTE
    - grammar warnings (221xx)
      • AMBIGUOUS_GRAMMAR

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- matching errors (211xx) ---
    NO_MATCHES                  = 21101
    AMBIGUOUS_MATCH             = 21102
    MISSING_VALUE               = 21103

    # --- verification errors (212xx) ---
    MISSING_REQUIRED            = 21201

    # --- tokenizer errors (213xx) ---
    UNTERMINATED_QUOTE          = 21301

    # --- grammar warnings (221xx) ---
    AMBIGUOUS_GRAMMAR           = 22101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _styles(defaults):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


def _render(fault, styles, title):
    """
    Shared rich rendering for errors and warnings.

    Options consumed (all optional)
    - prog, code, title, hint, colorful, fancy, console, candidates
    """
    options = fault.options
    colorful = options.get("colorful", True)
    target = options.get("console", console)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    prog = text(options.get("prog", getattr(__import__("__main__"), "__prog__", "arbor")), styler("prog-name"))
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if code is not None else "", styler("code")),
        " | ",
        text(str(options.get("title", type(fault).__name__)).title(), styler(title)),
        " ]"
    )
    parts = [text(fault.message, styler(title.replace("title", "message")))]

    # candidate listing (hidden nodes never rendered)
    visible = [node for node in options.get("candidates", ()) if not node.hidden]
    if fault.listing and visible:
        parts.append(text(fault.listing + ":", styler("listing-label")))
        table = Table.grid(padding=(0, 2))
        table.add_column(style=styler("symbol"))
        table.add_column(style=styler("help-text"))
        for node in visible:
            table.add_row("  " + node.help_symbol, node.help_text)
        parts.append(table)

    if hint := options.get("hint"):
        parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

    if options.get("fancy", False):
        width = target.width - 4
        try:
            width = int(width * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*parts), title=header, title_align="left", width=width)

    return Group(header, *parts)


class CommandException(Exception):
    listing = None

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, _styles({
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "listing-label": "bold #FFFFFF",
            "symbol": "bold #00E6FF",
            "help-text": "#9CA3AF",
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        }), "error-title")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class NoMatchesError(CommandException):
    listing = "possible options"

    @property
    def token(self):
        return self.options.get("token")

    @property
    def candidates(self):
        return tuple(self.options.get("candidates", ()))


class AmbiguousMatchError(CommandException):
    listing = "can be interpreted as"

    @property
    def token(self):
        return self.options.get("token")

    @property
    def candidates(self):
        return tuple(self.options.get("candidates", ()))


class MissingRequiredError(CommandException):
    @property
    def missing(self):
        return tuple(self.options.get("missing", ()))


class TokenizeError(CommandException):
    @property
    def line(self):
        return self.options.get("line")


class CommandWarning(ABC, Warning):
    listing = None

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, _styles({
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        }), "warning-title")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class AmbiguousGrammarWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise, exceptions
      are raised and warnings are emitted through the warnings module.

    typical options
    - shell, fancy, colorful, console, prog, and any context the renderer may
      want to show (token, candidates, hint, ...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "CommandException",
    "NoMatchesError",
    "AmbiguousMatchError",
    "MissingRequiredError",
    "TokenizeError",
    "CommandWarning",
    "AmbiguousGrammarWarning",
    "FaultCode",
    "trigger",
)
