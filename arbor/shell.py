"""
Arbor shell: an interactive read loop over a frozen grammar.

Each line goes through tokenize → parse → verify → execute; the first fault
stops the line and is printed through rich (never raised), then the loop
reads the next line. Tab completion and an optional history file are wired
through readline.
"""
import atexit
import logging
import os

from rich.console import Console

from .faults import CommandException, trigger
from .nodes import RootNode
from .parser import Parser
from .tokenizer import tokenize
from .utils import *

logger = logging.getLogger(__name__)


class Shell:
    """
    Read-eval loop bound to one RootNode.

    Options
    - prompt: text shown before each line.
    - console: rich console used for faults and messages (default: stdout).
    - fancy: render faults inside a panel.
    - colorful: style faults (default: whether the console is a terminal).
    - history: path of a readline history file, loaded on the first run() and
      saved once on exit.
    - prog: program name shown in fault headers (default: __main__.__prog__
      or "arbor").
    """

    def __init__(
            self,
            root,
            /,
            prompt=">> ",
            *,
            console=Unset,
            fancy=False,
            colorful=Unset,
            history=Unset,
            prog=Unset,
    ):
        if not isinstance(root, RootNode):
            raise TypeError("shell 'root' must be a root node")
        if not isinstance(prompt, str):
            raise TypeError("shell 'prompt' must be a string")
        if console is Unset:
            console = Console()
        elif not isinstance(console, Console):
            raise TypeError("shell 'console' must be a rich console")
        if not isinstance(fancy, bool):
            raise TypeError("shell 'fancy' must be a boolean")
        if not isinstance(colorful, bool | Unset):
            raise TypeError("shell 'colorful' must be a boolean")
        if not isinstance(history, str | os.PathLike | Unset):
            raise TypeError("shell 'history' must be a path")
        if not isinstance(prog, str | Unset):
            raise TypeError("shell 'prog' must be a string")

        self._parser = Parser(root)
        self._prompt = prompt
        self._console = console
        self._history = coalesce(history)
        self._restored = False
        self._options = {
            "shell": True,
            "console": console,
            "fancy": fancy,
            "colorful": coalesce(colorful, console.is_terminal),
        }
        if prog is not Unset:
            self._options["prog"] = prog

    @property
    def root(self):
        return self._parser.root

    @property
    def prompt(self):
        return self._prompt

    @property
    def console(self):
        return self._console

    def onecmd(self, line, /):
        """
        Run one input line through the whole pipeline.

        Returns True when the line was executed, False when it was empty or
        a fault was printed. Exceptions raised by handlers propagate.
        """
        try:
            tokens = tokenize(line)
            if not tokens:
                return False
            self._parser.parse(tokens)
            self._parser.verify()
        except CommandException as fault:
            logger.debug("line %r failed: %s", line, fault.message)
            trigger(fault, **self._options)
            return False
        self._parser.execute()
        return True

    def completions(self, line, /):
        """
        Return completions for a raw line buffer (cursor at its end).

        Trailing whitespace starts a fresh word; lines that cannot be
        tokenized or matched complete to nothing.
        """
        try:
            tokens = tokenize(line)
            if not line or line[-1].isspace():
                tokens.append("")
            return self._parser.complete(tokens)
        except CommandException:
            return ()

    def _completer(self, readline):
        matches = ()

        def completer(text, state):
            nonlocal matches
            if state == 0:
                matches = self.completions(readline.get_line_buffer()[:readline.get_endidx()])
            try:
                return matches[state] + " "
            except IndexError:
                return None

        return completer

    def run(self):
        """
        Loop on input() until end of file.

        Ctrl-C abandons the current line; Ctrl-D (EOF) leaves the loop.
        """
        # readline is unavailable on some platforms, keep the import local
        import readline

        readline.set_completer_delims(" \t\n")
        readline.set_completer(self._completer(readline))
        readline.parse_and_bind("tab: complete")

        if self._history is not None and not self._restored:
            self._restored = True
            atexit.register(readline.write_history_file, self._history)
            try:
                readline.read_history_file(self._history)
            except OSError:
                logger.debug("no history file at %r", os.fspath(self._history))

        while True:
            try:
                line = input(self._prompt)
            except KeyboardInterrupt:
                self._console.print()
                continue
            except EOFError:
                self._console.print()
                break
            try:
                self.onecmd(line)
            except Exception:
                logger.exception("command %r failed", line)

        self._console.print("Exiting.")


__all__ = (
    "Shell",
)
