"""
Shell tests (one-line pipeline, completions, read loop).

Scope
- Validate onecmd(): handler runs on success, faults printed (not raised).
- Validate completions() over raw line buffers.
- Validate run(): EOF ends the loop, Ctrl-C abandons a line, handler
  exceptions are logged and the loop continues, history is saved once.

Conventions
- Test method names follow CamelCase per project convention.
- input() is patched; output is captured with a rich Console on io.StringIO.
"""

from __future__ import annotations

import io
import os
import tempfile
import unittest
from unittest import TestCase, mock

from rich.console import Console

from arbor import CommandTree, Command, Parameter, ParameterKind, Shell


class TestShell(TestCase):
    """Shell over a small grammar."""

    def setUp(self):
        self.calls = []
        tree = CommandTree()

        @tree.command(
            "set",
            Parameter("--level", ParameterKind.NAMED, required=True),
            Parameter("--verbose", ParameterKind.FLAG),
        )
        def set_level(bindings):
            self.calls.append(dict(bindings))

        @tree.command("crash")
        def crash(bindings):
            raise RuntimeError("boom")

        tree.command(Command("show", Parameter("target")))
        self.console = Console(file=io.StringIO(), width=80, color_system=None)
        self.shell = Shell(tree.finalize(), console=self.console, prog="demo")

    @property
    def output(self):
        return self.console.file.getvalue()

    def testOnecmdRunsHandler(self):
        self.assertTrue(self.shell.onecmd("set --level 3"))
        self.assertEqual(self.calls, [{"--level": "3"}])

    def testOnecmdEmptyLine(self):
        self.assertFalse(self.shell.onecmd("   "))
        self.assertEqual(self.output, "")

    def testOnecmdPrintsNoMatches(self):
        self.assertFalse(self.shell.onecmd("foo"))
        self.assertIn("no match for 'foo'", self.output)
        self.assertIn("demo", self.output)

    def testOnecmdPrintsMissingRequired(self):
        self.assertFalse(self.shell.onecmd("set --verbose"))
        self.assertIn("missing required parameter '--level'", self.output)
        self.assertEqual(self.calls, [])

    def testOnecmdPrintsTokenizeError(self):
        self.assertFalse(self.shell.onecmd('set --level "3'))
        self.assertIn("Unterminated Quote", self.output)

    def testOnecmdPropagatesHandlerErrors(self):
        with self.assertRaises(RuntimeError):
            self.shell.onecmd("crash")

    def testColorfulDefaultsToTerminalDetection(self):
        self.assertFalse(self.console.is_terminal)
        self.shell.onecmd("foo")
        self.assertNotIn("\x1b[", self.output)

    def testCompletions(self):
        self.assertEqual(self.shell.completions(""), ("crash", "set", "show"))
        self.assertEqual(self.shell.completions("se"), ("set",))
        self.assertEqual(self.shell.completions("set "), ("--verbose", "--level"))
        self.assertEqual(self.shell.completions("set --level "), ())

    def testCompletionsSwallowFaults(self):
        self.assertEqual(self.shell.completions("foo "), ())
        self.assertEqual(self.shell.completions('set "--lev'), ())

    def testRunUntilEof(self):
        with mock.patch("builtins.input", side_effect=["set --level 1", "", EOFError()]):
            self.shell.run()
        self.assertEqual(self.calls, [{"--level": "1"}])
        self.assertTrue(self.output.rstrip().endswith("Exiting."))

    def testRunSurvivesInterrupt(self):
        with mock.patch("builtins.input", side_effect=[KeyboardInterrupt(), "set --level 2", EOFError()]):
            self.shell.run()
        self.assertEqual(self.calls, [{"--level": "2"}])

    def testRunLogsHandlerErrors(self):
        with mock.patch("builtins.input", side_effect=["crash", "set --level 5", EOFError()]):
            with self.assertLogs("arbor.shell", "ERROR"):
                self.shell.run()
        self.assertEqual(self.calls, [{"--level": "5"}])

    def testHistoryWriterRegisteredOnce(self):
        with tempfile.TemporaryDirectory() as directory:
            shell = Shell(self.shell.root, console=self.console, history=os.path.join(directory, "history"))
            with mock.patch("atexit.register") as register:
                for _ in range(2):
                    with mock.patch("builtins.input", side_effect=[EOFError()]):
                        shell.run()
        self.assertEqual(register.call_count, 1)

    def testRootMustBeRootNode(self):
        with self.assertRaises(TypeError):
            Shell(CommandTree())


if __name__ == "__main__":
    unittest.main()
