"""
Construction API tests (descriptions, decorator registration, finalize checks).

Scope
- Validate Parameter/Command description checks and defaulting rules.
- Validate CommandTree.command() in both description and decorator forms.
- Validate finalize(): fresh roots, shared parameter identity, wrapper
  target checks and ambiguous-grammar warnings.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (CommandTree, Command, Parameter, ParameterKind).
"""

from __future__ import annotations

import unittest
import warnings
from unittest import TestCase

from arbor import (
    CommandTree,
    Command,
    Parameter,
    ParameterKind,
    CommandNode,
    WrapperNode,
    FlagParameterNode,
    NamedParameterNode,
    SimpleParameterNode,
    PRIORITY_DEFAULT,
    PRIORITY_PARAMETER,
    AmbiguousGrammarWarning,
)


def noop(bindings):
    pass


class TestParameterDescription(TestCase):
    """Parameter descriptions and the nodes they build."""

    def testKindAcceptsStringValue(self):
        self.assertIs(Parameter("--level", "named").kind, ParameterKind.NAMED)

    def testUnknownKindRejected(self):
        with self.assertRaises(ValueError):
            Parameter("--level", "option")

    def testBuildSelectsNodeClass(self):
        self.assertIsInstance(Parameter("--verbose", ParameterKind.FLAG).build(), FlagParameterNode)
        self.assertIsInstance(Parameter("--level", ParameterKind.NAMED).build(), NamedParameterNode)
        self.assertIsInstance(Parameter("target").build(), SimpleParameterNode)

    def testDefaultPriorities(self):
        self.assertEqual(Parameter("--verbose", ParameterKind.FLAG).build().priority, PRIORITY_DEFAULT)
        self.assertEqual(Parameter("--level", ParameterKind.NAMED).build().priority, PRIORITY_PARAMETER)
        self.assertEqual(Parameter("target").build().priority, PRIORITY_PARAMETER)

    def testBuildCarriesFields(self):
        node = Parameter(
            "--tag",
            ParameterKind.NAMED,
            ("-t",),
            "tag to attach",
            required=True,
            repeatable=True,
            priority=3,
            hidden=True,
        ).build()
        self.assertEqual(node.aliases, ("-t",))
        self.assertEqual(node.descr, "tag to attach")
        self.assertTrue(node.required)
        self.assertTrue(node.repeatable)
        self.assertTrue(node.hidden)
        self.assertEqual(node.priority, 3)

    def testSimpleAliasesRejected(self):
        with self.assertRaises(ValueError):
            Parameter("target", aliases=("t",))

    def testEmptyDescriptionRejected(self):
        with self.assertRaises(ValueError):
            Parameter("target", descr="   ")

    def testAliasWithWhitespaceRejected(self):
        with self.assertRaises(ValueError):
            Parameter("--level", ParameterKind.NAMED, ("- l",))

    def testRequiredMustBeBoolean(self):
        with self.assertRaises(TypeError):
            Parameter("target", required="yes")  # type: ignore[arg-type]


class TestCommandDescription(TestCase):
    """Command descriptions and the nodes they build."""

    def testDuplicateParameterNamesRejected(self):
        with self.assertRaises(ValueError):
            Command("set", Parameter("--level", "named"), Parameter("--level", "flag"))

    def testParametersMustBeDescriptions(self):
        with self.assertRaises(TypeError):
            Command("set", "--level")  # type: ignore[arg-type]

    def testHandlerMustBeCallable(self):
        with self.assertRaises(TypeError):
            Command("show", handler=42)  # type: ignore[arg-type]

    def testWrapperCannotHaveHandler(self):
        with self.assertRaises(ValueError):
            Command("sh", wraps="show", handler=noop)

    def testWrapperCannotHaveSubcommands(self):
        with self.assertRaises(ValueError):
            Command("sh", wraps="show", commands=[Command("all")])

    def testBuildSharesParameterNodes(self):
        node = Command("set", Parameter("--level", "named"), Parameter("--verbose", "flag")).build()
        self.assertIsInstance(node, CommandNode)
        self.assertEqual(len(node.parameters), 2)
        for parameter, successor in zip(node.parameters, node.successors):
            self.assertIs(parameter, successor)

    def testBuildAppendsSubcommandsAfterParameters(self):
        node = Command("show", Parameter("target"), commands=[Command("interface")]).build()
        self.assertEqual([successor.name for successor in node.successors], ["target", "interface"])
        self.assertEqual([parameter.name for parameter in node.parameters], ["target"])

    def testBuildWrapper(self):
        node = Command("sh", Parameter("target"), wraps="show").build()
        self.assertIsInstance(node, WrapperNode)
        self.assertEqual(node.wrapped, ("show",))


class TestCommandTree(TestCase):
    """Registration and finalize()."""

    def testRegisterDescription(self):
        tree = CommandTree()
        description = Command("show")
        self.assertIs(tree.command(description), description)
        self.assertEqual(tree.commands, (description,))

    def testDescriptionFormTakesNoExtraArguments(self):
        with self.assertRaises(TypeError):
            CommandTree().command(Command("show"), descr="extra")

    def testDecoratorReturnsFunction(self):
        tree = CommandTree()

        @tree.command("show", Parameter("target"), descr="show things")
        def show(bindings):
            return bindings

        self.assertTrue(callable(show))
        self.assertEqual(len(tree.commands), 1)
        self.assertIs(tree.commands[0].handler, show)
        self.assertEqual(tree.commands[0].descr, "show things")

    def testDecoratorValidatesEagerly(self):
        with self.assertRaises(ValueError):
            CommandTree().command("show all")

    def testFinalizeReturnsFreshRoot(self):
        tree = CommandTree()
        tree.command(Command("show", handler=noop))
        first, second = tree.finalize(), tree.finalize()
        self.assertIsNot(first, second)
        self.assertEqual([node.name for node in first.successors], ["show"])

    def testFinalizeNestedResolve(self):
        tree = CommandTree()
        tree.command(Command("show", commands=[Command("interface", handler=noop)]))
        root = tree.finalize()
        self.assertEqual(root.resolve("show interface").name, "interface")

    def testUnknownWrapperTargetRejected(self):
        tree = CommandTree()
        tree.command(Command("sh", wraps="show"))
        with self.assertRaises(ValueError):
            tree.finalize()

    def testSelfWrapRejected(self):
        tree = CommandTree()
        tree.command(Command("loop", wraps="loop"))
        with self.assertRaises(ValueError):
            tree.finalize()

    def testWrapperCycleRejected(self):
        tree = CommandTree()
        tree.command(Command("ping", wraps="pong"))
        tree.command(Command("pong", wraps="ping"))
        with self.assertRaises(ValueError):
            tree.finalize()

    def testWrapperChainAccepted(self):
        tree = CommandTree()
        tree.command(Command("show", handler=noop))
        tree.command(Command("sh", wraps="show"))
        tree.command(Command("s", wraps="sh"))
        self.assertEqual(len(tree.finalize().successors), 3)

    def testAmbiguousSiblingsWarn(self):
        tree = CommandTree()
        tree.command(Command("show", handler=noop))
        tree.command(Command("show", handler=noop))
        with self.assertWarns(AmbiguousGrammarWarning):
            tree.finalize()

    def testDistinctPrioritiesDoNotWarn(self):
        tree = CommandTree()
        tree.command(Command("show", handler=noop))
        tree.command(Command("show", handler=noop, priority=5))
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            tree.finalize()


if __name__ == "__main__":
    unittest.main()
