"""
Utility tests (sentinel, coalescing, freezing, English helpers).

Scope
- Validate Unset identity and falsiness, and coalesce() defaulting.
- Validate freeze() per container kind.
- Validate ordinal()/pluralize() wording used in fault messages.
- Validate rename() forms.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from types import MappingProxyType
from unittest import TestCase

from arbor.utils import Unset, UnsetType, coalesce, freeze, ordinal, pluralize, rename


class TestUnset(TestCase):
    """The Unset sentinel and coalesce()."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            type("Other", (UnsetType,), {})

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertIsNone(coalesce(Unset))


class TestFreeze(TestCase):
    """Shallow freezing of containers."""

    def testSequence(self):
        self.assertEqual(freeze([1, 2]), (1, 2))

    def testStringUntouched(self):
        self.assertEqual(freeze("abc"), "abc")

    def testMapping(self):
        frozen = freeze({"a": 1})
        self.assertIsInstance(frozen, MappingProxyType)
        self.assertEqual(frozen["a"], 1)

    def testSet(self):
        self.assertEqual(freeze({1, 2}), frozenset({1, 2}))

    def testScalar(self):
        self.assertIs(freeze(True), True)


class TestWording(TestCase):
    """ordinal() and pluralize()."""

    def testOrdinalWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")

    def testOrdinalSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(112), "112th")

    def testPluralize(self):
        self.assertEqual(pluralize("parameter"), "parameters")
        self.assertEqual(pluralize("entry"), "entries")
        self.assertEqual(pluralize("alias"), "aliases")
        self.assertEqual(pluralize("required Parameter"), "required Parameters")


class TestRename(TestCase):
    """rename() direct and decorator forms."""

    def testDirect(self):
        def function():
            pass

        self.assertIs(rename(function, "other"), function)
        self.assertEqual(function.__name__, "other")

    def testDecorator(self):
        @rename("other")
        def function():
            pass

        self.assertEqual(function.__qualname__, "other")

    def testArity(self):
        with self.assertRaises(TypeError):
            rename()


if __name__ == "__main__":
    unittest.main()
