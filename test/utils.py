"""
Tests for the shared helpers.

Scope
- Unset sentinel: identity, falsiness, representation, pickling, finality.
- coalesce(), mirror(), substitute() and typename().

Conventions
- Test method names follow CamelCase per project convention.
"""
import datetime
import decimal
import pickle
import unittest
import uuid
from pathlib import Path
from unittest import TestCase

from cmdspec.utils import *


class UnsetTest(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsey(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testPickleKeepsIdentity(self):
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnionInIsinstance(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("text", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testSubclassingForbidden(self):
        with self.assertRaises(TypeError):
            class Derived(UnsetType):  # NOQA: F-841
                pass


class CoalesceTest(TestCase):
    """Behavioral tests for coalesce()."""

    def testUnsetReplaced(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testFalseyValuesKept(self):
        self.assertEqual(coalesce(0, 5), 0)
        self.assertEqual(coalesce("", "x"), "")
        self.assertIsNone(coalesce(None, "x"))

    def testDefaultIsNone(self):
        self.assertIsNone(coalesce(Unset))


class MirrorTest(TestCase):
    """Behavioral tests for mirror()."""

    class Holder:
        names = mirror("names")
        table = mirror("table")
        count = mirror("count")

        def __init__(self):
            self._names = ["a", "b"]
            self._table = {"a": 1}
            self._count = 3

    def testContainersFrozen(self):
        holder = self.Holder()
        self.assertEqual(holder.names, ("a", "b"))
        with self.assertRaises(TypeError):
            holder.table["b"] = 2  # NOQA

    def testScalarPassesThrough(self):
        self.assertEqual(self.Holder().count, 3)

    def testReadOnly(self):
        with self.assertRaises(AttributeError):
            self.Holder().count = 4

    def testNameMustBeString(self):
        with self.assertRaises(TypeError):
            mirror(1)


class SubstituteTest(TestCase):
    """Behavioral tests for ${NAME} substitution."""

    def testKnownNameReplaced(self):
        self.assertEqual(substitute("${HOME}/data", {"HOME": "/srv"}), "/srv/data")

    def testUnknownNameKept(self):
        self.assertEqual(substitute("${NOPE}/data", {}), "${NOPE}/data")

    def testSeveralPlaceholders(self):
        self.assertEqual(substitute("${A}-${B}-${A}", {"A": "1", "B": "2"}), "1-2-1")

    def testTextMustBeString(self):
        with self.assertRaises(TypeError):
            substitute(1, {})


class TypenameTest(TestCase):
    """Behavioral tests for typename()."""

    def testBuiltins(self):
        self.assertEqual(typename(int), "INT")
        self.assertEqual(typename(str), "STR")

    def testLibraryTypes(self):
        self.assertEqual(typename(datetime.date), "DATE")
        self.assertEqual(typename(decimal.Decimal), "DECIMAL")
        self.assertEqual(typename(uuid.UUID), "UUID")
        self.assertEqual(typename(Path), "PATH")

    def testCamelCaseHyphenated(self):
        class MyColor:
            pass

        self.assertEqual(typename(MyColor), "MY-COLOR")


if __name__ == "__main__":
    unittest.main()
