"""
Utility helper tests (Unset marker, coalesce, rename, mirror).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argosy import Arguments, Flag
from argosy.utils import Unset, UnsetType, coalesce, rename, mirror


class TestUnset(TestCase):

    def testSingleFalseyInstance(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testCannotSubclass(self):
        with self.assertRaises(TypeError):
            type("Other", (UnsetType,), {})

    def testCoalesceKeepsFalseyValues(self):
        self.assertEqual(coalesce(Unset, "fox"), "fox")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(None, "fox"))


class TestRename(TestCase):

    def testSetsBothNames(self):
        @rename("bopper")
        def function():
            pass

        self.assertEqual(function.__name__, "bopper")
        self.assertEqual(function.__qualname__, "bopper")

    def testRejectsNonStringName(self):
        with self.assertRaises(TypeError):
            rename(3)


class TestMirror(TestCase):

    def testReadOnlyProperty(self):
        class Burrow:
            depth = mirror("depth")

            def __init__(self):
                self._depth = 3

        burrow = Burrow()
        self.assertEqual(burrow.depth, 3)
        with self.assertRaises(AttributeError):
            burrow.depth = 4

    def testContainerDefaultIsCopied(self):
        flag = Flag("mice", "mice seen", ["field"])
        flag.default.append("forest")
        self.assertEqual(flag.default, ["field"])

    def testTaskMappingIsCopied(self):
        group = Arguments().task().of("bopping", "action", dict)
        group.tasks.clear()
        self.assertEqual(list(group.tasks), ["bopping"])


if __name__ == "__main__":
    unittest.main()
