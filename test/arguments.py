# python
"""
Arguments module behavioral tests (declarations, handles, task groups).

Scope
- Validate Flag construction, cell updates and the satisfied bit.
- Validate Task/Tasks declaration rules and the slot lifecycle.
- Validate read handles refuse to be read before parsing completed.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argosy import Arguments, Flag, Task, Tasks, RedefinitionError, UnboundValueError
from argosy.tokens import Cursor


class TestFlag(TestCase):
    """Behavioral tests for Flag cells."""

    def testOptionalFlagStartsSatisfied(self):
        flag = Flag("little", "suspect mammal", "fox")
        self.assertTrue(flag.satisfied)
        self.assertEqual(flag.value, "fox")
        self.assertFalse(flag.required)

    def testRequiredFlagSatisfiedAfterParse(self):
        flag = Flag("key", "gate key", "", True)
        self.assertFalse(flag.satisfied)
        flag.parse(Cursor(["brass"]))
        self.assertTrue(flag.satisfied)
        self.assertEqual(flag.value, "brass")

    def testConverterReceivesPreviousValue(self):
        flag = Flag("bop", "head bop count", 1, convert=lambda token, last: int(token) + last)
        flag.parse(Cursor(["2"]))
        flag.parse(Cursor(["3"]))
        self.assertEqual(flag.value, 6)
        self.assertEqual(flag.default, 1)

    def testFailedConversionLeavesCellUntouched(self):
        flag = Flag("bop", "head bop count", 0, True, lambda token, last: int(token))
        with self.assertRaises(ValueError):
            flag.parse(Cursor(["x"]))
        self.assertEqual(flag.value, 0)
        self.assertFalse(flag.satisfied)

    def testVariadicFlagReceivesBoundedCursor(self):
        flag = Flag("loco", "moving", "wiggle", convert=lambda cursor, last: ",".join(cursor), variadic=True)
        cursor = Cursor(["hop", "hop", "--mammal"])
        flag.parse(cursor)
        self.assertEqual(flag.value, "hop,hop")
        self.assertEqual(cursor.peek(), "--mammal")

    def testVariadicFlagRequiresConverter(self):
        with self.assertRaises(TypeError):
            Flag("loco", "moving", variadic=True)

    def testConverterMustBeCallable(self):
        with self.assertRaises(TypeError):
            Flag("bop", "count", 0, convert=3)

    def testNamesAreValidated(self):
        with self.assertRaises(TypeError):
            Flag(3, "numeric name")
        with self.assertRaises(ValueError):
            Flag("", "empty name")
        with self.assertRaises(ValueError):
            Flag("--little", "prefixed name")
        with self.assertRaises(ValueError):
            Flag("@little", "file-like name")
        with self.assertRaises(ValueError):
            Flag("two words", "spaced name")

    def testUnderscoresAndDotsAllowed(self):
        self.assertEqual(Flag("kotlin_module.name", "module").name, "kotlin_module.name")

    def testDescriptionIsTrimmed(self):
        self.assertEqual(Flag("little", "  suspect mammal  ").descr, "suspect mammal")
        with self.assertRaises(TypeError):
            Flag("little", None)

    def testRepresentation(self):
        self.assertEqual(
            repr(Flag("little", "suspect mammal", "fox")),
            "flag(name='little', descr='suspect mammal', default='fox', required=False, variadic=False)",
        )

    def testPropertiesAreReadOnly(self):
        flag = Flag("little", "suspect mammal")
        with self.assertRaises(AttributeError):
            flag.name = "other"


class TestTasks(TestCase):
    """Behavioral tests for Task declarations and groups."""

    def testTaskFactoryMustBeCallable(self):
        with self.assertRaises(TypeError):
            Task("bopping", "action", "not callable")

    def testDuplicateTaskInGroupRejected(self):
        group = Tasks(Arguments())
        group.of("bopping", "action", dict)
        with self.assertRaises(RedefinitionError):
            group.of("bopping", "again", dict)

    def testGroupChainsAndInstallsOnExit(self):
        arguments = Arguments()
        with arguments.task() as group:
            self.assertIs(group.of("bopping", "action", dict), group)
            group.of("hopping", "other", dict)
            self.assertFalse(group.installed)
        self.assertTrue(group.installed)
        self.assertEqual(list(arguments.tasks), ["bopping", "hopping"])
        with self.assertRaises(RuntimeError):
            group.of("skipping", "late", dict)

    def testGroupNotInstalledWhenBlockFails(self):
        arguments = Arguments()
        with self.assertRaises(KeyError):
            with arguments.task() as group:
                group.of("bopping", "action", dict)
                raise KeyError("boom")
        self.assertFalse(group.installed)
        self.assertEqual(dict(arguments.tasks), {})

    def testInstallOnlyOnce(self):
        group = Arguments().task().of("bopping", "action", dict)
        group.install()
        with self.assertRaises(RuntimeError):
            group.install()


class TestHandles(TestCase):
    """Handles and slots are readable only after parsing completed."""

    def testHandleUnboundUntilParsed(self):
        arguments = Arguments()
        handle = arguments.flag("little", "suspect mammal", "fox")
        with self.assertRaises(UnboundValueError):
            handle.value
        self.assertIn("unbound", repr(handle))
        arguments.parse_into(lambda a: None)
        self.assertEqual(handle.value, "fox")
        self.assertEqual(handle.name, "little")

    def testSlotUnboundUntilParsed(self):
        arguments = Arguments(["bopping"])
        with arguments.task() as group:
            group.of("bopping", "action", lambda a: "bopped")
        with self.assertRaises(UnboundValueError):
            group.slot.value
        arguments.parse_into(lambda a: None)
        self.assertTrue(group.slot.created)
        self.assertEqual(group.slot.value, "bopped")
        self.assertEqual(group.slot.name, "bopping")


if __name__ == "__main__":
    unittest.main()
