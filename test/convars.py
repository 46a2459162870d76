"""
Convar and ConvarStore tests.

Scope
- Typed assignment from text, zero-value fallback and fault reporting.
- Category-aware lookup (qualified first, then bare; "$" is absolute).
- Attribute-bound convars writing through to their owner.
"""
import unittest
from enum import Enum
from unittest import TestCase

from devcom.contexts import Context
from devcom.convars import *
from devcom.faults import DeclarationError


class Mode(Enum):
    WINDOWED = 0
    FULLSCREEN = 1


class Settings:
    volume = 0.5
    title = "game"


class TestConvar(TestCase):

    def testTypeFromDefault(self):
        self.assertIs(Convar("gravity", 9.8).type, float)
        self.assertIs(Convar("name", None).type, str)
        self.assertIs(Convar("mode", Mode.WINDOWED).type, Mode)

    def testDefaultIsConvertedToDeclaredType(self):
        convar = Convar("limit", "10", type=int)
        self.assertEqual(convar.value, 10)
        with self.assertRaises(DeclarationError):
            Convar("limit", "ten", type=int)

    def testQualifiedName(self):
        self.assertEqual(Convar("gravity", 9.8, category="physics").qualname, "physics.gravity")
        self.assertEqual(Convar("gravity", 9.8).qualname, "gravity")

    def testInvalidNames(self):
        with self.assertRaises(DeclarationError):
            Convar("9lives", 1)
        with self.assertRaises(DeclarationError):
            Convar("lives", 1, category="bad..category")

    def testAssign(self):
        convar = Convar("fullscreen", False)
        self.assertTrue(convar.assign("on"))
        self.assertIs(convar.value, True)
        self.assertEqual(convar.text, "true")

    def testFailedAssignStoresZero(self):
        convar = Convar("mode", Mode.FULLSCREEN)
        self.assertFalse(convar.assign("borderless"))
        self.assertIs(convar.value, Mode.WINDOWED)

    def testBooleanIsNotANumber(self):
        convar = Convar("count", 3)
        self.assertFalse(convar.assign(True))
        self.assertEqual(convar.value, 0)
        self.assertIsInstance(convar.value, int)

    def testReset(self):
        convar = Convar("gravity", 9.8)
        convar.value = "1.5"
        self.assertEqual(convar.value, 1.5)
        convar.reset()
        self.assertEqual(convar.value, 9.8)


class TestAttributeSlot(TestCase):

    def tearDown(self):
        Settings.volume = 0.5
        Settings.title = "game"

    def testDefaultComesFromAttribute(self):
        convar = Convar("volume", backing=AttributeSlot(Settings, "volume"))
        self.assertEqual(convar.default, 0.5)
        self.assertIs(convar.type, float)

    def testWritesThrough(self):
        convar = Convar("title", "demo", backing=AttributeSlot(Settings, "title"))
        self.assertEqual(Settings.title, "demo")
        convar.assign("other")
        self.assertEqual(Settings.title, "other")

    def testMissingAttribute(self):
        with self.assertRaises(DeclarationError):
            Convar("missing", backing=AttributeSlot(Settings, "missing"))


class TestConvarStore(TestCase):

    def setUp(self):
        self.messages = []
        self.context = Context(sink=self.messages.append)
        self.store = ConvarStore()
        self.store.register(Convar("gravity", 9.8, category="physics"))
        self.store.register(Convar("speed", 5))

    def testDuplicateIsRejected(self):
        with self.assertRaises(DeclarationError):
            self.store.register(Convar("Gravity", 1.0, category="Physics"))

    def testLookupOrder(self):
        self.assertEqual(self.store.get("gravity", "physics"), 9.8)
        self.assertEqual(self.store.get("speed", "physics"), 5)
        self.assertEqual(self.store.get("physics.gravity"), 9.8)
        self.assertEqual(self.store.get("$speed", "physics"), 5)
        with self.assertRaises(KeyError):
            self.store.get("gravity")

    def testUncastableSetDrivesZeroAndReports(self):
        self.assertFalse(self.store.set("physics.gravity", "abc", self.context))
        self.assertEqual(self.store.get("physics.gravity"), 0.0)
        self.assertEqual(len(self.messages), 1)
        self.assertIn("physics.gravity", self.messages[0])

    def testUnknownSetReports(self):
        self.assertFalse(self.store.set("nope", "1", self.context))
        self.assertEqual(len(self.messages), 1)
        self.assertIn("not found", self.messages[0])

    def testSetWithoutContextDoesNotRaise(self):
        with self.assertLogs("devcom.faults", "WARNING"):
            self.assertFalse(self.store.set("speed", "fast"))
        self.assertEqual(self.store.get("speed"), 0)

    def testSnapshotAndApply(self):
        self.store.set("speed", "8")
        snapshot = self.store.snapshot()
        self.assertEqual(snapshot, {"physics.gravity": "9.8", "speed": "8"})

        other = ConvarStore()
        other.register(Convar("speed", 5))
        self.assertEqual(other.apply({"speed": "8", "unknown": "1"}), 1)
        self.assertEqual(other.get("speed"), 8)

    def testIterationAndCategories(self):
        self.assertEqual([convar.qualname for convar in self.store], ["physics.gravity", "speed"])
        self.assertEqual(len(self.store), 2)
        self.assertIn("PHYSICS.gravity", self.store)
        self.assertEqual(self.store.categories(), {"physics"})


if __name__ == "__main__":
    unittest.main()
