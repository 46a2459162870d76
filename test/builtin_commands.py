"""
Built-in console commands (help, commands, convars, cat, get/set/reset/toggle,
echo, saveconfig/loadconfig).
"""
import json
import tempfile
import unittest
from pathlib import Path
from unittest import TestCase

from devcom import *


class TestBuiltins(TestCase):

    def setUp(self):
        self.messages = []
        self.directory = tempfile.TemporaryDirectory()
        self.path = Path(self.directory.name) / "devcom.json"
        self.engine = Devcom(sink=self.messages.append, config=self.path)

        @command(category="physics")
        def jump(context, height: float = 1.0):
            """make the player jump"""

        @command
        def kick(context: AdminContext, who):
            """kick a player"""

        self.engine.load(
            jump,
            kick,
            convar("gravity", 9.8, "world gravity", "physics"),
            convar("fullscreen", False),
            config=False,
        )
        self.messages.clear()
        self.context = self.engine.context()
        self.admin = self.engine.admin()

    def tearDown(self):
        self.directory.cleanup()

    def dispatch(self, line, context=None):
        self.messages.clear()
        return self.engine.dispatch(line, context if context is not None else self.context)

    def testHelp(self):
        self.assertEqual(self.dispatch("help physics.jump"), [True])
        self.assertEqual(self.messages, ["physics.jump <height (optional)>", "    make the player jump"])

    def testHelpHidesGatedCommands(self):
        self.dispatch("help kick")
        self.assertEqual(len(self.messages), 1)
        self.assertIn("not found", self.messages[0])
        self.dispatch("help kick", self.admin)
        self.assertEqual(self.messages, ["kick <who>", "    kick a player"])

    def testCommandsListsReachableOnly(self):
        self.dispatch("commands")
        listed = [message.split()[0] for message in self.messages]
        self.assertIn("physics.jump", listed)
        self.assertIn("help", listed)
        self.assertNotIn("kick", listed)
        self.assertNotIn("saveconfig", listed)

        self.dispatch("commands", self.admin)
        listed = [message.split()[0] for message in self.messages]
        self.assertIn("kick", listed)
        self.assertIn("saveconfig", listed)

    def testCommandsPrefix(self):
        self.dispatch("commands physics")
        self.assertEqual(self.messages, ["physics.jump <height (optional)> : make the player jump"])

    def testConvars(self):
        self.dispatch("convars physics")
        self.assertEqual(self.messages, ["physics.gravity = '9.8'"])

    def testCat(self):
        self.dispatch("cat physics")
        self.assertEqual(self.context.category, "physics")
        self.dispatch("$cat")
        self.assertEqual(self.messages, ["category: physics"])
        self.dispatch("$cat ..")
        self.assertEqual(self.context.category, "")
        self.dispatch("cat sys | $cat $")
        self.assertEqual(self.context.category, "")

    def testCatUnknownCategory(self):
        self.assertEqual(self.dispatch("cat nowhere"), [True])
        self.assertEqual(self.context.category, "")
        self.assertEqual(len(self.messages), 1)
        self.assertIn("category 'nowhere' not found", self.messages[0])

    def testGetSetReset(self):
        self.dispatch("set physics.gravity 1.5")
        self.assertEqual(self.messages, ["physics.gravity = '1.5'"])
        self.dispatch("get physics.gravity")
        self.assertEqual(self.messages, ["physics.gravity = '1.5'"])
        self.dispatch("reset physics.gravity")
        self.assertEqual(self.messages, ["physics.gravity = '9.8'"])

    def testGetUnknown(self):
        self.dispatch("get nope")
        self.assertEqual(len(self.messages), 1)
        self.assertIn("convar 'nope' not found", self.messages[0])

    def testSetRelativeToCategory(self):
        self.context.category = "physics"
        self.dispatch("$set gravity 2")
        self.assertEqual(self.engine.convars.get("physics.gravity"), 2.0)

    def testToggle(self):
        self.dispatch("toggle fullscreen")
        self.assertIs(self.engine.convars.get("fullscreen"), True)
        self.dispatch("toggle physics.gravity")
        self.assertEqual(len(self.messages), 1)
        self.assertIn("not a boolean", self.messages[0])

    def testEcho(self):
        self.dispatch('echo hello "big world"')
        self.assertEqual(self.messages, ["hello big world"])

    def testConfigCommandsNeedAdmin(self):
        self.assertEqual(self.dispatch("saveconfig"), [False])
        self.assertFalse(self.path.exists())

    def testSaveAndLoadConfig(self):
        self.dispatch("set physics.gravity 3 | saveconfig", self.admin)
        self.assertEqual(json.loads(self.path.read_text())["physics.gravity"], "3.0")

        self.engine.convars.set("physics.gravity", "1")
        self.dispatch("loadconfig", self.admin)
        self.assertEqual(self.engine.convars.get("physics.gravity"), 3.0)
        self.assertEqual(self.messages[-1], "loaded 4 convar(s)")


if __name__ == "__main__":
    unittest.main()
