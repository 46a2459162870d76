"""
Command declaration, binding and invocation tests.

Scope
- Declaration checks raised at construction (DeclarationError).
- Binding: arity window, optional defaults, variadic tail, conversion faults.
- Invocation: access checks, delegated errors and strict mode.

Conventions
- Test method names follow CamelCase per project convention.
- Every rejected invocation posts exactly one message to the context sink.
"""
import unittest
from unittest import TestCase

from devcom.commands import *
from devcom.contexts import *
from devcom.faults import *


class TestDeclaration(TestCase):

    def testUsage(self):
        command = Command(
            lambda context, *args: None,
            name="spawn",
            category="world",
            params=(Param("name"), Param("mass", float, 1.0), Param("tags", variadic=True)),
        )
        self.assertEqual(command.qualname, "world.spawn")
        self.assertEqual(command.usage, "<name> <mass (optional)> <tags...>")

    def testNameDefaultsToCallback(self):
        def jump(context):
            pass

        self.assertEqual(Command(jump).name, "jump")

    def testVariadicMustBeLast(self):
        with self.assertRaises(DeclarationError):
            Command(print, name="bad", params=(Param("rest", variadic=True), Param("name")))

    def testVariadicMustBeString(self):
        with self.assertRaises(DeclarationError):
            Param("numbers", int, variadic=True)

    def testRequiredAfterOptional(self):
        with self.assertRaises(DeclarationError):
            Command(print, name="bad", params=(Param("a", int, 1), Param("b")))

    def testCapabilityIsRequired(self):
        with self.assertRaises(DeclarationError):
            Command(print, name="bad", capability="admin")

    def testNotCallable(self):
        with self.assertRaises(DeclarationError):
            Command("print", name="bad")


class TestBinding(TestCase):

    def setUp(self):
        self.command = Command(
            print,
            name="move",
            params=(Param("x", int), Param("y", int), Param("speed", float, 1.0)),
        )

    def testTooFewTokens(self):
        with self.assertRaises(ParameterCountError):
            self.command.bind(["1"])

    def testTooManyTokens(self):
        with self.assertRaises(ParameterCountError):
            self.command.bind(["1", "2", "3", "4"])

    def testOptionalGetsDefaultMarker(self):
        bound = self.command.bind(["1", "2"])
        self.assertEqual(bound, [1, 2, Default])
        self.assertEqual(self.command.resolve(bound), [1, 2, 1.0])

    def testUncastableParameter(self):
        with self.assertRaises(UncastableParameterError):
            self.command.bind(["1", "two"])
        with self.assertRaises(UncastableParameterError):
            self.command.bind(["1", "2", "fast"])

    def testVariadicTail(self):
        command = Command(print, name="say", params=(Param("who"), Param("words", variadic=True)))
        self.assertEqual(command.bind(["bob"]), ["bob"])
        self.assertEqual(command.bind(["bob", "a", "B", "3"]), ["bob", "a", "B", "3"])


class TestInvoke(TestCase):

    def setUp(self):
        self.messages = []
        self.calls = []
        self.context = Context(sink=self.messages.append)
        self.registry = CommandRegistry()

        def spawn(context, name, mass=2.5, *tags):
            self.calls.append((name, mass, tags))

        def fail(context):
            raise RuntimeError("boom")

        self.registry.register(Command(
            spawn,
            category="world",
            params=(Param("name"), Param("mass", float, 2.5), Param("tags", variadic=True)),
        ))
        self.registry.register(Command(fail))
        self.registry.register(Command(lambda context: self.calls.append("kick"), name="kick", capability=ADMIN))

    def testDefaultsAndVariadic(self):
        spawn = self.registry.find("WORLD.SPAWN")
        self.assertTrue(self.registry.invoke(spawn, self.context, ["crate"]))
        self.assertTrue(self.registry.invoke(spawn, self.context, ["crate", "4", "red", "big"]))
        self.assertEqual(self.calls, [("crate", 2.5, ()), ("crate", 4.0, ("red", "big"))])
        self.assertEqual(self.messages, [])

    def testCountMismatchReportsOnce(self):
        spawn = self.registry.find("world.spawn")
        self.assertFalse(self.registry.invoke(spawn, self.context, []))
        self.assertEqual(self.calls, [])
        self.assertEqual(len(self.messages), 1)
        self.assertIn("usage: world.spawn", self.messages[0])

    def testUnreachableLooksLikeMissing(self):
        kick = self.registry.find("kick")
        self.assertFalse(self.registry.invoke(kick, self.context, []))
        self.registry.not_found("nothing", self.context)
        self.assertEqual(self.calls, [])
        self.assertEqual(len(self.messages), 2)
        self.assertIn("command 'kick' not found", self.messages[0])
        self.assertIn("command 'nothing' not found", self.messages[1])

    def testAdminReachesGatedCommand(self):
        kick = self.registry.find("kick")
        self.assertTrue(self.registry.invoke(kick, AdminContext(sink=self.messages.append), []))
        self.assertEqual(self.calls, ["kick"])

    def testDelegatedError(self):
        fail = self.registry.find("fail")
        self.assertFalse(self.registry.invoke(fail, self.context, []))
        self.assertEqual(len(self.messages), 1)
        self.assertIn("RuntimeError: boom", self.messages[0])

    def testStrictReraises(self):
        fail = self.registry.find("fail")
        with self.assertRaises(RuntimeError):
            self.registry.invoke(fail, self.context, [], strict=True)

    def testDuplicateRegistration(self):
        with self.assertRaises(DeclarationError):
            self.registry.register(Command(print, name="Fail"))

    def testSuggestionsOnlyFromReachableCommands(self):
        self.registry.not_found("kik", self.context)
        self.assertNotIn("did you mean 'kick'", self.messages[0])
        self.registry.not_found("fial", self.context)
        self.assertIn("did you mean 'fail'", self.messages[1])

    def testIterationOrderAndCategories(self):
        self.assertEqual([command.qualname for command in self.registry], ["fail", "kick", "world.spawn"])
        self.assertEqual(
            [command.qualname for command in self.registry.accessible(self.context)],
            ["fail", "world.spawn"],
        )
        self.assertEqual(self.registry.categories(), {"world"})


if __name__ == "__main__":
    unittest.main()
