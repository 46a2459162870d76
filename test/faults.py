"""
Fault rendering and trigger() contract tests.
"""
import unittest
from unittest import TestCase

from devcom.contexts import Context
from devcom.faults import *


class TestFaults(TestCase):

    def testRendering(self):
        fault = UnknownCommandError(
            "command 'x' not found",
            title="command not found",
            code=FaultCode.UNKNOWN_COMMAND,
            hint="run 'commands'",
        )
        self.assertEqual(str(fault), "[ 11101 | command not found ] command 'x' not found → run 'commands'")

    def testRenderingWithoutOptions(self):
        self.assertEqual(str(SubstitutionError("oops")), "[ - | SubstitutionError ] oops")

    def testTriggerPostsOnceToContext(self):
        messages = []
        trigger(ParameterCountError("too few", code=FaultCode.PARAMETER_COUNT), context=Context(sink=messages.append))
        self.assertEqual(messages, ["[ 11111 | ParameterCountError ] too few"])

    def testTriggerWithoutContextLogs(self):
        with self.assertLogs("devcom.faults", "WARNING") as logs:
            trigger(UnknownConvarError("convar 'x' not found"))
        self.assertIn("convar 'x' not found", logs.output[-1])

    def testReplaceKeepsTypeAndMergesOptions(self):
        fault = UncastableConvarError("bad", title="t")
        replaced = fault.__replace__(hint="h")
        self.assertIsInstance(replaced, UncastableConvarError)
        self.assertEqual(dict(replaced.options), {"title": "t", "hint": "h"})
        self.assertEqual(dict(fault.options), {"title": "t"})

    def testTriggerContract(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))

    def testHostCodeLabels(self):
        import __main__
        previous = getattr(__main__, "__codes__", None)
        __main__.__codes__ = {FaultCode.UNKNOWN_CONVAR: "E-CONVAR"}
        try:
            self.assertEqual(FaultCode.UNKNOWN_CONVAR.normalize(), "E-CONVAR")
            self.assertEqual(FaultCode.UNKNOWN_COMMAND.normalize(), "11101")
        finally:
            if previous is None:
                del __main__.__codes__
            else:
                __main__.__codes__ = previous

    def testDeclarationErrorIsValueError(self):
        self.assertTrue(issubclass(DeclarationError, ValueError))
        self.assertFalse(issubclass(DeclarationError, ConsoleException))


if __name__ == "__main__":
    unittest.main()
