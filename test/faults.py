"""
Faults and utilities behavioral tests.

Scope
- Validate Fault string semantics, codes and pickling.
- Validate rich rendering of ConfigurationError and OptionsExit.
- Validate the trigger() contract.
- Validate the Unset sentinel and the small helpers in parseopts.utils.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured with a recording rich Console.
"""

from __future__ import annotations

import copy
import io
import pickle
import types
import unittest
from unittest import TestCase, mock

from rich.console import Console

from parseopts import ConfigurationError, Fault, FaultCode, OptionsExit, trigger
from parseopts.utils import Unset, UnsetType, coalesce, freeze, pr_join, rename


def render(renderable):
    console = Console(file=io.StringIO(), width=100, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestFault(TestCase):
    """Behavioral tests for collected faults."""

    def testBehavesLikeItsMessage(self):
        fault = Fault('Unknown option: "-x"', FaultCode.UNKNOWN_OPTION)
        self.assertEqual(fault, 'Unknown option: "-x"')
        self.assertEqual(hash(fault), hash('Unknown option: "-x"'))
        self.assertEqual(str(fault), 'Unknown option: "-x"')
        self.assertIs(fault.code, FaultCode.UNKNOWN_OPTION)

    def testRequiresFaultCode(self):
        with self.assertRaises(TypeError):
            Fault("message", 21111)

    def testRepresentation(self):
        fault = Fault("bad", FaultCode.PARSE_FAILURE)
        self.assertEqual(repr(fault), "Fault('bad', code=PARSE_FAILURE)")

    def testPickling(self):
        fault = pickle.loads(pickle.dumps(Fault("bad", FaultCode.PARSE_FAILURE)))
        self.assertEqual(fault, "bad")
        self.assertIs(fault.code, FaultCode.PARSE_FAILURE)

    def testCodeTitles(self):
        self.assertEqual(FaultCode.MISSING_REQUIRED_ARGUMENT.title, "missing required argument")
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "21111")


class TestRendering(TestCase):
    """Behavioral tests for rich rendering."""

    def testConfigurationError(self):
        text = render(ConfigurationError("option specs share the short option '-a'", FaultCode.DUPLICATE_SHORT_OPT))
        self.assertIn("21124", text)
        self.assertIn("Duplicate Short Opt", text)
        self.assertIn("option specs share the short option '-a'", text)

    def testOptionsExit(self):
        text = render(OptionsExit(
            [Fault('Unknown option: "-x"', FaultCode.UNKNOWN_OPTION), "plain message"],
            summary="  -v  Verbose",
        ))
        self.assertIn("option errors", text)
        self.assertIn('21111 Unknown option: "-x"', text)
        self.assertIn("plain message", text)
        self.assertIn("-v  Verbose", text)

    def testSingleFaultHeader(self):
        text = render(OptionsExit([Fault("bad", FaultCode.PARSE_FAILURE)]))
        self.assertIn("option error ]", text)

    def testFancyPanel(self):
        text = render(OptionsExit([Fault("bad", FaultCode.PARSE_FAILURE)], fancy=True))
        self.assertIn("21113 bad", text)
        self.assertIn("─", text)

    def testCodeLabelsFromMain(self):
        main = types.SimpleNamespace(__codes__={FaultCode.PARSE_FAILURE: "E-PARSE"}, __prog__="demo")
        with mock.patch.dict("sys.modules", {"__main__": main}):
            text = render(OptionsExit([Fault("bad", FaultCode.PARSE_FAILURE)]))
        self.assertIn("E-PARSE bad", text)
        self.assertIn("demo", text)


class TestTrigger(TestCase):
    """Behavioral tests for the trigger() contract."""

    def testRaisesOutsideShell(self):
        with self.assertRaises(ConfigurationError):
            trigger(ConfigurationError("broken"), shell=False)

    def testExitsInShell(self):
        with mock.patch("parseopts.faults.console") as console:
            with self.assertRaises(SystemExit) as context:
                trigger(ConfigurationError("broken"), shell=True, status=3)
        self.assertEqual(context.exception.code, 3)
        console.print.assert_called_once()

    def testRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))


class TestUtils(TestCase):
    """Behavioral tests for the Unset sentinel and helpers."""

    def testUnsetSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy([Unset])[0], Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnsetIsFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testUnsetIsSealed(self):
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, 1), 1)
        self.assertIsNone(coalesce(None, 1))
        self.assertEqual(coalesce(0, 1), 0)

    def testPrJoin(self):
        self.assertEqual(pr_join("--port", "PORT"), '"--port PORT"')
        self.assertEqual(pr_join("--verbose", Unset), '"--verbose"')
        self.assertEqual(pr_join("-m", 'say "hi"'), '"-m say \\"hi\\""')

    def testFreeze(self):
        source = {"a": 1}
        frozen = freeze(source)
        source["a"] = 2
        self.assertEqual(frozen["a"], 1)
        with self.assertRaises(TypeError):
            frozen["a"] = 3

    def testRename(self):
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")
        with self.assertRaises(TypeError):
            rename(1, "name")


if __name__ == "__main__":
    unittest.main()
