"""
Parser facade behavioral tests.

Scope
- Validate parse_opts end to end: options, arguments, summary and errors.
- Validate the facade options (in_order, no_defaults, strict, summary_fn).
- Validate get_default_options and the finalize shell policy.
- Validate the demonstration entry point.

Conventions
- Test method names follow CamelCase per project convention.
- Shell output is silenced by patching the stderr console of parseopts.faults.
"""

from __future__ import annotations

import unittest
from unittest import TestCase, mock

from parseopts import (
    ConfigurationError,
    OptionsExit,
    ParseResult,
    finalize,
    get_default_options,
    option,
    parse_opts,
)
from parseopts.__main__ import main

DECLARATIONS = (
    ("-p", "--port PORT", "Port number", {
        "default": 80,
        "parse_fn": int,
        "validate": [lambda x: 0 < x < 0x10000, "Must be a number between 0 and 65536"],
    }),
    ("-H", "--hostname HOST", "Remote host", {
        "default_fn": lambda options: "localhost" if options["port"] == 80 else "remote",
    }),
    option("-f", "--file NAME", "Files", multi=True, default=[], update_fn=lambda files, name: [*files, name]),
    option("-v", None, "Verbosity", id="verbosity", default=0, update_fn=lambda n: n + 1),
    ("-d", "--[no-]daemon", "Detach", {"default": True}),
    ("-h", "--help"),
)


class TestParseOpts(TestCase):
    """Behavioral tests for parse_opts."""

    def testAllTogether(self):
        result = parse_opts(
            ["-vvp8080", "foo", "--file=a", "--no-daemon", "-f", "b", "bar", "--", "-x", "--port=1"],
            DECLARATIONS,
        )
        self.assertIsInstance(result, ParseResult)
        self.assertEqual(result.options, {
            "port": 8080,
            "hostname": "remote",
            "file": ["a", "b"],
            "verbosity": 2,
            "daemon": False,
        })
        self.assertEqual(result.arguments, ["foo", "bar", "-x", "--port=1"])
        self.assertEqual(result.errors, ())
        self.assertIn("--[no-]daemon", result.summary)

    def testErrorsAreCollected(self):
        result = parse_opts(["-p", "0", "--frobnicate", "-H"], DECLARATIONS)
        self.assertEqual(result.errors, (
            'Failed to validate "-p 0": Must be a number between 0 and 65536',
            'Unknown option: "--frobnicate"',
            'Missing required argument for "-H HOST"',
        ))
        self.assertEqual(result.options["port"], 80)
        self.assertEqual(result.options["hostname"], "localhost")

    def testInOrder(self):
        result = parse_opts(["-v", "serve", "-p", "1"], DECLARATIONS, in_order=True)
        self.assertEqual(result.options["verbosity"], 1)
        self.assertEqual(result.options["port"], 80)
        self.assertEqual(result.arguments, ["serve", "-p", "1"])

    def testNoDefaults(self):
        result = parse_opts(["-v", "--port", "81"], DECLARATIONS, no_defaults=True)
        self.assertEqual(result.options, {"verbosity": 1, "port": 81})

    def testStrict(self):
        result = parse_opts(["-H", "-v"], DECLARATIONS, strict=True)
        self.assertEqual(result.errors, ('Missing required argument for "-H HOST"',))

    def testSummaryFn(self):
        result = parse_opts([], DECLARATIONS, summary_fn=lambda specs: f"{len(specs)} options")
        self.assertEqual(result.summary, "6 options")

    def testSummaryFnMustBeCallable(self):
        with self.assertRaises(TypeError):
            parse_opts([], DECLARATIONS, summary_fn="summary")

    def testConfigurationErrorIsRaised(self):
        with self.assertRaises(ConfigurationError):
            parse_opts(["-a"], [("-a", "--alpha"), ("-a", "--all")])

    def testSwitchlessSpec(self):
        declarations = [
            ("-p", "--port PORT", "Port", {"default": 80, "parse_fn": int}),
            (None, None, "Derived", {"id": "url", "default_fn": lambda options: f"http://localhost:{options['port']}"}),
        ]
        result = parse_opts(["-p", "8080"], declarations)
        self.assertEqual(result.errors, ())
        self.assertEqual(result.options, {"port": 8080, "url": "http://localhost:8080"})
        self.assertIn("Derived", result.summary)

    def testArgumentsWithoutDeclarations(self):
        result = parse_opts(["a", "b"], [])
        self.assertEqual(result, ParseResult({}, ["a", "b"], "", ()))


class TestDefaultOptions(TestCase):
    """Behavioral tests for get_default_options."""

    def testDefaults(self):
        self.assertEqual(get_default_options(DECLARATIONS), {
            "port": 80,
            "hostname": "localhost",
            "file": [],
            "verbosity": 0,
            "daemon": True,
        })

    def testMatchesEmptyParse(self):
        self.assertEqual(get_default_options(DECLARATIONS), parse_opts([], DECLARATIONS).options)


class TestFinalize(TestCase):
    """Behavioral tests for the finalize shell policy."""

    def testSuccessReturnsResult(self):
        result = parse_opts(["-v"], DECLARATIONS)
        self.assertIs(finalize(result), result)

    def testRaisesOutsideShell(self):
        result = parse_opts(["--frobnicate"], DECLARATIONS)
        with self.assertRaises(OptionsExit) as context:
            finalize(result, shell=False)
        self.assertEqual(context.exception.faults, ('Unknown option: "--frobnicate"',))
        self.assertEqual(context.exception.options["summary"], result.summary)

    def testSummaryCanBeOmitted(self):
        result = parse_opts(["--frobnicate"], DECLARATIONS)
        with self.assertRaises(OptionsExit) as context:
            finalize(result, shell=False, summary=False)
        self.assertEqual(context.exception.options["summary"], "")

    def testExitsInShell(self):
        result = parse_opts(["--frobnicate"], DECLARATIONS)
        with mock.patch("parseopts.faults.console") as console:
            with self.assertRaises(SystemExit) as context:
                finalize(result, status=2)
        self.assertEqual(context.exception.code, 2)
        console.print.assert_called_once()
        printed, = console.print.call_args.args
        self.assertIsInstance(printed, OptionsExit)
        self.assertEqual(printed.options["status"], 2)


class TestEntryPoint(TestCase):
    """Behavioral tests for python -m parseopts."""

    def testParsesArguments(self):
        with mock.patch("parseopts.__main__.pprint") as pprint:
            self.assertEqual(main(["-vv", "--port", "8080", "file"]), 0)
        printed, = pprint.call_args.args
        self.assertEqual(printed["arguments"], ["file"])
        self.assertEqual(printed["options"]["port"], 8080)
        self.assertEqual(printed["options"]["verbosity"], 2)

    def testHelp(self):
        with mock.patch("parseopts.__main__.Console") as console:
            self.assertEqual(main(["--help"]), 0)
        self.assertEqual(console.return_value.print.call_count, 2)

    def testErrorsExit(self):
        with mock.patch("parseopts.faults.console"):
            with self.assertRaises(SystemExit) as context:
                main(["--port", "nope"])
        self.assertEqual(context.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
