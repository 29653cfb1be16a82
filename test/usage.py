"""
Tests for the usage renderer.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from cmdspec import *


def definitions():
    return Definitions(
        OptionDefinition("--verbose", type=bool, usage="chatty output"),
        OptionDefinition("--port", "-p", type=int, required=True, usage="the port to listen on"),
        ArgumentDefinition(1, metavar="MORE", required=False, multivalued=True, usage="further input files"),
        ArgumentDefinition(0, metavar="FILE", usage="the input file"),
    )


class UsageBuilderTest(TestCase):
    """Behavioral tests for UsageBuilder.build()."""

    def testLayout(self):
        self.assertEqual(
            UsageBuilder().build("tool", definitions()),
            "Usage: tool --port INT [--verbose] FILE [MORE]\n"
            "\n"
            "Options:\n"
            "--port INT: the port to listen on\n"
            "-p INT\n"
            "--verbose : chatty output\n"
            "\n"
            "Arguments:\n"
            "FILE: the input file\n"
            "MORE: further input files\n"
        )

    def testPure(self):
        builder = UsageBuilder()
        model = definitions()
        self.assertEqual(builder.build("tool", model), builder.build("tool", model))
        self.assertEqual(builder.build("tool", model), UsageBuilder().build("tool", definitions()))

    def testOnlyCommand(self):
        self.assertEqual(UsageBuilder().build("tool", Definitions()), "Usage: tool")

    def testOptionsOnly(self):
        text = UsageBuilder().build("tool", Definitions(OptionDefinition("--name", usage="the name")))
        self.assertEqual(text, "Usage: tool [--name STR]\n\nOptions:\n--name STR: the name\n")

    def testArgumentsOnly(self):
        text = UsageBuilder().build("tool", Definitions(ArgumentDefinition(0, metavar="FILE", usage="input")))
        self.assertEqual(text, "Usage: tool FILE\n\nArguments:\nFILE: input\n")

    def testUsageFallsBackToKey(self):
        text = UsageBuilder().build("tool", Definitions(OptionDefinition("--name")))
        self.assertIn("--name STR: name", text)

    def testUsageFallsBackToUsageKey(self):
        text = UsageBuilder().build("tool", [OptionDefinition("--name", usagekey="USAGE_name")])
        self.assertIn("--name STR: USAGE_name", text)

    def testLiteralUsageBeforeUsageKey(self):
        text = UsageBuilder().build("tool", [OptionDefinition("--name", usage="the name", usagekey="USAGE_name")])
        self.assertIn("--name STR: the name", text)

    def testUsageKeyResolved(self):
        messages = Messages({"USAGE_name": "der Name"})
        text = UsageBuilder(messages).build("tool", [OptionDefinition("--name", usage="the name", usagekey="USAGE_name")])
        self.assertIn("--name STR: der Name", text)

    def testTitlesResolved(self):
        messages = Messages({
            TXT_Usage: "Verwendung: ",
            TXT_Options: "Optionen",
            TXT_Arguments: "Argumente",
        })
        text = UsageBuilder(messages).build("tool", definitions())
        self.assertTrue(text.startswith("Verwendung: tool "))
        self.assertIn("\n\nOptionen:\n", text)
        self.assertIn("\n\nArgumente:\n", text)

    def testUsageTextWrapped(self):
        words = " ".join("word%d" % index for index in range(30))
        text = UsageBuilder(width=40).build("tool", [OptionDefinition("--name", usage=words)])
        lines = text.splitlines()[3:]
        self.assertGreater(len(lines), 1)
        self.assertTrue(all(len(line) <= 40 for line in lines))
        self.assertTrue(lines[0].startswith("--name STR: word0 "))
        self.assertTrue(all(line.startswith(" " * 12 + "word") for line in lines[1:]))
        self.assertEqual(" ".join(line.split(": ", 1)[-1].strip() for line in lines), words)

    def testSynopsisWrappedWithoutSplittingItems(self):
        options = [OptionDefinition("--option%d" % index, type=int) for index in range(8)]
        text = UsageBuilder(width=40).build("tool", options)
        synopsis = text.split("\n\n")[0].splitlines()
        self.assertGreater(len(synopsis), 1)
        self.assertTrue(all(len(line) <= 40 for line in synopsis))
        self.assertTrue(all(line.startswith(" " * len("Usage: tool ")) for line in synopsis[1:]))
        items = " ".join(line.strip() for line in synopsis)
        for index in range(8):
            self.assertIn("[--option%d INT]" % index, items)

    def testNoTrailingBlanks(self):
        for line in UsageBuilder().build("tool", definitions()).splitlines():
            self.assertEqual(line, line.rstrip())

    def testArguments(self):
        with self.assertRaises(ValueError):
            UsageBuilder().build("  ", Definitions())
        with self.assertRaises(TypeError):
            UsageBuilder().build(None, Definitions())
        with self.assertRaises(ValueError):
            UsageBuilder(width=10)
        with self.assertRaises(TypeError):
            UsageBuilder(object())


if __name__ == "__main__":
    unittest.main()
