"""
Tests for the value handlers and the handler registry.

Scope
- Built-in handlers: conversion, consumed token counts, failure mapping.
- HandlerRegistry: resolution order, sealing, custom registrations.

Conventions
- Test method names follow CamelCase per project convention.
- Handlers are driven through a TokenCursor the way the parser drives them.
"""
import codecs
import datetime
import decimal
import enum
import unittest
import uuid
from pathlib import Path
from unittest import TestCase, mock

from cmdspec import *


def convert(definition, *tokens, parsing=True):
    state = ParseState(parsing=parsing)
    state.current = definition
    return definition.handler.convert(TokenCursor(tokens, state), definition)


class Color(enum.Enum):
    RED = 1
    GREEN = 2


class Level(enum.IntEnum):
    LOW = 1
    HIGH = 2


class HandlerTest(TestCase):
    """Behavioral tests for the built-in handlers."""

    def testString(self):
        self.assertEqual(convert(OptionDefinition("--name"), "value"), ("value", 1))

    def testInteger(self):
        self.assertEqual(convert(OptionDefinition("--port", type=int), "8080"), (8080, 1))

    def testIntegerRejected(self):
        with self.assertRaises(IllegalOperandError) as context:
            convert(OptionDefinition("--port", type=int), "abc")
        self.assertEqual(str(context.exception), "'abc' is not a valid value for '--port'")
        self.assertIsInstance(context.exception.__cause__, ValueError)

    def testIntegerOnArgumentNamesMetavar(self):
        with self.assertRaises(IllegalOperandError) as context:
            convert(ArgumentDefinition(0, type=int, metavar="COUNT"), "abc")
        self.assertEqual(context.exception.arguments, ("COUNT", "abc"))

    def testRangeTags(self):
        byte = OptionDefinition("--byte", type=Byte)
        self.assertEqual(convert(byte, Attached("-128")), (-128, 1))
        with self.assertRaises(IllegalOperandError):
            convert(byte, "128")
        self.assertEqual(convert(OptionDefinition("--short", type=Short), "32767"), (32767, 1))
        with self.assertRaises(IllegalOperandError):
            convert(OptionDefinition("--integer", type=Integer), str(1 << 31))
        self.assertEqual(convert(OptionDefinition("--long", type=Long), str((1 << 63) - 1)), ((1 << 63) - 1, 1))

    def testMissingOperand(self):
        with self.assertRaises(MissingOperandError):
            convert(OptionDefinition("--port", type=int))

    def testFloatAndDecimal(self):
        self.assertEqual(convert(OptionDefinition("--ratio", type=float), "0.5"), (0.5, 1))
        self.assertEqual(convert(OptionDefinition("--amount", type=decimal.Decimal), "1.10"), (decimal.Decimal("1.10"), 1))
        with self.assertRaises(IllegalOperandError):
            convert(OptionDefinition("--amount", type=decimal.Decimal), "lots")

    def testPathAndUUID(self):
        self.assertEqual(convert(OptionDefinition("--file", type=Path), "a/b.txt"), (Path("a/b.txt"), 1))
        identifier = "12345678-1234-5678-1234-567812345678"
        self.assertEqual(convert(OptionDefinition("--id", type=uuid.UUID), identifier), (uuid.UUID(identifier), 1))

    def testCharacter(self):
        option = OptionDefinition("--separator", type=Character)
        self.assertEqual(option.metavar, "CHARACTER")
        self.assertEqual(convert(option, ";"), (";", 1))
        self.assertEqual(convert(option, " "), (" ", 1))
        with self.assertRaises(IllegalOperandError) as context:
            convert(option, "value")
        self.assertEqual(context.exception.arguments, ("--separator", "value"))

    def testCharset(self):
        option = OptionDefinition("--encoding", type=codecs.CodecInfo)
        value, consumed = convert(option, "UTF8")
        self.assertEqual((value.name, consumed), ("utf-8", 1))
        self.assertEqual(convert(option, "latin_1")[0].name, "iso8859-1")
        with self.assertRaises(IllegalOperandError) as context:
            convert(option, "no-such-encoding")
        self.assertIsInstance(context.exception.__cause__, ValueError)

    def testBooleanPresence(self):
        verbose = OptionDefinition("--verbose", type=bool)
        self.assertEqual(convert(verbose), (True, 0))
        self.assertEqual(convert(verbose, "FILE"), (True, 0))
        self.assertEqual(convert(verbose, "--other"), (True, 0))

    def testBooleanExplicitLiteral(self):
        verbose = OptionDefinition("--verbose", type=bool)
        self.assertEqual(convert(verbose, "false"), (False, 1))
        self.assertEqual(convert(verbose, "TRUE"), (True, 1))
        self.assertEqual(convert(verbose, Attached("False")), (False, 1))

    def testBooleanInlineValueMustBeLiteral(self):
        with self.assertRaises(IllegalOperandError):
            convert(OptionDefinition("--verbose", type=bool), Attached("maybe"))

    def testBooleanArgumentIsStrict(self):
        flag = ArgumentDefinition(0, type=bool, metavar="FLAG")
        self.assertEqual(convert(flag, "true"), (True, 1))
        with self.assertRaises(IllegalOperandError):
            convert(flag, "maybe")

    def testYesNo(self):
        answer = OptionDefinition("--answer", type=YesNo)
        with mock.patch.object(YesNoValueHandler, "language", staticmethod(lambda: "de")):
            self.assertEqual(convert(answer, "Ja"), (True, 1))
            self.assertEqual(convert(answer, "yes"), (True, 1))
            self.assertEqual(convert(answer, "nein"), (False, 1))
        with mock.patch.object(YesNoValueHandler, "language", staticmethod(lambda: "en")):
            self.assertEqual(convert(answer, "ja"), (False, 1))
            self.assertEqual(convert(answer, "OK"), (True, 1))

    def testEnumCaseInsensitive(self):
        self.assertEqual(convert(OptionDefinition("--color", type=Color), "green"), (Color.GREEN, 1))

    def testEnumUnknownName(self):
        with self.assertRaises(IllegalOperandError) as context:
            convert(OptionDefinition("--color", type=Color), "blue")
        self.assertIs(context.exception.key, FaultCode.UNKNOWN_VALUE)
        self.assertEqual(str(context.exception), "Unknown/invalid value: blue")

    def testIntEnumResolvesToMembers(self):
        self.assertIs(convert(OptionDefinition("--level", type=Level), "high")[0], Level.HIGH)

    def testDateIso(self):
        self.assertEqual(
            convert(ArgumentDefinition(0, type=datetime.date), "2018-09-17"),
            (datetime.date(2018, 9, 17), 1)
        )

    def testDateWithFormat(self):
        self.assertEqual(
            convert(OptionDefinition("--date", type=datetime.date, format="%d.%m.%Y"), "17.09.2018"),
            (datetime.date(2018, 9, 17), 1)
        )

    def testDateNow(self):
        value, consumed = convert(OptionDefinition("--date", type=datetime.date), "NOW")
        self.assertIsInstance(value, datetime.date)
        self.assertEqual(consumed, 1)

    def testDateInvalid(self):
        with self.assertRaises(IllegalOperandError) as context:
            convert(OptionDefinition("--date", type=datetime.date), "2018-02-31")
        self.assertIs(context.exception.key, FaultCode.INVALID_DATETIME)

    def testDateInvalidFormatPattern(self):
        with self.assertRaises(IllegalOperandError) as context:
            convert(OptionDefinition("--date", type=datetime.date, format="%Q"), "17")
        self.assertIs(context.exception.key, FaultCode.INVALID_FORMAT)
        self.assertEqual(context.exception.arguments, ("%Q",))

    def testDateTimeAndTime(self):
        self.assertEqual(
            convert(OptionDefinition("--at", type=datetime.datetime), "2018-09-17T10:20:30"),
            (datetime.datetime(2018, 9, 17, 10, 20, 30), 1)
        )
        self.assertEqual(
            convert(OptionDefinition("--time", type=datetime.time, format="%H.%M"), "10.20"),
            (datetime.time(10, 20), 1)
        )
        self.assertIsInstance(convert(OptionDefinition("--time", type=datetime.time), "now")[0], datetime.time)

    def testSimpleHandlerRequiresCallable(self):
        with self.assertRaises(TypeError):
            SimpleValueHandler("nope")


class HandlerRegistryTest(TestCase):
    """Behavioral tests for handler resolution."""

    class Thing:
        def __init__(self, text):
            self.text = text

    def testExplicitHandlerWins(self):
        handler = StringValueHandler()
        self.assertIs(HandlerRegistry.builtin().resolve(int, handler), handler)

    def testExplicitHandlerMustBeHandler(self):
        with self.assertRaises(TypeError):
            HandlerRegistry.builtin().resolve(int, handler=str)

    def testExactEntry(self):
        self.assertIsInstance(HandlerRegistry.builtin().resolve(bool), BooleanValueHandler)
        self.assertIsInstance(HandlerRegistry.builtin().resolve(datetime.datetime), DateTimeValueHandler)

    def testNearestBaseEntry(self):
        class Port(int):
            pass

        self.assertIsInstance(HandlerRegistry.builtin().resolve(Port), IntegerValueHandler)
        self.assertIsInstance(HandlerRegistry.builtin().resolve(Color), EnumValueHandler)
        self.assertIsInstance(HandlerRegistry.builtin().resolve(Level), EnumValueHandler)

    def testConverterFallback(self):
        handler = HandlerRegistry.builtin().resolve(self.Thing, converter=self.Thing)
        self.assertIsInstance(handler, SimpleValueHandler)
        self.assertIs(handler.converter, self.Thing)

    def testUnresolvedType(self):
        with self.assertRaises(DefinitionError) as context:
            HandlerRegistry.builtin().resolve(self.Thing)
        self.assertIs(context.exception.key, FaultCode.UNRESOLVED_HANDLER)
        self.assertEqual(str(context.exception), "No value handler is available for type 'THING'")

    def testUnresolvedTypeFailsDefinition(self):
        with self.assertRaises(DefinitionError):
            OptionDefinition("--thing", type=self.Thing)

    def testBuiltinSharedAndSealed(self):
        self.assertIs(HandlerRegistry.builtin(), HandlerRegistry.builtin())
        self.assertTrue(HandlerRegistry.builtin().sealed)
        with self.assertRaises(TypeError):
            HandlerRegistry.builtin().register(self.Thing, SimpleValueHandler)

    def testCustomRegistration(self):
        registry = HandlerRegistry()
        self.assertNotIn(self.Thing, registry)
        registry.register(self.Thing, SimpleValueHandler)
        self.assertIn(self.Thing, registry)
        self.assertNotIn(self.Thing, HandlerRegistry.builtin())

        option = OptionDefinition("--thing", type=self.Thing, registry=registry)
        value, consumed = convert(option, "text")
        self.assertIsInstance(value, self.Thing)
        self.assertEqual(value.text, "text")
        self.assertEqual(consumed, 1)

    def testEmptyRegistry(self):
        registry = HandlerRegistry(builtins=False)
        self.assertNotIn(str, registry)
        with self.assertRaises(DefinitionError):
            registry.resolve(str)

    def testRegisterValidatesArguments(self):
        registry = HandlerRegistry()
        with self.assertRaises(TypeError):
            registry.register("str", SimpleValueHandler)
        with self.assertRaises(TypeError):
            registry.register(self.Thing, "factory")


if __name__ == "__main__":
    unittest.main()
