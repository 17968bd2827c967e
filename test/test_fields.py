"""
Fields module behavioral tests (Field, Schema, builders, coercion).

Scope
- Validate Field construction: defaults by type, alias validation, single name binding.
- Validate Field as a descriptor on parameter classes.
- Validate Schema construction from classes and keyword builders, lookups and caching.
- Validate coerce() for every supported and unsupported type.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest import TestCase

from commandeer import Field, Schema, parameters, schema, coerce
from commandeer.faults import FormatError, UnsupportedTypeError, FaultCode


class TestField(TestCase):
    """Behavioral tests for Field specifications."""

    def testDefaultsFollowType(self):
        self.assertIsNone(Field().default)
        self.assertIsNone(Field(str).default)
        self.assertEqual(Field(int).default, 0)
        self.assertEqual(Field(float).default, 0.0)
        self.assertIs(Field(bool).default, False)
        self.assertIsNone(Field(list).default)

    def testExplicitDefaultKept(self):
        self.assertEqual(Field(int, default=7).default, 7)
        self.assertEqual(Field(str, default="").default, "")

    def testAliasesKeepOrder(self):
        self.assertEqual(Field(str, "-o", "--output").aliases, ("-o", "--output"))

    def testAliasEmptyRejected(self):
        with self.assertRaises(ValueError):
            Field(str, "")

    def testAliasWithSpaceRejected(self):
        with self.assertRaises(ValueError):
            Field(str, "--out put")

    def testAliasNonStringRejected(self):
        with self.assertRaises(TypeError):
            Field(str, 5)

    def testAliasDuplicatesRejected(self):
        with self.assertRaises(ValueError):
            Field(str, "-o", "-o")

    def testPositionalNormalizedToBool(self):
        self.assertIs(Field(str, positional=1).positional, True)
        self.assertIs(Field(str).positional, False)

    def testNameBoundByClassBody(self):
        class Params:
            output = Field(str, "-o")

        self.assertEqual(Params.output.name, "output")

    def testNameCannotBeRebound(self):
        field = Field(int)
        schema("first", count=field)
        with self.assertRaises(TypeError):
            schema("second", amount=field)

    def testSameNameRebindAllowed(self):
        field = Field(int)
        schema("first", count=field)
        self.assertEqual(schema("second", count=field).resolve("count").name, "count")

    def testDescriptorReturnsDefaultThenValue(self):
        class Params:
            depth = Field(int)

        params = Params()
        self.assertEqual(params.depth, 0)
        params.depth = 3
        self.assertEqual(params.depth, 3)
        self.assertEqual(Params().depth, 0)

    def testMatches(self):
        class Params:
            output = Field(str, "-o", "--output")

        self.assertTrue(Params.output.matches("output"))
        self.assertTrue(Params.output.matches("-o"))
        self.assertFalse(Params.output.matches("-x"))

    def testRepr(self):
        self.assertTrue(repr(Field(int, "-n")).startswith("field("))


class TestSchema(TestCase):
    """Behavioral tests for Schema descriptor tables."""

    def testOfClassCollectsFieldsInOrder(self):
        @parameters
        class Params:
            first = Field(str)
            second = Field(int, "-s")
            unrelated = "not a field"

        table = Schema.of(Params)
        self.assertEqual(list(table.fields), ["first", "second"])
        self.assertEqual(len(table), 2)
        self.assertIn("second", table)
        self.assertNotIn("unrelated", table)
        self.assertEqual(table.name, "Params")
        self.assertIs(table.factory, Params)

    def testOfIsCached(self):
        class Params:
            value = Field(str)

        self.assertIs(Schema.of(Params), Schema.of(Params))
        self.assertIs(Params.__schema__, Schema.of(Params))

    def testOfSchemaIsIdentity(self):
        table = schema("copy", source=Field(str))
        self.assertIs(Schema.of(table), table)

    def testOfRejectsInstances(self):
        with self.assertRaises(TypeError):
            Schema.of(5)

    def testInheritedFields(self):
        class Base:
            verbose = Field(bool, "-v")

        class Child(Base):
            path = Field(str, positional=True)

        table = Schema.of(Child)
        self.assertEqual(list(table.fields), ["verbose", "path"])
        self.assertIs(table.positional, Child.path)
        self.assertIs(table.resolve("-v"), Base.verbose)

    def testSubclassSchemaNotSharedWithBase(self):
        @parameters
        class Base:
            verbose = Field(bool)

        class Child(Base):
            extra = Field(str)

        self.assertNotIn("extra", Schema.of(Base))
        self.assertIn("extra", Schema.of(Child))

    def testResolvePrefersFieldNameOverAlias(self):
        table = schema("clash", first=Field(str, "second"), second=Field(str))
        self.assertEqual(table.resolve("second").name, "second")
        self.assertIsNone(table.resolve("third"))

    def testDuplicateAliasAcrossFieldsRejected(self):
        with self.assertRaises(ValueError):
            @parameters
            class Params:
                output = Field(str, "-o")
                other = Field(str, "-o")

    def testNoPositionalField(self):
        self.assertIsNone(schema("plain", value=Field(str)).positional)

    def testLastPositionalWins(self):
        table = schema("twice", first=Field(str, positional=True), second=Field(str, positional=True))
        self.assertEqual(table.positional.name, "second")

    def testNameWithSpaceRejected(self):
        with self.assertRaises(ValueError):
            Schema("bad", {"two words": Field(str)})

    def testEmptyNameRejected(self):
        with self.assertRaises(ValueError):
            schema("  ")

    def testNonFieldMemberRejected(self):
        with self.assertRaises(TypeError):
            Schema("bad", {"value": str})

    def testFactoryMustBeCallable(self):
        with self.assertRaises(TypeError):
            schema("bad", 5)

    def testNewFillsDefaultsOnNamespace(self):
        table = schema("copy", source=Field(str, positional=True), force=Field(bool, "-f"), depth=Field(int))
        instance = table.new()
        self.assertIsInstance(instance, SimpleNamespace)
        self.assertEqual(vars(instance), {"source": None, "force": False, "depth": 0})

    def testNewBuildsFreshClassInstances(self):
        class Params:
            depth = Field(int)

        table = Schema.of(Params)
        self.assertIsInstance(table.new(), Params)
        self.assertIsNot(table.new(), table.new())

    def testNewCopiesMutableDefaults(self):
        table = schema("tag", tags=Field(list, default=[]))
        first, second = table.new(), table.new()

        self.assertEqual(first.tags, [])
        self.assertIsInstance(first.tags, list)
        self.assertIsNot(first.tags, second.tags)

    def testNewCopiesMutableDefaultsOnClasses(self):
        class Tagged:
            tags = Field(list, default=[])

        table = Schema.of(Tagged)
        first = table.new()
        first.tags.append("stale")

        self.assertEqual(table.new().tags, [])

    def testNewKeepsFactoryValues(self):
        class Params:
            depth = Field(int)

            def __init__(self):
                self.depth = 5

        self.assertEqual(Schema.of(Params).new().depth, 5)

    def testParametersRequiresClass(self):
        with self.assertRaises(TypeError):
            parameters(lambda: None)


class TestCoerce(TestCase):
    """Behavioral tests for token coercion."""

    def testStringVerbatim(self):
        self.assertEqual(coerce("abcd", str), "abcd")
        self.assertEqual(coerce("", str), "")
        self.assertEqual(coerce("10", str), "10")

    def testInteger(self):
        self.assertEqual(coerce("10", int), 10)
        self.assertEqual(coerce("-3", int), -3)
        self.assertEqual(coerce("+7", int), 7)
        self.assertEqual(coerce("007", int), 7)

    def testIntegerRejectsNonLiterals(self):
        for token in ("", "ten", "1.5", "1_000", " 1", "0x10", "1e3"):
            with self.subTest(token=token), self.assertRaises(FormatError):
                coerce(token, int)

    def testFloat(self):
        self.assertEqual(coerce("5.5", float), 5.5)
        self.assertEqual(coerce("10", float), 10.0)
        self.assertEqual(coerce(".5", float), 0.5)
        self.assertEqual(coerce("1.", float), 1.0)
        self.assertEqual(coerce("1e3", float), 1000.0)
        self.assertEqual(coerce("-2.5E-1", float), -0.25)

    def testFloatRejectsNonLiterals(self):
        for token in ("", "abc", "nan", "inf", "5,5", "1_0.0", "e5", "."):
            with self.subTest(token=token), self.assertRaises(FormatError):
                coerce(token, float)

    def testFormatErrorCarriesContext(self):
        with self.assertRaises(FormatError) as context:
            coerce("ten", int, field="count", index=4)
        self.assertEqual(context.exception.options["code"], FaultCode.FORMAT_ERROR)
        self.assertEqual(context.exception.options["field"], "count")
        self.assertEqual(context.exception.options["type"], "int")
        self.assertIn("fourth position", str(context.exception))

    def testBooleanIsNeverCoerced(self):
        with self.assertRaises(UnsupportedTypeError):
            coerce("true", bool)

    def testUnsupportedTypeCarriesName(self):
        with self.assertRaises(UnsupportedTypeError) as context:
            coerce("a", list)
        self.assertEqual(context.exception.options["type"], "list")
        self.assertEqual(context.exception.options["code"], FaultCode.UNSUPPORTED_TYPE)


if __name__ == "__main__":
    unittest.main()
