r"""
Commandeer field specifications, schemas and value coercion.

Overview
- Specs
  • Field: one named member of a parameter object, with a value type, zero or more
    aliases, and an optional positional marker. Works as a data descriptor, so a
    class body full of Field(...) attributes doubles as the default-valued
    parameter type.
  • Schema: the descriptor table of a parameter type (name → field, alias → field,
    positional field) plus the factory that builds fresh instances.

- Builders
  • @parameters: validate a class declaring Field attributes and attach its Schema.
  • schema(name, factory, **fields): build a Schema for plain objects.
  • Schema.of(target): resolve a class or a Schema into a Schema (cached per class).

- Coercion
  • coerce(token, type): str verbatim, int as a base-10 literal, float as a
    decimal/exponential literal. Booleans are never read from a token; any other
    type raises UnsupportedTypeError.

Defaults (when a Field does not declare one)
- str → None, int → 0, float → 0.0, bool → False, anything else → None.

Validation highlights
- Field names and aliases must be non-empty strings without spaces: tokens are
  split on spaces, so such a name could never be matched.
- An alias may be declared only once per schema.
- Several positional fields are tolerated; the last declared one is bound.

Examples
    >>> @parameters
    ... class Copy:
    ...     source = Field(str, positional=True)
    ...     verbose = Field(bool, "-v", "--verbose")
    ...     depth = Field(int, "--depth")
    ...
    >>> Copy().depth
    0
    >>> Schema.of(Copy).resolve("-v").name
    'verbose'

Public API
- Classes: Field, Schema
- Functions: parameters, schema, coerce
"""
import builtins
import copy
import functools
import operator
import re
from collections.abc import Mapping
from types import SimpleNamespace

from .faults import FaultCode, FormatError, UnsupportedTypeError, getdoc
from .utils import *

_DEFAULTS = {
    str: None,
    int: 0,
    float: 0.0,
    bool: False,
}

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DECIMAL = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


class FieldType(type):
    """
    Metaclass that gives specs a stable identity and introspection surface.

    Responsibilities
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the "_<name>" backing field.
    - Provide readable __repr__/__rich_repr__ implementations; __displayable__
      (if set) narrows which properties are shown.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_identifier(cls, name, what, /):
    """
    Internal: validate a field name or alias and return it unchanged.

    Raises
    - TypeError: when the value is not a string.
    - ValueError: when it is empty or contains a space.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {what} must be a string")
    elif not name:
        raise ValueError(f"{cls.__typename__} {what} cannot be empty")
    elif " " in name:
        raise ValueError(f"{cls.__typename__} {what} {name!r} cannot contain spaces")
    return name


def _sanitize_field_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata of a Field.

    Responsibilities
    - aliases: each must pass _sanitize_identifier; duplicates are rejected; the
      collection is normalized into a tuple preserving declaration order.
    - default: when Unset, resolved from the declared type (see _DEFAULTS).

    Explicitly not responsible for
    - type: any object is accepted here; unsupported types fail at coercion time.

    Side effects
    - Mutates the provided metadata dict in place.
    """
    aliases = []
    for alias in metadata["aliases"]:
        if _sanitize_identifier(cls, alias, "aliases") in aliases:
            raise ValueError(f"{cls.__typename__} aliases cannot contain duplicates")
        aliases.append(alias)
    metadata["aliases"] = tuple(aliases)

    metadata["default"] = coalesce(metadata["default"], _DEFAULTS.get(metadata["type"]))


class Field(metaclass=FieldType):
    """
    Named member of a parameter object.

    A Field is bound to its name either by Python itself (when assigned in a
    class body, via __set_name__) or by a Schema built from keyword arguments.
    Once bound, the name is final: the same Field cannot serve under two names.

    As a data descriptor, reading the attribute on an instance returns the bound
    value, or the field default when nothing was assigned yet.
    """

    __introspectable__ = (
        "name",
        "type",
        "aliases",
        "positional",
        "default",
    )

    def __init__(self, type=str, /, *aliases, positional=False, default=Unset):
        """
        Parameters
        - type: the value type (str, int, float and bool are coercible).
        - aliases: alternate tokens that bind to this field besides its name.
        - positional: bind this field from the last token of the command line.
        - default: value of an unbound field; derived from type when omitted.
        """
        metadata = {
            "type": type,
            "aliases": aliases,
            "positional": bool(positional),
            "default": default,
        }
        _sanitize_field_metadata(builtins.type(self), metadata)

        self._name = Unset
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def __set_name__(self, owner, name):
        self._bind(name)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.__dict__.get(self._name, self._default)

    def __set__(self, instance, value):
        instance.__dict__[self._name] = value

    def _bind(self, name):
        if self._name is Unset:
            self._name = _sanitize_identifier(type(self), name, "name")
        elif self._name != name:
            raise TypeError(f"{type(self).__typename__} is already bound to {self._name!r}")
        return self

    def matches(self, token, /):
        """
        Return True when token is this field's name or one of its aliases.
        """
        return token == self._name or token in self._aliases


class Schema(metaclass=FieldType):
    """
    Descriptor table of a parameter type.

    Lookups
    - resolve(token): direct field-name match first, then alias match.
    - positional: the positional field, or None.

    Lifecycle
    - Built once, when a parameter type is registered, and never mutated.
    - new() asks the factory for a fresh object and fills the defaults of the
      fields it does not already provide.
    """

    __introspectable__ = (
        "name",
        "factory",
        "fields",
        "aliases",
        "positional",
    )

    __displayable__ = (
        "name",
        "fields",
        "positional",
    )

    def __init__(self, name, /, fields, factory=SimpleNamespace):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__typename__} 'name' cannot be empty")
        if not callable(factory):
            raise TypeError(f"{type(self).__typename__} 'factory' must be callable")
        if not isinstance(fields, Mapping):
            raise TypeError(f"{type(self).__typename__} 'fields' must be a mapping of names to fields")

        self._name = name
        self._factory = factory
        self._fields = {}
        self._aliases = {}
        self._positional = None

        for key, field in fields.items():
            if not isinstance(field, Field):
                raise TypeError(f"{type(self).__typename__} member {key!r} must be a field")
            self._fields[key] = field._bind(key)

            for alias in field.aliases:
                if alias in self._aliases:
                    raise ValueError(
                        f"{type(self).__typename__} alias {alias!r} is already used by field "
                        f"{self._aliases[alias].name!r}"
                    )
                self._aliases[alias] = field

            # last declared positional field wins
            if field.positional:
                self._positional = field

    @classmethod
    def of(cls, target, /):
        """
        Resolve a registration target into a Schema.

        - Schema → returned as-is.
        - class  → fields are collected from the class body and its bases (base
          classes first, redefinitions replace inherited fields); the class itself is
          the factory. The result is cached on the class as __schema__.
        """
        if isinstance(target, Schema):
            return target
        if not isinstance(target, type):
            raise TypeError("schema target must be a schema or a class declaring fields")

        try:
            return target.__dict__["__schema__"]
        except KeyError:
            pass

        fields = {}
        for klass in reversed(target.__mro__):
            for name, object in vars(klass).items():
                if isinstance(object, Field):
                    fields[name] = object

        self = cls(target.__name__, fields, factory=target)
        target.__schema__ = self
        return self

    def resolve(self, token, /):
        """
        Return the field bound from token (name first, then alias), or None.
        """
        try:
            return self._fields[token]
        except KeyError:
            return self._aliases.get(token)

    def new(self):
        instance = self._factory()
        state = getattr(instance, "__dict__", {})
        for name, field in self._fields.items():
            # each instance gets its own copy of mutable defaults
            if name not in state:
                setattr(instance, name, copy.copy(field._default))
        return instance

    def __iter__(self):
        return iter(self._fields.values())

    def __len__(self):
        return len(self._fields)

    def __contains__(self, name):
        return name in self._fields


def parameters(cls, /):
    """
    Class decorator: validate a parameter type and attach its Schema.

    Declaration problems (bad aliases, reused aliases) surface at class
    definition instead of at registration.
    """
    if not isinstance(cls, type):
        raise TypeError("@parameters must be applied to a class")
    Schema.of(cls)
    return cls


def schema(name, factory=SimpleNamespace, /, **fields):
    """
    Build a Schema from keyword fields, for parameter objects without a class body.

        >>> copy = schema("copy", verbose=Field(bool, "-v"), source=Field(str, positional=True))
        >>> copy.new()
        namespace(verbose=False, source=None)
    """
    return Schema(name, fields, factory=factory)


def _where(field, index):
    where = ""
    if field is not Unset:
        where += " for field %r" % field
    if index is not Unset:
        where += " at %s position" % ordinal(index)
    return where


def coerce(token, type, /, *, field=Unset, index=Unset):
    """
    convert a raw token into a value of the declared field type.

    rules
    - str   → the token verbatim.
    - int   → base-10 signed integer literal ([+-]digits), else FormatError.
    - float → decimal or exponential literal (1, -2.5, .5, 3e8, 1.5E-3), else FormatError.
    - bool and any other type → UnsupportedTypeError carrying the type name; booleans
      are only ever set by presence of their name.

    field/index are optional context woven into the fault message and options.
    """
    typename = getattr(type, "__name__", repr(type))

    if type is str:
        return token

    if type is int:
        if _INTEGER.fullmatch(token):
            return int(token)
        expected = "a base-10 integer"
    elif type is float:
        if _DECIMAL.fullmatch(token):
            return float(token)
        expected = "a decimal number"
    else:
        raise UnsupportedTypeError(
            "type %r cannot be read from a token%s" % (typename, _where(field, index)),
            title="unsupported field type",
            code=FaultCode.UNSUPPORTED_TYPE,
            hint="declare the field as str, int or float (bool fields are set by presence)",
            token=token,
            type=typename,
            field=field,
            index=index,
            docs=getdoc(FaultCode.UNSUPPORTED_TYPE),
        )

    raise FormatError(
        "value %r%s is not %s" % (token, _where(field, index), expected),
        title="bad value",
        code=FaultCode.FORMAT_ERROR,
        hint="pass %s (for example: %s)" % (expected, "42" if type is int else "5.5"),
        token=token,
        type=typename,
        field=field,
        index=index,
        docs=getdoc(FaultCode.FORMAT_ERROR),
    )


__all__ = (
    "Field",
    "Schema",
    "parameters",
    "schema",
    "coerce",
)
