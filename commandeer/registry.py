"""
Commandeer command registry: ordered pattern → (schema, handler) entries.

What this module provides
- Entry: immutable (pattern, schema, handler) triple.
- Registry: append-only, insertion-ordered collection of entries.
  • lookup(token) returns the first entry whose pattern matches the token.
  • add(pattern, target, handler) appends an entry (no collision checks).
  • command(pattern, target) is the decorator form of add.

Matching
- patterns are regular expressions tested with Pattern.search against the first
  token of a command line only; "[Cc]ommand" matches both "Command" and "command".
- first match wins, not best match: registration order is significant.

Typed handlers
- a handler receives exactly one argument: the populated parameter object.
- when its first parameter is annotated with a class, the registered target must
  produce instances of that class; mismatches are rejected at registration.

Concurrency
- no internal locking: populate the registry before concurrent lookups begin.
"""
import inspect
import re
from collections.abc import Mapping
from inspect import Parameter
from typing import NamedTuple

from .fields import Schema
from .utils import *


class Entry(NamedTuple):
    pattern: re.Pattern
    schema: Schema
    handler: object


def _compile(pattern):
    if isinstance(pattern, str):
        return re.compile(pattern)
    if isinstance(pattern, re.Pattern) and isinstance(pattern.pattern, str):
        return pattern
    raise TypeError("registry pattern must be a string or a compiled string pattern")


def _check_handler(schema, handler):
    """
    Internal: reject handlers that cannot receive the schema's parameter objects.

    - handler must be callable and accept one positional argument.
    - a class annotation on that argument must be a base of the schema factory (when
      the factory is a class); string or unresolvable annotations are not checked.
    """
    if not callable(handler):
        raise TypeError("registry handler must be callable")

    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        # builtins without signature metadata cannot be inspected
        return

    parameters = [
        parameter for parameter in signature.parameters.values()
        if parameter.kind in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD, Parameter.VAR_POSITIONAL)
    ]
    if not parameters:
        raise TypeError("registry handler must accept the parameter object as its first argument")

    annotation = parameters[0].annotation
    factory = schema.factory
    if annotation is Parameter.empty or not isinstance(annotation, type) or not isinstance(factory, type):
        return
    if not issubclass(factory, annotation):
        raise TypeError(
            f"registry handler expects {annotation.__name__!r} but {schema.name!r} builds {factory.__name__!r}"
        )


class Registry:
    """
    Append-only, insertion-ordered mapping from patterns to (schema, handler).

    Construction accepts either nothing, a mapping of pattern → (target, handler)
    pairs, or an iterable of (pattern, target, handler) triples; entries are added
    in iteration order.
    """

    entries = mirror("entries")

    def __init__(self, entries=(), /):
        self._entries = []

        if isinstance(entries, Mapping):
            entries = ((pattern, *pair) for pattern, pair in entries.items())

        for pattern, target, handler in entries:
            self.add(pattern, target, handler)

    def add(self, pattern, target, handler, /):
        """
        Append a new entry and return it.

        Parameters
        - pattern: str | re.Pattern tested against the first token.
        - target: a Schema or a class declaring Field attributes.
        - handler: callable receiving the populated parameter object.
        """
        schema = Schema.of(target)
        _check_handler(schema, handler)
        self._entries.append(entry := Entry(_compile(pattern), schema, handler))
        return entry

    def command(self, pattern, target, /):
        """
        Decorator form of add(): register the decorated function as the handler.

            @registry.command(r"[Cc]opy", Copy)
            def copy(params: Copy): ...
        """
        @rename("command")
        def wrapper(handler, /):
            self.add(pattern, target, handler)
            return handler

        return wrapper

    def lookup(self, token, /):
        for entry in self._entries:
            if entry.pattern.search(token):
                return entry
        return None

    def __iter__(self):
        return iter(tuple(self._entries))

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return "registry(%s)" % ", ".join(repr(entry.pattern.pattern) for entry in self._entries)


__all__ = (
    "Entry",
    "Registry",
)
