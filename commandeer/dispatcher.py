"""
Commandeer dispatch layer: match a command line, bind its tokens, run the handler.

What this module provides
- Dispatcher: front object over a Registry.
  • parse(line) → bool: select the entry from the first token, build a fresh
    parameter object, bind the remaining tokens, invoke the handler.
  • add()/command(): registration shortcuts forwarding to the registry.
  • fallback(): install a custom fault handler.
  • runtime flags (shell, fancy, colorful, deferred) controlling how faults surface.
- dispatch(object, line): convenience runner for dispatchers and registries.

Binding, token by token
- tokens are line.split(" "); the first one selects the entry and is never bound.
- named pass (left to right, from the second token):
  • a token equal to a field name, or else to an alias, selects that field;
  • bool fields become True and consume one token;
  • other fields consume the next token as their value (coerced to the field type);
    a missing next token is a MissingValueError;
  • tokens matching nothing are skipped silently.
- positional pass: the positional field (if any) receives the coercion of the
  absolute last token of the line (True for bool fields), even when that token
  was already bound by the named pass.

Faults
- unknown command: parse returns False; in shell mode an UnknownCommandWarning
  is rendered as well.
- FormatError / MissingValueError / UnsupportedTypeError abort binding before the
  handler runs; the half-built object is dropped.
- surfacing follows the runtime flags: deferred → collected in .faults;
  fallback → handed to the fallback; shell → rendered with rich; otherwise raised.

Quick start
    from commandeer import Dispatcher, Field, parameters

    @parameters
    class Cat:
        path = Field(str, positional=True)
        numbered = Field(bool, "-n", "--number")

    dispatcher = Dispatcher()

    @dispatcher.command(r"^cat$", Cat)
    def cat(params: Cat):
        print(params.path, params.numbered)

    dispatcher.parse("cat -n /etc/hosts")  # prints: /etc/hosts True
"""
import copy
import sys
from collections.abc import Iterable

from .faults import *
from .fields import coerce
from .registry import Registry
from .utils import *


class Dispatcher:
    """
    Parse command lines against a registry and invoke the matched handlers.

    Parameters
    - registry: Unset | Registry | Mapping | Iterable
      an existing Registry is shared as-is; a mapping of pattern → (target, handler)
      or an iterable of (pattern, target, handler) triples is loaded into a new one.
    - name: label used in rendered faults (defaults to "commandeer").
    - shell: render faults on stderr instead of raising them.
    - fancy: render faults inside a panel.
    - colorful: style rendered faults.
    - deferred: collect faults in .faults instead of surfacing them.
    """

    __introspectable__ = (
        "name",
        "registry",
        "shell",
        "fancy",
        "colorful",
        "deferred",
        "faults",
    )

    def __init__(
            self,
            registry=Unset,
            /,
            *,
            name=Unset,
            shell=False,
            fancy=False,
            colorful=False,
            deferred=False,
    ):
        if registry is Unset:
            registry = Registry()
        elif not isinstance(registry, Registry):
            registry = Registry(registry)

        if not isinstance(name := coalesce(name, "commandeer"), str):
            raise TypeError("dispatcher 'name' must be a string")

        self._registry = registry
        self._name = name
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._deferred = bool(deferred)
        self._fallback = Unset
        self._faults = []

    name = mirror("name")
    registry = mirror("registry")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    deferred = mirror("deferred")
    faults = mirror("faults")

    def __repr__(self):
        return "dispatcher(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)

    def add(self, pattern, target, handler, /):
        return self._registry.add(pattern, target, handler)

    def command(self, pattern, target, /):
        return self._registry.command(pattern, target)

    def fallback(self, fallback, /):
        """
        Install a callable receiving every fault instead of the default surfacing.

        Usable as a decorator; returns the fallback unchanged.
        """
        if not callable(fallback):
            raise TypeError("fallback() argument must be callable")
        self._fallback = fallback
        return fallback

    def trigger(self, fault, /, **options):
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        options |= {"prog": self.name, "shell": self.shell, "fancy": self.fancy, "colorful": self.colorful}
        fault = copy.replace(fault, **options)
        if self.deferred:
            return self._faults.append(fault)
        if self._fallback:
            return self._fallback(fault)
        trigger(fault)

    def _bind(self, schema, tokens):
        """
        build a fresh parameter object and bind tokens[1:] onto it.

        positions in fault messages are 1-based over the whole line (the selector
        is the first position).
        """
        instance = schema.new()

        index = 1
        while index < len(tokens):
            field = schema.resolve(token := tokens[index])
            if field is None:
                index += 1
                continue

            if field.type is bool:
                setattr(instance, field.name, True)
                index += 1
                continue

            if index + 1 >= len(tokens):
                raise MissingValueError(
                    "field %r at %s position expects a value after it" % (token, ordinal(index + 1)),
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    hint="pass a value after the name (for example: %s <value>)" % token,
                    token=token,
                    field=field.name,
                    index=index + 1,
                    docs=getdoc(FaultCode.MISSING_VALUE),
                )

            setattr(instance, field.name, coerce(tokens[index + 1], field.type, field=field.name, index=index + 2))
            index += 2

        # the last token is bound even when the named pass already consumed it
        if (field := schema.positional) is not None:
            if field.type is bool:
                value = True
            else:
                value = coerce(tokens[-1], field.type, field=field.name, index=len(tokens))
            setattr(instance, field.name, value)

        return instance

    def _handle(self, entry, instance):
        if not (self.shell or self.deferred or self._fallback):
            entry.handler(instance)
            return True

        try:
            entry.handler(instance)
        except Exception as exception:
            self.trigger(DelegatedCommandError(
                "something occurred in the handler of %r" % entry.schema.name,
                title="delegated handler error",
                code=FaultCode.DELEGATED_ERROR,
                hint="the original exception is kept in the fault options under 'exception'",
                entry=entry,
                docs=getdoc(FaultCode.DELEGATED_ERROR),
                exception=exception,
            ))
            return False
        return True

    def parse(self, line, /):
        """
        Dispatch one command line.

        Returns
        - True when an entry matched and its handler ran.
        - False when no pattern matched the first token (nothing is built or called),
          or when a fault was collected, rendered or handed to the fallback.

        Raises (default surfacing only)
        - FormatError / MissingValueError / UnsupportedTypeError from binding.
        - whatever the handler raises, unchanged.
        """
        if not isinstance(line, str):
            raise TypeError("parse() argument must be a string")

        tokens = line.split(" ")

        if (entry := self._registry.lookup(selector := tokens[0])) is None:
            if self.shell:
                self.trigger(UnknownCommandWarning(
                    "unknown command %r" % selector,
                    title="unknown command",
                    code=FaultCode.UNKNOWN_COMMAND,
                    hint="check the spelling of the first word",
                    token=selector,
                    docs=getdoc(FaultCode.UNKNOWN_COMMAND),
                ))
            return False

        try:
            instance = self._bind(entry.schema, tokens)
        except CommandException as fault:
            self.trigger(fault)
            return False

        return self._handle(entry, instance)

    def __invoke__(self, line=Unset, /):
        """
        Run one command line.

        - Unset: the process arguments (sys.argv[1:]) joined with spaces.
        - str: used as-is.
        - Iterable[str]: joined with spaces.
        """
        if line is Unset:
            line = " ".join(sys.argv[1:])
        elif isinstance(line, Iterable) and not isinstance(line, str):
            items = tuple(line)
            if not all(isinstance(item, str) for item in items):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
            line = " ".join(items)
        return self.parse(line)


def dispatch(object, line=Unset, /):
    """
    Convenience runner for dispatchers and registries.

    - objects implementing __invoke__ are called with line.
    - a Registry (or a mapping / iterable accepted by Registry) is wrapped in a
      default Dispatcher first.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(line)

    if isinstance(object, Registry | Iterable) and not isinstance(object, str):
        return Dispatcher(object).__invoke__(line)

    target = "argument" if line is Unset else "first argument"
    raise TypeError(f"dispatch() {target} must implement __invoke__ method")


__all__ = (
    "Dispatcher",
    "dispatch",
)
