# snova/command_model.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple, Union

from snova.errors import DefinitionError
from snova.template_parser import GroupName, render_spans


class ValueType(Enum):
    STRING = "string"
    PATH = "path"
    NUMBER = "number"

    @classmethod
    def parse(cls, token: str) -> "ValueType":
        try:
            return cls(token)
        except ValueError:
            raise DefinitionError(
                f"Unknown value type '{token}' (expected one of: {', '.join(t.value for t in cls)})"
            ) from None

    def is_valid_char(self, c: str) -> bool:
        if self is ValueType.NUMBER:
            return c in "0123456789"
        return True


@dataclass(frozen=True)
class FlagExpectation:
    """A flag that takes exactly one value, e.g. '-A _NUM_'."""
    value_type: ValueType
    spans: Tuple[GroupName, ...] = field(repr=False)

    @property
    def name(self) -> str:
        return next(g.name for g in self.spans if g.is_user_input)

    def build(self, raw_value: str) -> str:
        return "".join(raw_value if g.is_user_input else g.name for g in self.spans)


@dataclass(frozen=True)
class Flag:
    template: str
    description: str
    expectation: Optional[FlagExpectation] = field(default=None, compare=False)
    multiple: bool = field(default=False, compare=False)
    suggestions: Tuple[str, ...] = field(default=(), compare=False)
    spans: Tuple[GroupName, ...] = field(default=(), compare=False, repr=False)

    @property
    def literal(self) -> str:
        """The template text without markup."""
        return render_spans(self.spans, {})

    def render(self, value: Optional[str] = None) -> str:
        if self.expectation is not None:
            return self.expectation.build(value or "")
        return self.literal

    # Choice interface used by the prompt engine
    @property
    def text(self) -> str:
        return self.description

    @property
    def identity(self):
        return (self.template, self.description)


@dataclass(frozen=True)
class SingleValue:
    value_type: ValueType


@dataclass(frozen=True)
class FlagSet:
    flags: Tuple[Flag, ...]


GroupValue = Union[SingleValue, FlagSet]


@dataclass(frozen=True)
class CmdGroup:
    name: str
    value: GroupValue
    optional: bool = False

    @property
    def is_flags(self) -> bool:
        return isinstance(self.value, FlagSet)


@dataclass(frozen=True)
class Command:
    template: str
    description: str
    groups: Tuple[CmdGroup, ...]
    spans: Tuple[GroupName, ...] = field(repr=False)

    def build(self, context: Mapping[str, str]) -> str:
        """Renders the command from whatever values the context holds so far."""
        return render_spans(self.spans, context)

    @property
    def text(self) -> str:
        return self.description

    @property
    def identity(self):
        return self.template
