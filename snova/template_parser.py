# --- API DOCUMENTATION for snova/template_parser.py ---
#
# **Purpose:** Tokenizes command and flag templates into an ordered list of
# literal (fixed) spans and user-fillable spans, and renders such a list back
# into a command string.
#
# **Template mini-language:**
#   _NAME_     required user input span
#   [_NAME_]   optional user input span
#   \_         literal underscore
#   *text*     bold markup, stripped before grouping
#
# **Public Functions:**
#
# def parse_template_groups(template: str) -> List[GroupName]:
#     """
#     Scans the template once, left to right, and returns its spans in order.
#
#     Raises:
#         UnmatchedBracketError: a ']' appears outside of '[...]'.
#         UnterminatedGroupError: the template ends inside a user input span.
#     """
#
# def render_spans(spans: Sequence[GroupName], context: Mapping[str, str]) -> str:
#     """
#     Concatenates the spans, substituting user input spans from the context.
#     Missing required values render as '_NAME_', missing optional ones as ''.
#     """
#
# def iter_rendered(spans, context) -> Iterator[Tuple[str, bool]]:
#     """
#     The pieces render_spans joins, each flagged when it is a missing
#     required value. Used to draw the command preview with styling.
#     """
#
# --- END API DOCUMENTATION ---

# snova/template_parser.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Mapping, Sequence, Tuple

from snova.errors import UnmatchedBracketError, UnterminatedGroupError

logger = logging.getLogger(__name__)


class GroupKind(Enum):
    # Static text (e.g the command name 'grep ')
    FIXED = "fixed"
    # Text the user has to provide
    USER_INPUT = "user_input"


@dataclass(frozen=True)
class GroupName:
    name: str
    kind: GroupKind = GroupKind.FIXED
    # Only meaningful for user input spans; the user may leave them empty
    optional: bool = False

    @property
    def is_user_input(self) -> bool:
        return self.kind is GroupKind.USER_INPUT


def parse_template_groups(template: str) -> List[GroupName]:
    """Reads a template and returns the list of its spans."""
    groups = []
    kind = GroupKind.FIXED
    optional = False
    optional_started = False
    current = []
    prev_char = ""

    for c in template:
        if c == "*":
            # Bold markup
            pass
        elif c == "[":
            optional_started = True
        elif c == "]":
            if not optional_started:
                raise UnmatchedBracketError(f"Unexpected ']' in group '{''.join(current)}'")
            optional_started = False
        elif c == "_" and prev_char == "\\":
            # Escaped underscore, drop the backslash
            current[-1] = "_"
        elif c == "_":
            if kind is GroupKind.USER_INPUT:
                groups.append(GroupName("".join(current), GroupKind.USER_INPUT, optional))
                current = []
                kind = GroupKind.FIXED
                optional = False
            else:
                if current:
                    groups.append(GroupName("".join(current)))
                    current = []
                kind = GroupKind.USER_INPUT
                optional = optional_started
        else:
            current.append(c)
        prev_char = c

    if kind is GroupKind.USER_INPUT:
        raise UnterminatedGroupError("".join(current))

    if current:
        groups.append(GroupName("".join(current)))

    logger.debug(f"Parsed template '{template}' into {len(groups)} spans.")
    return groups


def user_input_groups(spans: Sequence[GroupName]) -> List[GroupName]:
    return [g for g in spans if g.is_user_input]


def iter_rendered(spans: Sequence[GroupName], context: Mapping[str, str]) -> Iterator[Tuple[str, bool]]:
    """Yields (text, is_placeholder) pairs; placeholders are required spans with no value yet."""
    for g in spans:
        if not g.is_user_input:
            yield g.name, False
            continue
        value = context.get(g.name)
        if value:
            yield value, False
        elif value is None and not g.optional:
            yield g.name, True


def render_spans(spans: Sequence[GroupName], context: Mapping[str, str]) -> str:
    return "".join(f"_{text}_" if placeholder else text for text, placeholder in iter_rendered(spans, context))
