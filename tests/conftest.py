# tests/conftest.py
#
# Project-wide fixtures. Adds the project root to the Python path so the
# 'snova' package and 'main' can be imported without installing.

import sys
import os

import pytest
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from snova.command_loader import parse_defs
from snova.terminal import Terminal


class RecordingOutput(DummyOutput):
    """A DummyOutput that remembers what was written and how the cursor moved."""

    def __init__(self, columns: int = 80):
        self.events = []
        self._columns = columns

    def write(self, data: str) -> None:
        self.events.append(("write", data))

    def write_raw(self, data: str) -> None:
        self.events.append(("raw", data))

    def cursor_up(self, amount: int) -> None:
        self.events.append(("up", amount))

    def cursor_forward(self, amount: int) -> None:
        self.events.append(("forward", amount))

    def erase_down(self) -> None:
        self.events.append(("erase_down", None))

    def get_size(self):
        size = super().get_size()
        return size._replace(columns=self._columns)

    @property
    def text(self) -> str:
        return "".join(data for kind, data in self.events if kind in ("write", "raw"))

    @property
    def frames(self):
        """Text written after each erase, i.e. one entry per redraw."""
        frames = [""]
        for kind, data in self.events:
            if kind == "erase_down":
                frames.append("")
            elif kind in ("write", "raw"):
                frames[-1] += data
        return frames


@pytest.fixture
def pipe_input():
    with create_pipe_input() as inp:
        yield inp


@pytest.fixture
def recording_output():
    return RecordingOutput()


@pytest.fixture
def terminal(pipe_input, recording_output):
    return Terminal(input=pipe_input, output=recording_output)


@pytest.fixture
def make_terminal(pipe_input):
    """Builds a terminal on the shared pipe input with a given width."""
    def _make(columns: int = 80) -> Terminal:
        return Terminal(input=pipe_input, output=RecordingOutput(columns))
    return _make


@pytest.fixture
def sample_defs():
    """A small catalog shaped like the builtin one."""
    return {
        "commands": [
            {
                "template": "grep [_OPTIONS_] _PATTERN_ _PATH_",
                "description": "Find lines in a file (*grep*)",
                "groups": {
                    "PATTERN": {"expect": "string"},
                    "PATH": {"expect": "path"},
                    "OPTIONS": {
                        "flags": [
                            {"template": "-i", "description": "Case insensitive matching"},
                            {"template": "*-A* _NUM_", "description": "Print _NUM_ lines after the matched line",
                             "expect": "number"},
                        ]
                    },
                },
            },
            {
                "template": "curl [_OPTIONS_] _URL_",
                "description": "Send an HTTP request (*curl*)",
                "groups": {
                    "URL": {"expect": "string"},
                    "OPTIONS": {
                        "flags": [
                            {"template": "*-H* _VALUE_", "description": "Include a header", "expect": "string",
                             "multiple": True},
                            {"template": "*-X* _METHOD_", "description": "Set a request method", "expect": "string",
                             "suggest": ["GET", "POST", "PUT"]},
                            {"template": "-L", "description": "Follow redirects"},
                        ]
                    },
                },
            },
            {
                "template": "ls [_PATH_]",
                "description": "List directory contents (*ls*)",
                "groups": {
                    "PATH": {"expect": "path"},
                },
            },
        ]
    }


@pytest.fixture
def sample_commands(sample_defs):
    return parse_defs(sample_defs)
