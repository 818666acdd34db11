# tests/test_wizard.py

from types import SimpleNamespace

import pytest
from prompt_toolkit.formatted_text import fragment_list_to_text

from main import run_wizard
from snova.command_model import ValueType
from snova.errors import EmptyValueError, PromptInterrupted
from snova.prompt_engine import PromptMode, PromptResult, Suggestion
from snova.wizard import Wizard

ENTER = "\r"
CTRL_C = "\x03"
CTRL_D = "\x04"


# --- Scripted answers for a fake prompt engine ---

def pick(text):
    """Chooses the first offered candidate whose text contains `text`."""
    def answer(candidates):
        return PromptResult(choice=next(c for c in candidates if text in c.text))
    return answer


def typed(text):
    return lambda candidates: PromptResult(text=text)


def dismissed(candidates):
    return PromptResult(dismissed=True)


class ScriptedEngine:
    """Stands in for PromptEngine: records every prompt and replays answers."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    async def run(self, prefix, help=None, expect=None, mode=PromptMode.LINE, source=None):
        candidates = source.filter("") if source is not None else []
        self.calls.append(SimpleNamespace(prefix=prefix, help=help, expect=expect, mode=mode,
                                          candidates=candidates))
        return self.answers.pop(0)(candidates)


async def run_scripted(commands, *answers, config=None):
    engine = ScriptedEngine(*answers)
    result = await Wizard(engine, commands, config).run()
    return result, engine


# --- Wizard with a scripted engine ---

@pytest.mark.asyncio
async def test_builds_command_from_answers(sample_commands):
    result, engine = await run_scripted(
        sample_commands,
        pick("grep"), pick("Case insensitive"), dismissed, typed("foo"), typed("./x"),
    )

    assert result == "grep -i foo ./x"
    assert [c.prefix for c in engine.calls] == ["Command:", "OPTIONS:", "OPTIONS:", "PATTERN:", "PATH:"]
    assert [c.mode for c in engine.calls[:3]] == [PromptMode.CHOICE] * 3
    assert engine.calls[3].expect is ValueType.STRING
    assert engine.calls[4].expect is ValueType.PATH


@pytest.mark.asyncio
async def test_chosen_flag_is_not_offered_again(sample_commands):
    result, engine = await run_scripted(
        sample_commands,
        pick("grep"), pick("Case insensitive"), dismissed, typed("foo"), typed("./x"),
    )

    assert [f.template for f in engine.calls[1].candidates] == ["-i", "*-A* _NUM_"]
    assert [f.template for f in engine.calls[2].candidates] == ["*-A* _NUM_"]


@pytest.mark.asyncio
async def test_flag_prompts_end_when_all_flags_are_chosen(sample_commands):
    result, engine = await run_scripted(
        sample_commands,
        pick("grep"), pick("Case insensitive"), pick("after"), typed("3"), typed("foo"), typed("./x"),
    )

    assert result == "grep -i -A 3 foo ./x"
    value_call = engine.calls[3]
    assert value_call.prefix == "NUM:"
    assert value_call.expect is ValueType.NUMBER
    assert value_call.mode is PromptMode.LINE


@pytest.mark.asyncio
async def test_multiple_flag_can_be_chosen_twice(sample_commands):
    result, engine = await run_scripted(
        sample_commands,
        pick("curl"),
        pick("header"), typed("A: 1"),
        pick("header"), typed("B: 2"),
        dismissed,
        typed("http://x"),
    )

    assert result == "curl -H A: 1 -H B: 2 http://x"
    assert "*-H* _VALUE_" in [f.template for f in engine.calls[3].candidates]


@pytest.mark.asyncio
async def test_flag_with_suggestions_uses_suggest_mode(sample_commands):
    result, engine = await run_scripted(
        sample_commands,
        pick("curl"), pick("request method"), pick("POST"), dismissed, typed("http://x"),
    )

    assert result == "curl -X POST http://x"
    suggest_call = engine.calls[2]
    assert suggest_call.prefix == "METHOD:"
    assert suggest_call.mode is PromptMode.SUGGEST
    assert suggest_call.candidates == [Suggestion("GET"), Suggestion("POST"), Suggestion("PUT")]


@pytest.mark.asyncio
async def test_help_shows_command_built_so_far(sample_commands):
    _, engine = await run_scripted(
        sample_commands,
        pick("grep"), pick("Case insensitive"), dismissed, typed("foo"), typed("./x"),
    )

    assert fragment_list_to_text(engine.calls[1].help) == "grep  PATTERN PATH"
    assert fragment_list_to_text(engine.calls[2].help) == "grep -i PATTERN PATH"
    assert fragment_list_to_text(engine.calls[4].help) == "grep -i foo PATH"
    # Missing values are underlined, the rest is plain help text
    assert list(engine.calls[4].help) == [
        ("class:help", "grep "), ("class:help", "-i"), ("class:help", " "), ("class:help", "foo"),
        ("class:help", " "), ("class:help underline", "PATH"),
    ]


@pytest.mark.asyncio
async def test_help_shows_values_verbatim(sample_commands):
    _, engine = await run_scripted(
        sample_commands,
        pick("curl"), pick("header"), typed("X_Id: *"), dismissed, typed("http://h/a_b"),
    )

    url_call = engine.calls[4]
    assert url_call.prefix == "URL:"
    assert fragment_list_to_text(url_call.help) == "curl -H X_Id: * URL"
    assert ("class:help", "-H X_Id: *") in list(url_call.help)


@pytest.mark.asyncio
async def test_prompts_and_help_come_from_config(sample_commands):
    config = {"ui": {"prompts": {"command": "Pick:"}, "help": {"command": "Type to filter", "flags": "Esc moves on"}}}
    _, engine = await run_scripted(
        sample_commands,
        pick("grep"), dismissed, typed("foo"), typed("./x"),
        config=config,
    )

    assert engine.calls[0].prefix == "Pick:"
    assert engine.calls[0].help == "Type to filter"
    assert fragment_list_to_text(engine.calls[1].help) == "grep  PATTERN PATH\nEsc moves on"


@pytest.mark.asyncio
async def test_no_flags_chosen_renders_empty_group(sample_commands):
    result, _ = await run_scripted(
        sample_commands,
        pick("curl"), dismissed, typed("http://x"),
    )
    assert result == "curl  http://x"


@pytest.mark.asyncio
async def test_optional_value_may_be_left_empty(sample_commands):
    result, _ = await run_scripted(sample_commands, pick("*ls*"), dismissed)
    assert result == "ls "


@pytest.mark.asyncio
async def test_required_value_left_empty(sample_commands):
    with pytest.raises(EmptyValueError, match="No value for PATTERN"):
        await run_scripted(sample_commands, pick("grep"), dismissed, dismissed)


@pytest.mark.asyncio
async def test_flag_value_left_empty(sample_commands):
    with pytest.raises(EmptyValueError, match=r"No value for \*-A\* _NUM_ flag"):
        await run_scripted(sample_commands, pick("grep"), pick("after"), dismissed)


@pytest.mark.asyncio
async def test_dismissed_command_choice_returns_none(sample_commands):
    result, engine = await run_scripted(sample_commands, dismissed)
    assert result is None
    assert len(engine.calls) == 1


# --- Full sessions over a pipe ---

@pytest.mark.asyncio
async def test_full_session(sample_commands, terminal, pipe_input, recording_output):
    pipe_input.send_text(
        "grep" + ENTER + "insens" + ENTER + "after" + ENTER + "3" + ENTER + "foo" + ENTER + "./src" + ENTER
    )

    result = await run_wizard(sample_commands, {}, terminal=terminal)

    assert result == "grep -i -A 3 foo ./src"
    transcript = recording_output.text
    for line in ("Command: Find lines in a file (grep)\r\n", "OPTIONS: Case insensitive matching\r\n",
                 "NUM: 3\r\n", "PATTERN: foo\r\n", "PATH: ./src\r\n"):
        assert line in transcript
    # The command being built is shown while values are read
    assert "grep -i -A 3 PATTERN PATH" in transcript


@pytest.mark.asyncio
async def test_full_session_keeps_markup_characters_in_values(sample_commands, terminal, pipe_input, recording_output):
    pipe_input.send_text("curl" + ENTER + "header" + ENTER + "X_Id: *" + ENTER + CTRL_D + "http://h/a_b" + ENTER)

    result = await run_wizard(sample_commands, {}, terminal=terminal)

    assert result == "curl -H X_Id: * http://h/a_b"
    assert "curl -H X_Id: * URL\r\n" in recording_output.text


@pytest.mark.asyncio
async def test_full_session_cancelled(sample_commands, terminal, pipe_input):
    pipe_input.send_text("gr" + CTRL_D)
    assert await run_wizard(sample_commands, {}, terminal=terminal) is None


@pytest.mark.asyncio
async def test_full_session_interrupted(sample_commands, terminal, pipe_input, recording_output):
    pipe_input.send_text("grep" + ENTER + CTRL_C)

    with pytest.raises(PromptInterrupted):
        await run_wizard(sample_commands, {}, terminal=terminal)

    assert recording_output.events[-1] == ("erase_down", None)
    assert terminal.reserved_rows == 0
