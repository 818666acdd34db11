# --- API DOCUMENTATION for snova/command_loader.py ---
#
# **Purpose:** Builds the command catalog. Reads the builtin and user command
# definition files, validates every definition against its template and turns
# it into immutable Command objects.
#
# **Public Functions:**
#
# def parse_defs(defs: dict) -> List[Command]:
#     """
#     Validates and builds commands from a {"commands": [...]} mapping.
#
#     Fails on the first invalid definition. Errors name the offending
#     template and group.
#
#     Raises:
#         GrammarError: a command or flag template is malformed.
#         DefinitionError: declared groups or flags do not match the template.
#     """
#
# def load_all_commands(config: dict) -> List[Command]:
#     """
#     Loads builtin commands, then user commands from the user config
#     directory. A user command with the same template as a builtin one
#     replaces it; all others are appended.
#     """
#
# **Key Global Constants/Variables:**
# - BUILTIN_COMMANDS_FILE_PATH: path of the packaged builtin catalog.
# - DEFAULT_USER_COMMANDS_FILENAME: file name looked up in the user config dir.
#
# --- END API DOCUMENTATION ---

# snova/command_loader.py

import os
import logging
from typing import Any, Dict, List

from snova import config_handler
from snova.command_model import (
    CmdGroup, Command, Flag, FlagExpectation, FlagSet, SingleValue, ValueType,
)
from snova.errors import DefinitionError, GrammarError
from snova.template_parser import parse_template_groups, user_input_groups

# --- Module-specific logger ---
logger = logging.getLogger(__name__)

BUILTIN_COMMANDS_FILE_PATH = os.path.join(config_handler.PACKAGED_CONFIG_DIR, "builtin_commands.json")
DEFAULT_USER_COMMANDS_FILENAME = "commands.json"


def _parse_template(template: str, where: str):
    try:
        return parse_template_groups(template)
    except GrammarError as e:
        e.template = template
        logger.error(f"Invalid template in {where}: {e}")
        raise


def _value_type(expect: Any, where: str) -> ValueType:
    try:
        return ValueType.parse(expect)
    except DefinitionError as e:
        raise DefinitionError(f"{e} in {where}") from None


def _prepare_flags(flag_defs: List[Dict[str, Any]], group_name: str, template: str) -> List[Flag]:
    if not isinstance(flag_defs, list):
        raise DefinitionError(f"Flags of group '{group_name}' in '{template}' must be a list")
    flags = []

    for flag_def in flag_defs:
        if not isinstance(flag_def, dict) or "template" not in flag_def or "description" not in flag_def:
            raise DefinitionError(
                f"Flag in group '{group_name}' of '{template}' needs a template and a description"
            )

        flag_template = flag_def["template"]
        spans = _parse_template(flag_template, f"flag of group '{group_name}'")
        inputs = user_input_groups(spans)

        expectation = None
        expect = flag_def.get("expect")
        if expect is not None:
            if len(inputs) != 1:
                raise DefinitionError(f"Expected one input group for {flag_template}")
            expectation = FlagExpectation(
                _value_type(expect, f"flag '{flag_template}' of group '{group_name}' in '{template}'"),
                tuple(spans),
            )

        flags.append(Flag(
            template=flag_template,
            description=flag_def["description"],
            expectation=expectation,
            multiple=bool(flag_def.get("multiple", False)),
            suggestions=tuple(flag_def.get("suggest") or ()),
            spans=tuple(spans),
        ))

    return flags


def _parse_command(command_def: Dict[str, Any]) -> Command:
    if not isinstance(command_def, dict):
        raise DefinitionError(f"Command definition must be an object, got {type(command_def).__name__}")
    template = command_def.get("template")
    if not template:
        raise DefinitionError("Empty template")
    description = command_def.get("description", "")
    groups = command_def.get("groups") or {}
    if not isinstance(groups, dict):
        raise DefinitionError(f"Groups of '{template}' must be an object keyed by group name")

    group_names = _parse_template(template, "command")
    if not group_names:
        raise DefinitionError("Empty template")

    inputs = user_input_groups(group_names)

    # Verify all groups are defined
    for group_name in inputs:
        if group_name.name not in groups:
            raise DefinitionError(
                f"Command '{template}' is missing '{group_name.name}' group definition."
            )

    template_group_names = [g.name for g in inputs]
    if len(groups) != len(inputs):
        extra = [name for name in groups if name not in template_group_names]
        if extra:
            raise DefinitionError(
                f"Command '{template}' defines group '{extra[0]}' which is not in the template "
                f"(template={template_group_names} and groups={list(groups)})"
            )
        raise DefinitionError(
            f"Group counts do not match template={template_group_names} and groups={list(groups)}"
        )

    cmd_groups = []
    for group_name in inputs:
        name = group_name.name
        group = groups[name]
        if not isinstance(group, dict):
            raise DefinitionError(f"Group '{name}' in '{template}' must be an object with expect or flags")
        expect = group.get("expect")
        flag_defs = group.get("flags")

        if expect is not None and flag_defs is not None:
            raise DefinitionError(f"Group '{name}' defines both expect and flags in '{template}'")
        if expect is None and flag_defs is None:
            raise DefinitionError(f"Group '{name}' should define expect or flags in '{template}'")

        if expect is not None:
            value = SingleValue(_value_type(expect, f"group '{name}' of '{template}'"))
        else:
            value = FlagSet(tuple(_prepare_flags(flag_defs, name, template)))
        cmd_groups.append(CmdGroup(name=name, value=value, optional=group_name.optional))

    return Command(
        template=template,
        description=description,
        groups=tuple(cmd_groups),
        spans=tuple(group_names),
    )


def parse_defs(defs: Dict[str, Any]) -> List[Command]:
    """Parse and validate command definitions."""
    if not isinstance(defs, dict):
        raise DefinitionError(f"Command definitions must be an object, got {type(defs).__name__}")
    command_defs = defs.get("commands")
    if not isinstance(command_defs, list):
        raise DefinitionError("Command definitions need a 'commands' list")

    commands = [_parse_command(command_def) for command_def in command_defs]
    logger.debug(f"Built {len(commands)} commands from definitions.")
    return commands


def _load_commands_file(file_path: str) -> List[Command]:
    defs = config_handler.load_jsonc_file(file_path)
    if defs is None:
        raise DefinitionError(f"Could not load command definitions from {file_path}")

    commands = parse_defs(defs)
    logger.info(f"Loaded {len(commands)} commands from {file_path}")
    return commands


def builtin_commands() -> List[Command]:
    return _load_commands_file(BUILTIN_COMMANDS_FILE_PATH)


def user_commands(config: Dict[str, Any]) -> List[Command]:
    config_dir = config_handler.resolve_path(config, "user_config_dir", config_handler.user_config_dir())
    filename = config.get("paths", {}).get("user_commands_file") or DEFAULT_USER_COMMANDS_FILENAME
    commands_file = os.path.join(config_dir, filename)
    if not os.path.isfile(commands_file):
        logger.info(f"No user commands file at {commands_file}")
        return []
    return _load_commands_file(commands_file)


def merge_commands(builtin: List[Command], user: List[Command]) -> List[Command]:
    merged = list(builtin)
    positions = {cmd.template: i for i, cmd in enumerate(merged)}
    for cmd in user:
        if cmd.template in positions:
            logger.info(f"User command overrides builtin '{cmd.template}'")
            merged[positions[cmd.template]] = cmd
        else:
            positions[cmd.template] = len(merged)
            merged.append(cmd)
    return merged


def load_all_commands(config: Dict[str, Any]) -> List[Command]:
    """Read all commands."""
    return merge_commands(builtin_commands(), user_commands(config))
