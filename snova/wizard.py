# --- API DOCUMENTATION for snova/wizard.py ---
#
# **Purpose:** Sequences the prompts that turn a catalog of command templates
# into one finished command line: pick a command, then fill its groups in
# declared order.
#
# **Public Classes:**
#
# class Wizard:
#     async def run(self) -> Optional[str]:
#         """
#         Runs the whole session.
#
#         Returns:
#             The built command, or None if the user dismissed the command choice.
#
#         Raises:
#             EmptyValueError: a required value was left empty.
#             PromptInterrupted: the interrupt key was pressed.
#             TerminalError: the terminal could not be read or written.
#         """
#
# --- END API DOCUMENTATION ---

# snova/wizard.py

import logging
from typing import Any, Dict, List, Optional

from prompt_toolkit.formatted_text import FormattedText

from snova.command_model import CmdGroup, Command, Flag
from snova.errors import EmptyValueError
from snova.prompt_engine import ChoiceSource, PromptEngine, PromptMode, Suggestion
from snova.text_style import fmt_preview, fmt_text

# --- Module-specific logger ---
logger = logging.getLogger(__name__)


class Wizard:
    def __init__(self, engine: PromptEngine, commands: List[Command], config: Optional[Dict[str, Any]] = None):
        """
        Args:
            engine: The prompt engine bound to the session's terminal.
            commands: The merged command catalog.
            config: The application configuration (prompt prefixes and help texts).
        """
        self.engine = engine
        self.commands = commands
        ui_config = (config or {}).get("ui", {})
        self.prompts = ui_config.get("prompts", {})
        self.help_texts = ui_config.get("help", {})

    def _prompt(self, key: str, default: str) -> str:
        return self.prompts.get(key, default)

    def _preview(self, command: Command, context: Dict[str, str]) -> FormattedText:
        return fmt_preview(command.spans, context, "class:help")

    def _help(self, key: str, preview: FormattedText) -> FormattedText:
        hint = self.help_texts.get(key)
        if not hint:
            return preview
        return FormattedText(list(preview) + [("", "\n")] + list(fmt_text(hint, "class:help")))

    async def run(self) -> Optional[str]:
        command = await self.choose_command()
        if command is None:
            logger.info("No command selected.")
            return None

        logger.info(f"Selected command '{command.template}'")
        context: Dict[str, str] = {}

        for group in command.groups:
            if group.is_flags:
                await self.choose_flags(command, group, context)
            else:
                await self.read_group_value(command, group, context)

        result = command.build(context)
        logger.info(f"Built command: {result}")
        return result

    async def choose_command(self) -> Optional[Command]:
        result = await self.engine.run(
            self._prompt("command", "Command:"),
            help=self.help_texts.get("command"),
            mode=PromptMode.CHOICE,
            source=ChoiceSource(self.commands),
        )
        return result.choice

    async def read_group_value(self, command: Command, group: CmdGroup, context: Dict[str, str]) -> None:
        result = await self.engine.run(
            f"{group.name}:",
            help=self._preview(command, context),
            expect=group.value.value_type,
        )
        if not result.text:
            if group.optional:
                logger.debug(f"Optional group '{group.name}' left empty.")
                return
            raise EmptyValueError(f"No value for {group.name}")
        context[group.name] = result.text

    async def choose_flags(self, command: Command, group: CmdGroup, context: Dict[str, str]) -> None:
        """Lets the user pick flags one at a time until dismissed or none are left."""
        available: List[Flag] = list(group.value.flags)
        combined: List[str] = []

        while available:
            result = await self.engine.run(
                f"{group.name}:",
                help=self._help("flags", self._preview(command, context)),
                mode=PromptMode.CHOICE,
                source=ChoiceSource(available),
            )
            flag = result.choice
            if flag is None:
                break

            if not flag.multiple:
                available.remove(flag)

            if flag.expectation is not None:
                value = await self.read_flag_value(command, flag, context)
                combined.append(flag.render(value))
            else:
                combined.append(flag.render())

            context[group.name] = " ".join(combined)
            logger.debug(f"Group '{group.name}' is now '{context[group.name]}'")

        # Nothing chosen still counts as answered
        context[group.name] = " ".join(combined)

    async def read_flag_value(self, command: Command, flag: Flag, context: Dict[str, str]) -> str:
        expectation = flag.expectation
        prefix = f"{expectation.name}:"
        if flag.suggestions:
            result = await self.engine.run(
                prefix,
                help=self._preview(command, context),
                expect=expectation.value_type,
                mode=PromptMode.SUGGEST,
                source=ChoiceSource(Suggestion(s) for s in flag.suggestions),
            )
        else:
            result = await self.engine.run(
                prefix,
                help=self._preview(command, context),
                expect=expectation.value_type,
            )

        value = result.value
        if not value:
            raise EmptyValueError(f"No value for {flag.template} flag")
        return value
