# snova/errors.py


class SnovaError(Exception):
    """Base class for all errors raised by snova."""
    pass


# --- Load-time errors ---

class GrammarError(SnovaError):
    """A template string is malformed.

    The catalog loader fills in `template` so the message quotes the
    offending template.
    """

    def __init__(self, message: str, template: str = None):
        super().__init__(message)
        self.message = message
        self.template = template

    def __str__(self):
        if self.template is not None:
            return f"{self.message} (in template '{self.template}')"
        return self.message


class UnmatchedBracketError(GrammarError):
    pass


class UnterminatedGroupError(GrammarError):
    def __init__(self, group: str, template: str = None):
        super().__init__(f"Group '{group}' is not closed", template)
        self.group = group


class DefinitionError(SnovaError):
    """Declared groups or flags do not agree with their templates."""
    pass


# --- Interactive errors ---

class EmptyValueError(SnovaError):
    """The user committed an empty value where one was required."""
    pass


class PromptInterrupted(SnovaError):
    """The interrupt key was pressed. Aborts the whole session."""

    def __init__(self, message: str = "Terminated"):
        super().__init__(message)


class TerminalError(SnovaError):
    """Reading from or writing to the terminal failed."""
    pass
