# snova/text_style.py

from typing import List, Mapping, Sequence, Tuple

from prompt_toolkit.formatted_text import FormattedText

from snova.template_parser import GroupName, iter_rendered


def fmt_text(text: str, base_style: str = "") -> FormattedText:
    """
    Converts '*bold*' and '_underline_' markup into prompt_toolkit fragments.

    Styles that are not closed end with the text.

    Args:
        text: The marked up text (a description or a partially built command).
        base_style: Style string applied to every fragment (e.g. 'class:help').

    Returns:
        FormattedText: (style, text) fragments without the markup characters.
    """
    fragments: List[Tuple[str, str]] = []
    bold = False
    underline = False
    current = []

    def flush():
        if current:
            styles = [base_style] if base_style else []
            if bold:
                styles.append("bold")
            if underline:
                styles.append("underline")
            fragments.append((" ".join(styles), "".join(current)))
            current.clear()

    for c in text:
        if c == "*":
            flush()
            bold = not bold
        elif c == "_":
            flush()
            underline = not underline
        else:
            current.append(c)
    flush()

    return FormattedText(fragments)


def strip_markup(text: str) -> str:
    """Plain text as it appears on screen."""
    return text.replace("*", "").replace("_", "")


def fmt_preview(spans: Sequence[GroupName], context: Mapping[str, str], base_style: str = "") -> FormattedText:
    """
    The command as it stands, as fragments. Text is taken verbatim, so values
    containing '*' or '_' show exactly as they will be printed; only the
    placeholders of missing required values are underlined.
    """
    placeholder_style = f"{base_style} underline".strip()
    return FormattedText([
        (placeholder_style if placeholder else base_style, text)
        for text, placeholder in iter_rendered(spans, context)
    ])
