"""Text normalization for shopping list terms and product names."""

import re

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
# Bullets, dashes, asterisks and numbering copied along with a list line
_LEADING_MARKUP = re.compile(r"^[\s\-*•\d.]+")


def normalize(text: str) -> str:
    """
    Normalize text for matching.

    Lower-cases, replaces every character outside a-z, 0-9 and whitespace
    with a space, collapses whitespace runs and trims.

    Args:
        text: Any text (list line, product name, expansion phrase)

    Returns:
        Normalized text, possibly empty
    """
    text = _NON_ALPHANUMERIC.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def root_of(token: str) -> str:
    """
    Roll a token back to its singular form with simple suffix rules.

    Tokens of 3 characters or fewer are returned unchanged ("gas").
    Otherwise the first matching rule applies: "ies" -> "y",
    then "es" is dropped, then "s" is dropped.

    Args:
        token: A single normalized token

    Returns:
        The root token
    """
    if len(token) <= 3:
        return token
    if token.endswith("ies"):
        return token[:-3] + "y"
    if token.endswith("es"):
        return token[:-2]
    if token.endswith("s"):
        return token[:-1]
    return token


def clean_leading_markup(line: str) -> str:
    """Strip leading bullets, dashes, asterisks, digits and periods from a list line."""
    return _LEADING_MARKUP.sub("", line).strip()


def prepare_list_text(text: str) -> str:
    """
    Prepare pasted list text for matching.

    A single-line, comma-separated list ("milk, eggs, bread") is split
    into one item per line. Anything else is returned unchanged.
    """
    if "," in text and "\n" not in text:
        return "\n".join(item.strip() for item in text.split(",") if item.strip())
    return text


def split_list_lines(text: str) -> list[str]:
    """Split list text into trimmed, non-empty lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]
