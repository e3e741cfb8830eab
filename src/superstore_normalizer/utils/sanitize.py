"""Protection against spreadsheet formula injection in exported text."""

# Text starting with one of these is evaluated by Excel and LibreOffice;
# "|" covers DDE payloads
FORMULA_PREFIXES = frozenset("=+-@|\t\r\n")


def is_formula_like(text: str) -> bool:
    """Whether a spreadsheet would evaluate ``text`` instead of showing it."""
    return bool(text) and text[0] in FORMULA_PREFIXES


def sanitize_for_csv(value: str | None) -> str | None:
    """Make a free-text cell literal.

    Product and customer names are written verbatim unless they start with
    a formula character, in which case a leading single quote keeps the
    spreadsheet from evaluating them. Numeric cells never pass through
    here, so negative amounts keep their sign.

    Args:
        value: Cell text, or None for an empty cell.

    Returns:
        The text, quoted if needed (None stays None).
    """
    if value is None or not is_formula_like(value):
        return value
    return "'" + value
