def collapse_newlines(s: str) -> str:
    """Replace every newline with a space."""
    return s.replace("\n", " ")
