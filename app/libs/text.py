import unicodedata


def normalize_query(text):
    """
    Build the comparison key of a search string.

    Lowercases, strips combining diacritical marks (NFD decomposition) and
    trims surrounding whitespace. Two strings with the same key are the same
    search term for deduplication, history grouping and trending.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return stripped.strip()


def escape_like(value, escape_char="\\"):
    """Escape LIKE wildcards so user input only ever matches literally"""
    return (
        value.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )
