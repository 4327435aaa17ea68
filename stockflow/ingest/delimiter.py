"""
Delimiter sniffing from the header line.
"""

DEFAULT_DELIMITER = ","

# Candidate order doubles as the tie-break and the fallback order.
CANDIDATE_DELIMITERS = (",", ";", "\t", "|")


def first_line(text: str) -> str:
    return text.split("\n", 1)[0]


def sniff_delimiter(header_line: str) -> str:
    """
    Guess the field separator from the header line.

    Args:
        header_line: First line of normalized text

    Returns:
        The candidate with the most occurrences; earlier candidates win ties
        and an empty header (or no candidate at all) yields a comma
    """
    best = DEFAULT_DELIMITER
    best_count = 0
    for candidate in CANDIDATE_DELIMITERS:
        count = header_line.count(candidate)
        if count > best_count:
            best, best_count = candidate, count
    return best


def candidate_delimiters(guessed: str) -> list[str]:
    """
    Delimiters to try in order: the guess first, then the fixed fallbacks.

    Args:
        guessed: Result of sniff_delimiter

    Returns:
        Ordered, de-duplicated list of delimiters
    """
    ordered: list[str] = []
    for delimiter in (guessed, *CANDIDATE_DELIMITERS):
        if delimiter not in ordered:
            ordered.append(delimiter)
    return ordered
