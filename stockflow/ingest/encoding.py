"""
Encoding normalization for uploaded files.

Spreadsheet exports often arrive as UTF-16 with NUL bytes inside ASCII-range
characters. A NUL byte anywhere is therefore treated as UTF-16LE even
without a byte-order mark.
"""

UTF16_LE_BOM = b"\xff\xfe"
UTF16_BE_BOM = b"\xfe\xff"


def detect_encoding(data: bytes) -> str:
    """
    Pick the codec for a raw upload.

    Args:
        data: Raw uploaded bytes

    Returns:
        "utf-16-le", "utf-16-be" or "utf-8"
    """
    head = data[:2]
    if head == UTF16_LE_BOM or b"\x00" in data:
        return "utf-16-le"
    if head == UTF16_BE_BOM:
        return "utf-16-be"
    return "utf-8"


def _swap_byte_pairs(data: bytes) -> bytes:
    even = len(data) - len(data) % 2
    swapped = bytearray(data)
    swapped[0:even:2] = data[1:even:2]
    swapped[1:even:2] = data[0:even:2]
    return bytes(swapped)


def decode_utf16_be(data: bytes) -> str:
    """Decode big-endian UTF-16, falling back to swapping into little-endian."""
    try:
        return data.decode("utf-16-be", errors="replace")
    except LookupError:
        return _swap_byte_pairs(data).decode("utf-16-le", errors="replace")


def normalize_newlines(text: str) -> str:
    """Strip BOM and NUL characters and turn CRLF / lone CR into LF."""
    return (
        text.replace("\ufeff", "")
        .replace("\x00", "")
        .replace("\r\n", "\n")
        .replace("\r", "\n")
    )


def normalize_encoding(data: bytes) -> str:
    """
    Turn an uploaded byte buffer of unknown encoding into clean text.

    Never raises: undecodable sequences become U+FFFD and the resulting rows
    are left for the row validator to reject.

    Args:
        data: Raw uploaded bytes

    Returns:
        Text with BOM and NUL characters removed and newlines normalized to "\\n"
    """
    data = bytes(data)
    encoding = detect_encoding(data)

    if encoding == "utf-16-be":
        text = decode_utf16_be(data)
    else:
        text = data.decode(encoding, errors="replace")

    return normalize_newlines(text)
