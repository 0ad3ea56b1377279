"""Utility functions for loading generated type files.

Generated database type files are frequently produced by shell redirection.
PowerShell's ``>`` writes UTF-16, which the parser cannot read, so the
encoding is checked before the text is decoded.
"""

from pathlib import Path

from .logging_config import get_logger

logger = get_logger(__name__)

UTF8 = "utf-8"
UTF16_LE = "utf-16le"
UTF16_BE = "utf-16be"

# Bytes inspected and share of ASCII/NUL pairs needed for BOM-less UTF-16
PATTERN_WINDOW = 100
PATTERN_THRESHOLD = 0.8


class SourceLoaderError(Exception):
    """Custom exception for input loading errors."""

    pass


class Utf16EncodingError(SourceLoaderError):
    """The input file is UTF-16 encoded and must be regenerated as UTF-8."""

    def __init__(self, file_path: str | Path, detected_encoding: str):
        self.file_path = str(file_path)
        self.detected_encoding = detected_encoding
        super().__init__(
            f'The input file "{self.file_path}" appears to be encoded as '
            f"{detected_encoding.upper()}.\n"
            "\n"
            "supaflat requires UTF-8 encoded files. This commonly happens when using "
            "PowerShell's \">\" redirect operator, which outputs UTF-16 by default.\n"
            "\n"
            "To fix this, regenerate your types file using one of these methods:\n"
            "\n"
            "For PowerShell:\n"
            "  supabase gen types typescript --local | Out-File -FilePath types.ts -Encoding utf8\n"
            "\n"
            "For Bash/Zsh/CMD:\n"
            "  supabase gen types typescript --local > types.ts\n"
            "\n"
            "Alternatively, convert the existing file to UTF-8 using your editor "
            "or a tool like iconv."
        )


def detect_encoding(data: bytes) -> str:
    """Detect UTF-8 or UTF-16 from a byte order mark or NUL-byte pattern.

    Args:
        data: Raw file contents.

    Returns:
        One of ``"utf-8"``, ``"utf-16le"`` or ``"utf-16be"``.
    """
    if data[:2] == b"\xff\xfe":
        return UTF16_LE
    if data[:2] == b"\xfe\xff":
        return UTF16_BE
    if data[:3] == b"\xef\xbb\xbf":
        return UTF8

    if len(data) >= 4:
        if _matches_pattern(data, little_endian=True):
            return UTF16_LE
        if _matches_pattern(data, little_endian=False):
            return UTF16_BE

    return UTF8


def _matches_pattern(data: bytes, little_endian: bool) -> bool:
    """True when most byte pairs look like ASCII characters in UTF-16."""
    window = data[:PATTERN_WINDOW]
    matched = 0
    total = 0

    for i in range(0, len(window) - 1, 2):
        first, second = window[i], window[i + 1]
        char, pad = (first, second) if little_endian else (second, first)
        if pad == 0 and 0 < char < 128:
            matched += 1
        total += 1

    return total > 0 and matched / total > PATTERN_THRESHOLD


def detect_file_encoding(file_path: str | Path) -> str:
    """Detect the encoding of a file on disk."""
    return detect_encoding(Path(file_path).read_bytes())


def is_utf16_encoding(encoding: str) -> bool:
    return encoding in (UTF16_LE, UTF16_BE)


def load_source(file_path: str | Path) -> str:
    """Load a generated TypeScript type file.

    Args:
        file_path: Path to the type file.

    Returns:
        Decoded file contents (a UTF-8 BOM is dropped).

    Raises:
        FileNotFoundError: If file doesn't exist.
        Utf16EncodingError: If the file is UTF-16 encoded.
        SourceLoaderError: If the file cannot be read or decoded.
    """
    file_path = Path(file_path)
    logger.debug(f"Attempting to load types from file: {file_path}")

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"File not found: {file_path}")

    if file_path.suffix.lower() != ".ts":
        logger.warning(f"File does not have .ts extension: {file_path}")

    try:
        data = file_path.read_bytes()
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}", exc_info=True)
        raise SourceLoaderError(f"Error reading file {file_path}: {e}") from e

    encoding = detect_encoding(data)
    if is_utf16_encoding(encoding):
        raise Utf16EncodingError(file_path, encoding)

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise SourceLoaderError(f"File {file_path} is not valid UTF-8: {e}") from e

    logger.debug(f"Loaded {len(text)} characters from {file_path}")
    return text
