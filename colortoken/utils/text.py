from pathlib import Path

LANGUAGE_IDS = {
    ".json": "json",
    ".jsonc": "jsonc",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hxx": "cpp",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
}


def get_language_id(path: str | Path) -> str:
    path = Path(path)
    return LANGUAGE_IDS.get(path.suffix, "plaintext")


def read_file_content(path: str | Path) -> str:
    return Path(path).read_text()


def utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def utf16_to_index(line: str, character: int) -> int:
    """Convert a UTF-16 column on a single line to a Python string index.

    Columns past the end of the line clamp to the line length.
    """
    units = 0
    for i, ch in enumerate(line):
        if units >= character:
            return i
        units += 2 if ord(ch) > 0xFFFF else 1
    return len(line)


def line_starts(content: str) -> list[int]:
    starts = [0]
    for i, ch in enumerate(content):
        if ch == "\n":
            starts.append(i + 1)
        elif ch == "\r" and not content.startswith("\n", i + 1):
            starts.append(i + 1)
    return starts


def position_to_offset(content: str, line: int, character: int, starts: list[int] | None = None) -> int:
    starts = starts if starts is not None else line_starts(content)
    if line < 0:
        return 0
    if line >= len(starts):
        return len(content)
    start = starts[line]
    end = starts[line + 1] if line + 1 < len(starts) else len(content)
    line_text = content[start:end].rstrip("\r\n")
    return start + utf16_to_index(line_text, character)


def offset_to_position(content: str, offset: int, starts: list[int] | None = None) -> tuple[int, int]:
    """Convert a string index to a (line, UTF-16 character) pair."""
    starts = starts if starts is not None else line_starts(content)
    offset = max(0, min(offset, len(content)))

    lo, hi = 0, len(starts)
    while lo + 1 < hi:
        mid = (lo + hi) // 2
        if starts[mid] > offset:
            hi = mid
        else:
            lo = mid
    return lo, utf16_length(content[starts[lo]:offset])
