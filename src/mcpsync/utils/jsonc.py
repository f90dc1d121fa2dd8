# ABOUTME: Lenient JSON parsing for host config files.
# ABOUTME: Strips // and /* */ comments and trailing commas outside of strings.
import json
import re
from typing import Any

# ABOUTME: Comma followed only by whitespace before a closing bracket
TRAILING_COMMA_PATTERN = re.compile(r",(\s*[}\]])")


def strip_comments(content: str) -> str:
    """Remove line and block comments that are not inside string literals.

    ABOUTME: Walks the text once, tracking string and escape state
    ABOUTME: Newlines from line comments are kept so error positions stay useful
    """
    out: list[str] = []
    i = 0
    length = len(content)
    in_string = False

    while i < length:
        char = content[i]

        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(content[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif content.startswith("//", i):
            end = content.find("\n", i)
            i = length if end == -1 else end
        elif content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = length if end == -1 else end + 2
        else:
            out.append(char)
            i += 1

    return "".join(out)


def strip_trailing_commas(content: str) -> str:
    """Remove commas directly preceding } or ] outside of string literals."""
    # Split on string literals so the substitution never touches their contents
    parts = re.split(r'("(?:\\.|[^"\\])*")', content)
    for index in range(0, len(parts), 2):
        parts[index] = TRAILING_COMMA_PATTERN.sub(r"\1", parts[index])
    return "".join(parts)


def loads(content: str) -> Any:
    """Parse JSON that may contain comments and trailing commas.

    Raises:
        json.JSONDecodeError: If the cleaned content is still not valid JSON

    Examples:
        >>> loads('{"a": 1, // note\\n}')
        {'a': 1}
    """
    return json.loads(strip_trailing_commas(strip_comments(content)))
