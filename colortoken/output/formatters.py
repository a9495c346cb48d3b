import json
from typing import Any


def format_output(data: Any, output_format: str = "plain") -> str:
    if output_format == "json":
        return json.dumps(data, indent=2)
    return format_plain(data)


def format_plain(data: Any) -> str:
    if data is None:
        return ""

    if isinstance(data, str):
        return data

    if isinstance(data, dict):
        if "error" in data:
            return f"Error: {data['error']}"

        if "colors" in data:
            return format_colors(data["colors"], data.get("truncated_at"))

        if "locations" in data:
            return format_locations(data["locations"])

        return "\n".join(f"{key}: {value}" for key, value in data.items())

    if isinstance(data, list):
        return "\n".join(format_plain(item) for item in data)

    return str(data)


def format_colors(colors: list[dict], truncated_at: int | None = None) -> str:
    if not colors:
        return "No colors found"

    lines = []
    for color in colors:
        location = f"{color['path']}:{color['line']}:{color['column']}"
        lines.append(f"{location} {color['color']}  {color['text']}")

    if truncated_at is not None:
        lines.append(f"Warning: stopped after {truncated_at} color tokens (maxNumberOfColorTokens)")
    return "\n".join(lines)


def format_locations(locations: list[dict]) -> str:
    if not locations:
        return "No definition found"

    return "\n".join(f"{loc['path']}:{loc['line']}:{loc['column']}" for loc in locations)
