"""Best-effort repair of JSON-like request bodies.

Clients (and models) often send Python-style dict literals such as
``{'endpoint': '/users'}`` or JavaScript object literals with bare keys.
``repair_json`` rewrites the common cases into strict JSON; anything it
cannot fix is handed back untouched so the caller can report a 400.
"""

import json
import logging
import re
from typing import Any, Union

from .errors import Result, parse_error

logger = logging.getLogger("graph_mcp")

_IDENT_CHAR = re.compile(r"[A-Za-z0-9_$]")

PARSE_HELP = (
    "Ensure all quotes are double quotes (\") not single quotes (') "
    "and all property names are quoted"
)


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def _quote_bare_key(result: list) -> None:
    """Wrap the identifier right before a ``:`` in double quotes, in place."""
    j = len(result) - 1
    while j >= 0 and result[j].isspace():
        j -= 1
    end = j + 1
    while j >= 0 and _IDENT_CHAR.match(result[j]):
        j -= 1
    start = j + 1
    if start < end and j >= 0 and result[j] != '"':
        result[start:end] = ['"', *result[start:end], '"']


def repair_json(text: str) -> str:
    """Rewrite single-quoted / bare-key JSON into valid JSON.

    Returns valid JSON when the repair works, otherwise the input unchanged.
    Already valid JSON is returned as-is.
    """
    if not isinstance(text, str):
        return text

    original = text
    stripped = text.strip()
    if len(stripped) >= 2 and stripped[0] == "'" and stripped[-1] == "'":
        text = stripped[1:-1]

    if _is_json(text):
        return text

    in_double = False
    result: list = []
    for i, char in enumerate(text):
        if char == '"' and (i == 0 or text[i - 1] != "\\"):
            in_double = not in_double
            result.append(char)
        elif char == "'" and not in_double:
            result.append('"')
        elif char == ":" and not in_double:
            _quote_bare_key(result)
            result.append(char)
        else:
            result.append(char)

    repaired = "".join(result)
    if _is_json(repaired):
        return repaired

    logger.warning("Failed to repair JSON body: %.200s", original)
    return original


def parse_body(raw: Union[str, bytes]) -> Result[Any]:
    """Parse a request body, falling back to ``repair_json`` on bad input."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            return Result.failure(parse_error(f"Request body is not UTF-8: {e}"))

    if not raw.strip():
        return Result.success({})

    try:
        return Result.success(json.loads(raw))
    except ValueError as e:
        first_error = str(e)

    repaired = repair_json(raw)
    try:
        data = json.loads(repaired)
    except ValueError:
        return Result.failure(
            parse_error(
                f"Invalid JSON in request body: {first_error}. {PARSE_HELP}",
                details={"help": PARSE_HELP},
            )
        )
    logger.info("Repaired malformed JSON request body")
    return Result.success(data)
