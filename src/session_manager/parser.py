"""JSONL parser — turns raw session file text into SessionLine objects."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from session_manager.errors import ParseError
from session_manager.models import MESSAGE_KINDS, SessionLine

logger = logging.getLogger(__name__)

LINE_SPLIT_RE = re.compile(r"\r?\n")

UNKNOWN_KIND = "unknown"
COMPLEX_CONTENT_PLACEHOLDER = "[Complex content]"


def split_lines(raw: str) -> list[str]:
    """Split on \\n or \\r\\n, keeping the empty string after a trailing newline."""
    return LINE_SPLIT_RE.split(raw)


def parse_session_content(raw: str) -> list[SessionLine]:
    """Parse the full text of a session file. Returns one SessionLine per line.

    Blank and non-JSON lines are kept as selected non-message lines so that a
    save can write them back verbatim.
    """
    lines: list[SessionLine] = []
    non_json = 0

    for index, text in enumerate(split_lines(raw)):
        line = SessionLine(index=index, raw_text=text)
        lines.append(line)

        if not text.strip():
            continue

        try:
            data = _decode_line(text)
        except ParseError:
            non_json += 1
            continue

        line.record_kind = extract_record_kind(data)
        line.preview_text = extract_preview_text(data)
        line.is_message = line.record_kind in MESSAGE_KINDS

    if non_json:
        logger.debug("Kept %d non-JSON lines verbatim", non_json)

    return lines


def extract_record_kind(data: Any) -> str:
    """Probe type, message.type, message.role in that order. First non-empty string wins."""
    if not isinstance(data, dict):
        return UNKNOWN_KIND

    message = _message_of(data)
    for candidate in (data.get("type"), message.get("type"), message.get("role")):
        if isinstance(candidate, str) and candidate:
            return candidate
    return UNKNOWN_KIND


def extract_preview_text(data: Any) -> str | None:
    """Pull human-readable text out of a decoded line.

    Order: top-level string content, message.content string, message.content
    list of text blocks, any other message.content serialized as JSON.
    Returns None when nothing is present.
    """
    if not isinstance(data, dict):
        return None

    content = data.get("content")
    if isinstance(content, str):
        return content

    message_content = _message_of(data).get("content")
    if isinstance(message_content, str):
        return message_content
    if isinstance(message_content, list):
        texts = [
            item["text"]
            for item in message_content
            if isinstance(item, dict)
            and item.get("type") == "text"
            and isinstance(item.get("text"), str)
            and item["text"]
        ]
        return "\n".join(texts) or COMPLEX_CONTENT_PLACEHOLDER
    if message_content is not None:
        return json.dumps(message_content, separators=(",", ":"), ensure_ascii=False)

    return None


def _decode_line(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ParseError(str(e)) from e


def _message_of(data: dict) -> dict:
    """The nested message object, or {} when missing or not an object."""
    message = data.get("message")
    return message if isinstance(message, dict) else {}
