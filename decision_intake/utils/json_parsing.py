"""
Defensive parsing of JSON returned by a language model.
"""
import json
import re
from typing import Any, Dict, Optional

# First "{" through the last "}" in the content.
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_model_json(content: str) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON object from model output.

    Tries a strict parse first, then the first brace-delimited substring
    (which also covers markdown-fenced output). Returns None when neither
    yields a JSON object.

    Args:
        content: Raw model response content

    Returns:
        Parsed object or None
    """
    if not content or not content.strip():
        return None

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        match = _OBJECT_RE.search(content)
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None

    return parsed if isinstance(parsed, dict) else None
