# src/core/validation.py - v1
"""Input validation for node identifiers, file ids and access tokens.

All checks are pure and run before any network call.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from figmabridge.core.models import InvalidNodeId, NodeIdValidation

NODE_ID_SEPARATOR = ":"

_NODE_ID_CHARS = re.compile(r"^[A-Za-z0-9:-]+$")
_FILE_ID = re.compile(r"^[A-Za-z0-9]+$")
_PERSONAL_TOKEN = re.compile(r"^figd_[A-Za-z0-9_-]{71}$")


def invalid_node_reason(node_id: str) -> str:
    """Reason string recorded for a rejected node id."""
    return f"Invalid node ID format: {node_id}"


def node_id_problem(node_id: Any) -> str | None:
    """Return what is wrong with a node id, or None when it is well-formed.

    Well-formed ids are strings of at least three characters drawn from
    [A-Za-z0-9:-] that contain the ":" separator (e.g. "123:456").
    """
    if not isinstance(node_id, str) or not node_id:
        return "Not a string"
    if len(node_id) < 3:
        return "Too short"
    if NODE_ID_SEPARATOR not in node_id:
        return "Missing colon separator"
    if not _NODE_ID_CHARS.match(node_id):
        return "Invalid characters"
    return None


def validate_node_id(node_id: Any) -> bool:
    return node_id_problem(node_id) is None


def validate_node_ids(node_ids: Iterable[Any]) -> NodeIdValidation:
    """Split node ids into valid and invalid, preserving input order."""
    result = NodeIdValidation()
    for node_id in node_ids:
        problem = node_id_problem(node_id)
        if problem is None:
            result.valid.append(node_id)
        else:
            text = str(node_id)
            result.invalid.append(
                InvalidNodeId(id=text, reason=invalid_node_reason(text), detail=problem)
            )
    return result


def validate_file_id(file_id: str) -> bool:
    """Figma file keys are alphanumeric and longer than 10 characters."""
    return bool(file_id) and bool(_FILE_ID.match(file_id)) and len(file_id) > 10


def validate_token(token: str) -> bool:
    """Accept personal access tokens (figd_...) and other tokens of length >= 20."""
    if not token:
        return False
    return bool(_PERSONAL_TOKEN.match(token)) or len(token) >= 20
