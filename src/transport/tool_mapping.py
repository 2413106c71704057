# src/transport/tool_mapping.py - v1
"""REST path -> broker tool resolution.

An explicit ordered table of anchored patterns; the first match wins and
an unmatched path raises NoToolMappingError. Sub-resources of a file are
listed before the bare file path.
"""

from __future__ import annotations

import re

from figmabridge.core.errors import NoToolMappingError

TOOL_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^/files/[^/]+/comments/?$"), "get_comments"),
    (re.compile(r"^/files/[^/]+/versions/?$"), "get_versions"),
    (re.compile(r"^/files/[^/]+/components/?$"), "get_components"),
    (re.compile(r"^/files/[^/]+/styles/?$"), "get_styles"),
    (re.compile(r"^/files/[^/]+/nodes/?$"), "get_nodes"),
    (re.compile(r"^/files/[^/]+/?$"), "get_file"),
    (re.compile(r"^/images/[^/]+/?$"), "get_images"),
    (re.compile(r"^/me/?$"), "get_user"),
    (re.compile(r"^/teams/[^/]+/projects/?$"), "get_team_projects"),
    (re.compile(r"^/projects/[^/]+/files/?$"), "get_project_files"),
    (re.compile(r"^/component_sets/[^/]+/?$"), "get_component_set"),
    (re.compile(r"^/components/[^/]+/?$"), "get_component"),
    (re.compile(r"^/styles/[^/]+/?$"), "get_style"),
)

_FILE_KEY = re.compile(r"^/(?:files|images)/([^/]+)")


def resolve_tool(path: str) -> str:
    """Return the broker tool name for a REST path.

    Raises:
        NoToolMappingError: If no pattern matches.
    """
    for pattern, tool in TOOL_PATTERNS:
        if pattern.match(path):
            return tool
    raise NoToolMappingError(path)


def extract_file_id(path: str) -> str | None:
    """File key embedded in a /files/... or /images/... path, if any."""
    match = _FILE_KEY.match(path)
    return match.group(1) if match else None
