# src/service/mock_data.py - v1
"""Placeholder datasets substituted when a real fetch fails.

Every accessor returns a fresh model instance so callers may mutate
results freely.
"""

from __future__ import annotations

from typing import Any

from figmabridge.core.models import (
    FigmaComment,
    FigmaComponent,
    FigmaFile,
    FigmaStyle,
    FigmaUser,
    FigmaVersion,
)

_DESIGNER = {"id": "user1", "handle": "designer_jane", "img_url": "https://via.placeholder.com/40x40?text=DJ"}
_DEVELOPER = {"id": "user2", "handle": "dev_alex", "img_url": "https://via.placeholder.com/40x40?text=DA"}
_LEAD = {"id": "user3", "handle": "design_lead", "img_url": "https://via.placeholder.com/40x40?text=DL"}

MOCK_FILE: dict[str, Any] = {
    "name": "Design System Components",
    "role": "owner",
    "lastModified": "2024-01-15T10:30:00Z",
    "editorType": "figma",
    "thumbnailUrl": "https://via.placeholder.com/200x150?text=File+Thumbnail",
    "version": "1234567890",
    "document": {
        "id": "0:1",
        "name": "Document",
        "type": "DOCUMENT",
        "children": [
            {"id": "1:2", "name": "Cover Page", "type": "CANVAS", "children": []},
            {"id": "1:3", "name": "Components", "type": "CANVAS", "children": []},
            {"id": "1:4", "name": "Styles Guide", "type": "CANVAS", "children": []},
        ],
    },
    "components": {},
    "componentSets": {},
    "schemaVersion": 0,
    "styles": {},
}

MOCK_USER: dict[str, Any] = {
    "id": "12345",
    "email": "demo@example.com",
    "handle": "Demo User",
    "img_url": "https://via.placeholder.com/80x80?text=User",
}

MOCK_COMMENTS: list[dict[str, Any]] = [
    {
        "id": "comment1",
        "message": "This component looks great! Can we make the padding a bit larger?",
        "user": _DESIGNER,
        "created_at": "2024-01-14T15:30:00Z",
        "file_key": "demo123",
        "client_meta": {"x": 100, "y": 200, "node_id": "1:5"},
    },
    {
        "id": "comment2",
        "message": "Fixed the spacing issue. Please review when you have a chance.",
        "user": _DEVELOPER,
        "created_at": "2024-01-15T09:15:00Z",
        "resolved_at": "2024-01-15T10:00:00Z",
        "file_key": "demo123",
        "client_meta": {"x": 150, "y": 300, "node_id": "1:6"},
    },
]

MOCK_VERSIONS: list[dict[str, Any]] = [
    {
        "id": "version1",
        "created_at": "2024-01-15T10:30:00Z",
        "label": "v2.1 - Component Updates",
        "description": "Updated button components with new hover states",
        "user": _DESIGNER,
        "thumbnail_url": "https://via.placeholder.com/80x60?text=v2.1",
    },
    {
        "id": "version2",
        "created_at": "2024-01-12T14:20:00Z",
        "label": "v2.0 - Design System Overhaul",
        "description": "New color palette and typography",
        "user": _LEAD,
        "thumbnail_url": "https://via.placeholder.com/80x60?text=v2.0",
    },
]

MOCK_COMPONENTS: list[dict[str, Any]] = [
    {
        "key": "comp1",
        "file_key": "demo123",
        "node_id": "1:10",
        "thumbnail_url": "https://via.placeholder.com/120x80?text=Button",
        "name": "Primary Button",
        "description": "Main call-to-action button with hover and focus states",
        "created_at": "2024-01-10T12:00:00Z",
        "updated_at": "2024-01-14T16:30:00Z",
        "user": _DESIGNER,
    },
    {
        "key": "comp2",
        "file_key": "demo123",
        "node_id": "1:11",
        "thumbnail_url": "https://via.placeholder.com/120x80?text=Card",
        "name": "Content Card",
        "description": "Card for displaying content with image and text",
        "created_at": "2024-01-08T09:30:00Z",
        "updated_at": "2024-01-13T11:15:00Z",
        "user": _DEVELOPER,
    },
]

MOCK_STYLES: list[dict[str, Any]] = [
    {
        "key": "style1",
        "file_key": "demo123",
        "node_id": "1:20",
        "style_type": "FILL",
        "name": "Primary Blue",
        "description": "Main brand color",
        "sort_position": "1",
    },
    {
        "key": "style2",
        "file_key": "demo123",
        "node_id": "1:21",
        "style_type": "TEXT",
        "name": "Heading Large",
        "description": "Typography for page titles",
        "sort_position": "2",
    },
    {
        "key": "style3",
        "file_key": "demo123",
        "node_id": "1:22",
        "style_type": "EFFECT",
        "name": "Card Shadow",
        "description": "Drop shadow for elevated surfaces",
        "sort_position": "3",
    },
]


def mock_file() -> FigmaFile:
    return FigmaFile.model_validate(MOCK_FILE)


def mock_user() -> FigmaUser:
    return FigmaUser.model_validate(MOCK_USER)


def mock_comments() -> list[FigmaComment]:
    return [FigmaComment.model_validate(c) for c in MOCK_COMMENTS]


def mock_versions() -> list[FigmaVersion]:
    return [FigmaVersion.model_validate(v) for v in MOCK_VERSIONS]


def mock_components() -> list[FigmaComponent]:
    return [FigmaComponent.model_validate(c) for c in MOCK_COMPONENTS]


def mock_styles() -> list[FigmaStyle]:
    return [FigmaStyle.model_validate(s) for s in MOCK_STYLES]
