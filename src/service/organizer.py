# src/service/organizer.py - v1
"""Build the organized view of an aggregate fetch.

Pure and synchronous: works from whatever data was obtained, so a
partially failed fetch still yields a (partially empty) view.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from figmabridge.core.models import (
    CommentGroups,
    ComponentGroups,
    FigmaComponent,
    FigmaComponentSet,
    FigmaFile,
    FigmaNode,
    FileBundle,
    FileStructure,
    OrganizedData,
    StyleGroups,
    VersionGroups,
)

logger = logging.getLogger(__name__)

RECENT_VERSIONS = 10

_STYLE_GROUPS = {"FILL": "fill", "TEXT": "text", "EFFECT": "effect", "GRID": "grid"}


def organize_data(bundle: FileBundle) -> OrganizedData:
    """Derive pages, component/style groups and sorted comments/versions."""
    return OrganizedData(
        file_structure=organize_structure(bundle.info),
        components=organize_components(bundle.components, bundle.info),
        styles=organize_styles(bundle),
        comments=organize_comments(bundle),
        versions=organize_versions(bundle),
    )


def organize_structure(info: FigmaFile | None) -> FileStructure:
    """Pages are the document's children, frames are FRAME children of pages,
    layers are the children of those frames."""
    if info is None or info.document is None:
        return FileStructure()
    pages = list(info.document.children)
    frames = [child for page in pages for child in page.children if child.type == "FRAME"]
    layers: list[FigmaNode] = [layer for frame in frames for layer in frame.children]
    return FileStructure(pages=pages, frames=frames, layers=layers)


def organize_components(
    components: list[FigmaComponent], info: FigmaFile | None = None
) -> ComponentGroups:
    by_type: dict[str, list[FigmaComponent]] = {}
    for component in components:
        kind = "variant" if component.component_set_id else "standalone"
        by_type.setdefault(kind, []).append(component)
    return ComponentGroups(
        sets=_component_sets(info),
        individuals=list(components),
        by_type=by_type,
    )


def _component_sets(info: FigmaFile | None) -> list[FigmaComponentSet]:
    if info is None:
        return []
    sets = []
    for node_id, entry in info.component_sets.items():
        if not isinstance(entry, dict):
            continue
        try:
            sets.append(FigmaComponentSet.model_validate({"node_id": node_id, **entry}))
        except ValidationError:
            logger.debug("Skipping malformed component set entry %s", node_id)
    return sets


def organize_styles(bundle: FileBundle) -> StyleGroups:
    groups = StyleGroups()
    for style in bundle.styles:
        getattr(groups, _STYLE_GROUPS[style.style_type]).append(style)
    return groups


def organize_comments(bundle: FileBundle) -> CommentGroups:
    by_date = sorted(bundle.comments, key=lambda c: c.created_at, reverse=True)
    return CommentGroups(
        resolved=[c for c in by_date if c.resolved_at is not None],
        unresolved=[c for c in by_date if c.resolved_at is None],
        by_date=by_date,
    )


def organize_versions(bundle: FileBundle) -> VersionGroups:
    chronological = sorted(bundle.versions, key=lambda v: v.created_at, reverse=True)
    return VersionGroups(chronological=chronological, recent=chronological[:RECENT_VERSIONS])
