# src/core/models.py - v1
"""Domain models: Figma response shapes, fetch results, aggregate results.

Response models are permissive (unknown keys are kept) since the remote
contract belongs to Figma. Field names follow the wire format.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

DataSource = Literal["broker", "direct", "cache", "mock"]
ResourceOutcome = Literal["broker", "direct", "cache", "mock", "failed"]
StyleType = Literal["FILL", "TEXT", "EFFECT", "GRID"]


class FigmaModel(BaseModel):
    """Base for wire-format models: keep unknown keys, accept aliases."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# === Documents and nodes ===


class BoundingBox(FigmaModel):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class FigmaNode(FigmaModel):
    """A node of the document tree (document, canvas, frame, layer...)."""

    id: str
    name: str = ""
    type: str = ""
    visible: bool | None = None
    locked: bool | None = None
    children: list[FigmaNode] = Field(default_factory=list)
    absolute_bounding_box: BoundingBox | None = Field(
        default=None, alias="absoluteBoundingBox"
    )


class FigmaFile(FigmaModel):
    """GET /files/{key}."""

    name: str = ""
    role: str = ""
    last_modified: str = Field(default="", alias="lastModified")
    editor_type: str = Field(default="", alias="editorType")
    thumbnail_url: str = Field(default="", alias="thumbnailUrl")
    version: str = ""
    document: FigmaNode | None = None
    components: dict[str, Any] = Field(default_factory=dict)
    component_sets: dict[str, Any] = Field(default_factory=dict, alias="componentSets")
    schema_version: int = Field(default=0, alias="schemaVersion")
    styles: dict[str, Any] = Field(default_factory=dict)


class NodeEntry(FigmaModel):
    document: FigmaNode
    components: dict[str, Any] = Field(default_factory=dict)
    schema_version: int = Field(default=0, alias="schemaVersion")
    styles: dict[str, Any] = Field(default_factory=dict)


class FigmaNodesResponse(FigmaModel):
    """GET /files/{key}/nodes."""

    name: str = ""
    last_modified: str = Field(default="", alias="lastModified")
    nodes: dict[str, NodeEntry | None] = Field(default_factory=dict)


class FigmaImageResponse(FigmaModel):
    """GET /images/{key}: id -> URL (None when rendering failed)."""

    err: str | None = None
    images: dict[str, str | None] = Field(default_factory=dict)


# === Users, comments, versions ===


class FigmaUser(FigmaModel):
    id: str
    handle: str = ""
    email: str = ""
    img_url: str = ""


class FigmaComment(FigmaModel):
    id: str
    message: str = ""
    user: FigmaUser | None = None
    created_at: datetime
    resolved_at: datetime | None = None
    file_key: str = ""
    parent_id: str | None = None
    client_meta: dict[str, Any] | None = None


class FigmaCommentsResponse(FigmaModel):
    comments: list[FigmaComment] = Field(default_factory=list)


class FigmaVersion(FigmaModel):
    id: str
    created_at: datetime
    label: str | None = None
    description: str | None = None
    user: FigmaUser | None = None
    thumbnail_url: str = ""


class FigmaVersionsResponse(FigmaModel):
    versions: list[FigmaVersion] = Field(default_factory=list)


# === Library: components and styles ===


class FigmaComponent(FigmaModel):
    key: str
    file_key: str = ""
    node_id: str = ""
    thumbnail_url: str = ""
    name: str = ""
    description: str = ""
    component_set_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: FigmaUser | None = None


class FigmaComponentSet(FigmaModel):
    key: str
    file_key: str = ""
    node_id: str = ""
    thumbnail_url: str = ""
    name: str = ""
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: FigmaUser | None = None


class FigmaStyle(FigmaModel):
    key: str
    file_key: str = ""
    node_id: str = ""
    style_type: StyleType
    thumbnail_url: str = ""
    name: str = ""
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: FigmaUser | None = None
    sort_position: str = ""


class ComponentsMeta(FigmaModel):
    components: list[FigmaComponent] = Field(default_factory=list)


class FigmaFileComponentsResponse(FigmaModel):
    meta: ComponentsMeta = Field(default_factory=ComponentsMeta)


class StylesMeta(FigmaModel):
    styles: list[FigmaStyle] = Field(default_factory=list)


class FigmaFileStylesResponse(FigmaModel):
    meta: StylesMeta = Field(default_factory=StylesMeta)


class ComponentMeta(FigmaModel):
    component: FigmaComponent


class FigmaComponentResponse(FigmaModel):
    meta: ComponentMeta


class ComponentSetMeta(FigmaModel):
    component_set: FigmaComponentSet


class FigmaComponentSetResponse(FigmaModel):
    meta: ComponentSetMeta


class StyleMeta(FigmaModel):
    style: FigmaStyle


class FigmaStyleResponse(FigmaModel):
    meta: StyleMeta


# === Teams and projects ===


class FigmaProject(FigmaModel):
    id: str
    name: str = ""


class FigmaTeamProjectsResponse(FigmaModel):
    name: str = ""
    projects: list[FigmaProject] = Field(default_factory=list)


class FigmaProjectFile(FigmaModel):
    key: str
    name: str = ""
    thumbnail_url: str = ""
    last_modified: str = ""


class FigmaProjectFilesResponse(FigmaModel):
    name: str = ""
    files: list[FigmaProjectFile] = Field(default_factory=list)


# === Results produced by this package ===


class Fetched(BaseModel, Generic[T]):
    """A resource together with where it came from.

    source == "mock" means the data is a static placeholder substituted
    after every transport failed; it is never real Figma data.
    """

    data: T
    source: DataSource

    @property
    def is_mock(self) -> bool:
        return self.source == "mock"


class InvalidNodeId(BaseModel):
    """A rejected node identifier."""

    id: str
    reason: str
    detail: str = ""


class NodeIdValidation(BaseModel):
    """Node identifiers split into well-formed and rejected."""

    valid: list[str] = Field(default_factory=list)
    invalid: list[InvalidNodeId] = Field(default_factory=list)


class ThumbnailResult(BaseModel):
    """Outcome of a batched thumbnail fetch.

    Every distinct input id is a key of exactly one of images/errors.
    retried lists ids that needed at least one extra attempt, whatever
    their final outcome.
    """

    images: dict[str, str] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)
    retried: list[str] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.images)

    @property
    def failure_count(self) -> int:
        return len(self.errors)


class ApiProgress(BaseModel):
    """Per-sub-resource completion flags of an aggregate fetch."""

    file: bool = False
    user: bool = False
    comments: bool = False
    versions: bool = False
    components: bool = False
    styles: bool = False

    @property
    def completed(self) -> int:
        return sum(1 for v in self.model_dump().values() if v)

    @property
    def percent(self) -> float:
        return 100.0 * self.completed / len(type(self).model_fields)


class FileBundle(BaseModel):
    info: FigmaFile | None = None
    comments: list[FigmaComment] = Field(default_factory=list)
    versions: list[FigmaVersion] = Field(default_factory=list)
    components: list[FigmaComponent] = Field(default_factory=list)
    styles: list[FigmaStyle] = Field(default_factory=list)


class FileStructure(BaseModel):
    pages: list[FigmaNode] = Field(default_factory=list)
    frames: list[FigmaNode] = Field(default_factory=list)
    layers: list[FigmaNode] = Field(default_factory=list)


class ComponentGroups(BaseModel):
    sets: list[FigmaComponentSet] = Field(default_factory=list)
    individuals: list[FigmaComponent] = Field(default_factory=list)
    by_type: dict[str, list[FigmaComponent]] = Field(default_factory=dict)


class StyleGroups(BaseModel):
    fill: list[FigmaStyle] = Field(default_factory=list)
    text: list[FigmaStyle] = Field(default_factory=list)
    effect: list[FigmaStyle] = Field(default_factory=list)
    grid: list[FigmaStyle] = Field(default_factory=list)


class CommentGroups(BaseModel):
    resolved: list[FigmaComment] = Field(default_factory=list)
    unresolved: list[FigmaComment] = Field(default_factory=list)
    by_date: list[FigmaComment] = Field(default_factory=list)


class VersionGroups(BaseModel):
    chronological: list[FigmaVersion] = Field(default_factory=list)
    recent: list[FigmaVersion] = Field(default_factory=list)


class OrganizedData(BaseModel):
    file_structure: FileStructure = Field(default_factory=FileStructure)
    components: ComponentGroups = Field(default_factory=ComponentGroups)
    styles: StyleGroups = Field(default_factory=StyleGroups)
    comments: CommentGroups = Field(default_factory=CommentGroups)
    versions: VersionGroups = Field(default_factory=VersionGroups)


class ComprehensiveResult(BaseModel):
    """Everything the aggregate fetch gathers for one file."""

    file_id: str
    file: FileBundle = Field(default_factory=FileBundle)
    user: FigmaUser | None = None
    organized: OrganizedData = Field(default_factory=OrganizedData)
    progress: ApiProgress = Field(default_factory=ApiProgress)
    outcomes: dict[str, ResourceOutcome] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)
