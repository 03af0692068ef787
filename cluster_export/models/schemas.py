"""Pydantic schemas for Cluster Export data models."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    """Final status of an export run."""

    COMPLETED = "completed"
    ABORTED = "aborted"


class ClusterState(str, Enum):
    """Stage of a single cluster's export."""

    PREPARING = "preparing"
    DEDUPLICATING = "deduplicating"
    NAMING = "naming_and_collision_resolution"
    EXPORTING = "exporting"
    DONE = "done"
    ABORTED = "aborted"


class ClusterMembership(BaseModel):
    """Position of an item inside one cluster of a cluster run."""

    thread_index: Optional[int] = None
    endpoint_status: str = ""


class Item(BaseModel):
    """Host data view of a single item."""

    guid: str = Field(..., description="Globally unique identifier")
    name: str = Field(..., description="Localised display name")
    md5: Optional[str] = Field(default=None, description="MD5 digest of the item content")
    path: str = Field(default="", description="Original path of the item in the case")
    tags: List[str] = Field(default_factory=list)
    is_file_data: bool = Field(
        default=False, description="True when the name already carries its extension"
    )
    original_extension: Optional[str] = None
    corrected_extension: Optional[str] = None
    type_preferred_extension: Optional[str] = None
    cluster_memberships: Dict[str, ClusterMembership] = Field(
        default_factory=dict, description='Keyed by "<run>-<clusterName>"'
    )
    source_path: Optional[str] = Field(
        default=None, description="File holding the item's binary content"
    )
    binary: Optional[bytes] = Field(default=None, description="Inline binary content")


class Cluster(BaseModel):
    """A cluster of items within a cluster run."""

    id: int
    item_guids: List[str] = Field(default_factory=list)


class ClusterRun(BaseModel):
    """A named clustering run within a case."""

    name: str
    clusters: List[Cluster] = Field(default_factory=list)


class CaseSnapshot(BaseModel):
    """Items and cluster runs of a case, as loaded from a JSON snapshot."""

    name: str = ""
    items: List[Item] = Field(default_factory=list)
    cluster_runs: List[ClusterRun] = Field(default_factory=list)
