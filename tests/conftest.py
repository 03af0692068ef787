"""Pytest configuration and fixtures for Cluster Export tests."""

from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from cluster_export.config import Settings
from cluster_export.host import InMemoryCase
from cluster_export.models import CaseSnapshot, Cluster, ClusterMembership, ClusterRun, Item


@pytest.fixture
def config() -> Settings:
    """Settings with defaults, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def make_item() -> Callable[..., Item]:
    """Factory for items with sensible defaults."""
    counter = {"n": 0}

    def _make(name: str = "document", **fields) -> Item:
        counter["n"] += 1
        n = counter["n"]
        fields.setdefault("guid", f"guid-{n}")
        fields.setdefault("md5", f"{n:032x}")
        fields.setdefault("original_extension", "txt")
        fields.setdefault("path", f"Evidence/Mailbox/{name}")
        return Item(name=name, **fields)

    return _make


@pytest.fixture
def sample_case(make_item) -> InMemoryCase:
    """
    A case with one cluster run "Run1".

    Cluster -1 has three items, two of them named doc.pdf. Cluster 0 has
    two items with the same content. Cluster 7 has one tagged item.
    """
    items = [
        make_item("doc.pdf", guid="a1", md5="aaa111", is_file_data=True,
                  cluster_memberships={"Run1-unclusterable": ClusterMembership(thread_index=0, endpoint_status="Endpoint")}),
        make_item("doc.pdf", guid="a2", md5="bbb222", is_file_data=True),
        make_item("notes", guid="a3", md5="ccc333", original_extension="", corrected_extension="rtf"),
        make_item("Report: Q1", guid="b1", md5="ddd444"),
        make_item("Report: Q1 copy", guid="b2", md5="ddd444"),
        make_item("memo", guid="c1", md5="eee555", tags=["Hot", "Privileged"],
                  original_extension=None, type_preferred_extension="msg"),
    ]
    snapshot = CaseSnapshot(
        name="Sample",
        items=items,
        cluster_runs=[
            ClusterRun(
                name="Run1",
                clusters=[
                    Cluster(id=7, item_guids=["c1"]),
                    Cluster(id=0, item_guids=["b1", "b2"]),
                    Cluster(id=-1, item_guids=["a1", "a2", "a3"]),
                    Cluster(id=-2, item_guids=[]),
                ],
            )
        ],
    )
    return InMemoryCase(snapshot)


SUMMARY_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<Nuix version="{version}" architecture="amd64">
  <Export startTime="2024-01-01T10:00:00" endTime="2024-01-01T10:05:00" exportDuration="{duration}">
    <ExportConfiguration>
      <ExportDirectory>C:\\exports\\{name}</ExportDirectory>
      <Products>native</Products>
    </ExportConfiguration>
    <ExportStatistics>
      <SelectedItems>{selected}</SelectedItems>
      <ExcludedCount>{excluded}</ExcludedCount>
      <TotalItemsToExport>{total}</TotalItemsToExport>
      <FailedItems>{failed}</FailedItems>
    </ExportStatistics>
    <FileStatistics>
{file_stats}
    </FileStatistics>
    <MimeTypeStatistics>
      <MimeTypes>
{mimes}
      </MimeTypes>
    </MimeTypeStatistics>
  </Export>
</Nuix>
"""


@pytest.fixture
def write_unit_report(tmp_path: Path) -> Callable[..., Path]:
    """Write a unit summary-report.xml under tmp_path/reports/<name>/."""

    def _write(
        name: str,
        duration: int = 10,
        selected: int = 5,
        excluded: int = 0,
        total: int = 5,
        failed: int = 0,
        file_stats: Optional[Dict[str, int]] = None,
        mimes: Optional[Dict[str, int]] = None,
        version: str = "9.10.1",
    ) -> Path:
        if file_stats is None:
            file_stats = {"NativeFilesExported": total, "TextFilesExported": total}
        if mimes is None:
            mimes = {"application/pdf": total}
        unit_dir = tmp_path / "reports" / name
        unit_dir.mkdir(parents=True, exist_ok=True)
        path = unit_dir / "summary-report.xml"
        path.write_text(
            SUMMARY_TEMPLATE.format(
                name=name,
                version=version,
                duration=duration,
                selected=selected,
                excluded=excluded,
                total=total,
                failed=failed,
                file_stats="\n".join(f"      <{k}>{v}</{k}>" for k, v in file_stats.items()),
                mimes="\n".join(
                    f'        <MimeType name="{k}" count="{v}"/>' for k, v in mimes.items()
                ),
            ),
            encoding="utf-8",
        )
        return path

    return _write
