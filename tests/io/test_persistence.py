"""Tests for publication-table and purchase-log persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pyarrow.parquet as pq
import pytest

from theory_sim.config.types import PubEntry, PurchaseEvent
from theory_sim.io.paths import pub_table_path, purchase_log_path, resolve_within_base, timeline_plot_path
from theory_sim.io.persistence import (
    load_pub_table,
    read_purchase_log,
    save_compressed_table,
    save_pub_table,
    write_purchase_log,
)
from theory_sim.io.schemas import PUB_TABLE_SCHEMA, PURCHASE_LOG_SCHEMA

TABLE = {
    25712: PubEntry(next=25800, t=0.0),
    25600: PubEntry(next=25712, t=81234.5),
}


class TestPubTable:
    def test_missing_file_is_empty_table(self, tmp_path: Path) -> None:
        assert load_pub_table(tmp_path / "absent.json") == {}

    def test_json_is_sorted_and_keyed_by_string_index(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "t1.json"
        save_pub_table(TABLE, path)
        raw = json.loads(path.read_text())
        assert list(raw) == ["25600", "25712"]
        assert raw["25600"] == {"next": 25712, "t": 81234.5}
        assert load_pub_table(path) == TABLE

    def test_parquet_by_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "t1.parquet"
        save_pub_table(TABLE, path)
        assert pq.read_schema(path).names == PUB_TABLE_SCHEMA.names
        assert load_pub_table(path) == TABLE

    def test_malformed_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"12": {"next": 13}}))
        with pytest.raises(ValueError, match="malformed entry"):
            load_pub_table(path)

    def test_non_object_payload(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_pub_table(path)


def test_save_compressed_table(tmp_path: Path) -> None:
    path = tmp_path / "compressed.json"
    save_compressed_table({12: 15, 10: 12}, path)
    assert json.loads(path.read_text()) == {"10": 12, "12": 15}


def test_purchase_log_parquet(tmp_path: Path) -> None:
    events = (PurchaseEvent("q1", 2, 1.5), PurchaseEvent("c3", 7, 360.25))
    path = purchase_log_path(tmp_path, "T1")
    write_purchase_log(events, path)
    assert path.name == "t1_purchases.parquet"
    assert pq.read_schema(path).names == PURCHASE_LOG_SCHEMA.names
    assert read_purchase_log(path) == events


def test_empty_purchase_log(tmp_path: Path) -> None:
    path = tmp_path / "empty.parquet"
    write_purchase_log([], path)
    assert read_purchase_log(path) == ()


class TestPaths:
    def test_default_pub_table_path(self, tmp_path: Path) -> None:
        assert pub_table_path("CSR2") == Path("data") / "csr2.json"
        assert pub_table_path("ef", tmp_path) == tmp_path / "ef.json"
        assert timeline_plot_path(tmp_path, "fp") == tmp_path / "fp_timeline.png"

    def test_resolve_within_base(self, tmp_path: Path) -> None:
        assert resolve_within_base(Path("tables/t1.json"), tmp_path) == (tmp_path / "tables" / "t1.json").resolve()
        inside = tmp_path / "runs" / "t1.png"
        assert resolve_within_base(inside, tmp_path) == inside.resolve()
        with pytest.raises(ValueError, match="outside output directory"):
            resolve_within_base(Path("../outside.json"), tmp_path)
        with pytest.raises(ValueError, match="outside output directory"):
            resolve_within_base(tmp_path.parent / "elsewhere.png", tmp_path)
