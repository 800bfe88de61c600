"""Tests for export.py and io.py — mesh payloads and parameter files."""

from __future__ import annotations

import json

import pytest

from planetgen.compositor import composite
from planetgen.export import export_mesh_json, export_mesh_payload, validate_mesh_payload
from planetgen.io import load_parameters, save_parameters
from planetgen.params import ARCHIPELAGO, MINIMAL_PLANET, Topology
from planetgen.topology import geodesic_sphere


@pytest.fixture(scope="module")
def mesh():
    topo = geodesic_sphere(1)
    return composite(topo.points, topo.indices, MINIMAL_PLANET)


# ═══════════════════════════════════════════════════════════════════
# Mesh payload
# ═══════════════════════════════════════════════════════════════════


class TestMeshPayload:
    def test_payload_valid(self, mesh):
        payload = export_mesh_payload(mesh, MINIMAL_PLANET, topology=Topology.GEODESIC)
        assert validate_mesh_payload(payload) == []
        meta = payload["metadata"]
        assert meta["vertex_count"] == 42
        assert meta["triangle_count"] == 80
        assert meta["topology"] == "geodesic"
        assert sum(meta["biomes"].values()) == 42

    def test_vertex_entries(self, mesh):
        payload = export_mesh_payload(mesh, MINIMAL_PLANET)
        first = payload["vertices"][0]
        assert set(first) == {"position", "normal", "color", "raw_height", "biome"}
        assert first["biome"] in {"ocean", "lowland", "highland", "polar_ice"}

    def test_parameters_recorded(self, mesh):
        payload = export_mesh_payload(mesh, MINIMAL_PLANET)
        assert payload["parameters"]["seed"] == 0

    def test_json_file(self, mesh, tmp_path):
        out = export_mesh_json(mesh, MINIMAL_PLANET, tmp_path / "out" / "mesh.json")
        payload = json.loads(out.read_text(encoding="utf-8"))
        assert validate_mesh_payload(payload) == []
        assert len(payload["indices"]) == 80


class TestValidate:
    def test_missing_keys(self):
        errors = validate_mesh_payload({})
        assert "Missing top-level key: metadata" in errors
        assert "Missing top-level key: indices" in errors

    def test_count_mismatch(self, mesh):
        payload = export_mesh_payload(mesh, MINIMAL_PLANET)
        payload["vertices"].pop()
        assert any("vertex_count mismatch" in e for e in validate_mesh_payload(payload))

    def test_index_out_of_range(self, mesh):
        payload = export_mesh_payload(mesh, MINIMAL_PLANET)
        payload["indices"][0] = [0, 1, 999]
        assert any("out of range" in e for e in validate_mesh_payload(payload))

    def test_bad_colour(self, mesh):
        payload = export_mesh_payload(mesh, MINIMAL_PLANET)
        payload["vertices"][3]["color"] = [1, 2, 3]
        assert "Vertex 3: 'color' must be [r, g, b, a]" in validate_mesh_payload(payload)


# ═══════════════════════════════════════════════════════════════════
# Parameter files
# ═══════════════════════════════════════════════════════════════════


class TestParameterFiles:
    def test_round_trip(self, tmp_path):
        path = save_parameters(ARCHIPELAGO, tmp_path / "planet.json")
        assert load_parameters(path) == ARCHIPELAGO

    def test_camel_case_round_trip(self, tmp_path):
        path = save_parameters(MINIMAL_PLANET, tmp_path / "planet.json", camel_case=True)
        assert "levelOfDetail" in json.loads(path.read_text(encoding="utf-8"))
        assert load_parameters(path) == MINIMAL_PLANET

    def test_load_clamps(self, tmp_path):
        path = tmp_path / "p.json"
        path.write_text(json.dumps({"oceanLevel": -5}), encoding="utf-8")
        assert load_parameters(path).ocean_level == 0.0

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "p.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            load_parameters(path)
