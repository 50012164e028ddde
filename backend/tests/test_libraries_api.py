"""
Tests for the library and scene endpoints.

These tests use FastAPI's TestClient to exercise the application
without running a real server.  Storage goes to the temporary
directory configured in ``conftest.py``.
"""

import hashlib
import io
import sys
from datetime import timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

import isotiler.api.routes_scenes as routes_scenes  # type: ignore
import isotiler.services.storage as storage  # type: ignore
from isotiler.main import app  # type: ignore
from isotiler.services.library_cache import get_library_from_cache  # type: ignore
from isotiler.services.library_store import SceneRecord, TileLibraryRecord  # type: ignore


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def upload(client: TestClient, content: str, filename: str = "tiles.svg"):
    return client.post(
        "/api/libraries",
        files={"file": (filename, io.BytesIO(content.encode("utf-8")), "image/svg+xml")},
    )


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_upload_list_and_inspect_library(client: TestClient, library_svg: str) -> None:
    response = upload(client, library_svg)
    assert response.status_code == 201
    data = response.json()
    assert data["tileIds"] == [1, 2, 3, 255]
    library_id = data["libraryId"]

    listed = client.get("/api/libraries").json()
    assert library_id in [entry["libraryId"] for entry in listed]

    info = client.get(f"/api/libraries/{library_id}").json()
    assert info["name"] == "tiles.svg"
    assert info["tileCount"] == 4
    assert info["createdAt"]

    tiles = client.get(f"/api/libraries/{library_id}/tiles").json()
    assert tiles["tileIds"] == [1, 2, 3, 255]
    assert tiles["axes"] == {"x": [2.0, 1.0], "y": [0.0, -2.0], "z": [-2.0, 1.0]}


def test_invalid_library_is_rejected(client: TestClient) -> None:
    response = upload(client, "<svg><g></svg>", filename="broken.svg")
    assert response.status_code == 422


def test_unknown_ids_return_404(client: TestClient) -> None:
    assert client.get("/api/libraries/does-not-exist").status_code == 404
    assert client.get("/api/libraries/does-not-exist/tiles").status_code == 404
    assert client.get("/api/scenes/does-not-exist").status_code == 404
    response = client.post("/api/libraries/does-not-exist/scenes", json={"gridSize": [1, 1, 1]})
    assert response.status_code == 404


def test_create_and_fetch_scene(client: TestClient, library_svg: str) -> None:
    library_id = upload(client, library_svg).json()["libraryId"]
    body = {
        "gridSize": [1, 2, 1],
        "placements": [
            {"x": 0, "y": 0, "z": 0, "tile": 1},
            {"x": 0, "y": 1, "z": 0, "tile": 1},
        ],
    }
    response = client.post(f"/api/libraries/{library_id}/scenes", json=body)
    assert response.status_code == 201
    scene = response.json()
    assert scene["shapeCount"] == 2
    assert scene["componentCount"] == 5
    assert scene["placementCount"] == 2
    assert (scene["width"], scene["height"]) == (4.0, 6.0)

    assert scene["metadata"] == {"fillMode": "explicit", "fusionCount": 0}

    summary = client.get(f"/api/scenes/{scene['sceneId']}")
    assert summary.status_code == 200
    assert summary.json() == scene

    svg = client.get(f"/api/scenes/{scene['sceneId']}/svg")
    assert svg.status_code == 200
    assert svg.headers["content-type"].startswith("image/svg+xml")
    assert svg.text.startswith("<svg")


def test_out_of_range_scene_request_is_rejected(client: TestClient, library_svg: str) -> None:
    library_id = upload(client, library_svg).json()["libraryId"]
    body = {"gridSize": [1, 1, 1], "placements": [{"x": 3, "y": 0, "z": 0, "tile": 1}]}
    response = client.post(f"/api/libraries/{library_id}/scenes", json=body)
    assert response.status_code == 422


def test_delete_library(client: TestClient, library_svg: str) -> None:
    library_id = upload(client, library_svg).json()["libraryId"]
    scene_id = client.post(
        f"/api/libraries/{library_id}/scenes", json={"gridSize": [1, 1, 1]}
    ).json()["sceneId"]

    assert client.delete(f"/api/libraries/{library_id}").status_code == 204
    assert client.get(f"/api/libraries/{library_id}").status_code == 404
    assert client.get(f"/api/scenes/{scene_id}").status_code == 404


def test_records_are_stamped_in_utc() -> None:
    library = TileLibraryRecord(
        library_id="a", file_hash="b", original_name="c.svg", file_path="d", filesize_bytes=1
    )
    scene = SceneRecord(
        scene_id="e",
        library_id="a",
        svg_path="f",
        width=1.0,
        height=1.0,
        shape_count=0,
        component_count=0,
        placement_count=0,
    )
    assert library.created_at.tzinfo is timezone.utc
    assert scene.created_at.tzinfo is timezone.utc


def test_failed_library_insert_leaves_nothing_behind(
    client: TestClient, library_svg: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    content = library_svg + "<!-- never stored -->\n"
    file_hash = hashlib.sha256(content.encode("utf-8")).hexdigest()

    def fail_insert(record) -> None:
        raise RuntimeError("database is locked")

    monkeypatch.setattr(storage, "insert_library_record", fail_insert)
    with pytest.raises(RuntimeError):
        upload(client, content)

    assert not (storage.STORAGE_LIBRARIES_DIR / f"{file_hash}.svg").exists()
    assert list(storage.STORAGE_TEMP_DIR.iterdir()) == []
    assert get_library_from_cache(file_hash) is None


def test_failed_scene_insert_removes_svg(
    client: TestClient, library_svg: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    library_id = upload(client, library_svg).json()["libraryId"]
    before = set(storage.STORAGE_SCENES_DIR.iterdir())

    def fail_insert(record) -> None:
        raise RuntimeError("database is locked")

    monkeypatch.setattr(routes_scenes, "insert_scene_record", fail_insert)
    with pytest.raises(RuntimeError):
        client.post(f"/api/libraries/{library_id}/scenes", json={"gridSize": [1, 1, 1]})

    assert set(storage.STORAGE_SCENES_DIR.iterdir()) == before
