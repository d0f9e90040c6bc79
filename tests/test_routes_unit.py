import sqlite3

import pytest
from fastapi.testclient import TestClient

from reader.assets import story_asset_url
from reader.main import create_app


@pytest.fixture()
def client(db_path):
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


def test_health(client, db_path):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "database": db_path}


def test_search_stories_ranks_results(client, add_story):
    add_story("s1", "The Dragon Returns", sort_order=1, tags=["Fantasy"])
    add_story("s2", "Dragon", sort_order=5)
    resp = client.post("/searchStories", json={"query": "Dragon", "limit": 10})
    assert resp.status_code == 200
    data = resp.json()
    assert data["totalCount"] == 2
    assert [s["name"] for s in data["stories"]] == ["Dragon", "The Dragon Returns"]
    assert data["stories"][1]["tags"] == ["Fantasy"]


def test_search_stories_defaults(client, add_story):
    add_story("s1", "Only")
    data = client.post("/searchStories", json={}).json()
    assert data["totalCount"] == 1
    assert data["stories"][0]["score"] is None


@pytest.mark.parametrize("body", [{"limit": 0}, {"limit": 101}, {"offset": -1}, {"status": "DROPPED"}])
def test_search_stories_validation(client, body):
    resp = client.post("/searchStories", json=body)
    assert resp.status_code == 422


def test_search_get_with_repeated_tags(client, add_story):
    add_story("a", "A", tags=["Fantasy"], sort_order=1)
    add_story("b", "B", tags=["Romance"], sort_order=2)
    add_story("c", "C", tags=["Horror"], sort_order=3)
    resp = client.get("/search", params=[("tags", "Fantasy"), ("tags", "Romance"), ("limit", "5")])
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["stories"]] == ["a", "b"]


def test_search_get_validation(client):
    assert client.get("/search", params={"limit": 500}).status_code == 422


def test_get_story(client, add_story):
    add_story("s1", "Covered", owner_id=3, cover_art_asset="art/cover.webp", tags=["Sci-Fi"])
    resp = client.get("/stories/s1")
    assert resp.status_code == 200
    data = resp.json()
    assert data["coverArtAsset"] == "https://assets.test/3/s1/art/cover.webp"
    assert data["tags"] == ["Sci-Fi"]
    assert client.get("/stories/missing").status_code == 404


def test_list_tags(client, add_story):
    add_story("a", "A", tags=["Fantasy"])
    add_story("b", "B", tags=["Fantasy", "Romance"])
    assert client.get("/tags").json() == [
        {"name": "Fantasy", "stories": 2},
        {"name": "Romance", "stories": 1},
    ]


def test_storage_failure_returns_generic_error(client, db_path):
    conn = sqlite3.connect(db_path)
    conn.execute("DROP TABLE stories")
    conn.commit()
    conn.close()
    resp = client.post("/searchStories", json={"query": "anything"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Could not load results"}


def test_story_asset_url():
    assert story_asset_url(1, "s", None, "https://x") is None
    assert story_asset_url(1, "s", "", "https://x") is None
    assert story_asset_url(1, "s", "https://cdn/c.png", "https://x") == "https://cdn/c.png"
    assert story_asset_url(1, "s", "/c.png", "https://x/") == "https://x/1/s/c.png"


def test_fractional_words_per_week_accepted(client, add_story):
    add_story("a", "A", words_per_week=1500, sort_order=1)
    add_story("b", "B", words_per_week=1501, sort_order=2)
    resp = client.post("/searchStories", json={"minWordsPerWeek": 1500.5})
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["stories"]] == ["b"]
    resp = client.get("/search", params={"maxWordsPerWeek": "1500.5"})
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["stories"]] == ["a"]


def test_create_app_loads_dotenv_from_working_directory(monkeypatch, tmp_path):
    env_db = str(tmp_path / "from-dotenv.db")
    (tmp_path / ".env").write_text(f"READER_DB={env_db}\n")
    monkeypatch.delenv("READER_DB")
    app = create_app()
    assert app.state.settings.db_path == env_db
