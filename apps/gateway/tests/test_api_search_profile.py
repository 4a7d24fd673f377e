"""搜索与用户资料路由测试"""

from httpx import AsyncClient


class TestSearchRoute:
    async def test_results_keep_backend_order(self, client: AsyncClient, fake_functions):
        fake_functions.search_results = [
            {"id": "a", "title": "Buy milk", "priority": "low", "status": "pending", "similarity": 0.8},
            {"id": "b", "title": "Buy eggs", "priority": "high", "status": "done", "similarity": 0.9},
            {"id": "c", "title": "Taxes", "priority": "low", "status": "done", "similarity": 0.2},
        ]

        resp = await client.post("/api/search", json={"query": "groceries"})

        assert resp.status_code == 200
        results = resp.json()["results"]
        assert [r["id"] for r in results] == ["a", "b"]
        assert results[1] == {
            "id": "b",
            "title": "Buy eggs",
            "priority": "high",
            "status": "done",
            "similarity": 0.9,
        }

    async def test_blank_query(self, client: AsyncClient, fake_functions):
        resp = await client.post("/api/search", json={"query": "  "})
        assert resp.json() == {"results": []}
        assert fake_functions.search_calls == []


class TestProfileRoutes:
    async def test_empty_profile(self, client: AsyncClient):
        resp = await client.get("/api/profile")
        assert resp.status_code == 200
        assert resp.json() == {
            "user_id": "user-a",
            "profile_picture_url": None,
            "updated_at": None,
        }

    async def test_set_and_remove_picture(self, client: AsyncClient):
        resp = await client.put("/api/profile/picture", json={"url": "https://cdn.test/a.png"})
        assert resp.status_code == 200
        assert resp.json()["profile_picture_url"] == "https://cdn.test/a.png"

        resp = await client.get("/api/profile")
        assert resp.json()["profile_picture_url"] == "https://cdn.test/a.png"

        resp = await client.delete("/api/profile/picture")
        assert resp.status_code == 200
        assert resp.json()["profile_picture_url"] is None

    async def test_remove_without_profile_is_404(self, client: AsyncClient):
        resp = await client.delete("/api/profile/picture")
        assert resp.status_code == 404

    async def test_blank_url_is_422(self, client: AsyncClient):
        resp = await client.put("/api/profile/picture", json={"url": " "})
        assert resp.status_code == 422
