"""block 槽位端到端流程

创建两个 block 任务 -> start A -> start B 冲突 -> stop A -> start B 成功
"""

import asyncio
from datetime import UTC, datetime, timedelta

from httpx import AsyncClient

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)


async def _create_block(client: AsyncClient, title: str) -> str:
    resp = await client.post(
        "/api/tasks",
        json={"title": title, "type": "REMINDER", "mode": "block", "duration_minutes": 25},
    )
    assert resp.status_code == 201
    return resp.json()["task_id"]


async def _action(client: AsyncClient, task_id: str, action: str):
    return await client.post(f"/api/tasks/{task_id}/action", json={"action": action})


class TestBlockSlotFlow:
    async def test_conflict_then_handover(self, client: AsyncClient):
        a = await _create_block(client, "A")
        b = await _create_block(client, "B")

        resp = await _action(client, a, "start")
        assert resp.status_code == 200
        task_a = resp.json()["task"]
        assert task_a["status"] == "processing"
        assert datetime.fromisoformat(task_a["due_at"]) == T0 + timedelta(minutes=25)

        resp = await _action(client, b, "start")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "BLOCK_SLOT_OCCUPIED"

        resp = await _action(client, a, "stop")
        task_a = resp.json()["task"]
        assert task_a["status"] == "assigned"
        assert task_a["due_at"] is None
        assert task_a["started_at"] is None

        resp = await _action(client, b, "start")
        assert resp.status_code == 200
        assert resp.json()["task"]["status"] == "processing"

    async def test_concurrent_starts_over_http(self, client: AsyncClient):
        ids = [await _create_block(client, f"block {i}") for i in range(5)]

        responses = await asyncio.gather(*(_action(client, i, "start") for i in ids))

        codes = sorted(r.status_code for r in responses)
        assert codes == [200, 409, 409, 409, 409]

        listed = await client.get("/api/tasks", params={"status": "processing"})
        assert len(listed.json()["tasks"]) == 1

    async def test_done_task_cannot_be_restarted(self, client: AsyncClient):
        a = await _create_block(client, "A")
        await _action(client, a, "start")
        await _action(client, a, "done")

        resp = await _action(client, a, "start")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_TRANSITION"

        resp = await _action(client, a, "stop")
        assert resp.json()["task"]["status"] == "done"
