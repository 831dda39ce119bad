"""Shared fixtures for API integration tests."""

from collections.abc import Awaitable, Callable

import pytest
from httpx import AsyncClient

from domain.entities.user import User

MakeUser = Callable[..., Awaitable[User]]
HeadersFor = Callable[[User], dict[str, str]]


class Board:
    """A project with an owner, plus helpers to drive it over HTTP."""

    def __init__(self, client: AsyncClient, owner: User, headers: dict[str, str], project: dict):
        self.client = client
        self.owner = owner
        self.headers = headers
        self.project = project
        self.id = project["id"]

    async def add_member(self, user: User, role: str = "member") -> None:
        response = await self.client.post(
            f"/api/v1/projects/{self.id}/members",
            json={"user_id": str(user.id), "role": role},
            headers=self.headers,
        )
        assert response.status_code == 201, response.text

    async def create_task(self, headers: dict[str, str] | None = None, **fields) -> dict:
        response = await self.client.post(
            f"/api/v1/projects/{self.id}/tasks",
            json={"title": "Task", **fields},
            headers=headers or self.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    async def comment(
        self, task_id: str, headers: dict[str, str] | None = None, **fields
    ) -> dict:
        response = await self.client.post(
            f"/api/v1/tasks/{task_id}/comments",
            json={"content": "Comment", **fields},
            headers=headers or self.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]


@pytest.fixture
async def board(client: AsyncClient, make_user: MakeUser, headers_for: HeadersFor) -> Board:
    owner = await make_user(name="Owner")
    headers = headers_for(owner)
    response = await client.post("/api/v1/projects", json={"name": "Board"}, headers=headers)
    assert response.status_code == 201, response.text
    return Board(client, owner, headers, response.json()["data"])
