"""Integration tests for the Tasks API."""

from uuid import uuid4

from tests.conftest import RecordingBroadcaster
from tests.integration.conftest import Board, HeadersFor, MakeUser


class TestCreate:
    async def test_positions_append_across_statuses(self, board: Board):
        first = await board.create_task(title="A")
        second = await board.create_task(title="B", status="completed")
        third = await board.create_task(title="C")

        assert [first["position"], second["position"], third["position"]] == [0, 1, 2]
        assert second["completed_at"] is not None
        assert first["created_by"] == str(board.owner.id)

    async def test_viewer_can_create(
        self, board: Board, make_user: MakeUser, headers_for: HeadersFor
    ):
        viewer = await make_user()
        await board.add_member(viewer, "viewer")

        task = await board.create_task(headers=headers_for(viewer), title="From viewer")

        assert task["created_by"] == str(viewer.id)

    async def test_assignee_must_be_member(self, board: Board, make_user: MakeUser):
        stranger = await make_user()

        response = await board.client.post(
            f"/api/v1/projects/{board.id}/tasks",
            json={"title": "T", "assignee_id": str(stranger.id)},
            headers=board.headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ASSIGNEE"

    async def test_labels_restricted_by_project_settings(self, board: Board):
        await board.client.patch(
            f"/api/v1/projects/{board.id}",
            json={"settings": {"task_labels": ["bug"]}},
            headers=board.headers,
        )

        ok = await board.client.post(
            f"/api/v1/projects/{board.id}/tasks",
            json={"title": "T", "labels": ["bug"]},
            headers=board.headers,
        )
        bad = await board.client.post(
            f"/api/v1/projects/{board.id}/tasks",
            json={"title": "T", "labels": ["chore"]},
            headers=board.headers,
        )

        assert ok.status_code == 201
        assert bad.status_code == 400

    async def test_outsider_cannot_create(
        self, board: Board, make_user: MakeUser, headers_for: HeadersFor
    ):
        outsider = await make_user()

        response = await board.client.post(
            f"/api/v1/projects/{board.id}/tasks",
            json={"title": "T"},
            headers=headers_for(outsider),
        )

        assert response.status_code == 403

    async def test_broadcasts_to_project(self, board: Board, broadcaster: RecordingBroadcaster):
        task = await board.create_task()

        event = broadcaster.events[-1]
        assert event["event"] == "task_created"
        assert str(event["project_id"]) == board.id
        assert str(event["data"]["task"].id) == task["id"]


class TestBoardView:
    async def test_sorted_by_position_and_filtered(self, board: Board):
        a = await board.create_task(title="A")
        b = await board.create_task(title="B", status="in_progress")
        await board.client.patch(
            f"/api/v1/tasks/{a['id']}/position",
            json={"status": "pending", "position": 10},
            headers=board.headers,
        )

        everything = (
            await board.client.get(f"/api/v1/projects/{board.id}/tasks", headers=board.headers)
        ).json()
        in_progress = (
            await board.client.get(
                f"/api/v1/projects/{board.id}/tasks",
                params={"status": "in_progress"},
                headers=board.headers,
            )
        ).json()

        assert [t["title"] for t in everything["data"]] == ["B", "A"]
        assert everything["meta"]["total"] == 2
        assert [t["id"] for t in in_progress["data"]] == [b["id"]]

    async def test_archived_hidden_by_default(self, board: Board):
        task = await board.create_task()
        await board.client.post(f"/api/v1/tasks/{task['id']}/archive", headers=board.headers)
        url = f"/api/v1/projects/{board.id}/tasks"

        hidden = (await board.client.get(url, headers=board.headers)).json()
        shown = (
            await board.client.get(url, params={"include_archived": True}, headers=board.headers)
        ).json()

        assert hidden["data"] == []
        assert shown["data"][0]["is_archived"] is True


class TestSearch:
    async def test_filters(self, board: Board):
        await board.create_task(title="Fix login bug", priority="high", labels=["bug"])
        await board.create_task(title="Write docs", description="About login")
        await board.create_task(title="Ship it", priority="urgent")

        async def titles(**params) -> list[str]:
            response = await board.client.get(
                "/api/v1/tasks", params=params, headers=board.headers
            )
            assert response.status_code == 200, response.text
            return sorted(t["title"] for t in response.json()["data"])

        assert await titles(search="login") == ["Fix login bug", "Write docs"]
        assert await titles(priority="urgent") == ["Ship it"]
        assert await titles(labels=["bug"]) == ["Fix login bug"]
        assert await titles(project_id=board.id, created_by=str(board.owner.id)) == [
            "Fix login bug",
            "Ship it",
            "Write docs",
        ]

    async def test_only_my_projects_are_searched(
        self, board: Board, make_user: MakeUser, headers_for: HeadersFor
    ):
        await board.create_task(title="Secret")
        other = await make_user()

        body = (await board.client.get("/api/v1/tasks", headers=headers_for(other))).json()

        assert body["data"] == []
        assert body["meta"]["total"] == 0

    async def test_explicit_foreign_project_is_forbidden(
        self, board: Board, make_user: MakeUser, headers_for: HeadersFor
    ):
        other = await make_user()

        response = await board.client.get(
            "/api/v1/tasks", params={"project_id": board.id}, headers=headers_for(other)
        )

        assert response.status_code == 403


class TestUpdate:
    async def test_partial_update_and_clearing(
        self, board: Board, make_user: MakeUser
    ):
        member = await make_user()
        await board.add_member(member)
        task = await board.create_task(
            assignee_id=str(member.id), due_date="2030-01-01T12:00:00"
        )
        url = f"/api/v1/tasks/{task['id']}"

        renamed = await board.client.patch(url, json={"title": "Renamed"}, headers=board.headers)
        cleared = await board.client.patch(
            url, json={"assignee_id": None, "due_date": None}, headers=board.headers
        )

        assert renamed.json()["data"]["assignee_id"] == str(member.id)
        assert renamed.json()["data"]["due_date"] is not None
        assert cleared.json()["data"]["assignee_id"] is None
        assert cleared.json()["data"]["due_date"] is None

    async def test_completion_timestamp(self, board: Board):
        task = await board.create_task()
        url = f"/api/v1/tasks/{task['id']}"

        done = await board.client.patch(url, json={"status": "completed"}, headers=board.headers)
        reopened = await board.client.patch(
            url, json={"status": "in_progress"}, headers=board.headers
        )

        assert done.json()["data"]["completed_at"] is not None
        assert reopened.json()["data"]["completed_at"] is None

    async def test_viewer_cannot_update(
        self, board: Board, make_user: MakeUser, headers_for: HeadersFor
    ):
        viewer = await make_user()
        await board.add_member(viewer, "viewer")
        task = await board.create_task()

        response = await board.client.patch(
            f"/api/v1/tasks/{task['id']}", json={"title": "x"}, headers=headers_for(viewer)
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "INSUFFICIENT_PERMISSIONS"

    async def test_subtasks_replaced(self, board: Board):
        task = await board.create_task(subtasks=[{"title": "one"}])

        response = await board.client.patch(
            f"/api/v1/tasks/{task['id']}",
            json={"subtasks": [{"title": "one", "completed": True}, {"title": "two"}]},
            headers=board.headers,
        )

        assert response.json()["data"]["subtasks"] == [
            {"title": "one", "completed": True},
            {"title": "two", "completed": False},
        ]


class TestPosition:
    async def test_move_to_column(self, board: Board, broadcaster: RecordingBroadcaster):
        task = await board.create_task()

        response = await board.client.patch(
            f"/api/v1/tasks/{task['id']}/position",
            json={"status": "completed", "position": 0},
            headers=board.headers,
        )

        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["position"] == 0
        assert data["completed_at"] is not None
        assert broadcaster.names()[-1] == "task_moved"

    async def test_negative_position_rejected(self, board: Board):
        task = await board.create_task()

        response = await board.client.patch(
            f"/api/v1/tasks/{task['id']}/position",
            json={"status": "pending", "position": -1},
            headers=board.headers,
        )

        assert response.status_code == 422


class TestDeleteArchiveWatch:
    async def test_delete(self, board: Board):
        task = await board.create_task()
        url = f"/api/v1/tasks/{task['id']}"

        deleted = await board.client.delete(url, headers=board.headers)
        again = await board.client.get(url, headers=board.headers)

        assert deleted.status_code == 204
        assert again.status_code == 404
        assert again.json()["error_code"] == "TASK_NOT_FOUND"

    async def test_unarchive(self, board: Board):
        task = await board.create_task()
        url = f"/api/v1/tasks/{task['id']}"

        await board.client.post(f"{url}/archive", headers=board.headers)
        response = await board.client.post(f"{url}/unarchive", headers=board.headers)

        assert response.json()["data"]["is_archived"] is False

    async def test_watch_and_unwatch(
        self, board: Board, make_user: MakeUser, headers_for: HeadersFor
    ):
        viewer = await make_user()
        await board.add_member(viewer, "viewer")
        task = await board.create_task()
        url = f"/api/v1/tasks/{task['id']}/watch"

        watched = await board.client.post(url, headers=headers_for(viewer))
        twice = await board.client.post(url, headers=headers_for(viewer))
        unwatched = await board.client.delete(url, headers=headers_for(viewer))

        assert watched.json()["data"]["watchers"] == [str(viewer.id)]
        assert twice.json()["data"]["watchers"] == [str(viewer.id)]
        assert unwatched.json()["data"]["watchers"] == []

    async def test_unknown_task(self, board: Board):
        response = await board.client.get(f"/api/v1/tasks/{uuid4()}", headers=board.headers)

        assert response.status_code == 404


class TestDueDates:
    async def test_offsets_are_stored_as_utc(self, board: Board):
        zulu = await board.create_task(due_date="2030-01-01T12:00:00Z")
        offset = await board.create_task(due_date="2030-01-01T12:00:00+05:00")

        assert zulu["due_date"] == "2030-01-01T12:00:00"
        assert offset["due_date"] == "2030-01-01T07:00:00"

    async def test_update_with_offset(self, board: Board):
        task = await board.create_task()

        response = await board.client.patch(
            f"/api/v1/tasks/{task['id']}",
            json={"due_date": "2030-06-30T23:30:00-02:00"},
            headers=board.headers,
        )

        assert response.json()["data"]["due_date"] == "2030-07-01T01:30:00"

    async def test_range_filter_with_offsets(self, board: Board):
        await board.create_task(title="Due", due_date="2030-01-01T07:00:00Z")

        async def titles(**params) -> list[str]:
            response = await board.client.get(
                "/api/v1/tasks", params=params, headers=board.headers
            )
            assert response.status_code == 200, response.text
            return [t["title"] for t in response.json()["data"]]

        assert await titles(due_from="2030-01-01T11:00:00+05:00") == ["Due"]
        assert await titles(due_to="2030-01-01T11:00:00+05:00") == []


class TestFilterEscaping:
    async def test_label_wildcards_are_literal(self, board: Board):
        await board.create_task(title="Plain", labels=["abc"])
        await board.create_task(title="Underscore", labels=["a_c"])

        response = await board.client.get(
            "/api/v1/tasks", params={"labels": ["a_c"]}, headers=board.headers
        )

        assert [t["title"] for t in response.json()["data"]] == ["Underscore"]

    async def test_search_wildcards_are_literal(self, board: Board):
        await board.create_task(title="Reach 100% coverage")
        await board.create_task(title="Reach 1000 users")

        response = await board.client.get(
            "/api/v1/tasks", params={"search": "100%"}, headers=board.headers
        )

        assert [t["title"] for t in response.json()["data"]] == ["Reach 100% coverage"]


class TestPositionCollisions:
    async def test_move_onto_taken_position_keeps_both(self, board: Board):
        a = await board.create_task(title="A")
        b = await board.create_task(title="B")
        assert (a["position"], b["position"]) == (0, 1)

        await board.client.patch(
            f"/api/v1/tasks/{a['id']}/position",
            json={"status": "pending", "position": 1},
            headers=board.headers,
        )
        board_view = (
            await board.client.get(f"/api/v1/projects/{board.id}/tasks", headers=board.headers)
        ).json()["data"]
        stored_b = (
            await board.client.get(f"/api/v1/tasks/{b['id']}", headers=board.headers)
        ).json()["data"]

        assert stored_b["position"] == 1
        assert [(t["title"], t["position"]) for t in board_view] == [("B", 1), ("A", 1)]


class TestAccessRules:
    async def test_outsider_read_is_access_denied(
        self, board: Board, make_user: MakeUser, headers_for: HeadersFor
    ):
        task = await board.create_task()
        outsider = await make_user()
        url = f"/api/v1/tasks/{task['id']}"

        read = await board.client.get(url, headers=headers_for(outsider))
        edit = await board.client.patch(url, json={"title": "x"}, headers=headers_for(outsider))

        assert read.status_code == 403
        assert read.json()["error_code"] == "ACCESS_DENIED"
        assert edit.json()["error_code"] == "ACCESS_DENIED"

    async def test_removed_assignee_stays_assigned(
        self, board: Board, make_user: MakeUser
    ):
        assignee = await make_user()
        await board.add_member(assignee)
        task = await board.create_task(assignee_id=str(assignee.id))

        removed = await board.client.delete(
            f"/api/v1/projects/{board.id}/members/{assignee.id}", headers=board.headers
        )
        reread = (
            await board.client.get(f"/api/v1/tasks/{task['id']}", headers=board.headers)
        ).json()["data"]

        assert removed.status_code == 204
        assert reread["assignee_id"] == str(assignee.id)
