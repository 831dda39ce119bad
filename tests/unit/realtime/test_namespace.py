"""Unit tests for the Socket.IO project namespace."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.realtime.server import ProjectNamespace


@pytest.fixture
def user() -> TokenUser:
    return TokenUser(id=uuid4(), email="sock@example.com", name="Sock")


@pytest.fixture
def is_member() -> AsyncMock:
    return AsyncMock(return_value=True)


@pytest.fixture
def namespace(auth_provider: JWTAuthProvider, is_member: AsyncMock) -> ProjectNamespace:
    ns = ProjectNamespace(lambda: auth_provider, is_member)
    ns.save_session = AsyncMock()
    ns.enter_room = AsyncMock()
    ns.leave_room = AsyncMock()
    ns.get_session = AsyncMock(return_value={})
    ns.emit = AsyncMock()
    return ns


class TestConnect:
    async def test_valid_token_joins_user_room(
        self, namespace: ProjectNamespace, auth_provider: JWTAuthProvider, user: TokenUser
    ):
        await namespace.on_connect("sid1", {}, {"token": auth_provider.create_token(user)})

        namespace.save_session.assert_awaited_once_with(
            "sid1", {"user_id": str(user.id), "email": user.email, "name": "Sock"}
        )
        namespace.enter_room.assert_awaited_once_with("sid1", f"user:{user.id}")

    @pytest.mark.parametrize("auth", [None, {}, {"token": ""}, "token"])
    async def test_missing_token_refused(self, namespace: ProjectNamespace, auth):
        with pytest.raises(ConnectionRefusedError):
            await namespace.on_connect("sid1", {}, auth)

    async def test_bearer_header_fallback(
        self, namespace: ProjectNamespace, auth_provider: JWTAuthProvider, user: TokenUser
    ):
        environ = {"HTTP_AUTHORIZATION": f"Bearer {auth_provider.create_token(user)}"}

        await namespace.on_connect("sid1", environ, None)

        namespace.enter_room.assert_awaited_once_with("sid1", f"user:{user.id}")

    @pytest.mark.parametrize("header", ["", "Bearer ", "Basic abc"])
    async def test_unusable_header_refused(self, namespace: ProjectNamespace, header: str):
        with pytest.raises(ConnectionRefusedError):
            await namespace.on_connect("sid1", {"HTTP_AUTHORIZATION": header}, None)

    async def test_invalid_token_refused(self, namespace: ProjectNamespace):
        with pytest.raises(ConnectionRefusedError):
            await namespace.on_connect("sid1", {}, {"token": "garbage"})
        namespace.save_session.assert_not_called()


class TestJoinProject:
    async def test_member_joins_room(
        self, namespace: ProjectNamespace, user: TokenUser, is_member: AsyncMock
    ):
        project_id = uuid4()
        namespace.get_session.return_value = {"user_id": str(user.id)}

        ack = await namespace.on_join_project("sid1", {"project_id": str(project_id)})

        assert ack == {"joined": str(project_id)}
        is_member.assert_awaited_once_with(project_id, user.id)
        namespace.enter_room.assert_awaited_once_with("sid1", f"project:{project_id}")

    async def test_non_member_denied(
        self, namespace: ProjectNamespace, user: TokenUser, is_member: AsyncMock
    ):
        is_member.return_value = False
        namespace.get_session.return_value = {"user_id": str(user.id)}

        ack = await namespace.on_join_project("sid1", str(uuid4()))

        assert ack == {"error": "Access denied"}
        namespace.enter_room.assert_not_called()

    async def test_unauthenticated_session(self, namespace: ProjectNamespace):
        ack = await namespace.on_join_project("sid1", {"project_id": str(uuid4())})

        assert ack == {"error": "Not authenticated"}

    async def test_bad_project_id(self, namespace: ProjectNamespace, user: TokenUser):
        namespace.get_session.return_value = {"user_id": str(user.id)}

        ack = await namespace.on_join_project("sid1", {"project_id": "nope"})

        assert ack == {"error": "Invalid project id"}


async def test_leave_project(namespace: ProjectNamespace):
    project_id = uuid4()

    ack = await namespace.on_leave_project("sid1", {"project_id": str(project_id)})

    assert ack == {"left": str(project_id)}
    namespace.leave_room.assert_awaited_once_with("sid1", f"project:{project_id}")


class TestTyping:
    @pytest.mark.parametrize("event", ["typing_start", "typing_stop"])
    async def test_relayed_to_others_in_project(
        self, namespace: ProjectNamespace, user: TokenUser, event: str
    ):
        project_id, task_id = uuid4(), uuid4()
        namespace.get_session.return_value = {"user_id": str(user.id), "name": "Sock"}
        handler = getattr(namespace, f"on_{event}")

        ack = await handler("sid1", {"project_id": str(project_id), "task_id": str(task_id)})

        assert ack == {"ok": True}
        namespace.emit.assert_awaited_once_with(
            event,
            {"user_id": str(user.id), "user_name": "Sock", "task_id": str(task_id)},
            room=f"project:{project_id}",
            skip_sid="sid1",
        )

    async def test_non_member_is_not_relayed(
        self, namespace: ProjectNamespace, user: TokenUser, is_member: AsyncMock
    ):
        is_member.return_value = False
        namespace.get_session.return_value = {"user_id": str(user.id)}

        ack = await namespace.on_typing_start("sid1", {"project_id": str(uuid4())})

        assert ack == {"error": "Access denied"}
        namespace.emit.assert_not_called()

    async def test_unauthenticated_session(self, namespace: ProjectNamespace):
        ack = await namespace.on_typing_stop("sid1", {"project_id": str(uuid4())})

        assert ack == {"error": "Not authenticated"}
        namespace.emit.assert_not_called()
