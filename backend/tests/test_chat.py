"""
Tests for the MongoDB-backed chat, project and upload endpoints
(mongomock-motor in place of a real server).
"""
import pytest

from domain.enums import UserRole
from services import chat_service
from tests.conftest import auth_headers, create_user


class TestChatRooms:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_room_is_created_once(self, client, client_user, freelancer_user):
        body = {"participantId": freelancer_user.id}

        first = await client.post("/api/v1/chat/rooms", json=body, headers=auth_headers(client_user))
        second = await client.post("/api/v1/chat/rooms", json=body, headers=auth_headers(client_user))

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["data"]["id"] == second.json()["data"]["id"]
        assert sorted(first.json()["data"]["participants"]) == sorted([client_user.id, freelancer_user.id])

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_cannot_chat_with_yourself(self, client, client_user):
        response = await client.post(
            "/api/v1/chat/rooms",
            json={"participantId": client_user.id},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_rooms_listed_for_both_sides(self, client, client_user, freelancer_user):
        await client.post(
            "/api/v1/chat/rooms",
            json={"participantId": freelancer_user.id},
            headers=auth_headers(client_user),
        )
        response = await client.get("/api/v1/chat/rooms", headers=auth_headers(freelancer_user))
        assert len(response.json()["data"]) == 1


class TestMessages:

    async def _room(self, mongo_db, a, b) -> str:
        room, _ = await chat_service.get_or_create_room(mongo_db, a.id, b.id)
        return room["id"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_send_and_list(self, client, mongo_db, client_user, freelancer_user):
        chat_id = await self._room(mongo_db, client_user, freelancer_user)

        sent = await client.post(
            f"/api/v1/chat/{chat_id}/messages",
            json={"content": "Hello, when can you start?"},
            headers=auth_headers(client_user),
        )
        listed = await client.get(f"/api/v1/chat/{chat_id}/messages", headers=auth_headers(freelancer_user))

        assert sent.status_code == 201
        messages = listed.json()["data"]
        assert [m["content"] for m in messages] == ["Hello, when can you start?"]
        assert messages[0]["sender_id"] == client_user.id
        assert messages[0]["type"] == "text"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, client, mongo_db, client_user, freelancer_user):
        chat_id = await self._room(mongo_db, client_user, freelancer_user)
        response = await client.post(
            f"/api/v1/chat/{chat_id}/messages",
            json={"content": "   "},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_outsider_sees_404(self, client, db_session, mongo_db, client_user, freelancer_user):
        chat_id = await self._room(mongo_db, client_user, freelancer_user)
        outsider = await create_user(db_session, email="o@example.com", role=UserRole.CLIENT)

        response = await client.get(f"/api/v1/chat/{chat_id}/messages", headers=auth_headers(outsider))

        assert response.status_code == 404
        assert response.json()["error"] == "Chat not found"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_malformed_chat_id_is_404(self, client, client_user):
        response = await client.get("/api/v1/chat/not-an-object-id/messages", headers=auth_headers(client_user))
        assert response.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_mark_read_only_touches_other_side(self, mongo_db, client_user, freelancer_user):
        chat_id = await self._room(mongo_db, client_user, freelancer_user)
        for sender in (client_user, freelancer_user, client_user):
            await chat_service.send_message(
                mongo_db, chat_id, sender.id, content="hi", message_type="text", attachments=[],
            )

        assert await chat_service.mark_read(mongo_db, chat_id, freelancer_user.id) == 2
        assert await chat_service.mark_read(mongo_db, chat_id, freelancer_user.id) == 0


class TestProjects:

    PROJECT = {
        "title": "Bakery logo",
        "description": "Need a playful logo for a Lagos bakery",
        "category": "design",
        "budget": 75000,
        "deliveryTime": "10 days",
        "skills": ["illustrator"],
    }

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_client_posts_project(self, client, client_user):
        response = await client.post("/api/v1/projects", json=self.PROJECT, headers=auth_headers(client_user))

        assert response.status_code == 201
        assert response.json()["message"] == "Project created successfully"
        data = response.json()["data"]
        assert data["client_user_id"] == client_user.id
        assert data["status"] == "open"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_freelancer_cannot_post(self, client, freelancer_user):
        response = await client.post("/api/v1/projects", json=self.PROJECT, headers=auth_headers(freelancer_user))
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_search_and_update(self, client, client_user):
        created = (await client.post("/api/v1/projects", json=self.PROJECT, headers=auth_headers(client_user))).json()["data"]

        found = await client.get("/api/v1/projects?search=bakery", headers=auth_headers(client_user))
        assert [p["id"] for p in found.json()["data"]] == [created["id"]]

        updated = await client.put(
            f"/api/v1/projects/{created['id']}",
            json={"status": "closed"},
            headers=auth_headers(client_user),
        )
        assert updated.json()["data"]["status"] == "closed"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_search_input_is_escaped(self, client, client_user):
        await client.post("/api/v1/projects", json=self.PROJECT, headers=auth_headers(client_user))
        response = await client.get("/api/v1/projects?search=.*", headers=auth_headers(client_user))
        assert response.json()["data"] == []

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_other_client_cannot_update(self, client, db_session, client_user):
        created = (await client.post("/api/v1/projects", json=self.PROJECT, headers=auth_headers(client_user))).json()["data"]
        other = await create_user(db_session, email="c2@example.com", role=UserRole.CLIENT)

        response = await client.put(
            f"/api/v1/projects/{created['id']}",
            json={"budget": 1},
            headers=auth_headers(other),
        )
        assert response.status_code == 403


class TestUploads:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_register_and_list(self, client, client_user):
        response = await client.post(
            "/api/v1/uploads",
            json={
                "publicId": "gigconnect/brief",
                "url": "https://res.cloudinary.com/demo/raw/upload/brief.pdf",
                "filename": "brief.pdf",
                "contentType": "application/pdf",
                "sizeBytes": 52_000,
                "orderId": "o1",
            },
            headers=auth_headers(client_user),
        )

        assert response.status_code == 201
        record = response.json()["data"]
        assert record["file_type"] == "document"
        assert record["used_by"] == ["o1"]

        listed = await client.get("/api/v1/uploads", headers=auth_headers(client_user))
        assert [f["public_id"] for f in listed.json()["data"]] == ["gigconnect/brief"]


class TestMongoUnavailable:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_503_without_document_store(self, client, client_user):
        from context import get_mongo_db
        from main import app

        app.dependency_overrides.pop(get_mongo_db)
        response = await client.get("/api/v1/chat/rooms", headers=auth_headers(client_user))

        assert response.status_code == 503
        assert response.json()["error"] == "Document store is not configured"
