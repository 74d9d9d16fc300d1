"""Integration tests for the study group chat API."""

import pytest
from httpx import AsyncClient

BASE = "/api/v1/study-groups"


@pytest.fixture
async def messages_url(api_client: AsyncClient, auth_headers: dict[str, str]) -> str:
    response = await api_client.post(
        BASE, json={"name": "Databases", "subject": "Computer Science"}, headers=auth_headers
    )
    return f"{BASE}/{response.json()['data']['id']}/messages"


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_member_sends(
        self, api_client: AsyncClient, auth_headers: dict[str, str], messages_url: str
    ) -> None:
        response = await api_client.post(
            messages_url,
            json={
                "content": "  normal forms  ",
                "type": "file",
                "attachments": [{"filename": "3nf.pdf", "url": "https://f/3nf.pdf"}],
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["content"] == "normal forms"
        assert data["type"] == "file"
        assert data["attachments"][0]["filename"] == "3nf.pdf"

    @pytest.mark.asyncio
    async def test_outsider_rejected(
        self, api_client: AsyncClient, other_headers: dict[str, str], messages_url: str
    ) -> None:
        response = await api_client.post(
            messages_url, json={"content": "hi"}, headers=other_headers
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_GROUP_MEMBER"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["   ", "x" * 1001])
    async def test_invalid_content(
        self,
        api_client: AsyncClient,
        auth_headers: dict[str, str],
        messages_url: str,
        content: str,
    ) -> None:
        response = await api_client.post(
            messages_url, json={"content": content}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_MESSAGE"


class TestListAndEdit:
    @pytest.mark.asyncio
    async def test_pages_newest_oldest_first(
        self, api_client: AsyncClient, auth_headers: dict[str, str], messages_url: str
    ) -> None:
        for text in ("one", "two", "three"):
            await api_client.post(messages_url, json={"content": text}, headers=auth_headers)

        response = await api_client.get(messages_url, params={"limit": 2}, headers=auth_headers)

        assert [m["content"] for m in response.json()["data"]] == ["two", "three"]

    @pytest.mark.asyncio
    async def test_only_sender_edits(
        self,
        api_client: AsyncClient,
        auth_headers: dict[str, str],
        other_headers: dict[str, str],
        messages_url: str,
    ) -> None:
        sent = await api_client.post(
            messages_url, json={"content": "draft"}, headers=auth_headers
        )
        message_id = sent.json()["data"]["id"]
        group_url = messages_url.removesuffix("/messages")
        await api_client.post(f"{group_url}/join", headers=other_headers)

        forbidden = await api_client.patch(
            f"{messages_url}/{message_id}", json={"content": "hijack"}, headers=other_headers
        )
        edited = await api_client.patch(
            f"{messages_url}/{message_id}", json={"content": "final"}, headers=auth_headers
        )

        assert forbidden.status_code == 403
        assert edited.status_code == 200
        assert edited.json()["data"]["content"] == "final"
        assert edited.json()["data"]["edited"] is True

    @pytest.mark.asyncio
    async def test_former_member_cannot_edit(
        self,
        api_client: AsyncClient,
        other_headers: dict[str, str],
        messages_url: str,
    ) -> None:
        group_url = messages_url.removesuffix("/messages")
        await api_client.post(f"{group_url}/join", headers=other_headers)
        sent = await api_client.post(
            messages_url, json={"content": "bye all"}, headers=other_headers
        )
        message_id = sent.json()["data"]["id"]
        left = await api_client.post(f"{group_url}/leave", headers=other_headers)

        response = await api_client.patch(
            f"{messages_url}/{message_id}", json={"content": "edited"}, headers=other_headers
        )

        assert left.status_code == 204
        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_GROUP_MEMBER"
