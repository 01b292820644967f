"""
Photo memories: upload, vision analysis, fallback metadata and file serving.
"""
import json

from conftest import chat_reply

JPEG = b"\xff\xd8\xff\xe0fake-jpeg-bytes"

ANALYSIS = {
    "title": "Beach day",
    "memory_summary": "A sunny afternoon at the beach.",
    "memory_description": "I remember the sand was warm.",
    "location": "Barceloneta",
    "people_present": ["Ana"],
    "activities": ["swimming"],
    "food_items": ["paella"],
    "mood": "happy",
    "conversational_hooks": ["Have you been to Barcelona?"],
}


def _upload(client, headers, avatar_id, count=1, **form):
    photos = [("photos", (f"p{i}.jpg", JPEG, "image/jpeg")) for i in range(count)]
    return client.post(f"/v1/avatars/{avatar_id}/memories", files=photos, data=form, headers=headers)


class TestUpload:

    def test_upload_with_analysis(self, client, user_headers, avatar, provider_keys, outbound):
        outbound.on("POST", "/chat/completions", json=chat_reply(json.dumps(ANALYSIS)))
        r = _upload(client, user_headers, avatar["id"], count=2, memory_date="2024-05-01")
        assert r.status_code == 200, r.text
        memory = r.json()["memory"]
        assert memory["title"] == "Beach day"
        assert memory["location"] == "Barceloneta"
        assert memory["people_present"] == ["Ana"]
        assert memory["memory_date"] == "2024-05-01"
        assert [img["is_primary"] for img in memory["images"]] == [True, False]

        sent = outbound.calls_to("/chat/completions")[0]["json"]
        image_part = sent["messages"][0]["content"][1]
        assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")

        served = client.get(memory["images"][0]["image_url"])
        assert served.status_code == 200
        assert served.content == JPEG

    def test_user_title_is_kept(self, client, user_headers, avatar, provider_keys, outbound):
        outbound.on("POST", "/chat/completions", json=chat_reply(json.dumps(ANALYSIS)))
        memory = _upload(client, user_headers, avatar["id"], title="Summer 2024").json()["memory"]
        assert memory["title"] == "Summer 2024"
        assert memory["mood"] == "happy"

    def test_analysis_failure_uses_fallback(self, client, user_headers, avatar):
        # No OpenAI key anywhere: the memory is still created
        r = _upload(client, user_headers, avatar["id"], memory_date="2023-12-24")
        assert r.status_code == 200
        memory = r.json()["memory"]
        assert memory["title"] == "Memory from 2023-12-24"
        assert memory["memory_summary"] == ""
        assert memory["conversational_hooks"] == []
        assert len(memory["images"]) == 1

    def test_too_many_photos(self, client, user_headers, avatar):
        r = _upload(client, user_headers, avatar["id"], count=11)
        assert r.status_code == 400

    def test_non_image_rejected(self, client, user_headers, avatar):
        r = client.post(
            f"/v1/avatars/{avatar['id']}/memories",
            files=[("photos", ("notes.txt", b"hello", "text/plain"))],
            headers=user_headers,
        )
        assert r.status_code == 400
        assert r.json()["error"] == "Not an image: notes.txt"

    def test_other_users_avatar(self, client, make_user, avatar):
        other, _ = make_user()
        assert _upload(client, other, avatar["id"]).status_code == 404


class TestManage:

    def test_list_newest_memory_date_first(self, client, user_headers, avatar):
        _upload(client, user_headers, avatar["id"], memory_date="2022-01-01")
        _upload(client, user_headers, avatar["id"], memory_date="2024-01-01")
        memories = client.get(f"/v1/avatars/{avatar['id']}/memories", headers=user_headers).json()["memories"]
        assert [m["memory_date"] for m in memories] == ["2024-01-01", "2022-01-01"]

    def test_update_and_favorite(self, client, user_headers, avatar):
        memory = _upload(client, user_headers, avatar["id"]).json()["memory"]
        base = f"/v1/avatars/{avatar['id']}/memories/{memory['id']}"

        r = client.patch(base, json={"title": "Renamed", "activities": ["hiking"]}, headers=user_headers)
        assert r.json()["memory"]["title"] == "Renamed"
        assert r.json()["memory"]["activities"] == ["hiking"]

        assert client.post(f"{base}/favorite", headers=user_headers).json()["memory"]["is_favorite"] is True
        assert client.post(f"{base}/favorite", headers=user_headers).json()["memory"]["is_favorite"] is False

    def test_delete_removes_files(self, client, user_headers, avatar):
        memory = _upload(client, user_headers, avatar["id"]).json()["memory"]
        url = memory["images"][0]["image_url"]
        assert client.delete(f"/v1/avatars/{avatar['id']}/memories/{memory['id']}", headers=user_headers).status_code == 200
        assert client.get(url).status_code == 404
        assert client.get(f"/v1/avatars/{avatar['id']}/memories/{memory['id']}", headers=user_headers).status_code == 404
