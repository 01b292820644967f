"""
Avatar CRUD, tier limits and the generated base system prompt.
"""


class TestBasePrompt:

    def test_full_profile(self):
        from avatarhub.avatars import build_base_system_prompt

        prompt = build_base_system_prompt({
            "name": "Sofia",
            "age": 28,
            "gender": "female",
            "origin_country": "Spain",
            "primary_language": "Spanish",
            "secondary_languages": ["English", "French"],
            "mbti_type": "ENFP",
            "personality_traits": ["warm", "curious"],
            "backstory": "Grew up in Seville.",
        })
        assert prompt.startswith("You are Sofia. You are 28 years old, female, from Spain.")
        assert "Your primary language is Spanish. You also speak: English, French." in prompt
        assert "Your MBTI personality type is ENFP." in prompt
        assert "Your key personality traits include: warm, curious." in prompt
        assert "Background: Grew up in Seville." in prompt
        assert prompt.endswith("maintaining your personality and background throughout the conversation.")

    def test_minimal_profile(self):
        from avatarhub.avatars import build_base_system_prompt

        prompt = build_base_system_prompt({"name": "Max"})
        assert prompt == (
            "You are Max. Always respond in character, maintaining your personality "
            "and background throughout the conversation."
        )

    def test_secondary_languages_need_primary(self):
        from avatarhub.avatars import build_base_system_prompt

        prompt = build_base_system_prompt({"name": "Max", "secondary_languages": ["German"]})
        assert "You also speak" not in prompt


class TestAvatarCrud:

    def test_create_and_get(self, client, user_headers, avatar):
        r = client.get(f"/v1/avatars/{avatar['id']}", headers=user_headers)
        assert r.status_code == 200
        data = r.json()["avatar"]
        assert data["name"] == "Sofia"
        assert data["personality_traits"] == ["warm", "curious"]

    def test_list_is_scoped_to_owner(self, client, make_user, avatar, user_headers):
        other, _ = make_user()
        assert client.get("/v1/avatars", headers=other).json()["avatars"] == []
        assert client.get(f"/v1/avatars/{avatar['id']}", headers=other).status_code == 404
        assert [a["id"] for a in client.get("/v1/avatars", headers=user_headers).json()["avatars"]] == [avatar["id"]]

    def test_update_partial(self, client, user_headers, avatar):
        r = client.patch(f"/v1/avatars/{avatar['id']}", json={"backstory": "Moved to Lisbon."}, headers=user_headers)
        assert r.status_code == 200
        updated = r.json()["avatar"]
        assert updated["backstory"] == "Moved to Lisbon."
        assert updated["name"] == "Sofia"

    def test_delete(self, client, user_headers, avatar):
        assert client.delete(f"/v1/avatars/{avatar['id']}", headers=user_headers).status_code == 200
        assert client.get(f"/v1/avatars/{avatar['id']}", headers=user_headers).status_code == 404
        assert client.delete(f"/v1/avatars/{avatar['id']}", headers=user_headers).status_code == 404

    def test_delete_cascades(self, client, user_headers, avatar):
        from avatarhub.storage import db

        client.post(f"/v1/avatars/{avatar['id']}/versions", json={"system_prompt": "Be kind."}, headers=user_headers)
        photo = ("photos", ("p.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg"))
        memory = client.post(f"/v1/avatars/{avatar['id']}/memories", files=[photo], headers=user_headers).json()["memory"]
        photo_url = memory["images"][0]["image_url"]
        assert client.get(photo_url).status_code == 200

        assert client.delete(f"/v1/avatars/{avatar['id']}", headers=user_headers).status_code == 200

        con = db()
        counts = [
            con.execute(f"SELECT COUNT(*) FROM {table} WHERE avatar_id = ?", (avatar["id"],)).fetchone()[0]
            for table in ("avatar_prompt_versions", "avatar_memories")
        ]
        images = con.execute("SELECT COUNT(*) FROM memory_images WHERE memory_id = ?", (memory["id"],)).fetchone()[0]
        con.close()
        assert counts == [0, 0]
        assert images == 0
        assert client.get(photo_url).status_code == 404

    def test_free_tier_limit(self, client, make_user):
        headers, _ = make_user(tier="free")
        assert client.post("/v1/avatars", json={"name": "One"}, headers=headers).status_code == 200
        r = client.post("/v1/avatars", json={"name": "Two"}, headers=headers)
        assert r.status_code == 403
        assert r.json()["error"] == (
            "Avatar limit reached (1) for your subscription tier. Upgrade to create more avatars."
        )


class TestSystemPrompt:

    def test_generated_when_no_custom_prompt(self, client, user_headers, avatar):
        data = client.get(f"/v1/avatars/{avatar['id']}/system-prompt", headers=user_headers).json()
        assert data["system_prompt"] == data["base_system_prompt"]
        assert data["system_prompt"].startswith("You are Sofia.")

    def test_custom_prompt_wins(self, client, user_headers, avatar):
        client.patch(f"/v1/avatars/{avatar['id']}", json={"system_prompt": "Be Sofia."}, headers=user_headers)
        data = client.get(f"/v1/avatars/{avatar['id']}/system-prompt", headers=user_headers).json()
        assert data["system_prompt"] == "Be Sofia."
        assert data["base_system_prompt"].startswith("You are Sofia.")

    def test_blank_custom_prompt_is_ignored(self):
        from avatarhub.avatars.prompt import system_prompt_for

        assert system_prompt_for({"name": "Max", "system_prompt": "   "}).startswith("You are Max.")
