"""
Voice samples, ElevenLabs voice clones and text-to-speech.
"""
MP3 = b"ID3\x03\x00fake-mp3-bytes"


def _sample(client, headers, name="me.mp3", data=MP3, mime="audio/mpeg"):
    r = client.post("/v1/voices/samples", files={"file": (name, data, mime)}, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["sample"]


def _clone(client, headers, outbound):
    sample = _sample(client, headers)
    outbound.on("POST", "/v1/voices/pvc", json={"voice_id": "el-voice"})
    outbound.on("POST", "/samples", json={})
    r = client.post("/v1/voices/clones", json={"name": "V", "sample_ids": [sample["id"]]}, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["clone"]


class TestSamples:

    def test_upload_list_delete(self, client, make_user):
        headers, _ = make_user()
        sample = _sample(client, headers)
        assert sample["file_name"] == "me.mp3"
        assert sample["file_size"] == len(MP3)
        assert client.get(sample["file_url"]).content == MP3

        assert [s["id"] for s in client.get("/v1/voices/samples", headers=headers).json()["samples"]] == [sample["id"]]
        assert client.delete(f"/v1/voices/samples/{sample['id']}", headers=headers).status_code == 200
        assert client.get(sample["file_url"]).status_code == 404

    def test_wav_by_extension(self, client, user_headers):
        assert _sample(client, user_headers, name="take.wav", mime="application/octet-stream")["mime_type"] == "application/octet-stream"

    def test_rejects_non_audio(self, client, user_headers):
        r = client.post("/v1/voices/samples", files={"file": ("cv.pdf", b"%PDF", "application/pdf")}, headers=user_headers)
        assert r.status_code == 400
        assert r.json()["error"] == "Invalid file type. Please upload MP3, WAV, FLAC or OGG audio."


class TestClones:

    def test_create_clone(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        first = _sample(client, headers)
        second = _sample(client, headers, name="two.mp3")
        outbound.on("POST", "/v1/voices/pvc", json={"voice_id": "el-voice"})
        outbound.on("POST", "/v1/voices/pvc/el-voice/samples", json={"samples": []})

        r = client.post("/v1/voices/clones", json={
            "name": "My voice", "language": "es", "sample_ids": [first["id"], second["id"]],
        }, headers=headers)
        assert r.status_code == 200, r.text
        clone = r.json()["clone"]
        assert clone["status"] == "training"
        assert clone["elevenlabs_voice_id"] == "el-voice"
        assert clone["sample_count"] == 2

        create = outbound.calls_to("/v1/voices/pvc", method="POST")[0]
        assert create["json"]["language"] == "es"
        upload = outbound.calls_to("/samples")[0]
        assert [f[1][0] for f in upload["files"]] == ["me.mp3", "two.mp3"]
        assert upload["files"][0][1][1] == MP3
        assert upload["data"] == {"remove_background_noise": "true"}

        linked = {s["voice_clone_id"] for s in client.get("/v1/voices/samples", headers=headers).json()["samples"]}
        assert linked == {clone["id"]}

    def test_validation(self, client, user_headers):
        r = client.post("/v1/voices/clones", json={"name": " ", "sample_ids": ["x"]}, headers=user_headers)
        assert r.json()["error"] == "Voice name is required"
        r = client.post("/v1/voices/clones", json={"name": "Voice"}, headers=user_headers)
        assert r.json()["error"] == "At least one voice sample is required"

    def test_duplicate_sample_ids_count_once(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        sample = _sample(client, headers)
        outbound.on("POST", "/v1/voices/pvc", json={"voice_id": "el-dup"})
        outbound.on("POST", "/samples", json={})
        r = client.post("/v1/voices/clones", json={"name": "V", "sample_ids": [sample["id"], sample["id"]]},
                        headers=headers)
        assert r.json()["clone"]["sample_count"] == 1
        assert len(outbound.calls_to("/samples")[0]["files"]) == 1

    def test_linked_sample_rejected(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        clone = _clone(client, headers, outbound)
        sample = client.get("/v1/voices/samples", headers=headers).json()["samples"][0]
        assert sample["voice_clone_id"] == clone["id"]
        creates = len(outbound.calls_to("/v1/voices/pvc", method="POST"))

        r = client.post("/v1/voices/clones", json={"name": "Again", "sample_ids": [sample["id"]]}, headers=headers)
        assert r.status_code == 409
        assert r.json()["error"] == f"Voice samples already belong to a clone: {sample['id']}"
        assert len(outbound.calls_to("/v1/voices/pvc", method="POST")) == creates

    def test_unknown_sample(self, client, user_headers, provider_keys):
        r = client.post("/v1/voices/clones", json={"name": "Voice", "sample_ids": ["missing"]}, headers=user_headers)
        assert r.status_code == 404

    def test_list_refreshes_training_clones(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        clone = _clone(client, headers, outbound)

        outbound.on("GET", "/v1/voices/el-voice", json={"voice_id": "el-voice", "fine_tuning": {"is_allowed_to_fine_tune": True}})
        assert client.get("/v1/voices/clones", headers=headers).json()["clones"][0]["status"] == "training"

        outbound.on("GET", "/v1/voices/el-voice", json={"voice_id": "el-voice", "samples": [{"sample_id": "s1"}]})
        clones = client.get("/v1/voices/clones", headers=headers).json()["clones"]
        assert [(c["id"], c["status"]) for c in clones] == [(clone["id"], "active")]

    def test_refresh_error_keeps_status(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        _clone(client, headers, outbound)
        outbound.on("GET", "/v1/voices/el-voice", status=500, json={"detail": {"message": "down"}})
        assert client.get("/v1/voices/clones", headers=headers).json()["clones"][0]["status"] == "training"

    def test_delete_clone_even_if_provider_fails(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        clone = _clone(client, headers, outbound)
        outbound.on("DELETE", "/v1/voices/el-voice", status=500, json={"detail": {"message": "down"}})

        assert client.delete(f"/v1/voices/clones/{clone['id']}", headers=headers).status_code == 200
        assert outbound.calls_to("/v1/voices/el-voice", method="DELETE")
        assert client.get("/v1/voices/clones", headers=headers).json()["clones"] == []
        assert client.get("/v1/voices/samples", headers=headers).json()["samples"] == []


class TestTTS:

    def test_default_voice(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        outbound.on("POST", "/v1/text-to-speech/", content=MP3, headers={"content-type": "audio/mpeg"})

        r = client.post("/v1/voices/tts", json={"text": "Hola", "settings": {"stability": 0.8}}, headers=headers)
        assert r.status_code == 200, r.text
        generation = r.json()["generation"]
        assert generation["voice_id"] == "EXAVITQu4vr4xnSDxMaL"
        assert generation["model_id"] == "eleven_monolingual_v1"
        assert generation["settings"] == {"stability": 0.8, "similarity_boost": 0.75, "style": 0, "use_speaker_boost": True}
        assert client.get(r.json()["audioUrl"]).content == MP3

        sent = outbound.calls_to("/v1/text-to-speech/EXAVITQu4vr4xnSDxMaL")[0]
        assert sent["headers"]["Accept"] == "audio/mpeg"
        assert sent["json"]["text"] == "Hola"

    def test_clone_voice(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        clone = _clone(client, headers, outbound)
        outbound.on("POST", "/v1/text-to-speech/el-voice", content=MP3)
        generation = client.post("/v1/voices/tts", json={"text": "Hi", "voice_clone_id": clone["id"]},
                                 headers=headers).json()["generation"]
        assert generation["voice_clone_id"] == clone["id"]
        assert generation["voice_id"] == "el-voice"

    def test_unknown_clone(self, client, user_headers, provider_keys):
        r = client.post("/v1/voices/tts", json={"text": "Hi", "voice_clone_id": "nope"}, headers=user_headers)
        assert r.status_code == 404
        assert r.json()["error"] == "Voice clone not found"

    def test_text_required(self, client, user_headers):
        r = client.post("/v1/voices/tts", json={"text": "  "}, headers=user_headers)
        assert r.status_code == 400
        assert r.json()["error"] == "Text is required"

    def test_history_and_delete(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        outbound.on("POST", "/v1/text-to-speech/", content=MP3)
        first = client.post("/v1/voices/tts", json={"text": "one"}, headers=headers).json()["generation"]
        second = client.post("/v1/voices/tts", json={"text": "two"}, headers=headers).json()["generation"]
        history = client.get("/v1/voices/tts", headers=headers).json()["generations"]
        assert [g["id"] for g in history] == [second["id"], first["id"]]

        assert client.delete(f"/v1/voices/tts/{first['id']}", headers=headers).status_code == 200
        assert client.delete(f"/v1/voices/tts/{first['id']}", headers=headers).status_code == 404
