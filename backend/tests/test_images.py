"""
Image generation (OpenAI sync, KIE.AI async) and the image gallery.
"""
import json

import pytest

PNG = b"\x89PNG\r\n\x1a\nfake-png"
INTERNAL_URLS = [
    "http://169.254.169.254/latest/meta-data",
    "http://127.0.0.1:8000/files/memories/x.png",
    "http://localhost/admin",
    "http://[::ffff:10.0.0.1]/x",
]


def _kie_created(task_id="task-1"):
    return {"code": 200, "msg": "success", "data": {"taskId": task_id}}


def _kie_record(state, urls=None, fail_msg=None):
    record = {"taskId": "task-1", "state": state}
    if urls is not None:
        record["resultJson"] = json.dumps({"resultUrls": urls})
    if fail_msg:
        record["failMsg"] = fail_msg
    return {"code": 200, "data": record}


class TestOpenAIGeneration:

    def test_generate_mirrors_and_saves(self, client, user_headers, provider_keys, outbound):
        outbound.on("POST", "/images/generations", json={
            "data": [{"url": "http://cdn.test/dalle.png", "revised_prompt": "a fluffy cat"}],
        })
        outbound.on("GET", "cdn.test/dalle.png", content=PNG, headers={"content-type": "image/png"})

        r = client.post("/v1/images/generate", json={"prompt": "a cat", "parameters": {"width": 1792, "height": 1024}},
                        headers=user_headers)
        assert r.status_code == 200, r.text
        data = r.json()
        assert data["status"] == "completed"
        image = data["image"]
        assert image["provider"] == "openai"
        assert image["model"] == "dall-e-3"
        assert image["width"] == 1792
        assert image["parameters"]["revised_prompt"] == "a fluffy cat"
        assert data["imageUrl"].startswith("/files/generated-images/")
        assert client.get(data["imageUrl"]).content == PNG

        sent = outbound.calls_to("/images/generations")[0]["json"]
        assert sent["size"] == "1792x1024"
        assert sent["model"] == "dall-e-3"

    def test_mirror_failure_keeps_provider_url(self, client, user_headers, provider_keys, outbound):
        outbound.on("POST", "/images/generations", json={"data": [{"url": "http://cdn.test/gone.png"}]})
        data = client.post("/v1/images/generate", json={"prompt": "a dog"}, headers=user_headers).json()
        assert data["imageUrl"] == "http://cdn.test/gone.png"
        assert data["image"]["image_path"] is None

    def test_provider_error_message(self, client, user_headers, provider_keys, outbound):
        outbound.on("POST", "/images/generations", status=400,
                    json={"error": {"message": "Your request was rejected by the safety system."}})
        r = client.post("/v1/images/generate", json={"prompt": "x"}, headers=user_headers)
        assert r.status_code == 502
        assert "rejected by the safety system" in r.json()["error"]

    def test_prompt_required(self, client, user_headers):
        r = client.post("/v1/images/generate", json={"prompt": "   "}, headers=user_headers)
        assert r.status_code == 400
        assert r.json()["error"] == "Prompt is required"


class TestKieGeneration:

    def test_async_task_and_progress(self, client, user_headers, provider_keys, outbound):
        outbound.on("POST", "/api/v1/jobs/createTask", json=_kie_created())
        r = client.post("/v1/images/generate", json={
            "prompt": "a castle", "provider": "kie-nano-banana", "parameters": {"aspect_ratio": "16:9"},
        }, headers=user_headers)
        assert r.status_code == 200, r.text
        assert r.json()["status"] == "processing"
        assert r.json()["taskId"] == "task-1"
        sent = outbound.calls_to("/api/v1/jobs/createTask")[0]["json"]
        assert sent == {"model": "google/nano-banana", "input": {"prompt": "a castle", "aspect_ratio": "16:9"}}

        outbound.on("GET", "/api/v1/jobs/recordInfo", json=_kie_record("generating"))
        progress = client.post("/v1/images/progress", json={"taskId": "task-1", "provider": "kie-nano-banana"},
                               headers=user_headers).json()
        assert progress["status"] == "processing"
        assert progress["imageUrl"] is None

        outbound.on("GET", "/api/v1/jobs/recordInfo", json=_kie_record("success", ["http://cdn.test/castle.png"]))
        progress = client.post("/v1/images/progress", json={"taskId": "task-1", "provider": "kie-nano-banana"},
                               headers=user_headers).json()
        assert progress["status"] == "completed"
        assert progress["progress"] == 100
        assert progress["imageUrl"] == "http://cdn.test/castle.png"
        assert outbound.calls_to("/api/v1/jobs/recordInfo")[-1]["params"] == {"taskId": "task-1"}

    def test_failed_task(self, client, user_headers, provider_keys, outbound):
        outbound.on("GET", "/api/v1/jobs/recordInfo", json=_kie_record("fail", fail_msg="NSFW content"))
        progress = client.post("/v1/images/progress", json={"taskId": "t", "provider": "kie-nano-banana"},
                               headers=user_headers).json()
        assert progress["status"] == "failed"
        assert progress["error"] == "NSFW content"

    def test_status_endpoint_outage_reads_as_processing(self, client, user_headers, provider_keys, outbound):
        outbound.on("GET", "/api/v1/jobs/recordInfo", status=503, json={"msg": "busy"})
        progress = client.post("/v1/images/progress", json={"taskId": "t", "provider": "kie-nano-banana"},
                               headers=user_headers).json()
        assert progress["status"] == "processing"

    def test_create_error_code(self, client, user_headers, provider_keys, outbound):
        outbound.on("POST", "/api/v1/jobs/createTask", json={"code": 402, "msg": "Insufficient credits"})
        r = client.post("/v1/images/generate", json={"prompt": "x", "provider": "kie-nano-banana"}, headers=user_headers)
        assert r.status_code == 502
        assert "Insufficient credits" in r.json()["error"]

    def test_edit_model_needs_image(self, client, user_headers, provider_keys):
        r = client.post("/v1/images/generate", json={"prompt": "x", "provider": "kie-nano-banana-edit"},
                        headers=user_headers)
        assert r.status_code == 400
        assert r.json()["error"] == "Nano Banana Edit requires at least one input image"

    def test_unknown_provider(self, client, user_headers):
        r = client.post("/v1/images/generate", json={"prompt": "x", "provider": "midjourney"}, headers=user_headers)
        assert r.status_code == 400
        assert r.json()["error"] == "Unknown provider: midjourney"


class TestGallery:

    def _save(self, client, headers, url="http://cdn.test/missing.png"):
        r = client.post("/v1/images", json={"prompt": "p", "image_url": url, "provider": "kie-nano-banana"},
                        headers=headers)
        assert r.status_code == 200, r.text
        return r.json()["image"]

    def test_save_list_favorite_delete(self, client, make_user):
        headers, _ = make_user()
        first = self._save(client, headers)
        second = self._save(client, headers)
        images = client.get("/v1/images", headers=headers).json()["images"]
        assert [i["id"] for i in images] == [second["id"], first["id"]]

        client.post(f"/v1/images/{first['id']}/favorite", headers=headers)
        favorites = client.get("/v1/images?favorites=true", headers=headers).json()["images"]
        assert [i["id"] for i in favorites] == [first["id"]]

        assert client.delete(f"/v1/images/{first['id']}", headers=headers).status_code == 200
        assert client.get(f"/v1/images/{first['id']}", headers=headers).status_code == 404

    def test_generation_type(self, client, user_headers):
        r = client.post("/v1/images", json={
            "prompt": "p", "image_url": "/files/generated-images/x.png", "provider": "kie-nano-banana-edit",
            "original_image_url": "http://cdn.test/source.png",
        }, headers=user_headers)
        assert r.json()["image"]["generation_type"] == "img2img"

    def test_gallery_is_private(self, client, make_user):
        owner, _ = make_user()
        other, _ = make_user()
        image = self._save(client, owner)
        assert client.get(f"/v1/images/{image['id']}", headers=other).status_code == 404
        assert client.post(f"/v1/images/{image['id']}/favorite", headers=other).status_code == 404

    def test_save_stores_url_as_given(self, client, user_headers, outbound):
        url = "http://169.254.169.254/latest/meta-data"
        outbound.on("GET", "169.254.169.254", content=b"SECRET")
        image = self._save(client, user_headers, url=url)
        assert image["image_url"] == url
        assert image["image_path"] is None
        assert outbound.calls == []

    def test_delete_removes_mirrored_object(self, client, make_user, provider_keys, outbound):
        headers, _ = make_user()
        outbound.on("POST", "/images/generations", json={"data": [{"url": "http://cdn.test/keep.png"}]})
        outbound.on("GET", "cdn.test/keep.png", content=PNG, headers={"content-type": "image/png"})
        image = client.post("/v1/images/generate", json={"prompt": "a cat"}, headers=headers).json()["image"]
        assert client.get(image["image_url"]).status_code == 200

        assert client.delete(f"/v1/images/{image['id']}", headers=headers).status_code == 200
        assert client.get(image["image_url"]).status_code == 404


class TestDownload:

    def test_proxies_public_image(self, client, user_headers, outbound):
        outbound.on("GET", "cdn.test/a.png", content=PNG, headers={"content-type": "image/png"})
        r = client.post("/v1/images/download", json={"imageUrl": "http://cdn.test/a.png"}, headers=user_headers)
        assert r.status_code == 200
        assert r.content == PNG
        assert r.headers["content-disposition"] == 'attachment; filename="image.png"'

    @pytest.mark.parametrize("url", INTERNAL_URLS)
    def test_refuses_internal_hosts(self, client, user_headers, outbound, url):
        r = client.post("/v1/images/download", json={"imageUrl": url}, headers=user_headers)
        assert r.status_code == 400
        assert r.json()["error"].startswith("URL host is not allowed")
        assert outbound.calls == []

    def test_refuses_names_resolving_inside(self, client, user_headers, outbound):
        outbound.hosts["intranet.test"] = ["10.0.0.7"]
        r = client.post("/v1/images/download", json={"imageUrl": "http://intranet.test/a.png"}, headers=user_headers)
        assert r.json()["error"] == "URL host is not allowed: intranet.test"
        assert outbound.calls == []

    def test_refuses_other_schemes(self, client, user_headers, outbound):
        r = client.post("/v1/images/download", json={"imageUrl": "file:///etc/passwd"}, headers=user_headers)
        assert r.status_code == 400
        assert r.json()["error"] == "Only http and https URLs are allowed"
