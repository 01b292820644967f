"""
Health check and error envelope tests.
"""


class TestHealthEndpoints:

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["service"] == "avatarhub-backend"
        assert isinstance(data["version"], str)


class TestErrorEnvelope:

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/v1/does-not-exist")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_validation_errors_are_400_with_details(self, client, user_headers):
        response = client.post("/v1/avatars", json={"age": 30}, headers=user_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request"
        assert isinstance(body["details"], list)

    def test_domain_errors_render_message(self, client, user_headers):
        # No provider key anywhere -> ProviderKeyMissing (400)
        response = client.post("/v1/images/generate", json={"prompt": "a cat"}, headers=user_headers)
        assert response.status_code == 400
        assert "No OpenAI API key configured" in response.json()["error"]
