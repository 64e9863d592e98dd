"""HTTP tests for the plant analysis endpoints."""

from app.shared.core.exceptions import ProviderQuotaExceededError, ProviderUnavailableError

from conftest import make_image_bytes, monstera

HEADERS = {"X-User-Id": "user-1"}


def jpeg(name: str = "leaf.jpg"):
    return ("images", (name, make_image_bytes(), "image/jpeg"))


def test_identify_returns_analysis(client):
    response = client.post("/api/v1/identify", files=[jpeg()], data={"language": "en"}, headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    analysis = body["analysis"]
    assert analysis["species"]["scientific_name"] == "Monstera deliciosa"
    assert analysis["free_tier_status"]["remaining_uses"] == 2
    for section in ("watering", "light", "humidity", "temperature", "soil", "fertilizer", "pruning"):
        assert section in analysis["care_plan"]


def test_identify_accepts_three_png_images(client):
    files = [("images", (f"leaf{i}.png", make_image_bytes(fmt="PNG"), "image/png")) for i in range(3)]

    response = client.post("/api/v1/identify", files=files, headers=HEADERS)

    assert response.status_code == 200


def test_missing_caller_header_is_rejected(client):
    response = client.post("/api/v1/identify", files=[jpeg()])

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MISSING_CALLER_ID"


def test_missing_images_is_rejected(client):
    response = client.post("/api/v1/identify", data={"language": "en"}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"


def test_too_many_images_is_rejected(client, identification_provider):
    response = client.post("/api/v1/identify", files=[jpeg(f"{i}.jpg") for i in range(4)], headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_IMAGE_UPLOAD"
    assert identification_provider.identify_calls == 0


def test_oversized_image_is_rejected(client):
    files = [("images", ("big.jpg", b"\xff" * 150_000, "image/jpeg"))]

    response = client.post("/api/v1/identify", files=files, headers=HEADERS)

    assert response.status_code == 400
    errors = response.json()["error"]["details"]["errors"]
    assert any("100KB" in e for e in errors)


def test_unsupported_type_is_rejected(client):
    files = [("images", ("leaf.gif", b"GIF89a", "image/gif"))]

    response = client.post("/api/v1/identify", files=files, headers=HEADERS)

    assert response.status_code == 400


def test_gif_disguised_as_jpeg_never_reaches_pipeline(client, identification_provider, generative_provider):
    files = [("images", ("leaf.jpg", make_image_bytes(fmt="GIF"), "image/jpeg"))]

    response = client.post("/api/v1/identify", files=files, headers=HEADERS)

    assert response.status_code == 400
    errors = response.json()["error"]["details"]["errors"]
    assert errors == ["Image 1: File content is not a JPEG or PNG image"]
    assert identification_provider.identify_calls == 0
    assert generative_provider.calls == []


def test_png_declared_as_jpeg_is_rejected(client, identification_provider):
    files = [("images", ("leaf.jpg", make_image_bytes(fmt="PNG"), "image/jpeg"))]

    response = client.post("/api/v1/identify", files=files, headers=HEADERS)

    assert response.status_code == 400
    assert "not the declared 'image/jpeg'" in response.json()["error"]["details"]["errors"][0]
    assert identification_provider.identify_calls == 0


def test_exhausted_free_tier_returns_402(client):
    for _ in range(3):
        assert client.post("/api/v1/identify", files=[jpeg()], headers=HEADERS).status_code == 200

    response = client.post("/api/v1/identify", files=[jpeg()], headers=HEADERS)

    assert response.status_code == 402
    body = response.json()
    assert body["success"] is False
    assert body["rejection"]["reason"] == "usage_exhausted"
    assert body["rejection"]["days_left"] == 7


def test_low_quality_returns_422(client, generative_provider):
    generative_provider.responses["quality"] = {
        "suitable": False,
        "quality_score": 0.1,
        "suggestions": ["Move closer to the leaves"],
    }

    response = client.post("/api/v1/identify", files=[jpeg()], headers=HEADERS)

    assert response.status_code == 422
    assert response.json()["rejection"]["reason"] == "low_image_quality"
    assert response.json()["rejection"]["suggestions"] == ["Move closer to the leaves"]


def test_unidentifiable_returns_422(client, identification_provider):
    identification_provider.suggestions = [monstera(confidence=0.01)]

    response = client.post("/api/v1/identify", files=[jpeg()], headers=HEADERS)

    assert response.status_code == 422
    assert response.json()["rejection"]["reason"] == "unidentifiable"


def test_provider_failure_is_generic(client, generative_provider):
    generative_provider.errors["care_plan"] = ProviderUnavailableError(
        "upstream said: invalid key AIza-secret", provider="gemini", upstream_status=401
    )

    response = client.post("/api/v1/identify", files=[jpeg()], headers=HEADERS)

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "ANALYSIS_FAILED"
    assert error["details"] == {"reason": "service_error"}
    assert "gemini" not in response.text
    assert "AIza-secret" not in response.text


def test_provider_quota_returns_503(client, identification_provider):
    identification_provider.identify_error = ProviderQuotaExceededError(provider="plant_id", limit=100)

    response = client.post("/api/v1/identify", files=[jpeg()], headers=HEADERS)

    assert response.status_code == 503
    assert response.json()["error"]["details"]["reason"] == "service_busy"
    assert "plant_id" not in response.text


def test_free_tier_status(client):
    client.post("/api/v1/identify", files=[jpeg()], headers=HEADERS)

    response = client.get("/api/v1/free-tier-status", headers=HEADERS)

    assert response.status_code == 200
    status = response.json()["status"]
    assert status["eligible"] is True
    assert status["remaining_uses"] == 2
    assert status["days_left"] == 7


def test_stored_analysis_is_private_to_its_owner(client):
    analysis_id = client.post("/api/v1/identify", files=[jpeg()], headers=HEADERS).json()["analysis"]["analysis_id"]

    own = client.get(f"/api/v1/analyses/{analysis_id}", headers=HEADERS)
    other = client.get(f"/api/v1/analyses/{analysis_id}", headers={"X-User-Id": "someone-else"})

    assert own.status_code == 200
    assert own.json()["analysis_id"] == analysis_id
    assert other.status_code == 404
    assert other.json()["error"]["code"] == "ANALYSIS_NOT_FOUND"


def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "healthy"

    detailed = client.get("/health/detailed")
    assert detailed.status_code == 200
    assert detailed.json()["components"]["state_backend"]["backend"] == "memory"


def test_api_info_lists_limits(client):
    body = client.get("/api/v1/").json()

    assert body["limits"]["max_images_per_request"] == 3
    assert body["endpoints"]["identify"] == "/api/v1/identify"
