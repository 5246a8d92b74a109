"""Integration tests for API routes."""
import pytest
import redis
from fastapi import status
from fastapi.testclient import TestClient
from unittest.mock import Mock

from app.infrastructure import redis as redis_module
from app.infrastructure.redis import StorageError, get_item_store


class TestRootRoutes:
    """Test root and health endpoints."""

    def test_root(self, test_client):
        response = test_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message": "Hello World"}

    def test_health_check(self, test_client):
        """Test health check endpoint."""
        response = test_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["storage"] == "memory"

    def test_request_id_header(self, test_client):
        response = test_client.get("/")

        assert "X-Request-ID" in response.headers
        assert len(response.headers["X-Request-ID"]) == 36

    def test_openapi_schema_lists_routes(self, test_client):
        response = test_client.get("/openapi.json")

        assert response.status_code == status.HTTP_200_OK
        paths = response.json()["paths"]
        for path in ["/", "/items/", "/items/{item_id}", "/users/me", "/users/{user_id}", "/models/{model_name}"]:
            assert path in paths


class TestReadItem:
    """Test path and query parameters on /items/{item_id}."""

    def test_read_item_with_query(self, test_client):
        response = test_client.get("/items/5", params={"q": "somequery", "short": True})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"item_id": 5, "q": "somequery"}

    def test_read_item_without_query_has_description(self, test_client):
        response = test_client.get("/items/3")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["item_id"] == 3
        assert "q" not in data
        assert "description" in data

    @pytest.mark.parametrize("value", ["1", "true", "on", "yes"])
    def test_short_accepts_truthy_strings(self, test_client, value):
        response = test_client.get(f"/items/1?short={value}")

        assert response.status_code == status.HTTP_200_OK
        assert "description" not in response.json()

    def test_read_item_non_integer_id(self, test_client):
        """Test that a non-integer item id is rejected by validation."""
        response = test_client.get("/items/foo")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        detail = response.json()["detail"][0]
        assert detail["loc"] == ["path", "item_id"]

    def test_read_item_float_id(self, test_client):
        response = test_client.get("/items/4.2")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestListItems:
    """Test skip/limit pagination on /items/."""

    def test_defaults_return_fake_items(self, test_client):
        response = test_client.get("/items/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == [
            {"item_name": "Foo"},
            {"item_name": "Bar"},
            {"item_name": "Baz"},
        ]

    def test_skip_and_limit(self, test_client):
        response = test_client.get("/items/", params={"skip": 1, "limit": 1})

        assert response.json() == [{"item_name": "Bar"}]

    def test_skip_past_end(self, test_client):
        response = test_client.get("/items/", params={"skip": 20})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

    def test_negative_skip_rejected(self, test_client):
        response = test_client.get("/items/", params={"skip": -1})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_storage_error_returns_503(self, test_client):
        from main import app
        broken = Mock()
        broken.list.side_effect = StorageError("Could not list items: connection refused")
        app.dependency_overrides[get_item_store] = lambda: broken

        response = test_client.get("/items/")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert "connection refused" in response.json()["detail"]


class TestCreateItem:
    """Test request body handling on POST /items/."""

    def test_create_item_with_tax(self, test_client):
        response = test_client.post(
            "/items/",
            json={"name": "Foo", "description": "A very nice Item", "price": 35.4, "tax": 3.2}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["name"] == "Foo"
        assert data["description"] == "A very nice Item"
        assert data["price_with_tax"] == pytest.approx(38.6)

    def test_create_item_without_optional_fields(self, test_client):
        response = test_client.post("/items/", json={"name": "Plumbus", "price": 3})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["description"] is None
        assert data["tax"] is None
        assert data["price_with_tax"] is None

    def test_created_item_is_listed(self, test_client):
        test_client.post("/items/", json={"name": "Plumbus", "price": 3})

        response = test_client.get("/items/", params={"skip": 3})

        assert response.json() == [{"item_name": "Plumbus"}]

    def test_missing_price(self, test_client):
        response = test_client.post("/items/", json={"name": "Foo"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["detail"][0]["loc"] == ["body", "price"]

    def test_invalid_price(self, test_client):
        response = test_client.post("/items/", json={"name": "Foo", "price": "cheap"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_invalid_item_not_stored(self, test_client, item_store):
        test_client.post("/items/", json={"price": 1.0})

        assert item_store.count() == 3


class TestUserRoutes:
    """Test route ordering for /users."""

    def test_users_me(self, test_client):
        response = test_client.get("/users/me")

        assert response.json() == {"user_id": "the current user"}

    def test_user_by_id(self, test_client):
        response = test_client.get("/users/alice")

        assert response.json() == {"user_id": "alice"}


class TestModelRoutes:
    """Test enum path parameters."""

    @pytest.mark.parametrize("model_name,message", [
        ("alexnet", "Deep Learning FTW!"),
        ("lenet", "LeCNN all the images"),
        ("resnet", "Have some residuals"),
    ])
    def test_known_models(self, test_client, model_name, message):
        response = test_client.get(f"/models/{model_name}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"model_name": model_name, "message": message}

    def test_unknown_model(self, test_client):
        response = test_client.get("/models/vgg")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestErrorHandling:
    """Test the request middleware's error handling."""

    def test_unhandled_error_returns_500(self, test_client):
        from main import app
        broken = Mock()
        broken.list.side_effect = RuntimeError("boom")
        app.dependency_overrides[get_item_store] = lambda: broken

        response = test_client.get("/items/")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["error"] == "Internal server error"
        assert data["request_id"] == response.headers["X-Request-ID"]


class TestRedisBackedStore:
    """Test routes against the real store dependency with Redis enabled."""

    @pytest.fixture
    def redis_client(self, monkeypatch, mock_redis):
        from main import app
        app.dependency_overrides.clear()
        monkeypatch.setattr(redis_module, "_item_store", None)
        monkeypatch.setattr(redis_module.settings, "use_redis", True)
        monkeypatch.setattr(redis_module, "get_redis_client", lambda: mock_redis)
        return TestClient(app)

    def test_items_listed_from_redis(self, redis_client, mock_redis):
        response = redis_client.get("/items/", params={"limit": 2})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == [{"item_name": "Foo"}, {"item_name": "Bar"}]

    def test_created_item_pushed_to_redis(self, redis_client, mock_redis):
        redis_client.post("/items/", json={"name": "Plumbus", "price": 3})

        assert len(mock_redis.rows) == 4
        assert redis_client.get("/items/", params={"skip": 3}).json() == [{"item_name": "Plumbus"}]

    def test_store_setup_failure_returns_503(self, redis_client, mock_redis):
        mock_redis.eval.side_effect = redis.ConnectionError("connection reset")

        response = redis_client.get("/items/")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert "connection reset" in response.json()["detail"]
        assert "X-Request-ID" in response.headers

    def test_store_setup_failure_on_create_returns_503(self, redis_client, mock_redis):
        mock_redis.eval.side_effect = redis.ConnectionError("connection reset")

        response = redis_client.post("/items/", json={"name": "Foo", "price": 1.0})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_health_reports_503_when_store_unavailable(self, redis_client, mock_redis):
        mock_redis.eval.side_effect = redis.ConnectionError("connection reset")

        response = redis_client.get("/health")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_health_reports_redis_backend(self, redis_client):
        response = redis_client.get("/health")

        assert response.json()["checks"]["storage"] == "redis"
