import fakeredis
import mongomock
import pytest
from bson import ObjectId

from tracker_api import create_app


TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test-secret",
    "MONGO_DB_NAME": "movie_tracker_test",
    "CACHE_ENABLED": True,
    "CACHE_TTL_SECONDS": 60,
    "GITHUB_CLIENT_ID": "client-id",
    "GITHUB_CLIENT_SECRET": "client-secret",
    "CALLBACK_URL": "http://localhost/github/callback",
}


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis()


@pytest.fixture
def app(redis_client):
    return create_app(TEST_CONFIG, mongo_client=mongomock.MongoClient(), redis_client=redis_client)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return app.extensions["tracker"]["db"]


@pytest.fixture
def login(client):
    """Put a user id in the test client's session and return it."""
    def _login(user_id: str | None = None):
        user_id = user_id or str(ObjectId())
        with client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["display_name"] = "tester"
        return user_id

    return _login


@pytest.fixture
def movie_payload():
    return {
        "title": "Inception",
        "genre": "Sci-Fi",
        "releaseYear": 2010,
        "duration": 148,
        "status": "completed",
        "rating": 8.8,
    }
