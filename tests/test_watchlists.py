from unittest.mock import MagicMock, patch

from bson import ObjectId
from pymongo.errors import PyMongoError

from tracker_api.schemas import WatchlistChange
from tracker_api.watchlists import build_item_update, contains_movie


MOVIE_A = "67ec23822403ed55b2a9833e"
MOVIE_B = "67ec22f72403ed55b2a9833c"


def create_watchlist(client, **overrides):
    payload = {"name": "Weekend", "movies": [{"movieId": MOVIE_A, "status": "watching"}]}
    payload.update(overrides)
    res = client.post("/watchlists", json=payload)
    assert res.status_code == 201
    return res.get_json()["watchlistId"]


def test_create_requires_session(client):
    res = client.post("/watchlists", json={"name": "Weekend"})
    assert res.status_code == 401


def test_create_watchlist(client, login):
    user_id = login()
    watchlist_id = create_watchlist(client)

    watchlist = client.get(f"/watchlists/{watchlist_id}").get_json()
    assert watchlist["user_id"] == user_id
    assert watchlist["name"] == "Weekend"
    assert watchlist["movies"] == [{"movieId": MOVIE_A, "status": "watching"}]
    assert watchlist["createdAt"].endswith("Z")


def test_create_collapses_duplicate_movies(client, login):
    login()
    watchlist_id = create_watchlist(
        client,
        movies=[{"movieId": MOVIE_A, "status": "watching"}, {"movieId": MOVIE_A, "status": "completed"}],
    )
    movies = client.get(f"/watchlists/{watchlist_id}").get_json()["movies"]
    assert movies == [{"movieId": MOVIE_A, "status": "watching"}]


def test_add_movie(client, login):
    login()
    watchlist_id = create_watchlist(client)

    res = client.put(f"/watchlists/{watchlist_id}", json={"movieId": MOVIE_B})
    assert res.status_code == 200
    assert res.get_json()["message"] == "Watchlist updated successfully"

    movies = client.get(f"/watchlists/{watchlist_id}").get_json()["movies"]
    assert movies == [
        {"movieId": MOVIE_A, "status": "watching"},
        {"movieId": MOVIE_B, "status": "planToWatch"},
    ]


def test_adding_a_present_movie_changes_nothing(client, db, login):
    login()
    watchlist_id = create_watchlist(client)
    before = db["watchlists"].find_one({"_id": ObjectId(watchlist_id)})

    res = client.put(f"/watchlists/{watchlist_id}", json={"movieId": MOVIE_A, "status": "completed"})
    assert res.status_code == 200
    assert res.get_json()["message"] == "No changes made to the watchlist"
    assert db["watchlists"].find_one({"_id": ObjectId(watchlist_id)}) == before


def test_remove_movie(client, login):
    login()
    watchlist_id = create_watchlist(client)

    res = client.put(f"/watchlists/{watchlist_id}", json={"movieId": MOVIE_A, "remove": True})
    assert res.status_code == 200
    assert client.get(f"/watchlists/{watchlist_id}").get_json()["movies"] == []


def test_other_user_gets_403_and_watchlist_is_unchanged(client, db, login):
    login()
    watchlist_id = create_watchlist(client)
    before = db["watchlists"].find_one({"_id": ObjectId(watchlist_id)})

    login()
    res = client.put(f"/watchlists/{watchlist_id}", json={"movieId": MOVIE_B})
    assert res.status_code == 403
    assert res.get_json()["error"] == "You can only update your own watchlist"
    assert db["watchlists"].find_one({"_id": ObjectId(watchlist_id)}) == before

    assert client.delete(f"/watchlists/{watchlist_id}").status_code == 403


def test_update_absent_watchlist(client, login):
    login()
    res = client.put(f"/watchlists/{ObjectId()}", json={"movieId": MOVIE_B})
    assert res.status_code == 404


def test_update_rejects_bad_movie_id(client, login):
    login()
    watchlist_id = create_watchlist(client)
    res = client.put(f"/watchlists/{watchlist_id}", json={"movieId": "abc"})
    assert res.status_code == 400


def test_delete_watchlist(client, login):
    login()
    watchlist_id = create_watchlist(client)
    assert client.delete(f"/watchlists/{watchlist_id}").status_code == 200
    assert client.delete(f"/watchlists/{watchlist_id}").status_code == 404


def test_watchlist_deleted_before_add_is_not_found(client, login):
    login()
    watchlist_id = create_watchlist(client)
    vanished = MagicMock()
    vanished.update_one.return_value = MagicMock(matched_count=0, modified_count=0)
    vanished.find_one.return_value = None
    with patch("tracker_api.watchlists.get_collection", return_value=vanished):
        res = client.put(f"/watchlists/{watchlist_id}", json={"movieId": MOVIE_B})

    assert res.status_code == 404
    assert res.get_json() == {"error": "Watchlist not found"}


def test_concurrent_add_of_same_movie_changes_nothing(client, login):
    login()
    watchlist_id = create_watchlist(client)
    raced = MagicMock()
    raced.update_one.return_value = MagicMock(matched_count=0, modified_count=0)
    raced.find_one.return_value = {"_id": ObjectId(watchlist_id)}
    with patch("tracker_api.watchlists.get_collection", return_value=raced):
        res = client.put(f"/watchlists/{watchlist_id}", json={"movieId": MOVIE_B})

    assert res.status_code == 200
    assert res.get_json()["message"] == "No changes made to the watchlist"


def test_change_failure_hides_driver_details(client, login):
    login()
    watchlist_id = create_watchlist(client)
    failing = MagicMock()
    failing.update_one.side_effect = PyMongoError("connection refused by 10.0.0.5")
    with patch("tracker_api.watchlists.get_collection", return_value=failing):
        res = client.put(f"/watchlists/{watchlist_id}", json={"movieId": MOVIE_B})

    assert res.status_code == 500
    assert res.get_json() == {"error": "An error occurred while updating the watchlist"}


def test_ownership_lookup_failure_hides_driver_details(client, login):
    login()
    failing = MagicMock()
    failing.find_one.side_effect = PyMongoError("connection refused by 10.0.0.5")
    with patch("tracker_api.resources.get_collection", return_value=failing):
        res = client.put(f"/watchlists/{ObjectId()}", json={"movieId": MOVIE_B})

    assert res.status_code == 500
    assert res.get_json() == {"error": "An error occurred while updating the watchlist"}


def test_build_item_update():
    extra, update = build_item_update(WatchlistChange(movieId=MOVIE_B))
    assert extra == {"movies.movieId": {"$ne": ObjectId(MOVIE_B)}}
    assert update == {"$push": {"movies": {"movieId": ObjectId(MOVIE_B), "status": "planToWatch"}}}

    extra, update = build_item_update(WatchlistChange(movieId=MOVIE_B, remove=True))
    assert extra == {}
    assert update == {"$pull": {"movies": {"movieId": ObjectId(MOVIE_B)}}}


def test_contains_movie():
    watchlist = {"movies": [{"movieId": ObjectId(MOVIE_A), "status": "watching"}]}
    assert contains_movie(watchlist, ObjectId(MOVIE_A))
    assert not contains_movie(watchlist, ObjectId(MOVIE_B))
    assert not contains_movie({}, ObjectId(MOVIE_A))
