import logging

from bson import ObjectId
from pymongo.errors import PyMongoError

from .db_functions import get_collection
from .resources import Resource, error_response, load_body, load_owned_document, update_outcome
from .schemas import Watchlist, WatchlistChange


logger = logging.getLogger(__name__)


def prepare_watchlist(model: Watchlist):
    """
    Build the stored watchlist fields.

    Args:
        model (Watchlist): Validated request body.

    Returns:
        dict: Fields to persist, with duplicate movies collapsed to their first entry.
    """
    movies = []
    seen = set()
    for item in model.movies:
        if item.movieId in seen:
            continue
        seen.add(item.movieId)
        movies.append({"movieId": ObjectId(item.movieId), "status": item.status})
    return {"name": model.name, "movies": movies}


def contains_movie(watchlist: dict, movie_id: ObjectId):
    """
    Check whether a watchlist already references a movie.

    Args:
        watchlist (dict): Watchlist document.
        movie_id (ObjectId): Movie identifier.

    Returns:
        bool: True when an entry for the movie exists.
    """
    for item in watchlist.get("movies") or []:
        if isinstance(item, dict) and str(item.get("movieId")) == str(movie_id):
            return True
    return False


def build_item_update(change: WatchlistChange):
    """
    Translate a watchlist change into a MongoDB filter and update.

    Adding pushes ``{movieId, status}`` only when no entry with the same
    movie exists; removing pulls every entry for the movie.

    Args:
        change (WatchlistChange): Validated request body.

    Returns:
        tuple[dict, dict]: Extra filter conditions and the update document.
    """
    movie_id = ObjectId(change.movieId)
    if change.remove:
        return {}, {"$pull": {"movies": {"movieId": movie_id}}}
    item = {"movieId": movie_id, "status": change.status}
    return {"movies.movieId": {"$ne": movie_id}}, {"$push": {"movies": item}}


def change_watchlist_item(resource: Resource, object_id: ObjectId):
    """
    Add a movie to, or remove a movie from, a watchlist owned by the caller.

    Args:
        resource (Resource): Watchlist collection description.
        object_id (ObjectId): Identifier of the watchlist.

    Returns:
        Response: Flask response with JSON payload and status code.
    """
    change, error = load_body(WatchlistChange)
    if error:
        return error

    extra_filter, update = build_item_update(change)
    collection = get_collection(resource.name)
    try:
        existing, denied = load_owned_document(resource, object_id, "update")
        if denied:
            return denied
        if not change.remove and contains_movie(existing, ObjectId(change.movieId)):
            return update_outcome(resource, object_id, 1, 0)
        result = collection.update_one({"_id": object_id, **extra_filter}, update)
        matched = result.matched_count
        # the guarded push also misses when the movie was added concurrently
        if matched == 0 and extra_filter and collection.find_one({"_id": object_id}, {"_id": 1}):
            matched = 1
    except PyMongoError:
        logger.exception("Updating watchlist %s failed", object_id)
        return error_response("An error occurred while updating the watchlist", 500)

    return update_outcome(resource, object_id, matched, result.modified_count)
