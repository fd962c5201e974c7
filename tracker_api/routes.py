from bson import ObjectId
from flask import Flask

from .resources import Resource, build_blueprint
from .schemas import Course, Movie, Review, Student, User, Watchlist, WatchlistChange
from .users_functions import HIDDEN_USER_FIELDS, prepare_user
from .watchlists import change_watchlist_item, prepare_watchlist


def prepare_review(model: Review):
    fields = model.model_dump()
    fields["movieId"] = ObjectId(model.movieId)
    return fields


RESOURCES = [
    Resource(name="movies", label="Movie", schema=Movie),
    Resource(
        name="users",
        label="User",
        schema=User,
        prepare=prepare_user,
        hidden_fields=HIDDEN_USER_FIELDS,
    ),
    Resource(
        name="reviews",
        label="Review",
        schema=Review,
        prepare=prepare_review,
        owner_field="user_id",
        protected=True,
    ),
    Resource(
        name="watchlists",
        label="Watchlist",
        schema=Watchlist,
        prepare=prepare_watchlist,
        owner_field="user_id",
        protected=True,
        stamp_created=True,
        update_handler=change_watchlist_item,
        update_schema=WatchlistChange,
    ),
    Resource(name="courses", label="Course", schema=Course, protected=True),
    Resource(name="students", label="Student", schema=Student, protected=True),
]


def register_routes(app: Flask):
    """
    Mount one blueprint per collection.

    Args:
        app (Flask): Application being built.
    """
    for resource in RESOURCES:
        app.register_blueprint(build_blueprint(resource))
