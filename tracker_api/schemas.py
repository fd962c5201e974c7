"""
Request schemas

One pydantic model per collection. Each model lists the fields a client
may send; anything else in the body is dropped. Required fields and value
ranges mirror the field rules the routes validate before touching MongoDB.
"""

from typing import Annotated, Any, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from .db_functions import is_valid_object_id


def check_object_id(value: str):
    if not is_valid_object_id(value):
        raise ValueError("must be a valid 24 character hex id")
    return value


ObjectIdStr = Annotated[str, AfterValidator(check_object_id)]
NonEmptyStr = Annotated[str, Field(min_length=1)]

MovieStatus = Literal["completed", "upcoming", "on-hold", "cancelled"]
WatchStatus = Literal["watching", "planToWatch", "completed", "onHold", "dropped"]


class RequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class Movie(RequestModel):
    """
    Movie entries.
    Collection name: "movies"
    """
    title: NonEmptyStr
    genre: NonEmptyStr
    releaseYear: int = Field(..., ge=1800)
    duration: int = Field(..., ge=1)
    description: Optional[str] = None
    status: MovieStatus
    rating: float = Field(..., ge=1, le=10)

    @field_validator("rating")
    @classmethod
    def two_decimals(cls, value: float):
        if round(value, 2) != value:
            raise ValueError("Rating can only have up to two decimal places")
        return value


class User(RequestModel):
    """
    User accounts.
    Collection name: "users"
    """
    username: NonEmptyStr
    password: str = Field(..., min_length=6)
    email: EmailStr
    watchlists: Optional[List[NonEmptyStr]] = Field(None, min_length=1)


class Review(RequestModel):
    """
    Movie reviews. The owner (``user_id``) comes from the session.
    Collection name: "reviews"
    """
    movieId: ObjectIdStr
    rating: float = Field(..., ge=1, le=10)
    title: NonEmptyStr
    comment: NonEmptyStr


class WatchlistItem(RequestModel):
    movieId: ObjectIdStr
    status: WatchStatus = "planToWatch"


class Watchlist(RequestModel):
    """
    Named movie lists. The owner (``user_id``) comes from the session.
    Collection name: "watchlists"
    """
    name: NonEmptyStr
    movies: List[WatchlistItem] = Field(default_factory=list)


class WatchlistChange(RequestModel):
    """Single item added to or removed from a watchlist."""
    movieId: ObjectIdStr
    status: WatchStatus = "planToWatch"
    remove: bool = False


class Course(RequestModel):
    """
    Courses.
    Collection name: "courses"
    """
    courseCode: NonEmptyStr
    courseName: NonEmptyStr
    instructor: NonEmptyStr
    semester: NonEmptyStr


class Student(RequestModel):
    """
    Students.
    Collection name: "students"
    """
    name: NonEmptyStr
    email: EmailStr
    age: Optional[int] = Field(None, ge=0)
    major: Optional[str] = None
    graduationYear: Optional[int] = None
    GPA: Optional[float] = Field(None, ge=0)
    attendanceMode: Optional[str] = None
    courses: Optional[List[Any]] = None


def format_validation_errors(error: ValidationError):
    """
    Flatten pydantic errors into readable messages.

    Args:
        error (ValidationError): Error raised by ``model_validate``.

    Returns:
        list[str]: One ``field: message`` entry per failed rule.
    """
    messages = []
    for entry in error.errors():
        location = ".".join(str(part) for part in entry.get("loc", ())) or "body"
        messages.append(f"{location}: {entry.get('msg')}")
    return messages
