import logging
from functools import wraps
from urllib.parse import urlencode

import requests
from flask import jsonify, session
from pymongo.collection import Collection

from .cache_functions import build_cache_key, invalidate_cache
from .db_functions import utc_now


logger = logging.getLogger(__name__)

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_TIMEOUT_SECONDS = 10


def current_user_id():
    """
    Return the identifier of the logged in caller.

    Returns:
        str | None: ``user_id`` stored in the session at login, if any.
    """
    user_id = session.get("user_id")
    return str(user_id) if user_id else None


def login_required(view):
    """
    Decorator for routes that need an authenticated session.

    Args:
        view (Callable): Flask view function.

    Returns:
        Callable: Wrapped view answering 401 when nobody is logged in.
    """
    @wraps(view)
    def decorated_view(*args, **kwargs):
        if current_user_id() is None:
            return jsonify({"error": "You do not have access."}), 401
        return view(*args, **kwargs)

    return decorated_view


def is_owner(document: dict, owner_field: str, user_id: str | None):
    """
    Compare the stored owner of a document with the caller.

    Args:
        document (dict): Document loaded from MongoDB.
        owner_field (str): Name of the field holding the owner id.
        user_id (str | None): Caller identifier from the session.

    Returns:
        bool: True when both identifiers are present and equal.
    """
    owner = document.get(owner_field)
    if owner is None or not user_id:
        return False
    return str(owner) == str(user_id)


class GitHubOAuthClient:
    """Thin wrapper over GitHub's web application OAuth flow."""

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    def get_login_url(self, state: str):
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": "read:user user:email",
            "state": state,
        }
        return f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}"

    def get_user_info_from_code(self, code: str):
        """
        Exchange an authorization code for the caller's GitHub profile.

        Args:
            code (str): Code received on the callback route.

        Returns:
            dict | None: GitHub profile, or None when GitHub refused either step.
        """
        try:
            token_response = requests.post(
                GITHUB_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                },
                headers={"Accept": "application/json"},
                timeout=GITHUB_TIMEOUT_SECONDS,
            )
            if token_response.status_code != 200:
                logger.warning("GitHub token exchange failed with status %s", token_response.status_code)
                return None

            access_token = token_response.json().get("access_token")
            if not access_token:
                logger.warning("GitHub token exchange returned no access token")
                return None

            user_response = requests.get(
                GITHUB_USER_URL,
                headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
                timeout=GITHUB_TIMEOUT_SECONDS,
            )
            if user_response.status_code != 200:
                logger.warning("GitHub profile request failed with status %s", user_response.status_code)
                return None
            return user_response.json()
        except requests.RequestException:
            logger.exception("GitHub OAuth request failed")
            return None


def find_or_create_github_user(profile: dict, users_collection: Collection):
    """
    Locate the user document linked to a GitHub profile, creating it on first login.

    Args:
        profile (dict): Profile returned by the GitHub user endpoint.
        users_collection (Collection): MongoDB collection handle.

    Returns:
        dict: Stored user document.
    """
    github_id = str(profile.get("id"))
    existing = users_collection.find_one({"githubId": github_id})
    if existing:
        return existing

    login = profile.get("login") or f"github-{github_id}"
    new_user = {
        "username": login,
        "email": profile.get("email"),
        "displayName": profile.get("name") or login,
        "githubId": github_id,
        "watchlists": None,
        "createdAt": utc_now(),
    }
    result = users_collection.insert_one(new_user)
    new_user["_id"] = result.inserted_id
    invalidate_cache(build_cache_key("users", "all"))
    logger.info("Created user %s for GitHub account %s", result.inserted_id, login)
    return new_user
