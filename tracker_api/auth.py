import logging
import secrets

from flask import Blueprint, current_app, jsonify, redirect, request, session
from pymongo.errors import PyMongoError

from .auth_functions import GitHubOAuthClient, current_user_id, find_or_create_github_user
from .db_functions import get_collection


logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def get_oauth_client():
    """
    Build the GitHub OAuth client from the application config.

    Returns:
        GitHubOAuthClient: Client configured with the app credentials.
    """
    return GitHubOAuthClient(
        current_app.config["GITHUB_CLIENT_ID"],
        current_app.config["GITHUB_CLIENT_SECRET"],
        current_app.config["CALLBACK_URL"],
    )


@auth_bp.route("/", methods=["GET"])
def home():
    """
    Report whether the caller has a session.
    ---
    tags:
      - Auth
    responses:
      200:
        description: Logged out, or the name of the logged in user
    """
    if current_user_id() is None:
        return jsonify({"message": "Logged out"})
    return jsonify({"message": f"Logged in as {session.get('display_name') or session.get('user_id')}"})


@auth_bp.route("/login", methods=["GET"])
def login():
    """
    Send the caller to GitHub to authorize the application.
    ---
    tags:
      - Auth
    responses:
      302:
        description: Redirect to the GitHub authorize page
    """
    state = secrets.token_urlsafe(16)
    session["oauth_state"] = state
    return redirect(get_oauth_client().get_login_url(state))


@auth_bp.route("/github/callback", methods=["GET"])
def github_callback():
    """
    Handle the redirect back from GitHub.
    ---
    tags:
      - Auth
    parameters:
      - name: code
        in: query
        schema:
          type: string
      - name: state
        in: query
        schema:
          type: string
    responses:
      302:
        description: Redirect to / on success, /api-docs on failure
    """
    code = request.args.get("code")
    state = request.args.get("state")
    expected_state = session.pop("oauth_state", None)
    if not code or not state or state != expected_state:
        logger.warning("GitHub callback rejected: missing code or state mismatch")
        return redirect("/api-docs")

    profile = get_oauth_client().get_user_info_from_code(code)
    if not profile or profile.get("id") is None:
        return redirect("/api-docs")

    try:
        user = find_or_create_github_user(profile, get_collection("users"))
    except PyMongoError:
        logger.exception("Could not load the user for GitHub account %s", profile.get("login"))
        return redirect("/api-docs")

    session["user_id"] = str(user["_id"])
    session["display_name"] = user.get("displayName") or user.get("username")
    logger.info("GitHub authentication successful for %s", session["display_name"])
    return redirect("/")


@auth_bp.route("/logout", methods=["GET"])
def logout():
    """
    Clear the session.
    ---
    tags:
      - Auth
    responses:
      302:
        description: Redirect to /
    """
    session.clear()
    return redirect("/")
