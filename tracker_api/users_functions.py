from werkzeug.security import generate_password_hash

from .schemas import User


HIDDEN_USER_FIELDS = ("password",)


def prepare_user(model: User):
    """
    Build the stored user fields from a validated body.

    Args:
        model (User): Validated request body.

    Returns:
        dict: Fields to persist, with the password replaced by a salted hash.
    """
    fields = model.model_dump()
    fields["password"] = generate_password_hash(model.password)
    return fields
