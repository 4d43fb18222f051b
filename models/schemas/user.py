import re

from marshmallow import EXCLUDE, Schema, fields, pre_load, validates, validate, ValidationError

NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")

# Order in which field errors are reported when several fields fail
FIELD_ORDER = ("email", "password", "name", "idToken")


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _norm_name(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def first_error(err: ValidationError):
    """Return (field, message) of the first failing field of a marshmallow error."""
    messages = err.messages if isinstance(err.messages, dict) else {"_schema": err.messages}
    ordered = [f for f in FIELD_ORDER if f in messages] + [f for f in messages if f not in FIELD_ORDER]
    field = ordered[0]
    message = messages[field]
    while isinstance(message, (list, dict)):
        message = message[0] if isinstance(message, list) else next(iter(message.values()))
    return field, str(message)


class EmailField(fields.Email):
    default_error_messages = {"invalid": "Invalid email format"}


class UserCreateSchema(Schema):
    email = EmailField(
        required=True,
        validate=validate.Length(max=254, error="Email is too long (maximum 254 characters)"),
        error_messages={"required": "Email is required"},
    )
    password = fields.String(required=True, load_only=True, error_messages={"required": "Password is required"})
    name = fields.String(
        allow_none=True,
        load_default=None,
        validate=validate.Length(max=100, error="Name is too long (maximum 100 characters)"),
    )

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            if "name" in data:
                data["name"] = _norm_name(data["name"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if not value:
            raise ValidationError("Password is required")
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long")
        if len(value) > 128:
            raise ValidationError("Password is too long (maximum 128 characters)")
        if not re.search(r"[a-z]", value):
            raise ValidationError("Password must contain at least one lowercase letter")
        if not re.search(r"[A-Z]", value):
            raise ValidationError("Password must contain at least one uppercase letter")
        if not re.search(r"\d", value):
            raise ValidationError("Password must contain at least one number")

    @validates("name")
    def validate_name(self, value, **kwargs):
        if value is not None and not NAME_RE.match(value):
            raise ValidationError("Name can only contain letters, spaces, hyphens, and apostrophes")


class UserLoginSchema(Schema):
    # Strength rules are a registration policy; login only needs a password
    email = EmailField(
        required=True,
        validate=validate.Length(max=254, error="Email is too long (maximum 254 characters)"),
        error_messages={"required": "Email is required"},
    )
    password = fields.String(required=True, load_only=True, error_messages={"required": "Password is required"})

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if not value:
            raise ValidationError("Password is required")


class GoogleAuthSchema(Schema):
    idToken = fields.String(required=True, error_messages={"required": "Google ID token is required"})

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("idToken"), str):
            data = dict(data, idToken=data["idToken"].strip())
        return data

    @validates("idToken")
    def validate_id_token(self, value, **kwargs):
        if not value:
            raise ValidationError("Google ID token is required")


class SocialProfileSchema(Schema):
    """Claims taken from a verified Google ID token, normalised like a registration."""
    email = EmailField(
        required=True,
        validate=validate.Length(max=254, error="Email is too long (maximum 254 characters)"),
        error_messages={"required": "Email is required"},
    )
    name = fields.String(
        allow_none=True,
        load_default=None,
        validate=validate.Length(max=100, error="Name is too long (maximum 100 characters)"),
    )
    picture = fields.String(allow_none=True, load_default=None)
    sub = fields.String(allow_none=True, load_default=None)

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            if "name" in data:
                data["name"] = _norm_name(data["name"])
        return data

    @validates("name")
    def validate_name(self, value, **kwargs):
        if value is not None and not NAME_RE.match(value):
            raise ValidationError("Name can only contain letters, spaces, hyphens, and apostrophes")
