from marshmallow import Schema, fields, pre_load, validate

from models.base_model import utcnow
from models.user import ROLES


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class _NormalizeEmailMixin:
    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _norm_email(data["email"])
        return data


class SignupSchema(_NormalizeEmailMixin, Schema):
    email = fields.Email(required=True)
    username = fields.String(required=True, validate=validate.Length(min=3, max=64))
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=6))


class LoginSchema(_NormalizeEmailMixin, Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))


class RoleUpdateSchema(Schema):
    role = fields.String(required=True, validate=validate.OneOf(ROLES))


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    email = fields.String()
    username = fields.String()
    name = fields.String(allow_none=True)
    role = fields.String()
    createdAt = fields.DateTime(attribute="created_at")


class AdminUserOutSchema(UserOutSchema):
    activeSessions = fields.Method("get_active_sessions")

    def get_active_sessions(self, obj):
        now = utcnow()
        return sum(1 for rt in obj.refresh_tokens if not rt.is_revoked and rt.expires_at > now)
