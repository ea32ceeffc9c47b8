# linkcamp/api/comments/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from linkcamp.api.users.schemas import AuthorSummarySchema


class CommentCreateSchema(Schema):
    """POST /comments 요청 본문."""
    class Meta:
        unknown = EXCLUDE

    post_id = fields.Str(data_key='postId', required=True, validate=validate.Length(min=1))
    content = fields.Str(required=True, validate=validate.Length(min=1, max=2000))


class CommentUpdateSchema(Schema):
    content = fields.Str(required=True, validate=validate.Length(min=1, max=2000))


class CommentResponseSchema(Schema):
    comment_id = fields.Str(data_key='_id')
    post_id = fields.Str(data_key='postId')
    author_email = fields.Str(data_key='email')
    content = fields.Str()
    created_at = fields.DateTime(data_key='createdAt')
    edited_at = fields.DateTime(data_key='editedAt', allow_none=True)
    user = fields.Nested(AuthorSummarySchema, allow_none=True)
