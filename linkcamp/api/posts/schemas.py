# linkcamp/api/posts/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from linkcamp.api.users.schemas import AuthorSummarySchema
from linkcamp.models.post import PostType

_POST_TYPES = [post_type.value for post_type in PostType]


# --- API 요청 스키마 (multipart form) ---

class PostCreateSchema(Schema):
    """POST /user/post 요청 본문. 내용, 사진, 리포스트 대상 중 하나는 있어야 합니다."""
    class Meta:
        unknown = EXCLUDE

    content = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=5000))
    post_type = fields.Str(data_key='postType', load_default=PostType.GENERAL.value,
                           validate=validate.OneOf(_POST_TYPES))
    repost_of = fields.Str(data_key='repostOf', load_default=None, allow_none=True)


class AnnouncementCreateSchema(Schema):
    """POST /teacher/announcement, POST /admin/notice 요청 본문."""
    class Meta:
        unknown = EXCLUDE

    content = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=5000))


class PostUpdateSchema(Schema):
    """PATCH /posts/<id> 요청 본문."""
    class Meta:
        unknown = EXCLUDE

    content = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=5000))
    remove_photo = fields.Bool(data_key='removePhoto', load_default=False)


# --- API 응답 스키마 ---

class PostResponseSchema(Schema):
    """피드 항목 응답. originalPost 는 리포스트일 때 원본 게시물입니다."""
    post_id = fields.Str(data_key='_id')
    author_email = fields.Str(data_key='email')
    content = fields.Str(allow_none=True)
    photo = fields.Str(allow_none=True)
    post_type = fields.Str(data_key='postType')
    repost_of = fields.Str(data_key='repostOf', allow_none=True)
    report_count = fields.Int(data_key='reportCount')
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt', allow_none=True)
    user = fields.Nested(AuthorSummarySchema, allow_none=True)
    original_post = fields.Nested(
        lambda: PostResponseSchema(exclude=('original_post',)),
        data_key='originalPost',
        allow_none=True,
    )
