# linkcamp/api/reports/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from linkcamp.api.comments.schemas import CommentResponseSchema
from linkcamp.api.posts.schemas import PostResponseSchema


class ReportCreateSchema(Schema):
    """POST /reports 요청 본문."""
    class Meta:
        unknown = EXCLUDE

    post_id = fields.Str(data_key='postId', required=True, validate=validate.Length(min=1))
    reason = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500))


class CommentReportCreateSchema(Schema):
    """POST /comment-reports 요청 본문."""
    class Meta:
        unknown = EXCLUDE

    comment_id = fields.Str(data_key='commentId', required=True, validate=validate.Length(min=1))
    reason = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500))


class ReportQueueQuerySchema(Schema):
    """관리자 신고 대기열 쿼리 파라미터 (page, limit, postId | commentId)."""
    class Meta:
        unknown = EXCLUDE

    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    limit = fields.Int(validate=validate.Range(min=1, max=100))
    post_id = fields.Str(data_key='postId')
    comment_id = fields.Str(data_key='commentId')


class ReportedPostSchema(PostResponseSchema):
    latest_report_at = fields.DateTime(data_key='latestReportAt', allow_none=True)


class ReportedCommentSchema(CommentResponseSchema):
    report_count = fields.Int(data_key='reportCount')
    latest_report_at = fields.DateTime(data_key='latestReportAt', allow_none=True)
    post = fields.Nested(PostResponseSchema, allow_none=True)
