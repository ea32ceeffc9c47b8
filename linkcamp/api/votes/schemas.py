# linkcamp/api/votes/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from linkcamp.models.vote import VoteType


class VoteCreateSchema(Schema):
    """POST /votes 요청 본문."""
    class Meta:
        unknown = EXCLUDE

    post_id = fields.Str(data_key='postId', required=True, validate=validate.Length(min=1))
    vote_type = fields.Str(data_key='voteType', required=True,
                           validate=validate.OneOf([vote_type.value for vote_type in VoteType]))
    # 요청을 보낸 클라이언트의 소켓 ID. 본인 화면의 중복 반영을 막는 데 사용됩니다.
    origin_socket_id = fields.Str(data_key='originSocketId', load_default=None, allow_none=True)
