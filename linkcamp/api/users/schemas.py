# linkcamp/api/users/schemas.py
from marshmallow import Schema, fields, validate, pre_load, EXCLUDE

from linkcamp.models.user import Approval, Role

_ROLES = [role.value for role in Role]
_APPROVALS = [approval.value for approval in Approval]


# --- 재사용을 위한 중첩 스키마 ---
class AuthorSummarySchema(Schema):
    """게시물/댓글 응답에 포함될 작성자 요약 정보."""
    name = fields.Str(allow_none=True)
    photo = fields.Str(allow_none=True)
    role = fields.Str(data_key='userType', allow_none=True)


# --- API 요청 스키마 ---
class _NameInputSchema(Schema):
    """표시 이름의 앞뒤 공백을 검증 전에 제거합니다. 공백뿐인 이름은 길이 검증에서 거부됩니다."""
    @pre_load
    def strip_name(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('name'), str):
            data = {**data, 'name': data['name'].strip()}
        return data


class RegistrationSchema(_NameInputSchema):
    """POST /users (multipart) 요청 본문. email 은 토큰에서 가져옵니다."""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    role = fields.Str(data_key='userType', load_default=Role.MEMBER.value,
                      validate=validate.OneOf([Role.MEMBER.value, Role.TEACHER.value]))
    gender = fields.Str(allow_none=True)
    department = fields.Str(allow_none=True)
    session = fields.Str(allow_none=True)
    student_id = fields.Str(data_key='studentId', allow_none=True)


class NameUpdateSchema(_NameInputSchema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))


class ProfileUpdateSchema(_NameInputSchema):
    """PATCH /user/profile 요청 본문. 모든 필드는 선택입니다."""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(min=1, max=100))
    gender = fields.Str(allow_none=True)
    department = fields.Str(allow_none=True)
    session = fields.Str(allow_none=True)
    student_id = fields.Str(data_key='studentId', allow_none=True)


class LoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)


class AdminUserUpdateSchema(Schema):
    """PATCH /admin/users/<email> 요청 본문. 승인 상태(verify) 또는 역할(userType)."""
    approval = fields.Str(data_key='verify', validate=validate.OneOf(_APPROVALS))
    role = fields.Str(data_key='userType', validate=validate.OneOf(_ROLES))


class AdminUserQuerySchema(Schema):
    """GET /admin/users 쿼리 파라미터."""
    class Meta:
        unknown = EXCLUDE

    role = fields.Str(validate=validate.OneOf(_ROLES))
    approval = fields.Str(data_key='verify', validate=validate.OneOf(_APPROVALS))
    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    limit = fields.Int(load_default=20, validate=validate.Range(min=1, max=100))
    sort = fields.Str(load_default='name_asc', validate=validate.OneOf(['name_asc', 'name_desc']))


# --- API 응답 스키마 ---
class ProfileResponseSchema(Schema):
    email = fields.Str()
    name = fields.Str()
    photo = fields.Str(allow_none=True)
    role = fields.Str(data_key='userType')
    approval = fields.Str(data_key='verify')
    gender = fields.Str(allow_none=True)
    department = fields.Str(allow_none=True)
    session = fields.Str(allow_none=True)
    student_id = fields.Str(data_key='studentId', allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')
