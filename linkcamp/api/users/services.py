# linkcamp/api/users/services.py
import logging
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from werkzeug.datastructures import FileStorage

from linkcamp.core.exceptions import InvalidInputError, NotFoundError, StorageError
from linkcamp.models.user import Approval, Profile, Role, SELF_EDITABLE_FIELDS
from linkcamp.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


def _is_valid_email_key(email: Any) -> bool:
    # email 이 곧 문서 ID 이므로 경로 구분자는 허용하지 않습니다.
    return isinstance(email, str) and bool(email.strip()) and '/' not in email


def to_author_summary(profile: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """게시물/댓글 응답에 붙는 작성자 요약 정보."""
    if not profile:
        return None
    return {"name": profile.get('name'), "photo": profile.get('photo'), "role": profile.get('role')}


class ProfileService:
    """
    사용자 프로필(users 컬렉션) 관련 비즈니스 로직을 담당하는 서비스 클래스.
    다른 모든 서비스가 작성자 정보와 권한 확인을 위해 이 서비스를 사용합니다.
    """
    def __init__(self, db=None, storage_service=None, broadcaster=None):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')
        self.storage_service = storage_service
        self.broadcaster = broadcaster

    # --- 조회 ---
    def get_profile(self, email: str) -> Optional[Dict[str, Any]]:
        if not _is_valid_email_key(email):
            return None
        doc = self.users_ref.document(email).get()
        if not doc.exists:
            return None
        return DateTimeUtils.from_firestore(doc.to_dict())

    def get_summaries(self, emails: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """페이지에 등장하는 email 마다 한 번씩만, 일괄 조회(get_all)합니다."""
        keys = [email for email in dict.fromkeys(emails) if _is_valid_email_key(email)]
        if not keys:
            return {}
        summaries = {}
        for doc in self.db.get_all([self.users_ref.document(email) for email in keys]):
            if doc.exists:
                summaries[doc.id] = to_author_summary(doc.to_dict())
        return summaries

    # --- 가입 ---
    def register(self, email: str, data: Dict[str, Any], photo: Optional[FileStorage] = None) -> Dict[str, Any]:
        """
        최초 가입 시 프로필을 생성합니다.
        - 관리자 역할은 스스로 지정할 수 없고, 승인 상태는 항상 pending 으로 시작합니다.
        - 사진은 중복 가입 검사를 통과한 뒤에 업로드합니다.
        """
        if not _is_valid_email_key(email):
            raise InvalidInputError("Invalid email")
        if self.users_ref.document(email).get().exists:
            raise InvalidInputError("User already exists")

        role = data.get('role') or Role.MEMBER.value
        if role == Role.ADMIN.value:
            role = Role.MEMBER.value

        photo_url = self._upload(photo, email)

        profile = Profile(
            email=email,
            name=data['name'],
            photo=photo_url,
            role=role,
            approval=Approval.PENDING.value,
            gender=data.get('gender'),
            department=data.get('department'),
            session=data.get('session'),
            student_id=data.get('student_id'),
        )
        profile_data = DateTimeUtils.for_firestore(asdict(profile))
        self.users_ref.document(email).set(profile_data)
        logger.info(f"새 프로필 생성: {email} ({role})")
        return profile_data

    # --- 본인 수정 ---
    def update_name(self, email: str, name: str) -> Dict[str, Any]:
        return self._update(email, {'name': name}, broadcast=True)

    def update_photo(self, email: str, photo: Optional[FileStorage]) -> Dict[str, Any]:
        if not photo:
            raise InvalidInputError("No photo uploaded")
        self._require(email)
        return self._update(email, {'photo': self._upload(photo, email)}, broadcast=True)

    def update_profile(self, email: str, fields: Dict[str, Any], photo: Optional[FileStorage] = None) -> Dict[str, Any]:
        update = {key: value for key, value in fields.items() if key in SELF_EDITABLE_FIELDS and value is not None}
        if not update and not photo:
            raise InvalidInputError("No fields to update")
        self._require(email)
        if photo:
            update['photo'] = self._upload(photo, email)
        return self._update(email, update, broadcast=True)

    # --- 관리자 ---
    def list_profiles(self, role: Optional[str], approval: Optional[str], page: int, limit: int,
                      sort: str = 'name_asc') -> Tuple[List[Dict[str, Any]], int]:
        query = self.users_ref
        if role:
            query = query.where(filter=FieldFilter('role', '==', role))
        if approval:
            query = query.where(filter=FieldFilter('approval', '==', approval))

        total = query.count().get()[0][0].value

        direction = firestore.Query.DESCENDING if sort == 'name_desc' else firestore.Query.ASCENDING
        page_query = query.order_by('name', direction=direction).offset((page - 1) * limit).limit(limit)
        items = [DateTimeUtils.from_firestore(doc.to_dict()) for doc in page_query.stream()]
        return items, total

    def set_account_state(self, email: str, approval: Optional[str] = None, role: Optional[str] = None) -> Dict[str, Any]:
        update = {}
        if approval:
            update['approval'] = approval
        if role:
            update['role'] = role
        if not update:
            raise InvalidInputError("No fields to update")
        return self._update(email, update, broadcast=bool(role))

    def _require(self, email: str):
        if not _is_valid_email_key(email):
            raise InvalidInputError("Invalid email")
        user_ref = self.users_ref.document(email)
        if not user_ref.get().exists:
            raise NotFoundError("User not found")
        return user_ref

    def _upload(self, photo: Optional[FileStorage], email: str) -> Optional[str]:
        if not photo or not photo.filename:
            return None
        if self.storage_service is None:
            raise StorageError("Storage service is not configured")
        return self.storage_service.upload_image(photo, email, "user_profile")

    def _update(self, email: str, update: Dict[str, Any], broadcast: bool) -> Dict[str, Any]:
        user_ref = self._require(email)
        user_ref.update(update)
        updated = DateTimeUtils.from_firestore(user_ref.get().to_dict())
        if broadcast and self.broadcaster:
            # 클라이언트에 캐시된 작성자 요약 정보를 갱신하도록 알립니다.
            self.broadcaster.user_updated(updated)
        return updated
