# linkcamp/utils/pagination.py
"""피드 커서 페이지네이션과 쿼리 파라미터 파싱 헬퍼."""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from linkcamp.utils.datetime_utils import DateTimeUtils

FEED_FILTERS = ('all', 'general', 'teacher', 'admin')

# uuid4 문자열 및 Firestore 자동 ID 를 모두 허용합니다.
_DOCUMENT_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,128}$')


@dataclass
class Pagination:
    paginated: bool
    limit: int
    cursor: Optional[datetime]
    feed_type: str = 'all'


def parse_pagination(args: Mapping[str, Any], default_limit: int = 20, max_limit: int = 50) -> Pagination:
    """
    `type`, `cursor`, `limit` 쿼리 파라미터를 해석합니다.
    - 셋 중 하나라도 있으면 페이지네이션 응답({items, nextCursor})을 사용합니다.
    - limit 은 [1, max_limit] 로 보정되고, 숫자가 아니면 기본값을 사용합니다.
    - 알 수 없는 type 은 'all' 로 취급합니다.
    """
    paginated = any(key in args for key in ('limit', 'cursor', 'type'))

    try:
        limit = int(args.get('limit'))
        limit = min(max_limit, max(1, limit))
    except (TypeError, ValueError):
        limit = default_limit

    feed_type = args.get('type')
    if feed_type not in FEED_FILTERS:
        feed_type = 'all'

    return Pagination(
        paginated=paginated,
        limit=limit,
        cursor=DateTimeUtils.parse_cursor(args.get('cursor')),
        feed_type=feed_type,
    )


def build_page(items: List[Dict[str, Any]], limit: int, time_field: str = 'created_at') -> Dict[str, Any]:
    """페이지가 가득 찼을 때만 마지막 항목의 시간으로 nextCursor 를 만듭니다."""
    next_cursor = None
    if items and len(items) == limit and items[-1].get(time_field):
        next_cursor = DateTimeUtils.to_iso_string(items[-1][time_field])
    return {"items": items, "nextCursor": next_cursor}


def parse_ids_param(raw_ids: Optional[str]) -> List[str]:
    """'a,b,c' 형식의 ids 파라미터를 중복 없이 순서를 유지한 리스트로 변환합니다."""
    if not raw_ids or not isinstance(raw_ids, str):
        return []
    ids = [item.strip() for item in raw_ids.split(',')]
    return list(dict.fromkeys(item for item in ids if item))


def is_valid_document_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_DOCUMENT_ID_PATTERN.match(value))


def chunked(values: List[Any], size: int = 30):
    """Firestore 'in' 쿼리 제한(30개)에 맞춰 리스트를 나눕니다."""
    for i in range(0, len(values), size):
        yield values[i:i + size]
