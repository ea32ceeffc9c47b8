# linkcamp/utils/__init__.py
"""
유틸리티 모듈 패키지

이 패키지는 프로젝트 전체에서 공통으로 사용되는 유틸리티 함수들을 포함합니다.
"""

from .datetime_utils import DateTimeUtils
from .pagination import (
    Pagination,
    parse_pagination, build_page, parse_ids_param,
    is_valid_document_id, chunked,
)

__all__ = [
    'DateTimeUtils',
    'Pagination',
    'parse_pagination', 'build_page', 'parse_ids_param',
    'is_valid_document_id', 'chunked',
]
