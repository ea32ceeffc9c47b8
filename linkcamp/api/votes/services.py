# linkcamp/api/votes/services.py
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from google.cloud.firestore_v1.base_query import FieldFilter

from linkcamp.core.exceptions import InvalidInputError, NotFoundError
from linkcamp.models.vote import Vote, VoteType, vote_document_id
from linkcamp.utils.datetime_utils import DateTimeUtils
from linkcamp.utils.pagination import chunked, is_valid_document_id

logger = logging.getLogger(__name__)

# 투표 결과
ADDED = "added"
CHANGED = "changed"
REMOVED = "removed"


class VoteService:
    """
    게시물 추천/비추천 투표를 담당하는 서비스 클래스.
    (게시물, 투표자) 조합이 문서 ID 이므로 한 쌍당 투표 문서는 최대 하나입니다.
    """
    def __init__(self, content_store, broadcaster=None):
        self.store = content_store
        self.votes_ref = content_store.db.collection('votes')
        self.broadcaster = broadcaster

    def cast_vote(self, post_id: str, voter_email: str, vote_type: str,
                  origin_socket_id: Optional[str] = None) -> Dict[str, Any]:
        """
        투표를 토글합니다.
        - 기존 투표 없음: 추가 (added)
        - 같은 방향: 취소 (removed)
        - 다른 방향: 변경 (changed)
        읽기 후 쓰기이므로 같은 사용자의 동시 토글은 마지막 쓰기가 남습니다.
        """
        if vote_type not in (VoteType.UPVOTE.value, VoteType.DOWNVOTE.value):
            raise InvalidInputError("Invalid vote type")
        located = self.store.locate(post_id)
        if located is None:
            raise NotFoundError("Post not found")

        vote_ref = self.votes_ref.document(vote_document_id(post_id, voter_email))
        existing = vote_ref.get()
        previous = existing.to_dict().get('vote_type') if existing.exists else None

        if previous is None:
            vote = Vote(post_id=post_id, voter_email=voter_email, vote_type=vote_type)
            vote_ref.set(DateTimeUtils.for_firestore(asdict(vote)))
            outcome, current = ADDED, vote_type
        elif previous == vote_type:
            vote_ref.delete()
            outcome, current = REMOVED, None
        else:
            vote_ref.update({'vote_type': vote_type, 'updated_at': DateTimeUtils.now()})
            outcome, current = CHANGED, vote_type
        logger.debug(f"투표 {outcome}: {post_id} ({voter_email}, {previous} -> {current})")

        if self.broadcaster:
            self.broadcaster.vote_changed(
                post_id, voter_email, previous, current, origin_socket_id,
                located.post_type, located.author_email,
            )
        return {"outcome": outcome, "previousVote": previous, "voteType": current}

    # --- 집계 ---
    def counts_for(self, post_ids: List[str]) -> List[Dict[str, Any]]:
        """게시물별 추천/비추천 수. ids 가 비어 있으면 투표가 있는 모든 게시물."""
        totals: Dict[str, Dict[str, int]] = {}
        for doc in self._stream_votes(post_ids):
            data = doc.to_dict()
            entry = totals.setdefault(data['post_id'], {"upvotes": 0, "downvotes": 0})
            if data.get('vote_type') == VoteType.UPVOTE.value:
                entry['upvotes'] += 1
            elif data.get('vote_type') == VoteType.DOWNVOTE.value:
                entry['downvotes'] += 1
        return [{"_id": post_id, **counts} for post_id, counts in totals.items()]

    def counts_for_one(self, post_id: str) -> Dict[str, int]:
        self.store.validate_id(post_id)
        counts = self.counts_for([post_id])
        if not counts:
            return {"upvotes": 0, "downvotes": 0}
        return {"upvotes": counts[0]['upvotes'], "downvotes": counts[0]['downvotes']}

    def votes_by_user(self, voter_email: str, post_ids: List[str]) -> List[Dict[str, Any]]:
        """요청자 본인의 투표 목록."""
        query = self.votes_ref.where(filter=FieldFilter('voter_email', '==', voter_email))
        wanted = set(post_ids)
        votes = []
        for doc in query.stream():
            data = doc.to_dict()
            if wanted and data.get('post_id') not in wanted:
                continue
            votes.append({"postId": data.get('post_id'), "voteType": data.get('vote_type')})
        return votes

    def _stream_votes(self, post_ids: List[str]):
        if not post_ids:
            yield from self.votes_ref.stream()
            return
        for chunk in chunked([pid for pid in post_ids if is_valid_document_id(pid)]):
            yield from self.votes_ref.where(filter=FieldFilter('post_id', 'in', chunk)).stream()
