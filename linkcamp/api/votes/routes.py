# linkcamp/api/votes/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, g
from marshmallow import ValidationError

from linkcamp.api.votes.schemas import VoteCreateSchema
from linkcamp.api.votes.services import ADDED, REMOVED
from linkcamp.core.exceptions import ApiError
from linkcamp.core.security import firebase_required
from linkcamp.utils.pagination import parse_ids_param

votes_bp = Blueprint('votes_bp', __name__)

_MESSAGES = {ADDED: "Vote added", REMOVED: "Vote removed"}


@votes_bp.route('/votes', methods=['POST'])
@firebase_required(require_approved=True)
def cast_vote():
    vote_service = current_app.services['votes']
    """
    추천/비추천을 토글합니다.
    - 새 투표: 201 "Vote added"
    - 방향 변경: 200 "Vote updated"
    - 같은 방향 재투표: 200 "Vote removed"
    """
    try:
        data = VoteCreateSchema().load(request.get_json(silent=True) or {})
        result = vote_service.cast_vote(
            data['post_id'], g.user['email'], data['vote_type'], data['origin_socket_id']
        )
        status = 201 if result['outcome'] == ADDED else 200
        return jsonify({"message": _MESSAGES.get(result['outcome'], "Vote updated"), **result}), status
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"투표 처리 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@votes_bp.route('/votes', methods=['GET'])
@firebase_required()
def get_my_votes():
    vote_service = current_app.services['votes']
    votes = vote_service.votes_by_user(g.user['email'], parse_ids_param(request.args.get('ids')))
    return jsonify(votes), 200


@votes_bp.route('/votes/<string:post_id>', methods=['GET'])
@firebase_required()
def get_vote_counts_for_post(post_id: str):
    vote_service = current_app.services['votes']
    try:
        return jsonify(vote_service.counts_for_one(post_id)), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code


@votes_bp.route('/voteCounts', methods=['GET'])
@firebase_required()
def get_vote_counts():
    vote_service = current_app.services['votes']
    try:
        counts = vote_service.counts_for(parse_ids_param(request.args.get('ids')))
        return jsonify(counts), 200
    except Exception as e:
        logging.error(f"투표 수 조회 중 오류 발생: {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500
