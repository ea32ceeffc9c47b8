# linkcamp/api/reports/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, g
from marshmallow import ValidationError

from linkcamp.api.reports.schemas import (
    ReportCreateSchema, CommentReportCreateSchema, ReportQueueQuerySchema,
    ReportedPostSchema, ReportedCommentSchema,
)
from linkcamp.core.exceptions import ApiError
from linkcamp.core.security import firebase_required
from linkcamp.models.report import ReportKind

reports_bp = Blueprint('reports_bp', __name__)


def _validation_response(err: ValidationError):
    return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400


@reports_bp.route('/reports', methods=['POST'])
@firebase_required(require_approved=True)
def report_post():
    moderation_service = current_app.services['moderation']
    """
    게시물을 신고합니다.
    - 같은 사용자가 같은 게시물을 다시 신고하면 400 을 반환합니다.
    """
    try:
        data = ReportCreateSchema().load(request.get_json(silent=True) or {})
        moderation_service.report_item(data['post_id'], g.user['email'], data['reason'])
        return jsonify({"message": "Post reported"}), 201
    except ValidationError as err:
        return _validation_response(err)
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"게시물 신고 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@reports_bp.route('/comment-reports', methods=['POST'])
@firebase_required(require_approved=True)
def report_comment():
    moderation_service = current_app.services['moderation']
    try:
        data = CommentReportCreateSchema().load(request.get_json(silent=True) or {})
        moderation_service.report_comment(data['comment_id'], g.user['email'], data['reason'])
        return jsonify({"message": "Comment reported"}), 201
    except ValidationError as err:
        return _validation_response(err)
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"댓글 신고 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


# --- 관리자 신고 처리 ---

def _queue_response(kind: str):
    moderation_service = current_app.services['moderation']
    try:
        query = ReportQueueQuerySchema().load(request.args.to_dict())
        limit = query.get('limit') or current_app.config['MODERATION_PAGE_LIMIT']
        target_filter = query.get('post_id') if kind == ReportKind.POST.value else query.get('comment_id')
        result = moderation_service.queue(kind, query['page'], limit, target_filter)

        schema = ReportedPostSchema(many=True) if kind == ReportKind.POST.value else ReportedCommentSchema(many=True)
        return jsonify({"items": schema.dump(result['items']), "total": result['total']}), 200
    except ValidationError as err:
        return _validation_response(err)
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"신고 목록 조회 중 오류 발생 ({kind}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


def _action_response(kind: str, target_id: str, action: str):
    moderation_service = current_app.services['moderation']
    try:
        if action == 'purge':
            moderation_service.purge(target_id, kind)
            message = "Post deleted" if kind == ReportKind.POST.value else "Comment deleted"
        else:
            moderation_service.dismiss(target_id, kind)
            message = "Reports dismissed"
        logging.info(f"관리자 {g.user['email']} 신고 처리: {action} {kind} {target_id}")
        return jsonify({"message": message}), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"신고 처리 중 오류 발생 ({action} {kind} {target_id}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@reports_bp.route('/admin/reported-posts', methods=['GET'])
@firebase_required(roles=['admin'])
def get_reported_posts():
    return _queue_response(ReportKind.POST.value)


@reports_bp.route('/admin/reported-posts/<string:post_id>', methods=['DELETE'])
@firebase_required(roles=['admin'])
def purge_reported_post(post_id: str):
    return _action_response(ReportKind.POST.value, post_id, 'purge')


@reports_bp.route('/admin/reported-posts/<string:post_id>/dismiss', methods=['DELETE'])
@firebase_required(roles=['admin'])
def dismiss_post_reports(post_id: str):
    return _action_response(ReportKind.POST.value, post_id, 'dismiss')


@reports_bp.route('/admin/reported-comments', methods=['GET'])
@firebase_required(roles=['admin'])
def get_reported_comments():
    return _queue_response(ReportKind.COMMENT.value)


@reports_bp.route('/admin/reported-comments/<string:comment_id>', methods=['DELETE'])
@firebase_required(roles=['admin'])
def purge_reported_comment(comment_id: str):
    return _action_response(ReportKind.COMMENT.value, comment_id, 'purge')


@reports_bp.route('/admin/reported-comments/<string:comment_id>/dismiss', methods=['DELETE'])
@firebase_required(roles=['admin'])
def dismiss_comment_reports(comment_id: str):
    return _action_response(ReportKind.COMMENT.value, comment_id, 'dismiss')
