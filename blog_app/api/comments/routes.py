# blog_app/api/comments/routes.py
import json
import logging
import queue
from flask import Blueprint, request, jsonify, Response, current_app, g, stream_with_context
from marshmallow import ValidationError

from blog_app.api.comments.schemas import CommentCreateSchema, CommentResponseSchema
from blog_app.core.security import session_required


comments_bp = Blueprint('comments_bp', __name__)

@comments_bp.route('/posts/<string:post_id>/comments', methods=['GET'])
def get_comments(post_id: str):
    """특정 게시글의 댓글 목록을 최신순으로 조회합니다."""
    comment_service = current_app.services['comments']
    comments = comment_service.get_comments(post_id)
    return jsonify({"comments": CommentResponseSchema(many=True).dump(comments)}), 200


@comments_bp.route('/posts/<string:post_id>/comments', methods=['POST'])
@session_required()
def create_comment(post_id: str):
    """
    특정 게시글에 새로운 댓글을 작성합니다.
    - 발행된 게시글에만 작성할 수 있습니다.
    - 성공 시, 생성된 댓글 정보를 201 Created 상태 코드와 함께 반환합니다.
    """
    comment_service = current_app.services['comments']
    try:
        data = CommentCreateSchema().load(request.get_json() or {})
        new_comment = comment_service.create_comment(post_id, data['content'], g.session.user)
        return jsonify(CommentResponseSchema().dump(new_comment)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e: # 게시물이 없거나 발행되지 않은 경우
        return jsonify({"error_code": "RESOURCE_NOT_FOUND", "message": str(e)}), 404


@comments_bp.route('/posts/<string:post_id>/comments/<string:comment_id>', methods=['DELETE'])
@session_required()
def delete_comment(post_id: str, comment_id: str):
    """특정 댓글을 삭제합니다. (작성자 본인만 가능)"""
    comment_service = current_app.services['comments']
    try:
        comment_service.delete_comment(post_id, comment_id, g.session.user_id)
        return Response(status=204)
    except ValueError as e:
        return jsonify({"error_code": "RESOURCE_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403


@comments_bp.route('/posts/<string:post_id>/comments/stream', methods=['GET'])
def stream_comments(post_id: str):
    """
    댓글 목록을 Server-Sent Events로 실시간 전송합니다.
    구독 직후 현재 목록을 한 번 보내고, 이후 변경될 때마다 전체 목록을 다시 보냅니다.
    클라이언트 연결이 끊기면 구독을 해제합니다.
    """
    comment_service = current_app.services['comments']
    keepalive_seconds = current_app.config['COMMENT_STREAM_KEEPALIVE_SECONDS']
    events = queue.Queue()

    subscription = comment_service.subscribe(post_id, events.put, on_error=events.put)

    def generate():
        try:
            while True:
                try:
                    payload = events.get(timeout=keepalive_seconds)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue

                if isinstance(payload, Exception):
                    error = {"error_code": "STREAM_FAILED", "message": "댓글 실시간 갱신 중 오류가 발생했습니다."}
                    yield f"event: error\ndata: {json.dumps(error, ensure_ascii=False)}\n\n"
                    break

                comments = CommentResponseSchema(many=True).dump(payload)
                yield f"event: comments\ndata: {json.dumps({'comments': comments}, ensure_ascii=False)}\n\n"
        finally:
            subscription.unsubscribe()
            logging.info(f"댓글 스트림 종료 (post_id: {post_id})")

    return Response(
        stream_with_context(generate()),
        mimetype='text/event-stream',
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
