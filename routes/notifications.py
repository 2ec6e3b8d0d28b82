"""In-app notifications for the signed-in user."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import NotFound

from models import Notification, db
from utils.auth import require_user
from utils.request_validation import parse_bool

notifications_bp = Blueprint("notifications", __name__)


@notifications_bp.route("", methods=["GET"])
@jwt_required()
def list_notifications():
    user = require_user()
    query = Notification.query.filter_by(user_id=user.id)
    if parse_bool(request.args.get("unread")):
        query = query.filter_by(is_read=False)
    notifications = query.order_by(
        Notification.created_at.desc(), Notification.id.desc()
    ).all()
    return jsonify([notification.to_dict() for notification in notifications])


@notifications_bp.route("/<int:notification_id>/read", methods=["POST"])
@jwt_required()
def mark_read(notification_id: int):
    user = require_user()
    notification = db.session.get(Notification, notification_id)
    if notification is None or notification.user_id != user.id:
        raise NotFound("Notification not found.")
    notification.is_read = True
    db.session.commit()
    return jsonify(notification.to_dict())
