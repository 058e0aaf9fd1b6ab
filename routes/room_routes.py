import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import ApiError, ErrorKind, parse_identifier
from models import Room, db
from schemas import load_valid, room_schema, rooms_schema

logger = logging.getLogger(__name__)

room_bp = Blueprint("room_api", __name__)


def _get_room_or_404(raw_id):
    room_id = parse_identifier(raw_id, "Room")
    room = db.session.get(Room, room_id)
    if not room:
        logger.warning("Room %s not found", room_id)
        raise ApiError.not_found("Room", room_id)
    return room


@room_bp.route("/rooms", methods=["GET"])
def list_rooms():
    rooms = Room.query.order_by(Room.id.asc()).all()
    return jsonify({"rooms": rooms_schema.dump(rooms), "count": len(rooms)})


@room_bp.route("/rooms/<room_id>", methods=["GET"])
def get_room(room_id):
    return jsonify({"room": room_schema.dump(_get_room_or_404(room_id))})


@room_bp.route("/rooms", methods=["POST"])
def create_room():
    data = load_valid(room_schema, request.get_json(silent=True) or {})

    room = Room(**data)
    try:
        db.session.add(room)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to create room")
        raise ApiError.store_failure("Failed to create room", exc) from exc

    db.session.refresh(room)
    logger.info("Room %s created: %s", room.id, room.name)
    return jsonify({"message": "Room created successfully", "id": room.id, "room": room_schema.dump(room)}), 201


@room_bp.route("/rooms/<room_id>", methods=["PUT"])
def update_room(room_id):
    parse_identifier(room_id, "Room")
    data = load_valid(room_schema, request.get_json(silent=True) or {})
    room = _get_room_or_404(room_id)

    room.name = data["name"]
    room.type = data["type"]
    room.active = data["active"]

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to update room %s", room.id)
        raise ApiError.store_failure("Failed to update room", exc) from exc

    db.session.refresh(room)
    logger.info("Room %s updated", room.id)
    return jsonify({"message": "Room updated successfully", "room": room_schema.dump(room)})


@room_bp.route("/rooms/<room_id>", methods=["DELETE"])
def delete_room(room_id):
    room = _get_room_or_404(room_id)
    deleted_id = room.id

    try:
        db.session.delete(room)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Room %s is still referenced by screenings", deleted_id)
        raise ApiError(ErrorKind.RESOURCE_IN_USE, "Room cannot be deleted because existing screenings use it") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to delete room %s", deleted_id)
        raise ApiError.store_failure("Failed to delete room", exc) from exc

    logger.info("Room %s deleted", deleted_id)
    return jsonify({"message": "Room deleted successfully", "room_id": deleted_id})
