import logging
from datetime import date, datetime, time, timedelta

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import ApiError, ErrorKind, parse_identifier
from models import Movie, Room, Screening, Showtime, db
from scheduling import has_conflict
from schemas import (
    load_valid,
    movies_schema,
    rooms_schema,
    screening_schema,
    screenings_schema,
    showtimes_schema,
)

logger = logging.getLogger(__name__)

screening_bp = Blueprint("screening_api", __name__)

CONFLICT_MESSAGE = "Another active screening is already scheduled in this room at that date and time"


def _get_screening_or_404(raw_id):
    screening_id = parse_identifier(raw_id, "Screening")
    screening = db.session.get(Screening, screening_id)
    if not screening:
        logger.warning("Screening %s not found", screening_id)
        raise ApiError.not_found("Screening", screening_id)
    return screening


def _check_references(data):
    # the store would reject these too, but as a bare foreign key failure
    errors = []
    if db.session.get(Movie, data["movie_id"]) is None:
        errors.append(f"movieId {data['movie_id']} does not match an existing movie.")
    if db.session.get(Room, data["room_id"]) is None:
        errors.append(f"roomId {data['room_id']} does not match an existing room.")
    if db.session.get(Showtime, data["showtime_id"]) is None:
        errors.append(f"showtimeId {data['showtime_id']} does not match an existing showtime.")
    if errors:
        raise ApiError.validation(errors)


def _check_conflict(data, exclude_screening_id=None):
    if not data["active"]:
        return
    if has_conflict(db.session, data["room_id"], data["scheduled_at"], exclude_screening_id):
        logger.warning(
            "Schedule conflict for room %s at %s",
            data["room_id"],
            data["scheduled_at"].isoformat(),
        )
        raise ApiError(ErrorKind.SCHEDULE_CONFLICT, CONFLICT_MESSAGE)


def _commit_screening(data, action, exclude_screening_id=None):
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        # a concurrent request may have taken the slot after our check
        if data["active"] and has_conflict(db.session, data["room_id"], data["scheduled_at"], exclude_screening_id):
            logger.warning("Slot for room %s taken concurrently", data["room_id"])
            raise ApiError(ErrorKind.SCHEDULE_CONFLICT, CONFLICT_MESSAGE) from exc
        logger.exception("Failed to %s screening", action)
        raise ApiError.store_failure(f"Failed to {action} screening", exc) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to %s screening", action)
        raise ApiError.store_failure(f"Failed to {action} screening", exc) from exc


@screening_bp.route("/screenings", methods=["GET"])
def list_screenings():
    screenings = Screening.query.order_by(Screening.scheduled_at.desc(), Screening.id.desc()).all()
    return jsonify({"screenings": screenings_schema.dump(screenings), "count": len(screenings)})


@screening_bp.route("/screenings/related", methods=["GET"])
def related_data():
    movies = Movie.query.order_by(Movie.title.asc()).all()
    rooms = Room.query.filter(Room.active.is_(True)).order_by(Room.name.asc()).all()
    showtimes = Showtime.query.order_by(Showtime.time_of_day.asc()).all()
    logger.debug(
        "Related data: %d movies, %d rooms, %d showtimes",
        len(movies),
        len(rooms),
        len(showtimes),
    )
    return jsonify(
        {
            "movies": movies_schema.dump(movies),
            "rooms": rooms_schema.dump(rooms),
            "showtimes": showtimes_schema.dump(showtimes),
        }
    )


@screening_bp.route("/screenings/range", methods=["GET"])
def screenings_in_range():
    start_raw = request.args.get("start")
    end_raw = request.args.get("end")

    errors = []
    start = end = None
    try:
        start = date.fromisoformat(start_raw or "")
    except ValueError:
        errors.append("start must be a date in YYYY-MM-DD format.")
    try:
        end = date.fromisoformat(end_raw or "")
    except ValueError:
        errors.append("end must be a date in YYYY-MM-DD format.")
    if start and end and start > end:
        errors.append("start cannot be after end.")
    if errors:
        raise ApiError.validation(errors)

    # inclusive on both calendar days
    lower = datetime.combine(start, time.min)
    upper = datetime.combine(end + timedelta(days=1), time.min)
    screenings = (
        Screening.query.filter(Screening.scheduled_at >= lower, Screening.scheduled_at < upper)
        .order_by(Screening.scheduled_at.asc(), Screening.id.asc())
        .all()
    )
    return jsonify(
        {
            "screenings": screenings_schema.dump(screenings),
            "count": len(screenings),
            "start": start.isoformat(),
            "end": end.isoformat(),
        }
    )


@screening_bp.route("/screenings/<screening_id>", methods=["GET"])
def get_screening(screening_id):
    return jsonify({"screening": screening_schema.dump(_get_screening_or_404(screening_id))})


@screening_bp.route("/screenings", methods=["POST"])
def create_screening():
    data = load_valid(screening_schema, request.get_json(silent=True) or {})
    _check_references(data)
    _check_conflict(data)

    screening = Screening(**data)
    db.session.add(screening)
    _commit_screening(data, "create")

    db.session.refresh(screening)
    logger.info(
        "Screening %s created: movie %s in room %s at %s",
        screening.id,
        screening.movie_id,
        screening.room_id,
        screening.scheduled_at.isoformat(),
    )
    return (
        jsonify(
            {
                "message": "Screening created successfully",
                "id": screening.id,
                "screening": screening_schema.dump(screening),
            }
        ),
        201,
    )


@screening_bp.route("/screenings/<screening_id>", methods=["PUT"])
def update_screening(screening_id):
    parse_identifier(screening_id, "Screening")
    data = load_valid(screening_schema, request.get_json(silent=True) or {})
    screening = _get_screening_or_404(screening_id)
    _check_references(data)
    # checked before touching the row so autoflush cannot write it early
    _check_conflict(data, exclude_screening_id=screening.id)

    for field, value in data.items():
        setattr(screening, field, value)
    _commit_screening(data, "update", exclude_screening_id=screening.id)

    db.session.refresh(screening)
    logger.info("Screening %s updated", screening.id)
    return jsonify({"message": "Screening updated successfully", "screening": screening_schema.dump(screening)})


@screening_bp.route("/screenings/<screening_id>", methods=["DELETE"])
def delete_screening(screening_id):
    screening = _get_screening_or_404(screening_id)
    deleted_id = screening.id

    try:
        db.session.delete(screening)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to delete screening %s", deleted_id)
        raise ApiError.store_failure("Failed to delete screening", exc) from exc

    logger.info("Screening %s deleted", deleted_id)
    return jsonify({"message": "Screening deleted successfully", "screening_id": deleted_id})
