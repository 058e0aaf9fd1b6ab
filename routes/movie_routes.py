import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import ApiError, ErrorKind, parse_identifier
from models import Movie, db
from schemas import load_valid, movie_schema, movies_schema

logger = logging.getLogger(__name__)

movie_bp = Blueprint("movie_api", __name__)


def _get_movie_or_404(raw_id):
    movie_id = parse_identifier(raw_id, "Movie")
    movie = db.session.get(Movie, movie_id)
    if not movie:
        logger.warning("Movie %s not found", movie_id)
        raise ApiError.not_found("Movie", movie_id)
    return movie


@movie_bp.route("/movies", methods=["GET"])
def list_movies():
    movies = Movie.query.order_by(Movie.id.desc()).all()
    return jsonify({"movies": movies_schema.dump(movies), "count": len(movies)})


@movie_bp.route("/movies/search", methods=["GET"])
def search_movies():
    query = (request.args.get("query") or "").strip()
    if not query:
        raise ApiError.validation(["query cannot be empty."])

    movies = (
        Movie.query.filter(Movie.title.ilike(f"%{query}%"))
        .order_by(Movie.title.asc())
        .all()
    )
    return jsonify({"movies": movies_schema.dump(movies), "count": len(movies), "query": query})


@movie_bp.route("/movies/<movie_id>", methods=["GET"])
def get_movie(movie_id):
    movie = _get_movie_or_404(movie_id)
    return jsonify({"movie": movie_schema.dump(movie)})


@movie_bp.route("/movies", methods=["POST"])
def create_movie():
    data = load_valid(movie_schema, request.get_json(silent=True) or {})

    movie = Movie(**data)
    try:
        db.session.add(movie)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to create movie")
        raise ApiError.store_failure("Failed to create movie", exc) from exc

    # re-read so store-assigned values come back
    db.session.refresh(movie)
    logger.info("Movie %s created: %s", movie.id, movie.title)
    return (
        jsonify({"message": "Movie created successfully", "id": movie.id, "movie": movie_schema.dump(movie)}),
        201,
    )


@movie_bp.route("/movies/<movie_id>", methods=["PUT"])
def update_movie(movie_id):
    parse_identifier(movie_id, "Movie")
    data = load_valid(movie_schema, request.get_json(silent=True) or {})
    movie = _get_movie_or_404(movie_id)

    for field, value in data.items():
        setattr(movie, field, value)

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to update movie %s", movie.id)
        raise ApiError.store_failure("Failed to update movie", exc) from exc

    db.session.refresh(movie)
    logger.info("Movie %s updated", movie.id)
    return jsonify({"message": "Movie updated successfully", "movie": movie_schema.dump(movie)})


@movie_bp.route("/movies/<movie_id>", methods=["DELETE"])
def delete_movie(movie_id):
    movie = _get_movie_or_404(movie_id)
    deleted_id = movie.id

    try:
        db.session.delete(movie)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Movie %s is still referenced by screenings", deleted_id)
        raise ApiError(
            ErrorKind.RESOURCE_IN_USE,
            "Movie cannot be deleted because existing screenings use it",
        ) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to delete movie %s", deleted_id)
        raise ApiError.store_failure("Failed to delete movie", exc) from exc

    logger.info("Movie %s deleted", deleted_id)
    return jsonify({"message": "Movie deleted successfully", "movie_id": deleted_id})
