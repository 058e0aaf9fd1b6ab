from datetime import date, datetime
from typing import Any, Dict, List

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, pre_load, validate, validates

from errors import MAX_IDENTIFIER, ApiError

MAX_TITLE_LENGTH = 255
MAX_DURATION_MINUTES = 500
MIN_YEAR = 1900
YEARS_AHEAD = 5


def _messages(name: str, kind: str = "integer") -> Dict[str, str]:
    if kind == "integer":
        invalid = f"{name} must be a valid integer."
    elif kind == "datetime":
        invalid = f"{name} must be a valid ISO 8601 date-time."
    elif kind == "boolean":
        invalid = f"{name} must be a boolean."
    else:
        invalid = f"{name} must be a string."
    return {
        "required": f"{name} is required.",
        "null": f"{name} is required.",
        "invalid": invalid,
    }


def local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to server-local wall time without tzinfo."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


class _BaseSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def strip_strings(self, data: Any, **kwargs):
        if isinstance(data, dict):
            data = {key: value.strip() if isinstance(value, str) else value for key, value in data.items()}
        return data


class WholeNumber(fields.Integer):
    """Integer field that rejects fractional numbers instead of truncating them."""

    def _validated(self, value):
        if isinstance(value, float) and not value.is_integer():
            raise self.make_error("invalid")
        return super()._validated(value)


class MovieSchema(_BaseSchema):
    id = fields.Int(dump_only=True)
    title = fields.Str(required=True, error_messages=_messages("title", "string"))
    duration = WholeNumber(required=True, error_messages=_messages("duration"))
    year = WholeNumber(required=True, error_messages=_messages("year"))

    @validates("title")
    def validate_title(self, value: str, **kwargs):
        if not value:
            raise ValidationError("title is required.")
        if len(value) > MAX_TITLE_LENGTH:
            raise ValidationError(f"title cannot exceed {MAX_TITLE_LENGTH} characters.")

    @validates("duration")
    def validate_duration(self, value: int, **kwargs):
        if value <= 0:
            raise ValidationError("duration must be greater than 0 minutes.")
        if value > MAX_DURATION_MINUTES:
            raise ValidationError(f"duration cannot exceed {MAX_DURATION_MINUTES} minutes.")

    @validates("year")
    def validate_year(self, value: int, **kwargs):
        latest = date.today().year + YEARS_AHEAD
        if value < MIN_YEAR or value > latest:
            raise ValidationError(f"year must be between {MIN_YEAR} and {latest}.")


class RoomSchema(_BaseSchema):
    id = fields.Int(dump_only=True)
    name = fields.Str(required=True, error_messages=_messages("name", "string"))
    type = fields.Str(required=True, error_messages=_messages("type", "string"))
    active = fields.Bool(load_default=True, error_messages=_messages("active", "boolean"))

    @validates("name")
    def validate_name(self, value: str, **kwargs):
        if not value:
            raise ValidationError("name is required.")

    @validates("type")
    def validate_type(self, value: str, **kwargs):
        if not value:
            raise ValidationError("type is required.")


class ShowtimeSchema(_BaseSchema):
    id = fields.Int(dump_only=True)
    label = fields.Str(required=True)
    time_of_day = fields.Time(data_key="time", required=True)


def _positive_identifier(name: str):
    return validate.Range(min=1, max=MAX_IDENTIFIER, error=f"{name} must be a positive integer.")


class ScreeningSchema(_BaseSchema):
    id = fields.Int(dump_only=True)
    scheduled_at = fields.DateTime(data_key="datetime", required=True, error_messages=_messages("datetime", "datetime"))
    active = fields.Bool(load_default=True, error_messages=_messages("active", "boolean"))
    movie_id = WholeNumber(
        data_key="movieId",
        required=True,
        validate=_positive_identifier("movieId"),
        error_messages=_messages("movieId"),
    )
    room_id = WholeNumber(
        data_key="roomId",
        required=True,
        validate=_positive_identifier("roomId"),
        error_messages=_messages("roomId"),
    )
    showtime_id = WholeNumber(
        data_key="showtimeId",
        required=True,
        validate=_positive_identifier("showtimeId"),
        error_messages=_messages("showtimeId"),
    )

    # display data of the related rows, responses only
    movie_title = fields.Str(attribute="movie.title", data_key="movieTitle", dump_only=True)
    movie_duration = fields.Int(attribute="movie.duration", data_key="movieDuration", dump_only=True)
    room_name = fields.Str(attribute="room.name", data_key="roomName", dump_only=True)
    room_type = fields.Str(attribute="room.type", data_key="roomType", dump_only=True)
    showtime_label = fields.Str(attribute="showtime.label", data_key="showtimeLabel", dump_only=True)
    showtime_time = fields.Time(attribute="showtime.time_of_day", data_key="showtimeTime", dump_only=True)

    @validates("scheduled_at")
    def validate_scheduled_at(self, value: datetime, **kwargs):
        if local_naive(value) <= datetime.now():
            raise ValidationError("datetime must be in the future.")

    @post_load
    def normalize_scheduled_at(self, data: Dict[str, Any], **kwargs):
        data["scheduled_at"] = local_naive(data["scheduled_at"]).replace(microsecond=0)
        return data


def flatten_errors(schema: Schema, messages: Any) -> List[str]:
    """Turn marshmallow's error mapping into a flat list, in field order."""
    if not isinstance(messages, dict):
        return [str(messages)]

    remaining = dict(messages)
    errors: List[str] = []
    for name, field in schema.fields.items():
        key = field.data_key or name
        errors.extend(_as_list(remaining.pop(key, [])))
    for value in remaining.values():
        errors.extend(_as_list(value))
    return errors


def _as_list(value: Any) -> List[str]:
    if isinstance(value, dict):
        return [message for nested in value.values() for message in _as_list(nested)]
    if isinstance(value, (list, tuple)):
        return [str(message) for message in value]
    return [str(value)]


def validate_movie(payload: Any) -> List[str]:
    return flatten_errors(movie_schema, movie_schema.validate(payload))


def validate_room(payload: Any) -> List[str]:
    return flatten_errors(room_schema, room_schema.validate(payload))


def validate_screening(payload: Any) -> List[str]:
    return flatten_errors(screening_schema, screening_schema.validate(payload))


def load_valid(schema: Schema, payload: Any) -> Dict[str, Any]:
    """Load a payload or raise ApiError carrying every validation message."""
    try:
        return schema.load(payload)
    except ValidationError as exc:
        raise ApiError.validation(flatten_errors(schema, exc.messages)) from exc


movie_schema = MovieSchema()
movies_schema = MovieSchema(many=True)
room_schema = RoomSchema()
rooms_schema = RoomSchema(many=True)
showtimes_schema = ShowtimeSchema(many=True)
screening_schema = ScreeningSchema()
screenings_schema = ScreeningSchema(many=True)
