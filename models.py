from sqlite3 import Connection as SQLite3Connection

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

db = SQLAlchemy()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores foreign keys unless asked per connection
    if isinstance(dbapi_connection, SQLite3Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Movie(db.Model):
    __tablename__ = 'movies'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    duration = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)


class Room(db.Model):
    __tablename__ = 'rooms'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)


class Showtime(db.Model):
    __tablename__ = 'showtimes'
    id = db.Column(db.Integer, primary_key=True)
    label = db.Column(db.String(50), nullable=False)
    time_of_day = db.Column(db.Time, nullable=False)


class Screening(db.Model):
    __tablename__ = 'screenings'
    __table_args__ = (
        # one active screening per room and slot
        db.Index(
            'uq_screenings_active_room_slot',
            'room_id',
            'scheduled_at',
            unique=True,
            sqlite_where=db.text('active = 1'),
            postgresql_where=db.text('active'),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    scheduled_at = db.Column(db.DateTime, nullable=False, index=True)
    active = db.Column(db.Boolean, nullable=False, default=True)
    movie_id = db.Column(db.Integer, db.ForeignKey('movies.id', ondelete='RESTRICT'), nullable=False)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id', ondelete='RESTRICT'), nullable=False)
    showtime_id = db.Column(db.Integer, db.ForeignKey('showtimes.id', ondelete='RESTRICT'), nullable=False)

    movie = db.relationship('Movie')
    room = db.relationship('Room')
    showtime = db.relationship('Showtime')
