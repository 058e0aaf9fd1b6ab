import os
import sys
from datetime import datetime, time, timedelta
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("SECRET_KEY", "test")
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from app import app, db
from models import Movie, Room, Screening, Showtime


def future_slot(days=30, hour=18, minute=0):
    """A whole-minute datetime safely in the future."""
    day = datetime.now().date() + timedelta(days=days)
    return datetime.combine(day, time(hour, minute))


@pytest.fixture()
def client():
    app.config.update(TESTING=True)
    with app.app_context():
        db.drop_all()
        db.create_all()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def make_movie(client):
    def _make(title="Dune", duration=155, year=2021):
        movie = Movie(title=title, duration=duration, year=year)
        db.session.add(movie)
        db.session.commit()
        return movie

    return _make


@pytest.fixture()
def make_room(client):
    def _make(name="Sala 1", type="2D", active=True):
        room = Room(name=name, type=type, active=active)
        db.session.add(room)
        db.session.commit()
        return room

    return _make


@pytest.fixture()
def make_showtime(client):
    def _make(label="Evening", time_of_day=time(20, 0)):
        showtime = Showtime(label=label, time_of_day=time_of_day)
        db.session.add(showtime)
        db.session.commit()
        return showtime

    return _make


@pytest.fixture()
def make_screening(make_movie, make_room, make_showtime):
    def _make(scheduled_at=None, active=True, movie=None, room=None, showtime=None):
        screening = Screening(
            scheduled_at=scheduled_at or future_slot(),
            active=active,
            movie_id=(movie or make_movie()).id,
            room_id=(room or make_room()).id,
            showtime_id=(showtime or make_showtime()).id,
        )
        db.session.add(screening)
        db.session.commit()
        return screening

    return _make
