from datetime import datetime, time, timedelta

from app import app, db
from models import Movie, Room, Screening, Showtime

seed_rooms = [
    {"name": "Sala 1", "type": "2D"},
    {"name": "Sala 2", "type": "3D"},
    {"name": "Sala VIP", "type": "VIP"},
    {"name": "Sala IMAX", "type": "IMAX"},
]

seed_showtimes = [
    {"label": "Matinee", "time_of_day": time(14, 0)},
    {"label": "Afternoon", "time_of_day": time(17, 30)},
    {"label": "Evening", "time_of_day": time(20, 0)},
    {"label": "Late", "time_of_day": time(22, 30)},
]

seed_movies = [
    {"title": "Dune", "duration": 155, "year": 2021},
    {"title": "Oppenheimer", "duration": 180, "year": 2023},
    {"title": "Spirited Away", "duration": 125, "year": 2001},
    {"title": "Roma", "duration": 135, "year": 2018},
]

with app.app_context():

    # ------------------------------
    # Seed Rooms
    # ------------------------------
    for data in seed_rooms:
        if Room.query.filter_by(name=data["name"]).first():
            print(f"Skipping room {data['name']} (already in DB)")
            continue
        db.session.add(Room(**data))
        print(f"Added room: {data['name']}")

    # ------------------------------
    # Seed Showtimes
    # ------------------------------
    for data in seed_showtimes:
        if Showtime.query.filter_by(label=data["label"]).first():
            print(f"Skipping showtime {data['label']} (already in DB)")
            continue
        db.session.add(Showtime(**data))
        print(f"Added showtime: {data['label']}")

    # ------------------------------
    # Seed Movies
    # ------------------------------
    for data in seed_movies:
        if Movie.query.filter_by(title=data["title"]).first():
            print(f"Skipping {data['title']} (already in DB)")
            continue
        db.session.add(Movie(**data))
        print(f"Added movie: {data['title']}")

    db.session.commit()

    # ------------------------------
    # Seed one screening per movie, starting tomorrow
    # ------------------------------
    if not Screening.query.first():
        rooms = Room.query.order_by(Room.id).all()
        showtimes = Showtime.query.order_by(Showtime.time_of_day).all()
        tomorrow = datetime.now().date() + timedelta(days=1)
        for index, movie in enumerate(Movie.query.order_by(Movie.id).all()):
            showtime = showtimes[index % len(showtimes)]
            db.session.add(
                Screening(
                    scheduled_at=datetime.combine(tomorrow, showtime.time_of_day),
                    active=True,
                    movie_id=movie.id,
                    room_id=rooms[index % len(rooms)].id,
                    showtime_id=showtime.id,
                )
            )
            print(f"Scheduled {movie.title} for {tomorrow} {showtime.time_of_day}")
        db.session.commit()

    print("Seeding complete!")
