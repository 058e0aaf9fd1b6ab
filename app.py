import logging
import os

from dotenv import load_dotenv
from flask import Flask, render_template

from errors import register_error_handlers
from models import db
from routes.movie_routes import movie_bp
from routes.room_routes import room_bp
from routes.screening_routes import screening_bp

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = Flask(__name__)
# Configure Database
app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", "sqlite:///cinema.db")
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
app.config['SECRET_KEY'] = os.getenv("SECRET_KEY", "dev")
app.json.sort_keys = False

db.init_app(app)

app.register_blueprint(movie_bp)
app.register_blueprint(room_bp)
app.register_blueprint(screening_bp)
register_error_handlers(app, db)

with app.app_context():
    db.create_all()


# -----------------------
# Pages
# -----------------------
@app.route("/")
def home_page():
    return render_template("index.html")

@app.route("/movies/manage")
def manage_movies():
    return render_template("movies.html")

@app.route("/screenings/manage")
def manage_screenings():
    return render_template("screenings.html")


if __name__ == '__main__':
    app.run(debug=True)
