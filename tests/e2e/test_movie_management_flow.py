import os
import uuid

import requests
from seleniumbase import BaseCase


BASE_URL = os.getenv("E2E_BASE_URL", "http://localhost:5000").rstrip("/")


class MovieManagementFlowTests(BaseCase):
    # End-to-end coverage of adding, editing and deleting a movie from the manage page.
    movie_title = f"Movie_{uuid.uuid4().hex[:6]}"

    def setUp(self):
        super().setUp()
        self.base_url = BASE_URL

    def _open_manage_movies(self):
        self.open(f"{self.base_url}/movies/manage")
        self.wait_for_element("#moviesPage")
        self.wait_for_text("Manage Movies", "body")

    def _row_for(self, title):
        return f"//tr[td[contains(@class,'movie-title')][text()='{title}']]"

    def _fill_movie_form(self, title, duration, year):
        self.wait_for_element_visible("#movie-form", timeout=10)
        self.clear("#title")
        self.type("#title", title)
        self.clear("#duration")
        self.type("#duration", str(duration))
        self.clear("#year")
        self.type("#year", str(year))
        self.click("#movie-form button[type='submit']")

    def test_01_add_movie(self):
        self._open_manage_movies()
        self.click("#add-movie")
        self._fill_movie_form(self.movie_title, 120, 2020)
        self.wait_for_text("Movie created successfully", "#alerts", timeout=8)
        self.wait_for_element_visible(self._row_for(self.movie_title), timeout=10)

    def test_02_invalid_movie_shows_every_error(self):
        self._open_manage_movies()
        self.click("#add-movie")
        self._fill_movie_form(" ", 0, 1800)
        self.wait_for_text("title is required.", "#movie-form .form-errors", timeout=8)
        self.assert_text("duration must be greater than 0 minutes.", "#movie-form .form-errors")
        self.assert_text("year must be between 1900", "#movie-form .form-errors")

    def test_03_search_movie(self):
        self._open_manage_movies()
        self.type("#movie-search", self.movie_title)
        self.click("#movie-search-form button[type='submit']")
        self.wait_for_element_visible(self._row_for(self.movie_title), timeout=10)

    def test_04_edit_movie(self):
        self._open_manage_movies()
        row = self._row_for(self.movie_title)
        self.wait_for_element_visible(row, timeout=10)
        self.click(f"{row}//button[contains(@class,'btn-edit')]")
        self._fill_movie_form(self.movie_title, 135, 2021)
        self.wait_for_text("Movie updated successfully", "#alerts", timeout=8)
        self.wait_for_text("135", row, timeout=10)

    def test_05_delete_movie(self):
        self._open_manage_movies()
        self.execute_script("window.confirm = () => true;")
        row = self._row_for(self.movie_title)
        self.wait_for_element_visible(row, timeout=10)
        self.click(f"{row}//button[contains(@class,'btn-delete')]")
        self.wait_for_text("Movie deleted successfully", "#alerts", timeout=8)
        self.assert_element_absent(row)

        movies = requests.get(f"{self.base_url}/movies").json()["movies"]
        assert all(m["title"] != self.movie_title for m in movies)
