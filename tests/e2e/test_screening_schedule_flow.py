import os
import uuid
from datetime import datetime, timedelta

import requests
from seleniumbase import BaseCase


BASE_URL = os.getenv("E2E_BASE_URL", "http://localhost:5000").rstrip("/")


class ScreeningScheduleFlowTests(BaseCase):
    # Schedules screenings through the API against a running, seeded server
    # (run seed.py first so showtimes exist) and checks the manage page.
    movie_id = None
    room_id = None
    screening_id = None
    slot = (datetime.now() + timedelta(days=60)).replace(hour=19, minute=15, second=0, microsecond=0)

    def setUp(self):
        super().setUp()
        self.base_url = BASE_URL

    def _payload(self, showtime_id):
        return {
            "datetime": self.slot.isoformat(timespec="minutes"),
            "active": True,
            "movieId": ScreeningScheduleFlowTests.movie_id,
            "roomId": ScreeningScheduleFlowTests.room_id,
            "showtimeId": showtime_id,
        }

    def _first_showtime_id(self):
        related = requests.get(f"{self.base_url}/screenings/related").json()
        assert related["showtimes"], "No showtimes found; run seed.py before the e2e suite."
        return related["showtimes"][0]["id"]

    def test_01_seed_movie_and_room(self):
        suffix = uuid.uuid4().hex[:5]
        resp = requests.post(
            f"{self.base_url}/movies",
            json={"title": f"Schedule_{suffix}", "duration": 100, "year": 2024},
        )
        assert resp.status_code == 201, f"Movie seed failed: {resp.status_code} {resp.text}"
        ScreeningScheduleFlowTests.movie_id = resp.json()["id"]

        resp = requests.post(f"{self.base_url}/rooms", json={"name": f"Room_{suffix}", "type": "2D"})
        assert resp.status_code == 201, f"Room seed failed: {resp.status_code} {resp.text}"
        ScreeningScheduleFlowTests.room_id = resp.json()["id"]

    def test_02_schedule_and_reject_conflict(self):
        showtime_id = self._first_showtime_id()
        resp = requests.post(f"{self.base_url}/screenings", json=self._payload(showtime_id))
        assert resp.status_code == 201, f"Screening create failed: {resp.status_code} {resp.text}"
        ScreeningScheduleFlowTests.screening_id = resp.json()["id"]

        resp = requests.post(f"{self.base_url}/screenings", json=self._payload(showtime_id))
        assert resp.status_code == 409
        assert resp.json()["error"] == "schedule_conflict"

    def test_03_screening_listed_on_manage_page(self):
        assert self.screening_id, "Screening id not set from schedule test."
        self.open(f"{self.base_url}/screenings/manage")
        self.wait_for_element("#screeningsPage")
        self.wait_for_element_visible(f"#screenings-table tr[data-id='{self.screening_id}']", timeout=10)

    def test_04_movie_in_use_cannot_be_deleted(self):
        resp = requests.delete(f"{self.base_url}/movies/{self.movie_id}")
        assert resp.status_code == 409
        assert resp.json()["error"] == "resource_in_use"

    def test_05_cleanup(self):
        assert requests.delete(f"{self.base_url}/screenings/{self.screening_id}").status_code == 200
        assert requests.delete(f"{self.base_url}/movies/{self.movie_id}").status_code == 200
        assert requests.delete(f"{self.base_url}/rooms/{self.room_id}").status_code == 200
