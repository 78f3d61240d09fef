import tempfile
import unittest
from pathlib import Path
from unittest import mock

from parkour_monitor import webserver
from parkour_monitor.log_parser import parse_logs

LOG = "\n".join([
    "[11:59:00] [Client thread/INFO]: Setting user: Alice",
    "[12:00:00] [Client thread/INFO]: [CHAT] §e§lParkour Duels",
    "[12:00:01] [Client thread/INFO]: [CHAT] §7Opponents: §aBob",
    "[12:00:10] [Client thread/INFO]: [CHAT] CHECKPOINT! You reached checkpoint 1 in 0:10.000!",
    "[12:00:11] [Client thread/INFO]: [CHAT] CHECKPOINT! [MVP+] Bob reached checkpoint 1 in 0:11.000!",
    "[12:00:30] [Client thread/INFO]: [CHAT] COMPLETED! [MVP+] Bob completed the parkour in 0:30.000!",
])


class WebserverTests(unittest.TestCase):
    def setUp(self):
        webserver.app.config["TESTING"] = True
        self.client = webserver.app.test_client()
        webserver.set_published(None)

    def tearDown(self):
        webserver.set_published(None)

    def test_index(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)

    def test_parse_raw_text(self):
        response = self.client.post("/api/parse", data=LOG.encode("utf-8"), content_type="text/plain")
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["username"], "Alice")
        self.assertEqual(body["games"][0]["opponents"], "Bob")
        self.assertEqual(body["selection"], {"gameIndex": 0, "players": ["Bob", "Alice"]})
        self.assertEqual(body["standings"]["ranking"], ["Bob", "Alice"])
        self.assertEqual(len(body["standings"]["gap"]), 2)

    def test_parse_json_body(self):
        response = self.client.post("/api/parse", json={"text": LOG})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()["games"]), 1)

    def test_parse_without_games(self):
        response = self.client.post("/api/parse", json={"text": "no games"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {"error": "No Parkour Duels games found."})

    def test_parse_does_not_publish(self):
        self.client.post("/api/parse", json={"text": LOG})
        self.assertIsNone(webserver.get_published())

    def test_standings_need_published_session(self):
        self.assertEqual(self.client.get("/api/games/0/standings").status_code, 404)

    def test_standings_for_published_game(self):
        webserver.set_published(parse_logs(LOG))
        response = self.client.get("/api/games/0/standings?players=Alice")
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["players"], ["Alice"])
        self.assertIsNone(body["gap"])
        self.assertEqual(body["progress"], [{"name": "CP1", "cp": 1, "Alice": 10.0}])
        self.assertEqual(self.client.get("/api/games/3/standings").status_code, 404)

    def test_standings_toggle_player(self):
        webserver.set_published(parse_logs(LOG))
        body = self.client.get("/api/games/0/standings?toggle=Alice").get_json()
        self.assertEqual(body["players"], ["Bob"])
        body = self.client.get("/api/games/0/standings?players=Alice&toggle=Bob").get_json()
        self.assertEqual(body["players"], ["Alice", "Bob"])
        self.assertEqual(len(body["gap"]), 2)

    def test_live_data_served_from_export(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "live_session.json"
            with mock.patch.object(webserver, "OUTPUT_JSON", output):
                self.assertEqual(self.client.get("/api/live_data").status_code, 404)
                output.write_text('{"games": []}', encoding="utf-8")
                response = self.client.get("/api/live_data")
                self.assertEqual(response.status_code, 200)
                self.assertEqual(response.get_json(), {"games": []})

    def test_default_paths(self):
        response = self.client.get("/api/default_paths")
        self.assertEqual(response.status_code, 200)
        self.assertIsInstance(response.get_json(), list)


if __name__ == "__main__":
    unittest.main()
