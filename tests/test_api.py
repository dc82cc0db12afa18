import json
import unittest

from fastapi.testclient import TestClient

from wikiloop_game.api import create_app, parse_args, render


class StubService:
    def __init__(self):
        self.requests = []

    def handle(self, params):
        self.requests.append(params)
        if params.get("action") == "tiles":
            return {"tiles": []}
        return {"status": "No valid action!"}


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = StubService()
        self.client = TestClient(create_app(self.service))

    def test_plain_json(self) -> None:
        response = self.client.get("/", params={"action": "tiles", "num": "2", "lang": "de"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"tiles": []})
        self.assertEqual(self.service.requests[0], {"action": "tiles", "num": "2", "lang": "de"})

    def test_jsonp(self) -> None:
        response = self.client.get("/", params={"action": "tiles", "callback": "jQuery123_456"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("application/javascript"))
        body = response.text
        self.assertIn("jQuery123_456(", body)
        payload = body[body.index("jQuery123_456(") + len("jQuery123_456(") : body.rindex(");")]
        self.assertEqual(json.loads(payload), {"tiles": []})

    def test_unsafe_callback_falls_back_to_json(self) -> None:
        response = self.client.get("/", params={"action": "nope", "callback": "alert(1)//"})
        self.assertEqual(response.json(), {"status": "No valid action!"})

    def test_render_without_callback(self) -> None:
        response = render({"status": "logging info"})
        self.assertEqual(json.loads(response.body), {"status": "logging info"})


class ParseArgsTests(unittest.TestCase):
    def test_game_choice(self) -> None:
        args = parse_args(["--game", "place_of_birth", "--port", "9000", "--db", "x.sqlite"])
        self.assertEqual(args.game, "place_of_birth")
        self.assertEqual(args.port, 9000)
        self.assertEqual(args.db, "x.sqlite")


if __name__ == "__main__":
    unittest.main()
