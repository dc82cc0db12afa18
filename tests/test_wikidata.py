import unittest
from unittest import mock

import requests

from wikiloop_game import config
from wikiloop_game.errors import VerificationFailure
from wikiloop_game.wikidata import ClaimVerifier, get_json


def _response(status_code=200, payload=None, json_error=None):
    response = mock.Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


class ClaimVerifierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = mock.Mock()
        self.verifier = ClaimVerifier(session=self.session, max_retries=2)
        patcher = mock.patch("wikiloop_game.wikidata.time.sleep")
        self.sleep = patcher.start()
        self.addCleanup(patcher.stop)

    def test_existing_claim(self) -> None:
        self.session.get.return_value = _response(payload={"claims": {"P570": [{"id": "Q42$abc"}]}})
        self.assertTrue(self.verifier.has_existing_claim("Q42", "P570"))
        _, kwargs = self.session.get.call_args
        self.assertEqual(
            kwargs["params"],
            {"action": "wbgetclaims", "entity": "Q42", "property": "P570", "format": "json"},
        )
        self.assertEqual(kwargs["timeout"], config.API_TIMEOUT)
        self.assertEqual(kwargs["headers"], config.HEADERS)

    def test_no_claim_as_empty_list(self) -> None:
        self.session.get.return_value = _response(payload={"claims": []})
        self.assertFalse(self.verifier.has_existing_claim("Q42", "P570"))

    def test_claims_for_other_property_only(self) -> None:
        self.session.get.return_value = _response(payload={"claims": {"P569": [{"id": "x"}]}})
        self.assertFalse(self.verifier.has_existing_claim("Q42", "P570"))

    def test_api_error_member(self) -> None:
        self.session.get.return_value = _response(payload={"error": {"code": "no-such-entity"}})
        with self.assertRaises(VerificationFailure) as ctx:
            self.verifier.has_existing_claim("Q999999999", "P19")
        self.assertEqual(ctx.exception.details["code"], "no-such-entity")

    def test_malformed_json(self) -> None:
        self.session.get.return_value = _response(json_error=ValueError("bad json"))
        with self.assertRaises(VerificationFailure):
            self.verifier.has_existing_claim("Q42", "P570")

    def test_malformed_claims(self) -> None:
        self.session.get.return_value = _response(payload={"claims": {"P570": "oops"}})
        with self.assertRaises(VerificationFailure):
            self.verifier.has_existing_claim("Q42", "P570")

    def test_rate_limit_is_retried(self) -> None:
        self.session.get.side_effect = [_response(status_code=429), _response(payload={"claims": {}})]
        self.assertFalse(self.verifier.has_existing_claim("Q42", "P570"))
        self.assertEqual(self.session.get.call_count, 2)
        self.sleep.assert_called_once_with(config.VERIFY_BACKOFF_SECONDS)

    def test_timeouts_exhaust_retries(self) -> None:
        self.session.get.side_effect = requests.Timeout("slow")
        with self.assertRaises(VerificationFailure):
            self.verifier.has_existing_claim("Q42", "P570")
        self.assertEqual(self.session.get.call_count, 3)

    def test_client_error_is_not_retried(self) -> None:
        self.session.get.return_value = _response(status_code=404)
        with self.assertRaises(VerificationFailure):
            self.verifier.has_existing_claim("Q42", "P570")
        self.assertEqual(self.session.get.call_count, 1)

    def test_get_json_defaults_to_requests(self) -> None:
        with mock.patch("wikiloop_game.wikidata.requests.get") as get:
            get.return_value = _response(payload={"ok": 1})
            self.assertEqual(get_json({"action": "query"}, max_retries=0), {"ok": 1})
        self.assertEqual(get.call_args.args[0], config.API_ENDPOINT)


if __name__ == "__main__":
    unittest.main()
