import unittest
from unittest.mock import MagicMock, patch

import requests

from config import Configuration
from services.wikipedia import WikipediaClient, WikipediaError, api_language


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.text = "" if payload is None else str(payload)
    if payload is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


SUMMARY = {
    "type": "standard",
    "title": "Golden Gate Bridge",
    "extract": "The Golden Gate Bridge is a suspension bridge.",
    "coordinates": {"lat": 37.8199, "lon": -122.4783},
}


class TestWikipediaClient(unittest.TestCase):
    def setUp(self):
        self.client = WikipediaClient(Configuration())
        self.session = MagicMock()
        patcher = patch.object(WikipediaClient, "_session", return_value=self.session)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_summary_url_and_decoding(self):
        self.session.get.return_value = _response(200, SUMMARY)

        candidate = self.client.summary("Golden Gate Bridge", "en")

        self.assertIsNotNone(candidate)
        self.assertEqual(candidate.title, "Golden Gate Bridge")
        self.assertEqual(candidate.coordinate, (37.8199, -122.4783))
        url = self.session.get.call_args[0][0]
        self.assertEqual(url, "https://en.wikipedia.org/api/rest_v1/page/summary/Golden_Gate_Bridge")

    def test_regional_language_alias(self):
        self.session.get.return_value = _response(200, dict(SUMMARY, title="金門大橋"))

        candidate = self.client.summary("金門大橋", "zh-hk")

        self.assertEqual(candidate.language, "zh")
        self.assertEqual(candidate.source, "wikipedia_zh")
        url = self.session.get.call_args[0][0]
        self.assertTrue(url.startswith("https://zh.wikipedia.org/api/rest_v1/page/summary/%E9%87%91"))

    def test_title_is_path_quoted(self):
        self.session.get.return_value = _response(404)
        self.assertIsNone(self.client.summary("AC/DC Museum?", "en"))
        url = self.session.get.call_args[0][0]
        self.assertTrue(url.endswith("/page/summary/AC%2FDC_Museum%3F"))

    @patch("services.wikipedia.time.sleep")
    def test_network_error_retried(self, mock_sleep):
        self.session.get.side_effect = [requests.ConnectionError("reset"), _response(200, SUMMARY)]

        candidate = self.client.summary("Golden Gate Bridge", "en")

        self.assertIsNotNone(candidate)
        self.assertEqual(self.session.get.call_count, 2)
        mock_sleep.assert_called_once()

    @patch("services.wikipedia.time.sleep")
    def test_persistent_server_error_raises(self, mock_sleep):
        self.session.get.return_value = _response(503)
        with self.assertRaises(WikipediaError):
            self.client.summary("Golden Gate Bridge", "en")
        self.assertEqual(self.session.get.call_count, 2)

    def test_client_error_is_not_retried(self):
        self.session.get.return_value = _response(400)
        with self.assertRaises(WikipediaError):
            self.client.search_titles("Golden Gate", "en")
        self.assertEqual(self.session.get.call_count, 1)

    def test_invalid_json_raises(self):
        self.session.get.return_value = _response(200)
        with self.assertRaises(WikipediaError):
            self.client.summary("Golden Gate Bridge", "en")

    def test_search_titles_params(self):
        self.session.get.return_value = _response(
            200, {"query": {"search": [{"title": "Golden Gate"}, {"title": "Golden Gate Bridge"}]}}
        )

        titles = self.client.search_titles("Golden Gate", "fr", limit=3)

        self.assertEqual(titles, ["Golden Gate", "Golden Gate Bridge"])
        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], "https://fr.wikipedia.org/w/api.php")
        self.assertEqual(kwargs["params"]["srsearch"], "Golden Gate")
        self.assertEqual(kwargs["params"]["srlimit"], 3)
        self.assertEqual(kwargs["params"]["list"], "search")


class TestHelpers(unittest.TestCase):
    def test_api_language(self):
        self.assertEqual(api_language("zh-TW"), "zh")
        self.assertEqual(api_language(" fr "), "fr")


if __name__ == "__main__":
    unittest.main()
