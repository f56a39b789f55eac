"""Tests for GoogleMapsClient: status handling, retries, Roads endpoints."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from google_maps import GoogleMapsClient, GoogleMapsError, ProviderNotConfiguredError
from rt_trace import TraceContext, set_trace


def _mock_response(status_code=200, json_data=None):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    if json_data is not None:
        resp.json.return_value = json_data
    else:
        resp.json.side_effect = ValueError("No JSON")
    return resp


class TestKeys:
    def test_roads_key_defaults_to_api_key(self):
        client = GoogleMapsClient("places-key")
        assert client.roads_api_key == "places-key"

    def test_missing_key_raises_not_configured(self):
        client = GoogleMapsClient(None)
        with pytest.raises(ProviderNotConfiguredError):
            client.places_nearby(41.0, -73.7, "park")
        with pytest.raises(ProviderNotConfiguredError):
            client.snap_to_roads([(41.0, -73.7)])


class TestPlaces:
    def test_places_nearby_ok(self):
        client = GoogleMapsClient("k")
        body = {"status": "OK", "results": [{"name": "Playland"}]}
        with patch.object(requests.Session, "get", return_value=_mock_response(200, body)) as g:
            results = client.places_nearby(41.0, -73.7, "amusement_park", radius_meters=3000)

        assert results == [{"name": "Playland"}]
        params = g.call_args[1]["params"]
        assert params["type"] == "amusement_park"
        assert params["radius"] == 3000
        assert "keyword" not in params

    def test_zero_results_is_empty(self):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get",
                          return_value=_mock_response(200, {"status": "ZERO_RESULTS"})):
            assert client.places_nearby(41.0, -73.7, "park") == []

    def test_request_denied_raises(self):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get",
                          return_value=_mock_response(200, {"status": "REQUEST_DENIED"})):
            with pytest.raises(GoogleMapsError, match="REQUEST_DENIED"):
                client.places_nearby(41.0, -73.7, "park")

    def test_place_details_requires_ok(self):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get",
                          return_value=_mock_response(200, {"status": "NOT_FOUND"})):
            with pytest.raises(GoogleMapsError):
                client.place_details("abc")

    def test_place_details_default_fields(self):
        client = GoogleMapsClient("k")
        body = {"status": "OK", "result": {"name": "I-287"}}
        with patch.object(requests.Session, "get", return_value=_mock_response(200, body)) as g:
            assert client.place_details("abc") == {"name": "I-287"}
        assert g.call_args[1]["params"]["fields"] == "name,formatted_address,types"


class TestHTTPErrors:
    @pytest.mark.parametrize("status,match", [
        (403, "access denied"),
        (429, "rate limit"),
        (500, "HTTP 500"),
    ])
    def test_status_codes(self, status, match):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get", return_value=_mock_response(status, {})):
            with pytest.raises(GoogleMapsError, match=match):
                client.reverse_geocode(41.0, -73.7)

    def test_roads_label(self):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get", return_value=_mock_response(403, {})):
            with pytest.raises(GoogleMapsError, match="Google Roads API"):
                client.nearest_roads([(41.0, -73.7)])

    def test_non_json_raises(self):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get", return_value=_mock_response(200)):
            with pytest.raises(GoogleMapsError, match="non-JSON"):
                client.reverse_geocode(41.0, -73.7)


class TestRetry:
    @patch("google_maps.time.sleep")
    def test_retries_once_on_timeout(self, mock_sleep):
        client = GoogleMapsClient("k")
        ok = _mock_response(200, {"status": "OK", "results": []})
        with patch.object(requests.Session, "get",
                          side_effect=[requests.exceptions.Timeout("slow"), ok]) as g:
            assert client.reverse_geocode(41.0, -73.7) == []
        assert g.call_count == 2
        mock_sleep.assert_called_once_with(1)

    @patch("google_maps.time.sleep")
    def test_gives_up_after_retry(self, mock_sleep):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get",
                          side_effect=requests.exceptions.ConnectionError("down")) as g:
            with pytest.raises(GoogleMapsError, match="request failed"):
                client.reverse_geocode(41.0, -73.7)
        assert g.call_count == 2

    @patch("google_maps.time.sleep")
    def test_no_retry_on_http_error(self, mock_sleep):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get", return_value=_mock_response(500, {})) as g:
            with pytest.raises(GoogleMapsError):
                client.reverse_geocode(41.0, -73.7)
        assert g.call_count == 1
        mock_sleep.assert_not_called()


class TestRoads:
    def test_snap_to_roads_path_format(self):
        client = GoogleMapsClient("k", roads_api_key="roads-k")
        body = {"snappedPoints": [{"location": {"latitude": 41.0, "longitude": -73.7}}]}
        with patch.object(requests.Session, "get", return_value=_mock_response(200, body)) as g:
            points = client.snap_to_roads([(41.0, -73.7), (41.1, -73.8)])

        assert len(points) == 1
        params = g.call_args[1]["params"]
        assert params["path"] == "41.0,-73.7|41.1,-73.8"
        assert params["interpolate"] == "true"
        assert params["key"] == "roads-k"
        assert g.call_args[0][0].endswith("/snapToRoads")

    def test_nearest_roads_empty_body(self):
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get", return_value=_mock_response(200, {})):
            assert client.nearest_roads([(41.0, -73.7)]) == []

    def test_trace_records_roads_service(self):
        ctx = TraceContext(trace_id="t-1")
        set_trace(ctx)
        client = GoogleMapsClient("k")
        with patch.object(requests.Session, "get", return_value=_mock_response(200, {})):
            client.nearest_roads([(41.0, -73.7)])

        assert ctx.api_calls[0].service == "google_roads"
        assert ctx.api_calls[0].endpoint == "nearest_roads"
