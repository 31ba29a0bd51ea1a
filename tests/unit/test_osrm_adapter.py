"""OSRM adapter tests against an httpx mock transport."""

from __future__ import annotations

import httpx
import pytest

from explox.adapters.route.osrm import OsrmRouteTool, format_coordinates, parse_route_response
from explox.infrastructure.http_client import HttpClient
from explox.tools.interfaces import ExternalServiceError, RouteRequest

_OK_BODY = {
    "code": "Ok",
    "routes": [
        {
            "distance": 4700.3,
            "legs": [
                {"steps": [{"maneuver": {"location": [6.96, 49.26]}}, {"maneuver": {"location": [6.97, 49.27]}}]},
                {"steps": [{"maneuver": {"location": [6.96, 49.26]}}]},
            ],
        }
    ],
}


def _tool(handler, seen=None) -> OsrmRouteTool:
    def _wrapped(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(_wrapped))
    http = HttpClient(timeout=1.0, max_retries=0, service_name="osrm", client=client)
    return OsrmRouteTool("http://osrm.test/", profile="bike", http=http)


def test_format_coordinates_is_longitude_first():
    assert format_coordinates([(6.96, 49.26), (6.97, 49.27)]) == "6.96,49.26;6.97,49.27"


def test_route_collects_maneuvers_of_every_leg():
    seen: list[httpx.Request] = []
    tool = _tool(lambda request: httpx.Response(200, json=_OK_BODY), seen)

    path = tool.route(RouteRequest(waypoints=[(6.96, 49.26), (6.97, 49.27)]))

    assert path.distance == 4700.3
    assert path.waypoints == [(6.96, 49.26), (6.97, 49.27), (6.96, 49.26)]
    assert seen[0].url.path == "/route/v1/bike/6.96,49.26;6.97,49.27"
    assert seen[0].url.params["steps"] == "true"
    assert seen[0].url.params["overview"] == "false"


@pytest.mark.parametrize(
    "body",
    [
        {"code": "NoRoute", "routes": []},
        {"code": "Ok", "routes": []},
        {"code": "Ok", "routes": [{"distance": 10, "legs": []}]},
        ["not", "an", "object"],
        {"code": "Ok", "routes": [None]},
        {"code": "Ok", "routes": [{"distance": 10, "legs": [None]}]},
        {"code": "Ok", "routes": [{"distance": 10, "legs": [{"steps": [None]}]}]},
        {"code": "Ok", "routes": [{"distance": 10, "legs": [{"steps": [{"maneuver": "depart"}]}]}]},
        {"code": "Ok", "routes": [{"distance": 10, "legs": [{"steps": [{"maneuver": {"location": [None, 49.2]}}]}]}]},
        {"code": "Ok", "routes": [{"distance": "far", "legs": [{"steps": []}]}]},
    ],
)
def test_malformed_responses_raise(body):
    with pytest.raises(ExternalServiceError):
        parse_route_response(body)


def test_http_error_status_raises():
    tool = _tool(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(ExternalServiceError, match="HTTP 502"):
        tool.route(RouteRequest(waypoints=[(6.96, 49.26), (6.97, 49.27)]))


def test_network_error_raises():
    def _fail(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ExternalServiceError):
        _tool(_fail).route(RouteRequest(waypoints=[(6.96, 49.26), (6.97, 49.27)]))


def test_http_client_retries_before_giving_up(monkeypatch):
    monkeypatch.setattr("explox.infrastructure.http_client.time.sleep", lambda _s: None)
    attempts: list[int] = []

    def _flaky(request):
        attempts.append(1)
        if len(attempts) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"ok": True})

    client = HttpClient(max_retries=1, client=httpx.Client(transport=httpx.MockTransport(_flaky)))
    assert client.get("http://svc.test/x") == {"ok": True}
    assert len(attempts) == 2


def test_route_request_rejects_oversized_payload():
    with pytest.raises(ValueError):
        RouteRequest(waypoints=[(6.96, 49.26)] * 26)
