import httpx
import pytest

from ohmage_runkeeper.errors import RunKeeperProtocolError, ServiceError
from ohmage_runkeeper.services.omh_read import OmhReadRunKeeperRequest, RequestState
from ohmage_runkeeper.services.runkeeper import FitnessActivitiesApi, ProfileApi

ACTIVITIES = {
    "items": [
        {
            "uri": "/fitnessActivities/55",
            "start_time": "Mon, 1 Jan 2024 00:00:00",
            "duration": 10,
            "total_distance": 5.5,
            "type": "Run",
        }
    ]
}


def _credentials(store):
    lookups = []

    def lookup(domain):
        lookups.append(domain)
        return store

    lookup.lookups = lookups
    return lookup


def _mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_request_requires_api():
    with pytest.raises(ValueError, match="API is null"):
        OmhReadRunKeeperRequest(None)


def test_unlinked_owner_gets_no_data_and_no_vendor_call():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("RunKeeper should not be called")

    lookup = _credentials({"bearer_someone_else": "token"})
    request = OmhReadRunKeeperRequest(FitnessActivitiesApi())
    with _mock_client(handler) as client:
        request.service("alice", lookup, client=client)

    assert lookup.lookups == ["run_keeper"]
    assert request.state is RequestState.serviced
    assert request.get_num_data_points() == 0
    assert request.respond() == []
    assert request.state is RequestState.responded


def test_linked_owner_reads_with_stored_bearer():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        return httpx.Response(status_code=200, json=ACTIVITIES)

    request = OmhReadRunKeeperRequest(FitnessActivitiesApi())
    with _mock_client(handler) as client:
        request.service("alice", _credentials({"bearer_alice": "abc"}), client=client)

    assert seen == ["Bearer abc"]
    assert request.get_num_data_points() == 1
    points = request.respond()
    assert points[0]["metadata"]["id"] == "55"
    assert points[0]["data"]["type"] == "Run"


def test_linked_owner_profile_read():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, json={"name": "A", "profile": "http://x/u/9"})

    request = OmhReadRunKeeperRequest(ProfileApi())
    with _mock_client(handler) as client:
        request.service("bob", _credentials({"bearer_bob": "t"}), client=client)

    assert request.get_num_data_points() == 1
    assert request.respond()[0]["metadata"] == {"id": "9"}


def test_vendor_failure_becomes_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=500, text="boom")

    request = OmhReadRunKeeperRequest(ProfileApi())
    with _mock_client(handler) as client:
        with pytest.raises(ServiceError, match="Could not retrieve the data") as exc_info:
            request.service("alice", _credentials({"bearer_alice": "abc"}), client=client)

    assert isinstance(exc_info.value.__cause__, RunKeeperProtocolError)
    assert exc_info.value.code == "0720"
    assert request.state is RequestState.constructed


def test_respond_before_service_raises():
    request = OmhReadRunKeeperRequest(ProfileApi())
    with pytest.raises(RuntimeError, match="not been serviced"):
        request.respond()
    with pytest.raises(RuntimeError, match="not been serviced"):
        request.get_num_data_points()


def test_service_twice_raises():
    request = OmhReadRunKeeperRequest(ProfileApi())
    request.service("alice", _credentials({}))
    with pytest.raises(RuntimeError, match="already serviced"):
        request.service("alice", _credentials({}))
