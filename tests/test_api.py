from app.api import simulate
from app.services.simulation import FAULT_TYPES, LEAK_CHUNK_BYTES, get_leak_store


async def test_root_lists_endpoints(api_client) -> None:
    resp = await api_client.get("/")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["name"] == "Observable Mock API Service"
    assert payload["version"] == "1.0.0"
    paths = [e["path"] for e in payload["endpoints"]]
    assert paths == [
        "/api/fast",
        "/api/slow",
        "/api/faulty",
        "/api/memory-leak",
        "/api/cpu-intensive",
        "/metrics",
        "/health",
    ]
    assert all(e["description"] for e in payload["endpoints"])


async def test_responses_include_x_request_id(api_client) -> None:
    resp = await api_client.get("/health")
    assert resp.status_code == 200
    assert resp.headers.get("x-request-id")


async def test_fast_returns_message_and_time(api_client) -> None:
    resp = await api_client.get("/api/fast")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    payload = resp.json()
    assert payload["message"] == "This is a fast response"
    assert payload["time"]


async def test_health_uptime_is_non_decreasing(api_client) -> None:
    uptimes = []
    for _ in range(3):
        resp = await api_client.get("/health")
        assert resp.status_code == 200
        payload = resp.json()
        assert payload["status"] == "ok"
        uptimes.append(payload["uptime"])

    assert uptimes == sorted(uptimes)
    assert uptimes[0] >= 0


async def test_faulty_success_path(api_client, monkeypatch) -> None:
    monkeypatch.setattr(simulate, "roll_fault", lambda: None)

    resp = await api_client.get("/api/faulty")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Faulty endpoint worked this time!"


async def test_faulty_error_path_returns_typed_500(api_client, monkeypatch) -> None:
    monkeypatch.setattr(simulate, "roll_fault", lambda: "invalid_data")

    resp = await api_client.get("/api/faulty")
    assert resp.status_code == 500
    assert resp.json() == {
        "error": True,
        "type": "invalid_data",
        "message": "Simulated error: invalid_data",
    }


async def test_faulty_real_rolls_only_produce_known_types(api_client) -> None:
    for _ in range(50):
        resp = await api_client.get("/api/faulty")
        assert resp.status_code in {200, 500}
        if resp.status_code == 500:
            assert resp.json()["type"] in FAULT_TYPES


async def test_memory_leak_counts_up_and_retains_buffers(api_client) -> None:
    reported = []
    for _ in range(3):
        resp = await api_client.get("/api/memory-leak")
        assert resp.status_code == 200
        payload = resp.json()
        assert payload["message"] == "Memory leak simulated"
        reported.append(payload["leakedMB"])

    assert reported == [1, 2, 3]
    store = get_leak_store()
    assert len(store) == 3
    assert store.retained_bytes == 3 * LEAK_CHUNK_BYTES


async def test_cpu_intensive_reports_positive_duration(api_client) -> None:
    resp = await api_client.get("/api/cpu-intensive")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["message"] == "CPU intensive operation completed"
    assert payload["duration"] > 0


async def test_unknown_path_is_404(api_client) -> None:
    resp = await api_client.get("/api/nope")
    assert resp.status_code == 404


async def test_unexpected_exception_becomes_generic_500(lenient_client, monkeypatch) -> None:
    def boom():
        raise RuntimeError("clock exploded")

    monkeypatch.setattr(simulate, "utcnow", boom)

    resp = await lenient_client.get("/api/fast")
    assert resp.status_code == 500
    assert resp.json()["type"] == "internal_error"

    # The process keeps serving.
    assert (await lenient_client.get("/health")).status_code == 200
