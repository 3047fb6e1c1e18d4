"""
Complete system test exercising the full assessment pipeline over real HTTP.

A local stub of the DemoMed API serves three pages, throttles one request with
429 and records the submission, so this covers:
1. Configuration wiring
2. Pagination with retry on a transient status
3. Scoring and classification of messy records
4. Submission of the final payload
"""

import json
import threading
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

import pytest

from core.cli import run_assessment
from core.config import AppConfig, DemoMedAPIConfig, RetryPolicy
from core.errors import FatalHTTPError

API_KEY = "ak_end_to_end"
PROXY_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy")

PAGES = {
    1: [
        {"patient_id": "DEMO001", "blood_pressure": "150/95", "temperature": 101.5, "age": 70},
        {"patient_id": "DEMO002", "blood_pressure": "bad", "temperature": 98, "age": 30},
    ],
    2: [
        {"patient_id": "DEMO003", "blood_pressure": "125/70", "temperature": "99.8", "age": None},
        {"patient_id": "", "blood_pressure": "160/100", "temperature": 104, "age": 90},
    ],
    3: [
        {"patient_id": "DEMO001", "blood_pressure": "150/95", "temperature": 101.5, "age": 70},
        {"patient_id": "DEMO004", "blood_pressure": "110/70", "temperature": 98.2, "age": "45"},
    ],
}


class StubDemoMedAPI(BaseHTTPRequestHandler):
    state: dict = {}

    def log_message(self, format: str, *args: object) -> None:
        pass

    def _send_json(self, status: int, body: object, headers: dict[str, str] | None = None) -> None:
        raw = json.dumps(body).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(raw)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(raw)

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path != "/api/patients":
            self._send_json(404, {"error": "not found"})
            return
        if self.headers.get("x-api-key") != API_KEY:
            self._send_json(401, {"error": "Invalid API key"})
            return

        query = parse_qs(parsed.query)
        page = int(query["page"][0])
        self.state["requests"].append((page, int(query["limit"][0])))

        if page == 2 and not self.state["throttled"]:
            self.state["throttled"] = True
            self._send_json(429, {"error": "Rate limit exceeded"}, {"Retry-After": "0"})
            return

        self._send_json(
            200,
            {"data": PAGES.get(page, []), "pagination": {"page": page, "hasNext": page < 3}},
        )

    def do_POST(self) -> None:
        if self.path != "/api/submit-assessment":
            self._send_json(404, {"error": "not found"})
            return
        length = int(self.headers.get("Content-Length", "0"))
        self.state["submissions"].append(json.loads(self.rfile.read(length)))
        self._send_json(200, {"success": True, "message": "Assessment submitted successfully"})


@pytest.fixture(autouse=True)
def no_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in PROXY_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def stub_api() -> Iterator[tuple[str, dict]]:
    state = {"requests": [], "submissions": [], "throttled": False}
    StubDemoMedAPI.state = state
    server = ThreadingHTTPServer(("127.0.0.1", 0), StubDemoMedAPI)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}/api", state
    finally:
        server.shutdown()
        server.server_close()


def _config(base_url: str, api_key: str = API_KEY) -> AppConfig:
    return AppConfig(
        api=DemoMedAPIConfig(
            base_url=base_url,
            api_key=api_key,
            page_limit=2,
            page_delay_seconds=0.0,
            request_timeout_seconds=5.0,
        ),
        retry=RetryPolicy(max_retries=2, base_delay_ms=1, max_jitter_ms=1),
    )


async def test_full_assessment_over_http(stub_api: tuple[str, dict]) -> None:
    base_url, state = stub_api

    outcome = await run_assessment(_config(base_url))

    expected = {
        "high_risk_patients": ["DEMO001"],
        "fever_patients": ["DEMO001", "DEMO003"],
        "data_quality_issues": ["DEMO002", "DEMO003"],
    }
    assert outcome.payload.model_dump() == expected
    assert state["submissions"] == [expected]
    assert outcome.acknowledgment == {
        "success": True,
        "message": "Assessment submitted successfully",
    }
    # Page 2 was requested twice because of the 429
    assert state["requests"] == [(1, 2), (2, 2), (2, 2), (3, 2)]
    assert outcome.summary.records_seen == 6
    assert outcome.summary.records_skipped == 1


async def test_dry_run_over_http_submits_nothing(stub_api: tuple[str, dict]) -> None:
    base_url, state = stub_api

    outcome = await run_assessment(_config(base_url), submit=False)

    assert not outcome.submitted
    assert state["submissions"] == []


async def test_wrong_api_key_is_fatal(stub_api: tuple[str, dict]) -> None:
    base_url, state = stub_api

    with pytest.raises(FatalHTTPError) as exc_info:
        await run_assessment(_config(base_url, api_key="ak_wrong"))

    assert exc_info.value.status_code == 401
    assert state["submissions"] == []
