"""Tests for the HTTP layer."""

import time
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from thermhub.api import create_app
from thermhub.config.schema import ThermHubConfig
from thermhub.errors import CredentialError, TransportError
from thermhub.ingest.ecobee_client import EcobeeClient
from thermhub.models.reading import Reading
from thermhub.models.reporting import CycleSummary
from thermhub.models.snapshot import SnapshotField
from thermhub.models.token import PinResponse, TokenResponse
from thermhub.pipeline.collect_pipeline import CollectPipeline
from thermhub.snapshot.store import SnapshotStore
from thermhub.storage import reading_repo, token_repo
from thermhub.storage.database import session
from thermhub.worker import Worker

T0 = datetime(2026, 2, 11, 12, 0, tzinfo=UTC)
SECRET = "s3cret"


@pytest.fixture
def store() -> SnapshotStore:
    return SnapshotStore()


@pytest.fixture
def ecobee() -> MagicMock:
    return MagicMock(spec=EcobeeClient)


@pytest.fixture
def worker(ecobee: MagicMock) -> Worker:
    pipeline = MagicMock(spec=CollectPipeline)
    pipeline.ecobee = ecobee
    pipeline.run.return_value = CycleSummary(cycle_id="c1", hourly_ok=True)
    return Worker(pipeline)


def _with_secret(config: ThermHubConfig, secret: str) -> ThermHubConfig:
    return config.model_copy(
        update={"server": config.server.model_copy(update={"shared_secret": secret})}
    )


def _client(
    config: ThermHubConfig,
    store: SnapshotStore,
    worker: Worker,
    authorization: str | None = f"Bearer {SECRET}",
) -> TestClient:
    headers = {"Authorization": authorization} if authorization is not None else {}
    app = create_app(_with_secret(config, SECRET), store, worker)
    return TestClient(app, headers=headers)


class TestNow:
    def test_serves_published_snapshot(self, test_config, store, worker):
        store.publish_many({SnapshotField.THERMOSTATS: [Reading("Bedroom", T0, 684)]})

        resp = _client(test_config, store, worker).get("/now")

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/json"
        assert resp.content == store.serialized()
        assert resp.json()["thermostats"][0]["name"] == "Bedroom"

    def test_empty_before_first_cycle(self, test_config, store, worker):
        resp = _client(test_config, store, worker).get("/now")
        assert resp.json() == {"forecast_daily": [], "forecast_hourly": [], "thermostats": []}


class TestAuthorization:
    def test_unset_secret_forbids_every_route(self, test_config, store, worker, ecobee):
        ecobee.request_token.return_value = TokenResponse("AT", "RT", 3600)
        client = TestClient(create_app(test_config, store, worker))

        assert client.get("/now").status_code == 403
        assert client.get("/now", headers={"Authorization": "Bearer "}).status_code == 403
        assert client.get("/install/2", params={"code": "x"}).status_code == 403
        assert client.post("/refresh").status_code == 403

        ecobee.request_token.assert_not_called()
        worker.pipeline.run.assert_not_called()
        with session(test_config.db_path) as conn:
            assert token_repo.get_token(conn) is None

    def test_missing_header_forbidden(self, test_config, store, worker):
        resp = _client(test_config, store, worker, authorization=None).get("/now")
        assert resp.status_code == 403

    def test_wrong_secret_forbidden(self, test_config, store, worker):
        resp = _client(test_config, store, worker, authorization="Bearer wrong").get("/now")
        assert resp.status_code == 403

    def test_bearer_accepted_case_insensitively(self, test_config, store, worker):
        app = create_app(_with_secret(test_config, "S3cret"), store, worker)
        client = TestClient(app)
        assert client.get("/now", headers={"Authorization": "Bearer s3cret"}).status_code == 200
        assert client.get("/now", headers={"Authorization": "bearer S3CRET"}).status_code == 200


class TestPast:
    def test_inclusive_range(self, test_config, store, worker):
        with session(test_config.db_path) as conn:
            for hours in (0, 1, 2, 30):
                reading_repo.insert_reading(
                    conn, Reading("Bedroom", T0 + timedelta(hours=hours), 680 + hours)
                )

        resp = _client(test_config, store, worker).get(
            "/past",
            params={
                "start-date": "2026-02-11T12:00:00Z",
                "end-date": "2026-02-11T14:00:00Z",
            },
        )

        assert resp.status_code == 200
        assert [r["temperature"] for r in resp.json()] == [680, 681, 682]

    def test_end_before_start(self, test_config, store, worker):
        resp = _client(test_config, store, worker).get(
            "/past",
            params={"start-date": "2026-02-12T00:00:00Z", "end-date": "2026-02-11T00:00:00Z"},
        )
        assert resp.status_code == 400

    def test_missing_params(self, test_config, store, worker):
        resp = _client(test_config, store, worker).get("/past")
        assert resp.status_code == 422

    def test_unparsable_date(self, test_config, store, worker):
        resp = _client(test_config, store, worker).get(
            "/past", params={"start-date": "soon", "end-date": "later"}
        )
        assert resp.status_code == 422


class TestTimeAndStatus:
    def test_time_is_epoch_seconds(self, test_config, store, worker):
        resp = _client(test_config, store, worker).get("/time")
        assert resp.status_code == 200
        assert abs(int(resp.text) - int(time.time())) < 5

    def test_refresh_runs_cycle(self, test_config, store, worker):
        resp = _client(test_config, store, worker).post("/refresh")
        assert resp.status_code == 200
        assert resp.json()["ok"] is True
        worker.pipeline.run.assert_called_once()

    def test_status(self, test_config, store, worker):
        client = _client(test_config, store, worker)
        assert client.get("/status").json()["last_cycle"] is None

        client.post("/refresh")
        body = client.get("/status").json()

        assert body["total_cycles"] == 1
        assert body["snapshot_version"] == store.version
        assert body["snapshot_bytes"] == len(store.serialized())
        assert body["running"] is False
        assert body["last_cycle"]["cycle_id"] == "c1"
        assert body["last_cycle"]["hourly_ok"] is True

    def test_version(self, test_config, store, worker):
        client = _client(test_config, store, worker)
        for path in ("/version", "/v"):
            resp = client.get(path)
            assert resp.status_code == 200
            assert resp.headers["content-type"].startswith("text/plain")
            assert resp.text == "0.1.0"

    def test_version_requires_secret(self, test_config, store, worker):
        resp = _client(test_config, store, worker, authorization=None).get("/version")
        assert resp.status_code == 403


class TestInstall:
    def test_step_one(self, test_config, store, worker, ecobee):
        ecobee.authorize.return_value = PinResponse(ecobee_pin="ab12", code="CODE1")

        resp = _client(test_config, store, worker).get("/install/1")

        assert resp.status_code == 200
        assert resp.json() == {"ecobee_pin": "ab12", "code": "CODE1"}

    def test_step_one_failure(self, test_config, store, worker, ecobee):
        ecobee.authorize.side_effect = TransportError("down")
        resp = _client(test_config, store, worker).get("/install/1")
        assert resp.status_code == 500

    def test_step_two_stores_token(self, test_config, store, worker, ecobee):
        ecobee.request_token.return_value = TokenResponse("AT", "RT", 3600)

        resp = _client(test_config, store, worker).get("/install/2", params={"code": "CODE1"})

        assert resp.text == "true"
        with session(test_config.db_path) as conn:
            assert token_repo.get_token(conn).access_token == "AT"

    def test_step_two_rejected(self, test_config, store, worker, ecobee):
        ecobee.request_token.side_effect = CredentialError("bad code")
        resp = _client(test_config, store, worker).get("/install/2", params={"code": "WRONG"})
        assert resp.text == "false"

    def test_step_two_requires_code(self, test_config, store, worker):
        assert _client(test_config, store, worker).get("/install/2").status_code == 422


class TestCors:
    def test_allow_origin_header(self, test_config, store, worker):
        resp = _client(test_config, store, worker).get(
            "/now", headers={"Origin": "https://dash.example.com"}
        )
        assert resp.headers["access-control-allow-origin"] == "*"
