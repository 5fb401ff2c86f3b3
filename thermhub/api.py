"""HTTP layer: serves the published snapshot, history and install flow."""

import logging
import sqlite3
import time
from datetime import datetime

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from thermhub.auth.token_manager import TokenManager
from thermhub.config.schema import ThermHubConfig
from thermhub.errors import PersistError, ThermHubError
from thermhub.models.common import VERSION, as_utc
from thermhub.snapshot.store import SnapshotStore
from thermhub.storage import reading_repo
from thermhub.storage.database import connect, run_migrations
from thermhub.worker import Worker

logger = logging.getLogger(__name__)


def create_app(config: ThermHubConfig, store: SnapshotStore, worker: Worker) -> FastAPI:
    app = FastAPI(title="thermhub", version=VERSION)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.server.cors_host],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization"],
    )

    def authorize(authorization: str | None = Header(default=None)) -> None:
        secret = config.server.shared_secret.lower()
        presented = (authorization or "").lower().replace("bearer ", "")
        # No configured secret means nothing is authorized
        if not secret or presented != secret:
            raise HTTPException(status_code=403, detail="403 Forbidden")

    def _conn() -> sqlite3.Connection:
        conn = connect(config.db_path)
        run_migrations(conn)
        return conn

    def _token_manager(conn: sqlite3.Connection) -> TokenManager:
        ecobee = worker.pipeline.ecobee
        return TokenManager(conn, ecobee, config.ecobee.token_policy)

    # ── Snapshot endpoints ──────────────────────────────────────────

    @app.get("/now", dependencies=[Depends(authorize)])
    def now():
        """Current conditions, pre-rendered once per cycle."""
        return Response(content=store.serialized(), media_type="application/json")

    @app.get("/past", dependencies=[Depends(authorize)])
    def past(
        start_date: datetime = Query(alias="start-date"),
        end_date: datetime = Query(alias="end-date"),
    ):
        """Historical readings between two instants, inclusive."""
        start, end = as_utc(start_date), as_utc(end_date)
        if end < start:
            raise HTTPException(status_code=400, detail="end-date precedes start-date")
        try:
            conn = _conn()
        except PersistError as e:
            logger.error("History query failed: %s", e)
            raise HTTPException(status_code=500, detail="500 Internal Server Error") from e
        try:
            readings = reading_repo.query_readings(conn, start, end)
        except PersistError as e:
            logger.error("History query failed: %s", e)
            raise HTTPException(status_code=500, detail="500 Internal Server Error") from e
        finally:
            conn.close()
        return [r.to_dict() for r in readings]

    @app.get("/time", dependencies=[Depends(authorize)])
    def server_time():
        """Server epoch seconds, for devices without a real-time clock."""
        return PlainTextResponse(str(int(time.time())))

    @app.post("/refresh", dependencies=[Depends(authorize)])
    def refresh():
        """Run one collect cycle now and report how it went."""
        summary = worker.run_once()
        return summary.to_dict()

    @app.get("/status", dependencies=[Depends(authorize)])
    def status():
        snapshot, rendered = store.read()
        last = worker.last_summary
        return {
            "snapshot_version": store.version,
            "snapshot_bytes": len(rendered),
            "thermostats": len(snapshot.thermostats),
            **worker.status(),
            "last_cycle": last.to_dict() if last is not None else None,
        }

    @app.get("/version", dependencies=[Depends(authorize)])
    @app.get("/v", dependencies=[Depends(authorize)], include_in_schema=False)
    def version():
        return PlainTextResponse(VERSION)

    # ── ecobee install flow ─────────────────────────────────────────

    @app.get("/install/1", dependencies=[Depends(authorize)])
    def install_begin():
        conn = _conn()
        try:
            pin = _token_manager(conn).begin_install()
        except ThermHubError as e:
            logger.error("ecobee authorize failed: %s", e)
            raise HTTPException(status_code=500, detail="500 Internal Server Error") from e
        finally:
            conn.close()
        return pin.to_dict()

    @app.get("/install/2", dependencies=[Depends(authorize)])
    def install_complete(code: str):
        conn = _conn()
        try:
            token = _token_manager(conn).complete_install(code)
        finally:
            conn.close()
        return PlainTextResponse("true" if token is not None else "false")

    return app
