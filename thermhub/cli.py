"""CLI entry point for the thermhub collector."""

import argparse
import json
import logging
from datetime import datetime

from thermhub.auth.token_manager import TokenManager
from thermhub.config.loader import get_config_value, load_config
from thermhub.config.schema import ThermHubConfig
from thermhub.errors import ThermHubError
from thermhub.ingest.ecobee_client import EcobeeClient
from thermhub.models.common import as_utc, utc_now
from thermhub.snapshot.store import SnapshotStore
from thermhub.storage import reading_repo, token_repo
from thermhub.storage.database import session
from thermhub.worker import Worker

DEFAULT_CONFIG = "thermhub.yaml"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="thermhub",
        description="Thermostat and weather telemetry collector",
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG, help="Config YAML path"
    )
    parser.add_argument("--db", default=None, help="SQLite DB path (overrides config)")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    sub = parser.add_subparsers(dest="command")

    # serve
    sub.add_parser("serve", help="Self-check, then run the worker and HTTP server")

    # collect
    sub.add_parser("collect", help="Run one collect cycle and print the snapshot")

    # install
    install_p = sub.add_parser("install", help="Pair with ecobee")
    install_p.add_argument(
        "--code", help="Authorization code from step one; completes pairing"
    )

    # token
    sub.add_parser("token", help="Show the stored ecobee token state")

    # past
    past_p = sub.add_parser("past", help="Print stored readings in a time range")
    past_p.add_argument("--start", required=True, help="ISO-8601 start instant")
    past_p.add_argument("--end", required=True, help="ISO-8601 end instant")

    # config show / config get
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")
    get_p = config_sub.add_parser("get", help="Display one config value")
    get_p.add_argument("key", help="Dotted key, e.g. worker.throttle_seconds")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    if args.db:
        config = config.model_copy(update={"db_path": args.db})

    if args.command == "serve":
        return _cmd_serve(config)
    elif args.command == "collect":
        return _cmd_collect(config)
    elif args.command == "install":
        return _cmd_install(config, args)
    elif args.command == "token":
        return _cmd_token(config)
    elif args.command == "past":
        return _cmd_past(config, args)
    elif args.command == "config":
        return _cmd_config(config, args)
    else:
        parser.print_help()
        return 1


def _cmd_serve(config: ThermHubConfig) -> int:
    import uvicorn

    from thermhub.api import create_app

    if not config.server.shared_secret:
        print("Error: shared secret not configured (SHARED_SECRET); refusing to serve")
        return 1

    store = SnapshotStore()
    worker = Worker.from_config(config, store)
    summary = worker.run_once()
    if not summary.ok:
        print(f"Startup check failed, no data from any source: {summary.errors}")
        return 1

    worker.run_forever()
    app = create_app(config, store, worker)
    uvicorn.run(app, host=config.server.host, port=config.server.port)
    worker.stop()
    return 0


def _cmd_collect(config: ThermHubConfig) -> int:
    store = SnapshotStore()
    worker = Worker.from_config(config, store)
    summary = worker.run_once()
    print(json.dumps(summary.to_dict(), indent=2))
    print(store.serialized().decode())
    return 0 if summary.ok else 1


def _ecobee_client(config: ThermHubConfig) -> EcobeeClient:
    return EcobeeClient(
        client_id=config.ecobee.client_id,
        base_url=config.ecobee.base_url,
        scope=config.ecobee.scope,
        timeout=config.ecobee.timeout_seconds,
    )


def _cmd_install(config: ThermHubConfig, args) -> int:
    if not config.ecobee.client_id:
        print("Error: ecobee client id not configured (ECOBEE_CLIENT_ID)")
        return 1
    with session(config.db_path) as conn:
        manager = TokenManager(conn, _ecobee_client(config), config.ecobee.token_policy)
        if args.code is None:
            try:
                pin = manager.begin_install()
            except ThermHubError as e:
                print(f"Error: {e}")
                return 1
            print(f"Enter PIN {pin.ecobee_pin} under My Apps in the ecobee portal, then run:")
            print(f"  thermhub install --code {pin.code}")
            return 0

        token = manager.complete_install(args.code)
        if token is None:
            print("Pairing failed")
            return 1
        print(f"Paired; token expires {token.expires.isoformat()}")
        return 0


def _cmd_token(config: ThermHubConfig) -> int:
    with session(config.db_path) as conn:
        token = token_repo.get_token(conn)
        readings = reading_repo.count_readings(conn)
    if token is None:
        print(f"Token: absent | Readings stored: {readings}")
        return 1
    state = "expired" if token.expires <= utc_now() else "valid"
    print(f"Token: {state} (expires {token.expires.isoformat()}) | Readings stored: {readings}")
    return 0


def _cmd_past(config: ThermHubConfig, args) -> int:
    try:
        start = as_utc(datetime.fromisoformat(args.start))
        end = as_utc(datetime.fromisoformat(args.end))
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    with session(config.db_path) as conn:
        readings = reading_repo.query_readings(conn, start, end)
    print(json.dumps([r.to_dict() for r in readings], indent=2))
    return 0


def _cmd_config(config: ThermHubConfig, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    elif args.config_command == "get":
        try:
            print(get_config_value(config, args.key))
            return 0
        except KeyError as e:
            print(f"Error: {e}")
            return 1
    else:
        print("Use: config show | config get key")
        return 1
