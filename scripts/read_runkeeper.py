#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from ohmage_runkeeper.errors import OmhError
from ohmage_runkeeper.services.columns import ColumnNode
from ohmage_runkeeper.services.payload_ids import RunKeeperPayloadId
from ohmage_runkeeper.services.runkeeper import MAX_NUMBER_TO_RETURN


@dataclass
class ReadConfig:
    payload_id: str
    bearer_token: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    num_to_skip: int = 0
    num_to_return: int = MAX_NUMBER_TO_RETURN
    column_list: str | None = None
    timeout_seconds: float = 30.0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Read a RunKeeper payload and print it as Open mHealth JSON."
    )
    parser.add_argument(
        "--payload-id",
        default="omh:run_keeper:fitnessActivities",
        help="Payload ID to read. Defaults to omh:run_keeper:fitnessActivities.",
    )
    parser.add_argument("--start-date", help="Earliest point (ISO-8601).")
    parser.add_argument("--end-date", help="Latest point (ISO-8601).")
    parser.add_argument("--skip", type=int, default=0, help="Points to skip.")
    parser.add_argument(
        "--limit",
        type=int,
        default=MAX_NUMBER_TO_RETURN,
        help=f"Points to return. Defaults to {MAX_NUMBER_TO_RETURN}.",
    )
    parser.add_argument(
        "--columns", help="Comma separated data columns, e.g. duration,type."
    )
    return parser.parse_args(argv)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def resolve_config(args: argparse.Namespace) -> ReadConfig:
    bearer_token = os.getenv("RUNKEEPER_BEARER_TOKEN", "").strip()
    if not bearer_token:
        raise ValueError("RUNKEEPER_BEARER_TOKEN is required.")
    if args.skip < 0:
        raise ValueError("--skip must not be negative.")
    if not 0 <= args.limit <= MAX_NUMBER_TO_RETURN:
        raise ValueError(f"--limit must be between 0 and {MAX_NUMBER_TO_RETURN}.")

    return ReadConfig(
        payload_id=args.payload_id,
        bearer_token=bearer_token,
        start_date=_parse_datetime(args.start_date),
        end_date=_parse_datetime(args.end_date),
        num_to_skip=args.skip,
        num_to_return=args.limit,
        column_list=args.columns,
    )


def run_read(config: ReadConfig, *, client: httpx.Client) -> dict[str, Any]:
    payload_id = RunKeeperPayloadId(config.payload_id.split(":"))
    request = payload_id.generate_read_request()
    request.service(
        "cli",
        lambda domain: {"bearer_cli": config.bearer_token},
        config.start_date,
        config.end_date,
        config.num_to_skip,
        config.num_to_return,
        client=client,
    )
    return {
        "count": request.get_num_data_points(),
        "data": request.respond(ColumnNode.from_column_list(config.column_list)),
    }


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(argv)
        config = resolve_config(args)
        with httpx.Client(timeout=config.timeout_seconds) as client:
            result = run_read(config, client=client)
        print(json.dumps(result, indent=2))
        return 0
    except (ValueError, OmhError) as exc:
        print(f"read_runkeeper failed: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
