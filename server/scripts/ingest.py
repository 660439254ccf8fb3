#!/usr/bin/env python3
"""
Embed every content item and upsert it to Pinecone (metadata {"type": <tag>}).

Reads movies, TV series, anime and games from Firestore or JSON exports, builds the
per-type embedding text, embeds in batches via OpenAI and upserts with vector id =
content id. Batches are retried with back-off; a batch that keeps failing is skipped.

Requires:
  - PINECONE_API_KEY in env (or --pinecone-key)
  - OPENAI_API_KEY in env (or --openai-key)
  - For Firestore: FIREBASE_CREDENTIALS_PATH / GOOGLE_APPLICATION_CREDENTIALS or --credentials

Usage:
  From repo root:
    # All four content types from the configured DATA_SOURCE
    python -m server.scripts.ingest

    # Only anime and games from JSON exports, first 200 of each
    python -m server.scripts.ingest --types anime game --source json --data-dir data --limit 200
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import List

from recommender import IngestionPipeline, IngestionReport
from recommender.errors import ConfigurationError, UnknownContentType
from recommender.models import CONTENT_TYPE_ORDER, ContentType

from server.config import ServerConfig, configure_logging, get_config
from server.state import AppState

TYPE_CHOICES = [ct.value for ct in CONTENT_TYPE_ORDER] + ["tv_series"]


def format_report(report: IngestionReport) -> str:
    line = (
        f"[{report.content_type.value}] {report.state.value}: processed {report.processed}, "
        f"ingested {report.ingested}, skipped {report.skipped}, batches {report.batches}"
    )
    if report.error:
        line += f" (error: {report.error})"
    return line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Embed content and upsert it to Pinecone")
    parser.add_argument(
        "--types",
        nargs="+",
        choices=TYPE_CHOICES,
        default=None,
        help="Content types to ingest (default: movie tvseries anime game)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Max records per content type (default: all)",
    )
    parser.add_argument(
        "--source",
        choices=("firestore", "json"),
        default=None,
        help="Where to read content from (default: DATA_SOURCE env)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory of <collection>.json files when --source=json (default: CONTENT_JSON_DIR)",
    )
    parser.add_argument(
        "--credentials",
        type=Path,
        default=None,
        help="Path to Firebase service account JSON (for --source firestore)",
    )
    parser.add_argument("--openai-key", default=None, help="OpenAI API key (default: OPENAI_API_KEY env)")
    parser.add_argument("--pinecone-key", default=None, help="Pinecone API key (default: PINECONE_API_KEY env)")
    return parser


def build_state(args: argparse.Namespace, cfg: ServerConfig) -> AppState:
    """AppState for this run: command-line keys and source override the environment."""
    source = args.source or ("firestore" if cfg.data_source == "firebase" else "json")
    run_config = replace(
        cfg,
        openai_api_key=args.openai_key or cfg.openai_api_key,
        pinecone_api_key=args.pinecone_key or cfg.pinecone_api_key,
        data_source="firebase" if source == "firestore" else "json",
        content_json_dir=args.data_dir or cfg.content_json_dir,
        firebase_credentials_path=args.credentials or cfg.firebase_credentials_path,
    )
    return AppState(run_config)


def main(argv: List[str] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = get_config()
    configure_logging(cfg.log_level)

    state = build_state(args, cfg)
    if not state.config.openai_api_key:
        print("OPENAI_API_KEY (or --openai-key) required.", file=sys.stderr)
        return 1
    if not state.config.pinecone_api_key:
        print("PINECONE_API_KEY (or --pinecone-key) required.", file=sys.stderr)
        return 1

    try:
        repository = state.repository
    except ConfigurationError as e:
        print(f"Content source unavailable: {e}", file=sys.stderr)
        return 1

    index = state.vector_index
    types = [ContentType.parse(t) for t in (args.types or [ct.value for ct in CONTENT_TYPE_ORDER])]
    print(f"Ingesting {', '.join(ct.value for ct in types)} from {state.config.data_source} into index {index.index_name!r}")

    try:
        index.ensure_index()
        pipeline = IngestionPipeline(repository, state.embedder, index, config=state.ingestion_config)
        reports = asyncio.run(pipeline.run(types, limit=args.limit))
    except (ConfigurationError, UnknownContentType) as e:
        print(f"Ingestion failed: {e}", file=sys.stderr)
        return 1

    for report in reports:
        print(format_report(report))
    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
