"""Command line entry point for corpus maintenance: ingest, clear and validate."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from typing import Any

from docchat.config import get_settings
from docchat.errors import BatchDeleteError, ChunkStoreUnavailableError
from docchat.logging_config import configure_logging
from docchat.services.corpus import get_corpus_service


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="docchat", description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Clear the store and ingest a corpus directory.")
    ingest.add_argument(
        "corpus_dir",
        nargs="?",
        default=None,
        help="Directory with manifest.json or PDF/text files (defaults to CORPUS_DIR).",
    )

    subparsers.add_parser("clear", help="Delete every chunk and document from the store.")

    validate = subparsers.add_parser("validate", help="Sample stored chunks and report a quality score.")
    validate.add_argument("--sample-size", type=int, default=10)
    validate.add_argument("--threshold", type=float, default=80.0)

    return parser.parse_args(argv)


def _print(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    configure_logging(get_settings().log_dir)
    service = get_corpus_service()

    try:
        if args.command == "ingest":
            report = service.rebuild(args.corpus_dir)
            _print(
                {
                    "documents": report.documents,
                    "chunks": report.chunks,
                    "document_ids": report.document_ids,
                    "failures": [{"filename": name, "error": error} for name, error in report.failures],
                    "reset": asdict(report.reset) if report.reset is not None else None,
                }
            )
            return 0 if report.ok else 1

        if args.command == "clear":
            _print(asdict(service.clear()))
            return 0

        validation = service.validate(sample_size=args.sample_size, threshold=args.threshold)
        _print(validation.to_record())
        return 0 if validation.ok else 1
    except BatchDeleteError as exc:
        _print(
            {
                "error": str(exc),
                "failed_batches": [asdict(batch) for batch in exc.failed_batches],
            }
        )
        return 2
    except (ChunkStoreUnavailableError, FileNotFoundError, ValueError) as exc:
        _print({"error": str(exc)})
        return 2


if __name__ == "__main__":
    sys.exit(main())
