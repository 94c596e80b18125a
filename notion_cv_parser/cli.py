from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from .export import build_migration_payload
from .parser import (
    DEFAULT_AUTHOR_EMAIL,
    DEFAULT_AUTHOR_NAME,
    parse_document_to_author,
    parse_document_to_projects,
)

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse an exported Notion CV into author and project records."
    )
    parser.add_argument("document", type=Path, help="Path to the exported CV markup")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("migration.json"),
        help="Output JSON file path",
    )
    parser.add_argument(
        "--existing-slugs",
        type=Path,
        default=None,
        help="Optional JSON list or newline-separated file of project slugs already in use.",
    )
    parser.add_argument(
        "--author-name",
        default=DEFAULT_AUTHOR_NAME,
        help="Author name used when the document carries no page title.",
    )
    parser.add_argument(
        "--default-email",
        default=DEFAULT_AUTHOR_EMAIL,
        help="Author email used when the document has no Email field.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log parser decisions at debug level.",
    )
    return parser


def load_existing_slugs(path: Path | None) -> list[str]:
    if path is None or not path.exists():
        return []
    raw = path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except ValueError:
        data = None
    if not isinstance(data, list):
        data = raw.splitlines()
    return [str(item).strip() for item in data if str(item).strip()]


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not args.document.exists():
        parser.error(f"document not found: {args.document}")

    text = args.document.read_text(encoding="utf-8")
    author = parse_document_to_author(
        text, default_name=args.author_name, default_email=args.default_email
    )
    projects = parse_document_to_projects(text)
    payload = build_migration_payload(
        author, projects, load_existing_slugs(args.existing_slugs)
    )
    args.output.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(
        f"Wrote {len(payload['projects'])} projects and "
        f"{len(payload['technologies'])} technologies for {author.name} to {args.output}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
