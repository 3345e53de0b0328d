"""Maintenance CLI - schema setup, score recomputation and integrity checks."""

import argparse
import logging
import sys

from sqlalchemy import select

from skillmatch.config import load_config, validate_config
from skillmatch.errors import ProfileEngineError
from skillmatch.models import Base, UserProfile
from skillmatch.models.base import build_engine, build_session_factory
from skillmatch.services.integrity import IntegrityReport, check_integrity
from skillmatch.services.profile_service import ProfileService
from skillmatch.storage.artifacts import create_artifact_store
from skillmatch.utils.logging_config import setup_logging

logger = logging.getLogger("skillmatch")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="SkillMatch profile maintenance",
    )
    parser.add_argument(
        "--config", default="config.yaml",
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--init-db", action="store_true",
        help="Create database tables and exit",
    )
    parser.add_argument(
        "--rescore", nargs="?", const="all", metavar="USER_ID",
        help="Recompute completion scores for one user or all users",
    )
    parser.add_argument(
        "--check", action="store_true",
        help="Report invariant violations between database and artifact store",
    )
    return parser.parse_args(argv)


def print_report(report: IntegrityReport):
    """Print an integrity report."""
    print("\n=== SkillMatch Integrity Check ===")
    if report.ok:
        print("No issues found.")
        print()
        return

    if report.multiple_defaults:
        print("\nUsers with more than one default resume:")
        for user_id, count in sorted(report.multiple_defaults.items()):
            print(f"  user {user_id}: {count} defaults")

    if report.missing_documents:
        print("\nDocuments whose file is missing from storage:")
        for document_id, locator in report.missing_documents:
            print(f"  document {document_id}: {locator}")

    if report.missing_images:
        print("\nProfile images missing from storage:")
        for user_id, locator in report.missing_images:
            print(f"  user {user_id}: {locator}")

    if report.unreferenced_artifacts:
        print("\nArtifacts no document or profile refers to:")
        for locator in report.unreferenced_artifacts:
            print(f"  {locator}")

    if report.stale_scores:
        print("\nStale completion scores (stored -> computed):")
        for user_id, (stored, computed) in sorted(report.stale_scores.items()):
            print(f"  user {user_id}: {stored} -> {computed}")
    print()


def rescore(service: ProfileService, session_factory, target: str) -> int:
    """Recompute scores; returns the number of profiles processed."""
    if target == "all":
        with session_factory() as session:
            user_ids = list(session.execute(select(UserProfile.user_id)).scalars())
    else:
        user_ids = [int(target)]

    for user_id in user_ids:
        score = service.rescore(user_id)
        logger.info("User %s completion: %s", user_id, score)
    return len(user_ids)


def main(argv=None):
    args = parse_args(argv)

    # Load config
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_dir, config.log_level)

    for w in validate_config(config):
        logger.warning("Config: %s", w)

    engine = build_engine(config.database.url, config.database.echo)
    session_factory = build_session_factory(engine)

    if args.init_db:
        Base.metadata.create_all(engine)
        logger.info("Database tables created at %s", config.database.url)
        return

    store = create_artifact_store(config.storage)

    if args.rescore:
        service = ProfileService(session_factory, store, config.storage.limits)
        try:
            count = rescore(service, session_factory, args.rescore)
        except (ProfileEngineError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"Recomputed completion for {count} profile(s).")
        return

    if args.check:
        with session_factory() as session:
            report = check_integrity(session, store)
        print_report(report)
        if not report.ok:
            sys.exit(2)
        return

    print("Nothing to do. Use --init-db, --rescore or --check.", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    main()
