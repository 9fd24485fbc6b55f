"""
Delete expired refresh tokens. Meant for cron, from the project root:

  python -m taskify.scripts.purge_tokens [--dry-run]

Example crontab line (hourly):
  0 * * * * cd /srv/taskify && .venv/bin/python -m taskify.scripts.purge_tokens
"""
import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from taskify.core.config import get_settings
from taskify.core.database import session_scope
from taskify.services.token_purge import count_expired_refresh_tokens, purge_expired_refresh_tokens

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete refresh tokens past their expiry.")
    parser.add_argument("--dry-run", action="store_true", help="Only report how many would be deleted")
    args = parser.parse_args(argv)

    try:
        with session_scope() as db:
            if args.dry_run:
                logger.info("Dry run: %s expired refresh tokens", count_expired_refresh_tokens(db))
                return 0
            deleted = purge_expired_refresh_tokens(db, get_settings())
    except SQLAlchemyError:
        logger.exception("Token purge failed")
        return 1
    logger.info("Token purge finished: deleted=%s", deleted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
