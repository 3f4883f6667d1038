from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from cardresolve.app import check_manifest, reset_cache, resolve_text
from cardresolve.config import configure_logging
from cardresolve.domain.model import Locale

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from cardresolve.app import RequestOutcome, SearchReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve card references")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve", help="Resolve the [card] searches in a message")
    resolve.add_argument("text", type=str, help="Message text containing [card name] searches")
    resolve.add_argument(
        "--user-id",
        type=str,
        default="cli",
        help="Identity the per-user search limit is charged to",
    )
    resolve.add_argument(
        "--locale",
        type=str,
        help="Default locale for searches without an explicit one (defaults to config)",
    )
    resolve.add_argument(
        "--rulings",
        action="store_true",
        help="Treat plain searches as ruling requests",
    )
    resolve.add_argument(
        "--official",
        action="store_true",
        help="Only use locally held official data",
    )

    subparsers.add_parser("check-manifest", help="Apply upstream changes since the last check")

    reset = subparsers.add_parser("reset-cache", help="Forget data learned from the remote source")
    reset.add_argument(
        "--all",
        action="store_true",
        dest="include_snapshot_terms",
        help="Also forget terms that point at snapshot cards",
    )

    return parser.parse_args(list(argv))


def _parse_locale(value: str | None) -> str | None:
    if value is None:
        return None
    locale = Locale.parse(value)
    if locale is None:
        raise ValueError(f"Unsupported locale: {value}")
    return locale.value


def _format_report(report: SearchReport) -> str:
    if report.card is not None:
        card = report.card
        name = card.names.get(Locale.EN) or next(iter(card.names.values()), report.canonical_term)
        line = f"{report.canonical_term}: {name} (id={card.card_id}, passcode={card.passcode})"
    elif report.ruling is not None:
        title = report.ruling.title_in(Locale.EN) or "untitled"
        line = f"{report.canonical_term}: Q&A {report.ruling.qa_id}: {title}"
    else:
        return f"{report.canonical_term}: no match"
    if report.unresolved:
        missing = "; ".join(
            f"{locale}: {''.join(sorted(categories))}"
            for locale, categories in sorted(report.unresolved.items())
        )
        line += f" missing {missing}"
    return line


def _print_outcome(outcome: RequestOutcome) -> None:
    if outcome.rejected and outcome.rate is not None:
        retry = outcome.rate.retry_after_seconds
        suffix = f", retry in {retry:.0f}s" if retry is not None else ""
        print(f"Search limit reached ({outcome.rate.used}/{outcome.rate.limit}){suffix}")
        return
    if not outcome.reports:
        print("No searches found")
        return
    for report in outcome.reports:
        print(_format_report(report))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        locale = _parse_locale(getattr(parsed_args, "locale", None))
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "resolve":
            outcome = resolve_text(
                parsed_args.text,
                user_id=parsed_args.user_id,
                locale=locale,
                rulings=parsed_args.rulings,
                official_only=parsed_args.official,
            )
            _print_outcome(outcome)
        elif parsed_args.command == "check-manifest":
            changed = check_manifest()
            log.info("Manifest check finished: changes applied=%s", changed)
        elif parsed_args.command == "reset-cache":
            reset_cache(include_snapshot_terms=parsed_args.include_snapshot_terms)
            log.info("Cache reset")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during resolution")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
