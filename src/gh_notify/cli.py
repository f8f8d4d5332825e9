"""CLI entry point for gh-notify.

gh-notify lists your GitHub notifications in fzf and lets you act on them
(view, open in the browser, mark read, comment) without leaving the terminal.
"""

import argparse
import sys

from . import __version__, github, selector
from .actions import handle_selection, help_entries, mark_all_read, toggle_subscription
from .config import Config, ensure_config_exists, load_config
from .errors import GhNotifyError
from .log import get_logger
from .pipeline import Options, build_table
from .table import FINAL_MSG, NEVER_MATCH

_log = get_logger("cli")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more: {value}")
    return number


def build_parser(config: Config) -> argparse.ArgumentParser:
    keys = "\n".join(f"  {key:<10}{description}" for key, description in help_entries(config.keys))
    parser = argparse.ArgumentParser(
        prog="gh-notify",
        description="Browse and act on your GitHub notifications with fzf",
        epilog=f"key bindings:\n{keys}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-a", dest="include_all", action="store_true", help="Include read notifications"
    )
    parser.add_argument(
        "-e",
        dest="exclude",
        metavar="PATTERN",
        default=NEVER_MATCH,
        help="Exclude notifications matching a regular expression",
    )
    parser.add_argument(
        "-f",
        dest="include",
        metavar="PATTERN",
        default="",
        help="Only show notifications matching a regular expression",
    )
    parser.add_argument(
        "-n",
        dest="limit",
        metavar="NUM",
        type=_non_negative_int,
        default=0,
        help="Max number of notifications to show (at most 100, 0 = all)",
    )
    parser.add_argument(
        "-p", dest="participating", action="store_true", help="Only participating or mentioned"
    )
    parser.add_argument(
        "-r", dest="mark_all_read", action="store_true", help="Mark all notifications as read"
    )
    parser.add_argument(
        "-s", dest="static", action="store_true", help="Print notifications without fzf"
    )
    parser.add_argument(
        "-u",
        dest="subscription_url",
        metavar="URL",
        help="Subscribe to or unsubscribe from an issue or pull request URL",
    )
    parser.add_argument(
        "-w", dest="preview", action="store_true", help="Show the preview window by default"
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Create the config file with defaults and print its path",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def options_from_args(args: argparse.Namespace) -> Options:
    return Options(
        include_all=args.include_all,
        participating=args.participating,
        exclude=args.exclude,
        include=args.include,
        limit=args.limit,
        static=args.static,
        preview=args.preview,
    )


def run(args: argparse.Namespace, config: Config) -> None:
    if args.init_config:
        print(ensure_config_exists())
        return

    github.require_gh()

    if args.subscription_url:
        state = toggle_subscription(args.subscription_url)
        print(f"{args.subscription_url}: {state.lower()}")
        return

    if args.mark_all_read:
        mark_all_read()
        print("All notifications have been marked as read.")
        return

    options = options_from_args(args)
    if not options.static:
        selector.check_fzf()

    table = build_table(options, config, color=not options.static or sys.stdout.isatty())
    if not table:
        print(FINAL_MSG)
        return

    if options.static:
        print(table)
        return

    selection = selector.run(table, options, config)
    if selection is None:
        return
    handle_selection(selection, config)


def main() -> None:
    config = load_config()
    args = build_parser(config).parse_args()

    try:
        run(args, config)
    except GhNotifyError as e:
        _log.error("fatal: %s", e)
        print(f"gh-notify: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
