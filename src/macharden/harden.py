"""macharden - macOS hardening main entry point."""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from . import __version__, tasks
from .cli import Console
from .core.injection import get_container
from .core.interfaces import HostInterface
from .errors import HardenError, PrivilegeError
from .profile import EffectivePolicy, Profile, detect_network_name, resolve_profile
from .reconcile import ReconcileOptions, changes_planned, reconcile
from .subsystems import load_subsystems
from .subsystems.base import Subsystem
from .subsystems.browser import SafariSafeDownloads
from .subsystems.types import OutcomeRecord
from .utils.reporting import collect_summary, determine_exit_code, format_json_report, format_text_report

logger = logging.getLogger(__name__)

_LOG_NAME = "macos_hardening_%Y%m%d_%H%M%S.log"
_DATE_FORMAT = "%a %b %d %H:%M:%S %Y"

LOCKDOWN_NOTE = (
    "Inbound connections are blocked. AirDrop/AirPlay may be limited. "
    "Re-run without --strict (or with --profile home) to relax."
)


def default_log_path(now: Optional[datetime] = None) -> Path:
    return Path.home() / (now or datetime.now()).strftime(_LOG_NAME)


def configure_logging(log_file: Path, level: int = logging.INFO) -> List[logging.Handler]:
    """Configure logging for one run.

    The whole transcript is appended to ``log_file``; warnings from the
    library code also reach stderr. Returns the installed handlers so the
    caller can detach them when the run ends.
    """
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(file_handler)
    root.addHandler(console_handler)
    return [file_handler, console_handler]


def _detach_logging(handlers: Sequence[logging.Handler]) -> None:
    root = logging.getLogger()
    for handler in handlers:
        root.removeHandler(handler)
        handler.close()


@dataclass
class HardenOptions:
    profile: Optional[str]
    strict: bool
    apply_updates: bool
    dry_run: bool
    debug: bool
    report_path: Optional[Path]
    log_file: Path


def parse_args(argv: Sequence[str]) -> Tuple[argparse.Namespace, List[str]]:
    """Parse the command line; unrecognized tokens are returned, not fatal."""
    parser = argparse.ArgumentParser(
        prog="macharden",
        description="macharden - minimal macOS hardening with home/public profiles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sudo %(prog)s                       Ask for the network profile, then harden
  sudo %(prog)s --profile public      Non-interactive, public-network lockdown
  sudo %(prog)s home --strict         Home profile with public-level lockdown
  sudo %(prog)s --dry-run             Show what would change without changing it

If no profile is given you'll be asked to pick public or home.
A log is saved to ~/macos_hardening_<date>_<time>.log
""",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "shorthand",
        nargs="?",
        metavar="public|home",
        help="Shorthand for --profile",
    )
    parser.add_argument(
        "--profile",
        nargs="?",
        const="",
        metavar="public|home",
        help="Non-interactive; choose the network profile",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Apply public-style inbound blocking and sharing lockdown even on home",
    )
    parser.add_argument(
        "--apply-updates",
        action="store_true",
        help="Install all available software updates immediately (may reboot)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Probe everything and print the plan without changing anything",
    )
    parser.add_argument(
        "--report",
        type=Path,
        metavar="PATH",
        help="Also write a JSON outcome report to PATH",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_known_args(argv)


def build_options(args: argparse.Namespace, extras: List[str]) -> HardenOptions:
    profile = args.profile
    shorthand = args.shorthand
    if shorthand is not None:
        if shorthand.strip().lower() in {p.value for p in Profile}:
            if not profile:
                profile = shorthand
        else:
            extras.append(shorthand)
    return HardenOptions(
        profile=profile or None,
        strict=args.strict,
        apply_updates=args.apply_updates,
        dry_run=args.dry_run,
        debug=args.debug,
        report_path=args.report,
        log_file=default_log_path(),
    )


class _OutcomePrinter:
    """Live sectioned transcript of reconciliation outcomes.

    A section header is printed whenever the category changes; an optional
    follow-up runs when a category's last outcome has been shown.
    """

    def __init__(self, console: Console, followups: Dict[str, Callable[[], None]]):
        self.console = console
        self.followups = followups
        self._category: Optional[str] = None

    def __call__(self, subsystem: Subsystem, record: OutcomeRecord) -> None:
        if record.category != self._category:
            self._close_category()
            self._category = record.category
            self.console.section(record.category_display_name)
        self.console.outcome(subsystem.display_name, record)

    def _close_category(self) -> None:
        followup = self.followups.get(self._category or "")
        if followup is not None:
            followup()

    def finish(self) -> None:
        self._close_category()
        self._category = None


def _run(
    options: HardenOptions,
    policy: EffectivePolicy,
    host: HostInterface,
    console: Console,
    prompt: Callable[[str], str],
) -> int:
    dry_run = options.dry_run
    console.banner(f"macharden started: {datetime.now().strftime(_DATE_FORMAT)}")
    console.info(f"Selected profile: {policy.profile.value}; strict={int(policy.strict)}")
    if dry_run:
        console.info("Dry run: probing only, nothing will be changed.")

    console.section("System info")
    tasks.show_system_info(host, console)

    console.section("Checking for software updates")
    listing = tasks.list_updates(host, console)
    if listing is not None:
        if options.apply_updates and not dry_run:
            tasks.install_updates(host, console)
        elif options.apply_updates:
            console.info("Dry run: not installing updates.")
        else:
            console.info(
                "Skipping installation now. You'll be prompted at the end if updates are available."
            )

    console.section("FileVault status")
    tasks.filevault_status(host, console, open_settings=not dry_run)

    console.section("System Integrity Protection (SIP)")
    tasks.sip_status(host, console)

    subsystems = [subsystem_cls(host) for subsystem_cls in load_subsystems()]
    followups: Dict[str, Callable[[], None]] = {
        "firewall": lambda: tasks.firewall_report(host, console),
    }
    safari = next((s for s in subsystems if isinstance(s, SafariSafeDownloads)), None)
    if safari is not None:
        followups["browser"] = lambda: tasks.verify_safari(safari, console, restart=not dry_run)
    printer = _OutcomePrinter(console, followups)
    outcomes = reconcile(subsystems, policy, ReconcileOptions(dry_run=dry_run), on_outcome=printer)
    printer.finish()

    console.section("Auto-updates best practices")
    if dry_run:
        console.info("Dry run: automatic-update settings left unchanged.")
    else:
        tasks.configure_auto_updates(host, console)

    console.section("Listening ports snapshot")
    tasks.listening_ports(host, console)

    if listing is not None and not options.apply_updates:
        console.section("Final update prompt")
        if dry_run:
            console.info("Dry run: update installation skipped.")
        else:
            tasks.final_update_prompt(host, console, listing, prompt)

    run_info = {
        "profile": policy.profile.value,
        "strict": str(int(policy.strict)),
        "dry_run": str(int(dry_run)),
        "log": str(options.log_file),
    }
    logger.info("%s", format_text_report(outcomes=outcomes, run_info=run_info))
    console.summary_box(collect_summary(outcomes))
    if dry_run:
        planned = changes_planned(outcomes)
        console.info(f"{len(planned)} change(s) would be made.")
        console.bullet_list(f"{o.subsystem}: {o.detail}" for o in planned)
    if options.report_path is not None:
        try:
            options.report_path.write_text(
                format_json_report(outcomes=outcomes, run_info=run_info) + "\n",
                encoding="utf-8",
            )
            console.success(f"Report written to: {options.report_path}")
        except OSError as exc:
            console.warning(f"Could not write report to {options.report_path}: {exc}")

    console.blank()
    console.banner(f"Completed at: {datetime.now().strftime(_DATE_FORMAT)}")
    console.success(f"Log saved to: {options.log_file}")
    if policy.locked_down:
        console.hint(LOCKDOWN_NOTE)
    return determine_exit_code()


def main(
    argv: Sequence[str] | None = None,
    *,
    prompt: Callable[[str], str] = input,
    console: Console | None = None,
) -> int:
    args, known_extras = parse_args(sys.argv[1:] if argv is None else argv)
    extras = list(known_extras)
    options = build_options(args, extras)
    console = console or Console()
    host = get_container().host

    for token in extras:
        console.warning(f"Ignoring unrecognized argument: {token}")

    try:
        policy = resolve_profile(
            options.profile,
            options.strict,
            prompt=prompt,
            network_lookup=lambda: detect_network_name(host),
            announce=console.line,
        )
        if not host.is_root():
            raise PrivilegeError()
    except HardenError as exc:
        console.error(str(exc))
        return determine_exit_code(fatal=True)

    handlers = configure_logging(
        options.log_file, level=logging.DEBUG if options.debug else logging.INFO
    )
    try:
        logger.info("Run options: %s", options)
        return _run(options, policy, host, console, prompt)
    finally:
        _detach_logging(handlers)
