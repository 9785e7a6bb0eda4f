#!/usr/bin/env python3
"""
studytime CLI - free time and reminder slots from the terminal.

Usage:
    python -m cli.main free-time busy.json --start 2025-01-06T00:00:00Z --end 2025-01-13T00:00:00Z
    python -m cli.main sync-file USER busy.json
    python -m cli.main sync-google USER token.json
    python -m cli.main show USER
    python -m cli.main reserve USER 10 --block-minutes 5
    python -m cli.main plan-questions USER COURSE 5
    python -m cli.main reply COURSE "send another question"
"""

import argparse
import json
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

from studytime import config
from studytime.collectors.calendar import GoogleCalendarBusySource, events_to_busy_intervals
from studytime.config import load_scheduling_config
from studytime.contracts import InvariantViolation
from studytime.free_time import (
    FreeTimeError,
    Interval,
    InvalidIntervalError,
    get_free_time_frames,
    total_duration,
)
from studytime.free_time.intervals import parse_instant
from studytime.free_time_store import FreeTimeStore, FreeTimeStoreError
from studytime.observability import configure_logging
from studytime.question_queue import (
    QuestionStore,
    QuestionStoreError,
    ReplyAction,
    assign_slots,
    handle_reply,
)
from studytime.sync import FreeTimeSync


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def print_free_time(free_time, as_json: bool = False):
    if as_json:
        print(json.dumps([iv.to_pair() for iv in free_time], indent=2))
        return
    rows = [
        [iv.start.isoformat(), iv.end.isoformat(), int(iv.duration.total_seconds() // 60)]
        for iv in free_time
    ]
    print_table(["Start", "End", "Minutes"], rows)
    total = int(total_duration(free_time).total_seconds() // 60)
    print(f"\n{len(free_time)} free intervals, {total} minutes")


def load_busy_file(path: str) -> list[Interval]:
    """
    Read busy intervals from JSON.

    Accepts a list of {"start": ISO, "end": ISO}, [start, end] pairs, or
    Google Calendar event resources ({"start": {"dateTime": ...}, ...}).
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("items") or data.get("events") or []

    if data and isinstance(data[0], dict) and isinstance(data[0].get("start"), dict):
        return events_to_busy_intervals(data)

    busy = []
    for entry in data:
        if isinstance(entry, dict):
            start, end = entry.get("start"), entry.get("end")
            if start is None or end is None:
                raise InvalidIntervalError(f"Busy entry needs both start and end: {entry!r}")
            busy.append(Interval(parse_instant(start), parse_instant(end)))
        else:
            busy.append(Interval.from_pair(entry))
    return busy


def _window(args, settings) -> tuple[datetime, datetime]:
    start = parse_instant(args.start) if args.start else datetime.now(UTC)
    if args.end:
        return start, parse_instant(args.end)
    days = args.days if args.days else settings.window_days
    return start, start + timedelta(days=days)


def cmd_free_time(args) -> int:
    """Compute free time from a busy file without persisting it."""
    settings = load_scheduling_config(args.config)
    window_start, window_end = _window(args, settings)
    min_keep = timedelta(minutes=args.min_keep) if args.min_keep else settings.min_keep

    busy = load_busy_file(args.busy_file)
    free_time = get_free_time_frames(window_start, busy, window_end, min_keep)

    if not args.json:
        print_header(f"Free time ({len(busy)} busy intervals)")
    print_free_time(free_time, args.json)
    return 0


def cmd_sync_file(args) -> int:
    """Regenerate a user's ledger from a busy file."""
    sync = _build_sync(args)
    window_start, window_end = _window(args, sync.settings)
    busy = load_busy_file(args.busy_file)

    result = sync.sync_from_busy(args.user_id, window_start, window_end, busy)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0
    print_header(f"Synced {args.user_id}")
    print_free_time(result.free_time)
    return 0


def cmd_sync_google(args) -> int:
    """Regenerate a user's ledger from their Google Calendars."""
    sync = _build_sync(args)
    sync.busy_source = GoogleCalendarBusySource.from_token_file(args.token_file)

    result = sync.sync_user(args.user_id)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0
    print_header(f"Synced {args.user_id} from Google Calendar")
    print(f"Busy intervals: {result.busy_count}")
    print_free_time(result.free_time)
    return 0


def cmd_show(args) -> int:
    """Show a user's stored ledger."""
    sync = _build_sync(args)
    free_time = sync.store.load(args.user_id)
    if free_time is None:
        print(f"No free time stored for {args.user_id}. Run sync first.", file=sys.stderr)
        return 1
    if not args.json:
        print_header(f"Free time for {args.user_id}")
    print_free_time(free_time, args.json)
    return 0


def cmd_reserve(args) -> int:
    """Reserve reminder slots against a user's ledger."""
    sync = _build_sync(args)
    block = timedelta(minutes=args.block_minutes) if args.block_minutes else None
    reservation = sync.reserve(args.user_id, args.num_events, block)

    if args.json:
        print(
            json.dumps(
                {
                    "scheduled": [t.isoformat() for t in reservation.scheduled],
                    "free_time": [iv.to_pair() for iv in reservation.free_time],
                },
                indent=2,
            )
        )
        return 0

    print_header(f"Reserved {len(reservation.scheduled)} slots for {args.user_id}")
    for i, t in enumerate(reservation.scheduled, 1):
        print(f"  {i:>3}. {t.isoformat()}")
    if not reservation.scheduled:
        print("  No free time left. Re-sync the calendar or free up some time.")
    print()
    print_free_time(reservation.free_time)
    return 0


def _load_course(args):
    questions = QuestionStore(args.questions)
    progress = questions.load(args.course_id)
    if progress is None:
        known = ", ".join(questions.course_ids()) or "none"
        print(f"Unknown course {args.course_id} (known: {known})", file=sys.stderr)
    return questions, progress


def cmd_plan_questions(args) -> int:
    """Reserve reminder slots and pair them with the course's upcoming questions."""
    _, progress = _load_course(args)
    if progress is None:
        return 1
    if progress.is_complete:
        print(f"All questions in {args.course_id} are answered.")
        return 0

    sync = _build_sync(args)
    requested = args.num_events if args.num_events is not None else sync.settings.reminders_per_batch
    block = timedelta(minutes=args.block_minutes) if args.block_minutes else None
    reservation = sync.reserve(args.user_id, min(requested, progress.remaining), block)
    slots = assign_slots(progress, reservation.scheduled)

    if args.json:
        print(
            json.dumps(
                [{"at": t.isoformat(), "question_id": q.id, "question": q.text} for t, q in slots],
                indent=2,
            )
        )
        return 0

    print_header(f"{len(slots)} questions planned for {args.user_id} ({args.course_id})")
    print_table(["When", "Id", "Question"], [[t.isoformat(), q.id, q.text] for t, q in slots])
    return 0


def cmd_reply(args) -> int:
    """Apply a student's reply: answer the pending question or send the next one."""
    questions, progress = _load_course(args)
    if progress is None:
        return 1

    outcome = handle_reply(progress, args.text)
    if outcome.progress != progress:
        questions.save(outcome.progress)

    if args.json:
        print(
            json.dumps(
                {
                    "action": outcome.action.value,
                    "question_id": outcome.question.id if outcome.question else None,
                    "remaining": outcome.progress.remaining,
                },
                indent=2,
            )
        )
        return 0

    if outcome.action is ReplyAction.ANSWERED:
        print(f"Marked {outcome.question.id} answered.")
    elif outcome.action is ReplyAction.SENT:
        print(outcome.question.text)
    elif outcome.action is ReplyAction.COMPLETE:
        print("All questions have been answered.")
    else:
        print("Not an answer or a request for another question.")
    return 0


def _build_sync(args) -> FreeTimeSync:
    settings = load_scheduling_config(args.config)
    store = FreeTimeStore(args.store, min_keep=settings.min_keep)
    return FreeTimeSync(store=store, settings=settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studytime", description="Free time and reminder slots")
    parser.add_argument("--store", help="Ledger JSON path (default: STUDYTIME_FREE_TIME_FILE)")
    parser.add_argument("--config", help="Scheduling YAML (default: config/scheduling.yaml)")
    parser.add_argument("--json", "-j", action="store_true", help="Output JSON")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    sub = parser.add_subparsers(dest="command", required=True)

    def add_window(p):
        p.add_argument("--start", help="Window start, ISO-8601 (default: now, UTC)")
        p.add_argument("--end", help="Window end, ISO-8601")
        p.add_argument("--days", type=int, help="Window length in days when --end is omitted")

    p = sub.add_parser("free-time", help="Compute free time from a busy JSON file")
    p.add_argument("busy_file")
    p.add_argument("--min-keep", type=int, help="Minimum free gap in minutes")
    add_window(p)
    p.set_defaults(func=cmd_free_time)

    p = sub.add_parser("sync-file", help="Regenerate a user's ledger from a busy JSON file")
    p.add_argument("user_id")
    p.add_argument("busy_file")
    add_window(p)
    p.set_defaults(func=cmd_sync_file)

    p = sub.add_parser("sync-google", help="Regenerate a user's ledger from Google Calendar")
    p.add_argument("user_id")
    p.add_argument("token_file", help="Authorized-user token JSON")
    p.set_defaults(func=cmd_sync_google)

    p = sub.add_parser("show", help="Show a user's stored free time")
    p.add_argument("user_id")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("reserve", help="Reserve reminder slots for a user")
    p.add_argument("user_id")
    p.add_argument("num_events", type=int, nargs="?", help="Reminders to place")
    p.add_argument("--block-minutes", type=int, help="Minutes each reminder occupies")
    p.set_defaults(func=cmd_reserve)

    p = sub.add_parser("plan-questions", help="Schedule a course's next questions into free time")
    p.add_argument("user_id")
    p.add_argument("course_id")
    p.add_argument("num_events", type=int, nargs="?", help="Questions to schedule")
    p.add_argument("--block-minutes", type=int, help="Minutes each reminder occupies")
    p.add_argument("--questions", help="questions.json path (default: STUDYTIME_QUESTIONS_FILE)")
    p.set_defaults(func=cmd_plan_questions)

    p = sub.add_parser("reply", help="Apply a student's reply to a course")
    p.add_argument("course_id")
    p.add_argument("text")
    p.add_argument("--questions", help="questions.json path (default: STUDYTIME_QUESTIONS_FILE)")
    p.set_defaults(func=cmd_reply)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_format=False)

    try:
        return args.func(args)
    except (
        FreeTimeError,
        FreeTimeStoreError,
        InvariantViolation,
        QuestionStoreError,
        FileNotFoundError,
        json.JSONDecodeError,
    ) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
