"""Runner: load config, build store/channel, run evaluators once per tick."""
from __future__ import annotations

import logging
import os
import random
import re
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from croniter import croniter

from notifier.channel import get_channel
from notifier.dispatcher import Dispatcher
from notifier.errors import ConfigurationError
from notifier.evaluators import DEFAULT_EVALUATORS, get_evaluator
from notifier.models import EvaluatorReport, TickContext, TickReport
from notifier.store import MemoryStore, Store, get_store
from notifier.timeutil import minute_floor, to_local

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Bogota"
DEFAULT_CRON = "* * * * *"

# Match ${VAR_NAME} in config strings
ENV_PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _expand_env(value: Any) -> Any:
    """Replace ${ENV_VAR} in every string of a loaded config with os.environ values."""
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            return os.environ.get(match.group(1), match.group(0))
        return ENV_PLACEHOLDER_RE.sub(repl, value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def load_config(path: str | Path) -> dict:
    """Load YAML config from path, expanding ${ENV_VAR} placeholders."""
    with open(path, encoding="utf-8") as f:
        return _expand_env(yaml.safe_load(f) or {})


def _check_hour(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 23:
        raise ConfigurationError(f"config: {name} must be an hour between 0 and 23")
    return value


def validate_config(config: dict) -> None:
    """Validate timezone, cron, store, channel and evaluators; raise ConfigurationError."""
    if not isinstance(config, dict):
        raise ConfigurationError("config: top level must be a mapping")

    tz_name = config.get("timezone", DEFAULT_TIMEZONE)
    try:
        ZoneInfo(str(tz_name))
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"config: unknown timezone '{tz_name}'")

    cron_expr = config.get("cron", DEFAULT_CRON)
    if not croniter.is_valid(str(cron_expr)):
        raise ConfigurationError(f"config: invalid cron expression '{cron_expr}'")

    store_cfg = config.get("store") or {}
    if not isinstance(store_cfg, dict):
        raise ConfigurationError("config: store must be a dict")
    store_type = store_cfg.get("type", "firestore")
    if store_type not in ("firestore", "memory"):
        raise ConfigurationError(f"config: unknown store type '{store_type}'")
    if store_type == "memory" and not store_cfg.get("fixtures"):
        raise ConfigurationError("config: memory store requires 'fixtures'")

    channel_cfg = config.get("channel") or {}
    if not isinstance(channel_cfg, dict):
        raise ConfigurationError("config: channel must be a dict")
    if channel_cfg.get("type", "fcm") != "fcm":
        raise ConfigurationError(f"config: unknown channel type '{channel_cfg.get('type')}'")

    evaluators = config.get("evaluators")
    if evaluators is None:
        return
    if not isinstance(evaluators, list):
        raise ConfigurationError("config: evaluators must be a list")
    seen_ids = set()
    for i, ev in enumerate(evaluators):
        if not isinstance(ev, dict):
            raise ConfigurationError(f"config: evaluators[{i}] must be a dict")
        eid = ev.get("id")
        if not eid:
            raise ConfigurationError(f"config: evaluators[{i}] missing 'id'")
        if eid in seen_ids:
            raise ConfigurationError(f"config: duplicate evaluator id '{eid}'")
        seen_ids.add(eid)
        try:
            get_evaluator(eid)
        except KeyError:
            raise ConfigurationError(f"config: evaluator id '{eid}' not in evaluator registry")
        options = ev.get("options") or {}
        if not isinstance(options, dict):
            raise ConfigurationError(f"config: evaluators[{i}].options must be a dict")
        if "start_hour" in options or "end_hour" in options:
            start = _check_hour("start_hour", options.get("start_hour", 8))
            end = _check_hour("end_hour", options.get("end_hour", 23))
            if start > end:
                raise ConfigurationError("config: start_hour must not be after end_hour")
        lead = options.get("lead_minutes", 60)
        if isinstance(lead, bool) or not isinstance(lead, int) or lead < 0:
            raise ConfigurationError("config: lead_minutes must be a non-negative integer")


def evaluator_plan(config: dict, evaluator_id: str | None = None) -> list[tuple[str, dict]]:
    """Return [(evaluator_id, options)] to run, in config order."""
    entries = config.get("evaluators")
    if entries is None:
        entries = [{"id": eid} for eid in DEFAULT_EVALUATORS]
    if evaluator_id is not None:
        for ev in entries:
            if ev.get("id") == evaluator_id:
                return [(evaluator_id, ev.get("options") or {})]
        if evaluator_id in DEFAULT_EVALUATORS:
            return [(evaluator_id, {})]
        raise ValueError(f"evaluator id '{evaluator_id}' not found in config")
    return [(ev["id"], ev.get("options") or {}) for ev in entries if ev.get("enabled", True)]


def local_now(tz_name: str = DEFAULT_TIMEZONE, now: datetime | None = None) -> datetime:
    """Current (or given) time as wall-clock in the deployment's time zone."""
    tz = ZoneInfo(tz_name)
    if now is None:
        now = datetime.now(timezone.utc)
    return to_local(now, tz)


def build_store(config: dict) -> Store:
    store_cfg = config.get("store") or {}
    store_type = store_cfg.get("type", "firestore")
    if store_type == "memory":
        return MemoryStore.from_file(store_cfg["fixtures"])
    store_cls = get_store(store_type)
    return store_cls(
        collections=store_cfg.get("collections"),
        timeout=float(store_cfg.get("timeout", 10)),
    )


def build_dispatcher(config: dict, dry_run: bool) -> Dispatcher:
    if dry_run:
        return Dispatcher(None, dry_run=True)
    channel_cfg = config.get("channel") or {}
    channel_cls = get_channel(channel_cfg.get("type", "fcm"))
    return Dispatcher(channel_cls())


def _needs_firebase(config: dict, dry_run: bool) -> bool:
    store_type = (config.get("store") or {}).get("type", "firestore")
    return store_type == "firestore" or not dry_run


def run_tick(
    now: datetime,
    store: Store,
    dispatcher: Dispatcher,
    evaluators: list[tuple[str, dict]],
    rng: random.Random | None = None,
    dry_run: bool = False,
) -> TickReport:
    """Run evaluators sequentially for one tick; a failing evaluator never stops the next."""
    ctx = TickContext(
        now=now,
        store=store,
        dispatcher=dispatcher,
        rng=rng or random.Random(),
        dry_run=dry_run,
    )
    tick = TickReport(now=now)
    for evaluator_id, options in evaluators:
        try:
            evaluator = get_evaluator(evaluator_id).from_context(ctx, options)
            report = evaluator.evaluate(now)
        except Exception as e:
            logger.exception("evaluator %s failed at %s: %s", evaluator_id, now.isoformat(), e)
            report = EvaluatorReport(evaluator_id, errors=1)
        logger.info(
            "%s: dispatched=%s skipped=%s errors=%s",
            evaluator_id,
            report.dispatched,
            report.skipped,
            report.errors,
        )
        tick.reports.append(report)
    return tick


def _prepare(config_path: str | Path, dry_run: bool) -> tuple[dict, Store, Dispatcher]:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"config not found: {path}")
    config = load_config(path)
    validate_config(config)
    if _needs_firebase(config, dry_run):
        from notifier.channel.firebase import init_app

        init_app(config.get("channel") or {})
    if dry_run:
        logger.info("Dry-run mode enabled: will evaluate but not send or deactivate anything.")
    return config, build_store(config), build_dispatcher(config, dry_run)


def run(
    config_path: str | Path,
    at: datetime | None = None,
    evaluator_id: str | None = None,
    dry_run: bool = False,
) -> TickReport:
    """Load config and run a single tick at `at` (default: now in the configured zone)."""
    config, store, dispatcher = _prepare(config_path, dry_run)
    now = local_now(config.get("timezone", DEFAULT_TIMEZONE), at)
    evaluators = evaluator_plan(config, evaluator_id)
    logger.info("Tick at %s: %s", now.isoformat(), [eid for eid, _ in evaluators])
    return run_tick(now, store, dispatcher, evaluators, dry_run=dry_run)


def is_stale(boundary: datetime, now: datetime, tolerance: timedelta = timedelta(minutes=1)) -> bool:
    """A boundary more than `tolerance` in the past belongs to an overrun tick."""
    return now - boundary >= tolerance


def serve(
    config_path: str | Path,
    dry_run: bool = False,
    max_ticks: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], datetime] | None = None,
) -> None:
    """Run ticks on every cron boundary until interrupted.

    Ticks never overlap: boundaries that passed while a previous tick was still
    running are dropped and logged rather than executed late.
    """
    config, store, dispatcher = _prepare(config_path, dry_run)
    tz_name = config.get("timezone", DEFAULT_TIMEZONE)
    clock = clock or (lambda: local_now(tz_name))
    evaluators = evaluator_plan(config)
    schedule = croniter(config.get("cron", DEFAULT_CRON), minute_floor(clock()).replace(tzinfo=ZoneInfo(tz_name)))
    logger.info("Serving %s on '%s' (%s)", [eid for eid, _ in evaluators], config.get("cron", DEFAULT_CRON), tz_name)

    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        boundary = schedule.get_next(datetime)
        now = clock()
        if is_stale(boundary, now):
            logger.warning("Tick at %s skipped: previous tick overran", boundary.isoformat())
            continue
        delay = (boundary - now).total_seconds()
        if delay > 0:
            sleep(delay)
        run_tick(boundary, store, dispatcher, evaluators, dry_run=dry_run)
        ticks += 1
