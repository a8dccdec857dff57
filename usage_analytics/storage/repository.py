"""
Repository pattern for usage data access.

Loads the engine's inputs from a payload file and writes the developer
status export. These are the only places the project touches the disk.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .models import (
    DashboardSnapshot,
    IndividualUsage,
    PlanUsage,
    ProviderUsageTotal,
    UsageEvent,
    UsageSummary,
)
from usage_analytics.core.results import DeveloperExport


class UsageRepository:
    """Repository for reading usage payloads.

    A payload is a YAML (or JSON) document with ``events``,
    ``provider_totals`` and an optional ``snapshot``. The file is read once,
    lazily, on first access.
    """

    def __init__(self, payload_path: str):
        """Initialize the repository with a payload path.

        Args:
            payload_path: Path to the YAML/JSON payload file
        """
        self.payload_path = payload_path
        self._payload: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._payload is not None:
            return self._payload

        path = Path(self.payload_path)
        if not path.exists():
            raise FileNotFoundError(f"Usage payload not found: {self.payload_path}")

        with open(path, 'r', encoding='utf-8') as f:
            try:
                raw = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise yaml.YAMLError(f"Invalid YAML in payload {self.payload_path}: {e}")

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError("Usage payload must be a dictionary")

        unknown_keys = set(raw.keys()) - {'events', 'provider_totals', 'snapshot'}
        if unknown_keys:
            raise ValueError(f"Unknown payload keys: {unknown_keys}")

        self._payload = raw
        return raw

    def get_events(self) -> List[UsageEvent]:
        """Get usage events in file order.

        Timestamps are kept verbatim; a malformed one is the engine's
        concern, not a load error.

        Raises:
            ValueError: If an entry is missing fields or has invalid counts
        """
        entries = self._list_section('events')
        events = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValueError(f"Event at index {i} must be a dictionary")
            if 'occurred_at_ms' not in entry:
                raise ValueError(f"Event at index {i} missing occurred_at_ms")
            try:
                events.append(UsageEvent(
                    occurred_at_ms=str(entry['occurred_at_ms']),
                    request_count=_whole_number(entry, 'request_count'),
                    cost_cents=_whole_number(entry, 'cost_cents'),
                    provider=entry.get('provider'),
                    model=entry.get('model'),
                ))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Event at index {i} is invalid: {e}")
        return events

    def get_provider_totals(self) -> List[ProviderUsageTotal]:
        """Get provider running totals in file order.

        Raises:
            ValueError: If an entry is missing fields or has invalid counts
        """
        entries = self._list_section('provider_totals')
        totals = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValueError(f"Provider total at index {i} must be a dictionary")
            if 'provider' not in entry:
                raise ValueError(f"Provider total at index {i} missing provider")
            try:
                totals.append(ProviderUsageTotal(
                    provider=str(entry['provider']),
                    request_count=_whole_number(entry, 'request_count'),
                    spend_cents=_whole_number(entry, 'spend_cents'),
                ))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Provider total at index {i} is invalid: {e}")
        return totals

    def get_snapshot(self) -> Optional[DashboardSnapshot]:
        """Get the previous dashboard snapshot, if the payload has one."""
        raw = self._load().get('snapshot')
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ValueError("'snapshot' must be a dictionary")

        plan = raw.get('plan') or {}
        if not isinstance(plan, dict):
            raise ValueError("'snapshot.plan' must be a dictionary")
        try:
            plan_usage = PlanUsage(
                used=_whole_number(plan, 'used'),
                limit=_whole_number(plan, 'limit'),
                remaining=_whole_number(plan, 'remaining'),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"'snapshot.plan' is invalid: {e}")
        return DashboardSnapshot(
            usage_summary=UsageSummary(individual_usage=IndividualUsage(plan=plan_usage))
        )

    def _list_section(self, name: str) -> List[Any]:
        entries = self._load().get(name)
        if entries is None:
            return []
        if not isinstance(entries, list):
            raise ValueError(f"'{name}' must be a list")
        return entries


def _whole_number(entry: Dict[str, Any], key: str) -> int:
    # bool is an int subclass; floats would lose cents if truncated
    value = entry.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' has invalid type {type(value).__name__}")
    return value


def write_status_export(export: DeveloperExport) -> Path:
    """Write the developer status line to its export path.

    Parent directories are created as needed. The file holds the status
    line followed by a newline and is replaced on every write.

    Args:
        export: Export computed by the engine

    Returns:
        Path that was written
    """
    path = Path(export.export_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export.status_line + "\n", encoding='utf-8')
    return path
