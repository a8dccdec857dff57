# usage_analytics/demo/seed_demo_data.py

import sys
from datetime import datetime, timedelta, timezone

import yaml

output_path = sys.argv[1] if len(sys.argv) > 1 else "usage_demo.yaml"
now = datetime.now(timezone.utc)


def _ms(moment):
    return str(int(moment.timestamp() * 1000))


events = []
for day in range(5):
    base = now - timedelta(days=day, hours=2)
    for minute in (0, 10, 25, 90):
        events.append({
            "occurred_at_ms": _ms(base + timedelta(minutes=minute)),
            "request_count": 1,
            "cost_cents": 40 + day * 15,
            "provider": "openai",
        })

# recent activity for the live view
events.append({"occurred_at_ms": _ms(now - timedelta(minutes=12)), "request_count": 2, "cost_cents": 310, "provider": "openai"})
events.append({"occurred_at_ms": _ms(now - timedelta(minutes=3)), "request_count": 1, "cost_cents": 95, "provider": "anthropic"})

payload = {
    "events": events,
    "provider_totals": [
        {"provider": "openai", "request_count": 1840, "spend_cents": 52310},
        {"provider": "anthropic", "request_count": 420, "spend_cents": 18875},
    ],
    "snapshot": {"plan": {"used": 300, "limit": 500, "remaining": 200}},
}

with open(output_path, "w", encoding="utf-8") as f:
    yaml.safe_dump(payload, f, sort_keys=False)

print(f"Demo usage payload written to {output_path}")
