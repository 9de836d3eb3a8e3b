"""Compliance derivation rules for practice entities.

Turns service subscriptions and task history into compliance status,
recurrence deadlines, scorecards and alerts.

Modules:
- recurrence: Frequency parsing, next-occurrence and compliance periods
- classifier: Status bucket for a service from its due date
- status_taxonomy: Resolution of the tenant's "Completed" status id
- aggregator: Per-service records and compliance history
- scorecard: Overall compliance percentage and status counts
- deadlines: Prioritised upcoming deadlines
- alerts: Deadline alerts and notification trigger conditions
- engine: Tenant-bound facade over the modules above
"""
