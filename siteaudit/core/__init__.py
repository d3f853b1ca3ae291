"""
Core components for the site audit engine.

Contains:
- Base class for checkers
- Data models (CheckResult, AuditReport, analysis payloads)
- Checklist state machine and per-run audit context
"""
