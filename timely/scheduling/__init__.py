"""
Scheduling package.

Import components directly from their modules, for example:
- `timely.scheduling.fields`
- `timely.scheduling.builder`
- `timely.scheduling.cron`
- `timely.scheduling.registry`
- `timely.scheduling.jobs`
- `timely.scheduling.triggers`
"""

__all__: list[str] = []
