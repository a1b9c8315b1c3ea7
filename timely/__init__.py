"""
Timely: composable schedule descriptions compiled to cron triggers.

Import components directly from their modules, for example:
- `timely.scheduling.builder`
- `timely.scheduling.cron`
- `timely.scheduling.jobs`
- `timely.scheduling.triggers`
"""

__version__ = "1.0.0"

__all__: list[str] = ["__version__"]
