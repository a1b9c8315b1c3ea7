"""
Runtime package.

Import components directly from their modules:
- `timely.runtime.config`
- `timely.runtime.context`
- `timely.runtime.bootstrap`
"""

__all__: list[str] = []
