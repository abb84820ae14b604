"""
Scheduling feature package.

Everything that decides when a meeting can happen lives here: the slot
grid and conflict filter, user-authored scheduling rules, the
auto-confirm policy, booking pattern learning and smart suggestions.
Each subpackage keeps its pure logic next to the repository and service
that feed it.
"""

from .api.router import public_router, router as scheduling_router  # noqa: F401
from .jobs.pattern_refresh_job import start_pattern_refresh_scheduler  # noqa: F401
