"""On-demand smoke tests: probe a site's endpoints concurrently and validate the responses."""

__version__ = "0.1.0"

from .models import ProbeOutcome, ProbeRequest, RunExpectations, RunReport
from .notify import Notifier
from .runner import handle_smoke, run_smoke
from .schema import SmokeInputError, SmokeRequest
from .settings import SmokeSettings

__all__ = [
    "Notifier",
    "ProbeOutcome",
    "ProbeRequest",
    "RunExpectations",
    "RunReport",
    "SmokeInputError",
    "SmokeRequest",
    "SmokeSettings",
    "handle_smoke",
    "run_smoke",
]
