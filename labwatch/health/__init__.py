"""Health subsystem — store, settings file, prober, scheduler, mutation API."""

from .errors import (
    IndexOutOfRange,
    InternalStateError,
    LoadFailure,
    MonitorError,
    PersistenceFailure,
)
from .models import Configuration, HealthReport, IconSet, ProbeResult, Service
from .persistence import SettingsFile
from .scheduler import PollScheduler
from .service import MonitorService
from .store import HealthStore
