from marketpulse.scheduling.scheduler import RecurringJob, ReportScheduler
from marketpulse.scheduling.triggers import DailyTrigger, IntervalTrigger, Trigger

__all__ = [
    "DailyTrigger",
    "IntervalTrigger",
    "RecurringJob",
    "ReportScheduler",
    "Trigger",
]
