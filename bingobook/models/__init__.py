"""ORM models; importing this package registers both tables and their triggers."""

from bingobook.models.entry import Entry
from bingobook.models.timesheet import TimesheetRow

__all__ = ["Entry", "TimesheetRow"]
