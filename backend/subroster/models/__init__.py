from subroster.models.activity_log import ActivityLog  # noqa: F401
from subroster.models.absence import (  # noqa: F401
    Absence,
    AbsencePersonType,
    AbsenceReason,
    AbsentPerson,
    StaffRef,
    SubstituteRef,
)
from subroster.models.assignment import Assignment, AssignmentSlotClaim, HalfDay  # noqa: F401
from subroster.models.availability import (  # noqa: F401
    AvailabilityPeriod,
    RecurrenceEntry,
    SpecificAvailability,
    TimeSlot,
    Weekday,
)
from subroster.models.school import School  # noqa: F401
from subroster.models.staff import StaffMember  # noqa: F401
from subroster.models.substitute import Substitute  # noqa: F401
from subroster.models.user import User, UserRole  # noqa: F401
