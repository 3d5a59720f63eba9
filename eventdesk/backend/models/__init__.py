# Importing this package registers every table on Base.metadata
from eventdesk.backend.models.abstract import (
    Abstract,
    AbstractAuthor,
    AbstractCategory,
    AbstractReview,
    AbstractSettings,
)
from eventdesk.backend.models.activity import ActivityLog
from eventdesk.backend.models.base import Base
from eventdesk.backend.models.checkin import CheckinList, CheckinRecord
from eventdesk.backend.models.event import Event, EventSettings
from eventdesk.backend.models.faculty import AssignmentEmail, FacultyAssignment
from eventdesk.backend.models.form import Form, FormField, FormSubmission
from eventdesk.backend.models.payment import Payment
from eventdesk.backend.models.program import Session
from eventdesk.backend.models.registration import Registration, RegistrationAddon
from eventdesk.backend.models.sponsor import Sponsor, SponsorContact, SponsorTier
from eventdesk.backend.models.ticket import Addon, DiscountCode, TicketType

__all__ = [
    "Abstract",
    "AbstractAuthor",
    "AbstractCategory",
    "AbstractReview",
    "AbstractSettings",
    "ActivityLog",
    "Addon",
    "AssignmentEmail",
    "Base",
    "CheckinList",
    "CheckinRecord",
    "DiscountCode",
    "Event",
    "EventSettings",
    "FacultyAssignment",
    "Form",
    "FormField",
    "FormSubmission",
    "Payment",
    "Registration",
    "RegistrationAddon",
    "Session",
    "Sponsor",
    "SponsorContact",
    "SponsorTier",
    "TicketType",
]
