"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from eventdesk.backend.api.v1.endpoints import (
    abstracts,
    activity,
    checkin,
    events,
    faculty,
    forms,
    payments,
    program,
    registrations,
    speaker,
    sponsors,
    tickets,
)

router = APIRouter()

# Events, tickets and discounts
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(tickets.router)

# Registrations and payments
router.include_router(registrations.router, prefix="/registrations", tags=["registrations"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])

# Check-in
router.include_router(checkin.router)

# Program, faculty and speakers
router.include_router(program.router)
router.include_router(faculty.router)
router.include_router(speaker.router, prefix="/speaker", tags=["speaker"])

# Abstracts, sponsors and forms
router.include_router(abstracts.router)
router.include_router(sponsors.router)
router.include_router(forms.router, prefix="/forms", tags=["forms"])

# Audit trail
router.include_router(activity.router, prefix="/activity-logs", tags=["activity"])
