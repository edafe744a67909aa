from typing import NamedTuple

from loguru import logger

from vitalcheck.config import AppConfig
from vitalcheck.rules.timestamps import utc_now
from vitalcheck.services.appointments import AppointmentService
from vitalcheck.services.base import Clock
from vitalcheck.services.history import HistoryService
from vitalcheck.services.medications import MedicationService
from vitalcheck.services.reminders import ReminderSweepService
from vitalcheck.services.symptoms import SymptomService
from vitalcheck.services.vitals import VitalsService
from vitalcheck.store.ports import DocumentStoreProtocol


class Services(NamedTuple):
    appointments: AppointmentService
    medications: MedicationService
    symptoms: SymptomService
    vitals: VitalsService
    history: HistoryService
    reminders: ReminderSweepService


def build_services(
    config: AppConfig, store: DocumentStoreProtocol, clock: Clock = utc_now
) -> Services:
    """Wire every service to one store using the configured rules."""
    appointments = AppointmentService(
        store,
        conflict_window_minutes=config.rules.conflict_window_minutes,
        max_concurrency=config.store.max_concurrency,
        clock=clock,
    )
    medications = MedicationService(store, clock=clock)
    symptoms = SymptomService(store, clock=clock)
    vitals = VitalsService(store, recent_limit=config.rules.recent_vitals_limit, clock=clock)
    reminders = ReminderSweepService(
        store,
        frequencies=config.reminders.frequencies,
        timezone=config.reminders.timezone,
        clock=clock,
    )
    history = HistoryService(
        appointments=appointments,
        medications=medications,
        symptoms=symptoms,
        vitals=vitals,
    )
    logger.debug("Services built with conflict window {}m", config.rules.conflict_window_minutes)
    return Services(
        appointments=appointments,
        medications=medications,
        symptoms=symptoms,
        vitals=vitals,
        history=history,
        reminders=reminders,
    )
