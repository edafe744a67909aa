import asyncio

from loguru import logger

from vitalcheck.domain.models import PatientHistory
from vitalcheck.services.appointments import AppointmentService
from vitalcheck.services.medications import MedicationService
from vitalcheck.services.symptoms import SymptomService
from vitalcheck.services.vitals import VitalsService


class HistoryService:
    """Assembles the doctor's view of one patient."""

    def __init__(
        self,
        *,
        appointments: AppointmentService,
        medications: MedicationService,
        symptoms: SymptomService,
        vitals: VitalsService,
    ) -> None:
        self._appointments = appointments
        self._medications = medications
        self._symptoms = symptoms
        self._vitals = vitals

    async def patient_history(self, patient_id: str) -> PatientHistory:
        vitals, symptoms, medications, appointments = await asyncio.gather(
            self._vitals.list_for_patient(patient_id),
            self._symptoms.list_for_patient(patient_id),
            self._medications.list_for_patient(patient_id),
            self._appointments.list_for_patient(patient_id),
        )
        logger.info(
            "History for patient {}: {} vitals, {} symptoms, {} medications, {} appointments",
            patient_id,
            len(vitals),
            len(symptoms),
            len(medications),
            len(appointments),
        )
        return PatientHistory(
            patient_id=patient_id,
            vitals=tuple(VitalsService.annotate(vitals)),
            symptoms=tuple(symptoms),
            medications=tuple(medications),
            appointments=tuple(appointments),
        )
