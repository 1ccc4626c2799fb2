from .user_profile import UserProfile
from .patient import Patient
from .appointment import Appointment
from .lead import Lead
from .consultation import ConsultationPatient, Consultation
from .patient_packet import PatientPacket
from .lab_script import LabScript, LabScriptComment
from .field_visibility_rule import FieldVisibilityRule
from .surgical_recall import SurgicalRecallSheet, SurgicalRecallImplant, SurgicalRecallGraftMembrane
from .agreement import FinancialAgreement, ThankYouPreSurgeryForm
from .audit_log import AuditLog

__all__ = [
    "UserProfile", "Patient", "Appointment", "Lead", "ConsultationPatient", "Consultation",
    "PatientPacket", "LabScript", "LabScriptComment", "FieldVisibilityRule",
    "SurgicalRecallSheet", "SurgicalRecallImplant", "SurgicalRecallGraftMembrane",
    "FinancialAgreement", "ThankYouPreSurgeryForm", "AuditLog",
]
