"""Initial front desk schema

Revision ID: 3c9a1f0e2b7d
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9a1f0e2b7d'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def _agreement_table(name):
    op.create_table(
        name,
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('patient_id', sa.String(length=36), nullable=True, index=True),
        sa.Column('lead_id', sa.String(length=36), nullable=True, index=True),
        sa.Column('new_patient_packet_id', sa.String(length=36), nullable=True),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('form_data_json', sa.Text(), nullable=False, server_default='{}'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft', index=True),
        sa.Column('form_version', sa.String(length=10), nullable=True),
        sa.Column('patient_signature', sa.Text(), nullable=True),
        sa.Column('signed_at', sa.DateTime(), nullable=True),
        sa.Column('pdf_url', sa.String(length=500), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('updated_by', sa.String(length=36), nullable=True),
        *_timestamps(),
    )


def upgrade():
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('username', sa.String(length=80), nullable=False, unique=True, index=True),
        sa.Column('email', sa.String(length=120), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, index=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active', index=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('login_count', sa.Integer(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'new_patient_leads',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('personal_first_name', sa.String(length=100), nullable=True),
        sa.Column('personal_last_name', sa.String(length=100), nullable=True),
        sa.Column('date_of_birth', sa.String(length=10), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('personal_phone', sa.String(length=20), nullable=True),
        sa.Column('personal_email', sa.String(length=120), nullable=True),
        sa.Column('best_contact_time', sa.String(length=50), nullable=True),
        sa.Column('reason_for_visit', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=True, index=True),
        sa.Column('source', sa.String(length=50), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'consultation_patients',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('date_of_birth', sa.String(length=10), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('consultation_date', sa.String(length=10), nullable=True),
        sa.Column('consultation_time', sa.String(length=5), nullable=True),
        sa.Column('lead_id', sa.String(length=36), sa.ForeignKey('new_patient_leads.id'), nullable=True, index=True),
        sa.Column('status', sa.String(length=30), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'patients',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('date_of_birth', sa.String(length=10), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('street', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=50), nullable=True),
        sa.Column('zip_code', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=True),
        sa.Column('treatment_type', sa.String(length=100), nullable=True),
        sa.Column('consultation_patient_id', sa.String(length=36), sa.ForeignKey('consultation_patients.id'),
                  nullable=True, index=True),
        *_timestamps(),
    )

    op.create_table(
        'new_patient_packets',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('first_name', sa.String(length=100), nullable=False, index=True),
        sa.Column('last_name', sa.String(length=100), nullable=False, index=True),
        sa.Column('date_of_birth', sa.String(length=10), nullable=True, index=True),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('submission_source', sa.String(length=30), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('patient_id', sa.String(length=36), sa.ForeignKey('patients.id'), nullable=True, index=True),
        sa.Column('assigned_user_id', sa.String(length=36), sa.ForeignKey('user_profiles.id'),
                  nullable=True, index=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False, index=True),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('appointment_type', sa.String(length=50), nullable=False, index=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'consultations',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('appointment_id', sa.String(length=36), sa.ForeignKey('appointments.id'), nullable=False, index=True),
        sa.Column('consultation_patient_id', sa.String(length=36), sa.ForeignKey('consultation_patients.id'),
                  nullable=True, index=True),
        sa.Column('patient_id', sa.String(length=36), sa.ForeignKey('patients.id'), nullable=True, index=True),
        sa.Column('new_patient_packet_id', sa.String(length=36), sa.ForeignKey('new_patient_packets.id'),
                  nullable=True, index=True),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('consultation_date', sa.String(length=10), nullable=True),
        sa.Column('consultation_status', sa.String(length=30), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'lab_scripts',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('patient_id', sa.String(length=36), sa.ForeignKey('patients.id'), nullable=True, index=True),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('arch_type', sa.String(length=10), nullable=False),
        sa.Column('upper_appliance_type', sa.String(length=50), nullable=True),
        sa.Column('lower_appliance_type', sa.String(length=50), nullable=True),
        sa.Column('upper_treatment_type', sa.String(length=50), nullable=True),
        sa.Column('lower_treatment_type', sa.String(length=50), nullable=True),
        sa.Column('screw_type', sa.String(length=50), nullable=True),
        sa.Column('custom_screw_type', sa.String(length=100), nullable=True),
        sa.Column('material', sa.String(length=50), nullable=True),
        sa.Column('shade', sa.String(length=20), nullable=True),
        sa.Column('vdo_details', sa.String(length=100), nullable=True),
        sa.Column('is_nightguard_needed', sa.String(length=10), nullable=True),
        sa.Column('requested_date', sa.String(length=10), nullable=False),
        sa.Column('due_date', sa.String(length=10), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending', index=True),
        *_timestamps(),
    )

    op.create_table(
        'lab_script_comments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('lab_script_id', sa.String(length=36), sa.ForeignKey('lab_scripts.id'), nullable=False, index=True),
        sa.Column('comment_text', sa.Text(), nullable=False),
        sa.Column('author_name', sa.String(length=200), nullable=True),
        sa.Column('author_role', sa.String(length=20), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'field_visibility_rules',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('field_name', sa.String(length=100), nullable=False, index=True),
        sa.Column('rule_type', sa.String(length=20), nullable=False),
        sa.Column('condition_field', sa.String(length=30), nullable=False),
        sa.Column('condition_values_json', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('arch_type', sa.String(length=10), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )

    op.create_table(
        'surgical_recall_sheets',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('patient_id', sa.String(length=36), sa.ForeignKey('patients.id'), nullable=False, index=True),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('surgery_date', sa.String(length=10), nullable=False),
        sa.Column('arch_type', sa.String(length=10), nullable=False),
        sa.Column('upper_surgery_type', sa.String(length=100), nullable=True),
        sa.Column('lower_surgery_type', sa.String(length=100), nullable=True),
        sa.Column('is_graft_used', sa.Boolean(), nullable=True),
        sa.Column('is_membrane_used', sa.Boolean(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('created_by', sa.String(length=36), sa.ForeignKey('user_profiles.id'), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'surgical_recall_implants',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('surgical_recall_sheet_id', sa.String(length=36), sa.ForeignKey('surgical_recall_sheets.id'),
                  nullable=False, index=True),
        sa.Column('arch_type', sa.String(length=10), nullable=False),
        sa.Column('position', sa.String(length=20), nullable=False),
        sa.Column('implant_brand', sa.String(length=100), nullable=True),
        sa.Column('implant_subtype', sa.String(length=100), nullable=True),
        sa.Column('implant_size', sa.String(length=50), nullable=True),
        sa.Column('implant_picture_url', sa.String(length=500), nullable=True),
        sa.Column('mua_brand', sa.String(length=100), nullable=True),
        sa.Column('mua_subtype', sa.String(length=100), nullable=True),
        sa.Column('mua_size', sa.String(length=50), nullable=True),
        sa.Column('mua_picture_url', sa.String(length=500), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'surgical_recall_grafts_membranes',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('surgical_recall_sheet_id', sa.String(length=36), sa.ForeignKey('surgical_recall_sheets.id'),
                  nullable=False, index=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('brand_type', sa.String(length=200), nullable=False),
        sa.Column('picture_url', sa.String(length=500), nullable=True),
        *_timestamps(),
    )

    _agreement_table('financial_agreements')
    _agreement_table('thank_you_pre_surgery_forms')

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('entity_type', sa.String(length=64), nullable=False, index=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True, index=True),
        sa.Column('action', sa.String(length=32), nullable=False, index=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('user_profiles.id'), nullable=True, index=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade():
    for table in (
        'audit_logs', 'thank_you_pre_surgery_forms', 'financial_agreements',
        'surgical_recall_grafts_membranes', 'surgical_recall_implants', 'surgical_recall_sheets',
        'field_visibility_rules', 'lab_script_comments', 'lab_scripts', 'consultations',
        'appointments', 'new_patient_packets', 'patients', 'consultation_patients',
        'new_patient_leads', 'user_profiles',
    ):
        op.drop_table(table)
