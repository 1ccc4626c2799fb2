"""
Financial Agreement document.

``data`` uses the stored form keys (snake_case): patient_name,
chart_number, date_of_birth, date_of_execution, time_of_execution,
accepted_treatments (service, fee, cdt_code, cpt_code, initials),
total_cost_of_treatment, patient_payment_today, remaining_balance,
remaining_payment_plan, the per-section initials, care package election,
acknowledgement flags, signatures and office-use fields.
"""
from datetime import date

from reportlab.lib import colors

from frontdesk.utils.pdf_utils import (
    FONT, FONT_BOLD, LetterheadDocument, format_money,
)

TITLE = 'Financial Agreement'

LAB_FEE_TEXT = (
    'Lab Fee: A $10,000 (ten thousand dollars) non-refundable lab advance is charged once records '
    'are submitted. I acknowledge this fee was discussed and consented to today.'
)
NON_REFUNDABLE_TEXT = (
    'All payments made under this Agreement for listed services are non-refundable, '
    'even if I discontinue treatment.'
)
WARRANTY_TEXT = (
    '3-Year "Peace of Mind" Guarantee covers materials & workmanship only if BOTH conditions are met:'
)
ENROLL_TEXT = 'I elect to enroll in the Care Package and understand its terms.'
DEFER_TEXT = 'I elect to defer enrollment, and agree to pay for any complications within 3 years and thereafter.'
CAPACITY_TEXT = 'I confirm I am >= 18 years old, of sound mind, and fluent in English (or declined an interpreter).'
HIPAA_TEXT = (
    'I acknowledge receipt of the Notice of Privacy Practices and consent to communication of billing '
    'information via unencrypted email/SMS.'
)
LEGAL_PROVISIONS = (
    '1. Governing Law & Venue: This Agreement is governed by New York Law. Any dispute shall be resolved by '
    'binding arbitration in Monroe County, NY under AAA rules.',
    '2. Amendments: No modification is effective unless in writing and signed by both parties.',
    '3. Severability: If any provision is deemed invalid, the remainder shall remain in full force.',
)


def _get(data, key, default=''):
    value = data.get(key)
    return default if value is None else value


def _treatment_value(treatment, snake, camel):
    return treatment.get(snake) or treatment.get(camel) or ''


def total_amount_due(data):
    """Base treatment cost plus the care package fee when enrolled."""
    try:
        base = float(data.get('total_cost_of_treatment') or 0)
    except (TypeError, ValueError):
        base = 0.0
    try:
        care = float(data.get('care_package_fee') or 0)
    except (TypeError, ValueError):
        care = 0.0
    return base + care if data.get('care_package_election') == 'enroll' else base


def _patient_identification(doc, data):
    doc.section('1. Patient & Treatment Identification', required=50)
    for label, key in (('Patient Name:', 'patient_name'), ('Chart #:', 'chart_number'),
                       ('Date of Birth:', 'date_of_birth'), ('Date of Execution:', 'date_of_execution'),
                       ('Time of Execution:', 'time_of_execution')):
        doc.label_value(label, _get(data, key))
    doc.space(5)

    treatments = data.get('accepted_treatments') or []
    if treatments:
        doc.ensure_space(30 + len(treatments) * 8)
        doc.subheading('Accepted Treatments:')
        rows = [['Service', 'Fee', 'CDT Code', 'CPT Code', 'Initials']]
        for t in treatments:
            service = doc.wrap(_treatment_value(t, 'service', 'service'), 75, 8)
            rows.append([
                service[0] if service else '',
                _treatment_value(t, 'fee', 'fee'),
                _treatment_value(t, 'cdt_code', 'cdtCode') or 'N/A',
                _treatment_value(t, 'cpt_code', 'cptCode') or 'N/A',
                _treatment_value(t, 'initials', 'initials'),
            ])
        doc.table(rows, [78, 25, 25, 25, 27])

    doc.label_value('Total Cost of Treatment:', f"${format_money(data.get('total_cost_of_treatment'))}",
                    x=80, value_offset=50)
    doc.space(4)


def _fees(doc, data):
    doc.section('2. Non-Refundable & Lab Fees', required=35)
    doc.paragraph(NON_REFUNDABLE_TEXT)
    doc.paragraph(LAB_FEE_TEXT)
    doc.initials('Patient initials:', data.get('lab_fee_initials'))


def _warranty(doc, data):
    doc.section('3. Warranty & Care Package Conditions', required=60)
    doc.paragraph(WARRANTY_TEXT)
    doc.paragraph('1. Attend scheduled follow-up visits every 6 months.', indent=10)
    doc.paragraph(
        f"2. Enroll in the Post-Surgery Care Package at ${format_money(data.get('care_package_fee'), '3450.00')} dollars.",
        indent=10,
    )
    election = data.get('care_package_election')
    doc.checkbox(ENROLL_TEXT, election == 'enroll', indent=4)
    doc.checkbox(DEFER_TEXT, election == 'defer', indent=4)
    doc.initials('Patient initials:', data.get('warranty_initials'))


def _payment_terms(doc, data):
    doc.section('4. Payment & Balance Terms', required=80)
    doc.label_value('Patient Payment Today', f"${format_money(data.get('patient_payment_today'))}",
                    value_offset=0, advance=False)
    doc.label_value('Remaining Balance', f"${format_money(data.get('remaining_balance'))}",
                    x=95, value_offset=0, advance=False)
    doc.space(10)

    summary = [['Payment Calculation Summary', ''],
               ['Base Treatment Cost:', f"${format_money(data.get('total_cost_of_treatment'))}"]]
    if data.get('care_package_election') == 'enroll':
        summary.append(['+ Care Package Fee:', f"+${format_money(data.get('care_package_fee'))}"])
    summary += [
        ['Total Amount Due:', f"${total_amount_due(data):.2f}"],
        ['- Payment Today:', f"-${format_money(data.get('patient_payment_today'))}"],
        ['Remaining Balance:', f"${format_money(data.get('remaining_balance'))}"],
    ]
    doc.table(summary, [120, 60], size=9)

    plan = data.get('remaining_payment_plan')
    plan_text = plan.replace('-', ' ').title() if plan else 'Select payment plan...'
    doc.label_value('Remaining Payment Plan', plan_text, value_offset=45)
    doc.space(2)
    doc.paragraph('Late Payment Penalty: A $100 will be charged on any unpaid balance.')
    doc.paragraph('Credit Reporting: I authorize referral of any unpaid balance to collections and '
                  'credit bureaus if I default.')
    doc.initials('Patient initials:', data.get('payment_terms_initials'))


def _capacity(doc, data):
    doc.section('5. Capacity, Language & HIPAA Acknowledgment', required=35)
    doc.checkbox(CAPACITY_TEXT, bool(data.get('capacity_confirmed')), indent=4)
    doc.checkbox(HIPAA_TEXT, bool(data.get('hipaa_acknowledged')), indent=4)
    doc.initials('Patient initials:', data.get('capacity_initials'))


def _disputes(doc, data):
    doc.section('6. Dispute Resolution & Legal Provisions', required=40)
    for provision in LEGAL_PROVISIONS:
        doc.paragraph(provision, indent=6)
    doc.initials('Patient initials:', data.get('dispute_initials'))


def _signature_row(doc, name_label, name_lines, date_text, signature_label, signature):
    doc.ensure_space(28)
    top = doc.y
    c = doc.canvas
    c.setFont(FONT_BOLD, 9)
    c.drawString(doc._x(0), doc._y(top), name_label)
    c.drawString(doc._x(70), doc._y(top), 'Date/Time')
    c.drawString(doc._x(120), doc._y(top), signature_label)
    c.setFont(FONT, 9)
    for i, line in enumerate(name_lines):
        c.drawString(doc._x(0), doc._y(top + 5 * (i + 1)), line or '')
    c.drawString(doc._x(70), doc._y(top + 5), date_text)
    doc.y = top + 3
    if not doc.signature(signature, x=120, width=55, height=18):
        c.setStrokeColor(colors.grey)
        c.line(doc._x(120), doc._y(top + 20), doc._x(175), doc._y(top + 20))
    doc.y = top + 26


def _signatures(doc, data):
    doc.section('7. Signatures & Witness', required=75)
    doc.checkbox('I have read, understood, and agreed to all terms above.', bool(data.get('terms_agreed')), indent=2)
    doc.space(3)
    patient_when = ' '.join(filter(None, [data.get('patient_signature_date'), data.get('patient_signature_time')]))
    _signature_row(doc, 'Patient Full Name (print)',
                   [data.get('patient_print_name') or data.get('patient_name')],
                   patient_when, 'Patient Signature', data.get('patient_signature'))
    witness_when = ' '.join(filter(None, [data.get('witness_signature_date'), data.get('witness_signature_time')]))
    _signature_row(doc, 'Staff Witness Name & Role',
                   [data.get('witness_name'), data.get('witness_role')],
                   witness_when, 'Witness Signature', data.get('witness_signature'))


def _office_use(doc, data):
    doc.boxed(22)
    doc.space(5)
    doc.label_value('Office Use Only:', '', x=4, value_offset=0)
    doc.checkbox('Downloaded to Dental Management Software',
                 bool(data.get('downloaded_to_dental_management_software')), indent=4)
    doc.label_value('Confirmed by (Staff Initial):', data.get('confirmed_by_staff_initials') or '',
                    x=4, value_offset=50)
    doc.space(4)


def generate_financial_agreement_pdf(data):
    """Render the Financial Agreement and return the PDF bytes."""
    data = data or {}
    form_date = data.get('date_of_execution') or date.today().isoformat()
    doc = LetterheadDocument(form_date, title=TITLE)
    doc.title(TITLE)
    _patient_identification(doc, data)
    _fees(doc, data)
    _warranty(doc, data)
    _payment_terms(doc, data)
    _capacity(doc, data)
    _disputes(doc, data)
    _signatures(doc, data)
    _office_use(doc, data)
    return doc.finish()
