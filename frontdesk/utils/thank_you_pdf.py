"""
Thank You & Pre-Surgery Instructions document.

Checklist groups are stored as nested objects of booleans, e.g.
``{"medical_conditions": {"heart_conditions": true}}``. camelCase keys
written by older clients are read as well.
"""
from datetime import date

from frontdesk.utils.pdf_utils import BRAND, FONT_BOLD, FONT_ITALIC, LetterheadDocument

TITLE = 'Thank You and Pre-Surgery Instructions'

THANK_YOU_HEADING = 'Thank You for Choosing New York Dental Implants!'
THANK_YOU_TEXT = (
    'We are honored that you have chosen our practice for your dental implant treatment. Our mission is to '
    'provide exceptional care with compassion, using the latest technology and techniques to help you achieve '
    'your best smile. Your comfort, safety, and satisfaction are our top priorities throughout your treatment '
    'journey.'
)
SIGN_OFF = '- The New York Dental Implants Team'

EMERGENCY_CONTACTS = (
    ('Office Hours', '(585) 394-5910'),
    ('After Hours', '[Emergency Number]'),
    ('Life Threatening', '911'),
)

MEDICAL_CONDITIONS = (
    ('heart_conditions', 'Heart conditions or pacemaker'),
    ('blood_thinners', 'Taking blood thinners'),
    ('diabetes', 'Diabetes (Type 1 or 2)'),
    ('high_blood_pressure', 'High blood pressure'),
    ('allergies', 'Drug allergies or reactions'),
    ('pregnancy_nursing', 'Pregnant or nursing'),
    ('recent_illness', 'Recent illness or fever'),
    ('medication_changes', 'Recent medication changes'),
)
MEDICAL_WARNING = (
    'Important: If you checked any boxes above, please call our office immediately at (585) 394-5910. '
    'These conditions may require special precautions or medication adjustments.'
)

TIMELINE = (
    ('three_days_before', '3 Days Before Surgery', (
        ('start_medrol', 'Start taking Medrol Dose Pack as directed'),
        ('start_amoxicillin', 'Start taking Amoxicillin 500mg (3 times daily)'),
        ('no_alcohol', 'No alcohol consumption'),
        ('arrange_ride', 'Confirm transportation arrangements'),
    )),
    ('night_before', 'Night Before Surgery', (
        ('take_diazepam', 'Take Diazepam 10mg at bedtime (if prescribed)'),
        ('no_food_after_midnight', 'No food or drink after midnight'),
        ('no_water_after_6am', 'No water after 6:00 AM on surgery day'),
        ('confirm_ride', 'Confirm your ride for surgery day'),
    )),
    ('morning_of', 'Morning of Surgery', (
        ('no_breakfast', 'NO breakfast, food, or beverages'),
        ('no_pills', 'NO morning medications (unless approved)'),
        ('wear_comfortable', 'Wear comfortable, loose-fitting clothes'),
        ('arrive_on_time', 'Arrive on time for your appointment'),
    )),
    ('after_surgery', 'After Surgery', (
        ('no_alcohol_24hrs', 'No alcohol for 24 hours'),
        ('no_driving_24hrs', 'No driving for 24 hours'),
        ('follow_instructions', 'Follow all post-operative instructions'),
        ('call_if_concerns', 'Call office with any concerns'),
    )),
)

MEDICATIONS = (
    ('Medrol Dose Pack', 'Anti-inflammatory steroid', (
        'Day 1: 6 tablets (2-2-2)', 'Day 2: 5 tablets (2-1-2)', 'Day 3: 4 tablets (2-0-2)',
        'Day 4: 3 tablets (1-0-2)', 'Day 5: 2 tablets (1-0-1)', 'Day 6: 1 tablet (1-0-0)',
    )),
    ('Amoxicillin 500mg', 'Antibiotic', (
        'Take 3 times daily', 'With or without food', 'Continue for full course', 'Start 3 days before surgery',
    )),
    ('Diazepam 10mg', 'Sedative (if prescribed)', (
        'Take night before surgery', 'At bedtime only', 'Do not drive after taking', 'One dose only',
    )),
)

SEDATION_EXPECT = (
    'IV sedation helps you relax and remain comfortable during your procedure. You will be monitored '
    'continuously and will have little to no memory of the surgery.'
)
SEDATION_RESTRICTIONS = (
    'No driving or operating machinery',
    'No alcohol consumption',
    'No important decisions or legal documents',
    'Must have responsible adult supervision',
    'No work or strenuous activities',
)
SEDATION_SIDE_EFFECTS = (
    'Drowsiness, dizziness, nausea, or mild confusion are normal and will resolve within 24 hours.'
)

CALL_911 = (
    'Difficulty breathing or swallowing',
    'Severe allergic reaction (hives, swelling)',
    'Chest pain or heart palpitations',
    'Loss of consciousness',
    "Severe bleeding that won't stop",
)
CALL_OFFICE = (
    'Persistent nausea or vomiting',
    'Excessive swelling or pain',
    'Signs of infection (fever, pus)',
    'Questions about medications',
    'Any concerns about your recovery',
)

ACKNOWLEDGMENTS = (
    ('read_instructions', 'I have read and understand all pre-surgery instructions'),
    ('understand_medications', 'I understand the medication schedule and requirements'),
    ('understand_sedation', 'I understand the IV sedation process and restrictions'),
    ('arranged_transport', 'I have arranged transportation to and from surgery'),
    ('understand_restrictions', 'I understand the 24-hour post-sedation restrictions'),
    ('will_follow_instructions', 'I agree to follow all pre and post-operative instructions'),
    ('understand_emergency', 'I understand when to seek emergency help'),
)


def _camel(name):
    head, *rest = name.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def _lookup(data, key, default=None):
    if key in data:
        return data[key]
    return data.get(_camel(key), default)


def checked(data, group, key):
    """True when ``key`` is ticked inside the ``group`` checklist."""
    values = _lookup(data, group) or {}
    if key not in values and key == 'no_water_after_6am':
        return bool(values.get('noWaterAfter6AM'))
    return bool(_lookup(values, key))


def _patient_info(doc, data):
    doc.section('Patient Information', required=35)
    for label, key in (('Patient Name:', 'patient_name'), ('Phone Number:', 'phone'),
                       ('Date of Birth:', 'date_of_birth'), ('Email Address:', 'email'),
                       ('Treatment Type:', 'treatment_type')):
        doc.label_value(label, _lookup(data, key) or '')
    doc.space(3)


def _emergency_contacts(doc):
    doc.section('Emergency Contacts', required=20)
    for i, (label, _) in enumerate(EMERGENCY_CONTACTS):
        doc.label_value(label, '', x=i * 60, value_offset=0, advance=False)
    doc.space(5)
    for i, (_, number) in enumerate(EMERGENCY_CONTACTS):
        doc.label_value('', number, x=i * 60, value_offset=0, advance=False)
    doc.space(8)


def _thank_you(doc):
    doc.ensure_space(35)
    doc.subheading(THANK_YOU_HEADING, size=12)
    doc.paragraph(THANK_YOU_TEXT)
    doc.paragraph(SIGN_OFF, font=FONT_ITALIC, color=BRAND)
    doc.space(2)


def _medical_screening(doc, data):
    doc.section('Critical Medical Screening', required=50)
    doc.paragraph('Please check any that apply to you:')
    for key, text in MEDICAL_CONDITIONS:
        doc.checkbox(text, checked(data, 'medical_conditions', key), indent=4)
    doc.space(2)
    doc.paragraph(MEDICAL_WARNING, font=FONT_BOLD)


def _timeline(doc, data):
    doc.section('Your Surgical Timeline', required=40)
    for group, heading, items in TIMELINE:
        doc.ensure_space(6 + len(items) * 5.5)
        doc.subheading(heading, size=10)
        for key, text in items:
            doc.checkbox(text, checked(data, group, key), indent=4)
        doc.space(2)


def _medications(doc):
    doc.section('Medication Instructions', required=45)
    for name, purpose, directions in MEDICATIONS:
        doc.ensure_space(12 + len(directions) * 4.5)
        doc.subheading(f"{name} ({purpose})", size=10)
        doc.bullets(directions)
        doc.space(3)


def _sedation(doc):
    doc.section('IV Sedation Safety Information', required=50)
    doc.subheading('What to Expect', size=10)
    doc.paragraph(SEDATION_EXPECT)
    doc.subheading('24-Hour Restrictions After Sedation', size=10)
    doc.bullets(SEDATION_RESTRICTIONS)
    doc.space(2)
    doc.subheading('Possible Side Effects', size=10)
    doc.paragraph(SEDATION_SIDE_EFFECTS)


def _seek_help(doc):
    doc.section('When to Seek Help', required=60)
    doc.subheading('Call 911 Immediately If:', size=10)
    doc.bullets(CALL_911)
    doc.space(3)
    doc.subheading('Call Our Office If:', size=10)
    doc.bullets(CALL_OFFICE)
    doc.space(3)


def _acknowledgments(doc, data):
    doc.section('Patient Acknowledgment', required=45)
    for key, text in ACKNOWLEDGMENTS:
        doc.checkbox(text, checked(data, 'acknowledgments', key), indent=4)
    doc.space(3)


def _signature(doc, data):
    doc.section('Patient Signature & Acknowledgment', required=45)
    doc.label_value('Print Patient Name:', _lookup(data, 'patient_print_name') or _lookup(data, 'patient_name') or '')
    doc.label_value('Date:', _lookup(data, 'signature_date') or _lookup(data, 'patient_signature_date') or '')
    doc.space(2)
    doc.label_value('Patient Signature:', '')
    if doc.signature(_lookup(data, 'patient_signature'), x=0, width=60, height=20):
        doc.space(22)
    else:
        doc.space(12)


def generate_thank_you_pre_surgery_pdf(data):
    """Render the pre-surgery instructions and return the PDF bytes."""
    data = data or {}
    form_date = _lookup(data, 'signature_date') or date.today().isoformat()
    doc = LetterheadDocument(form_date, title=TITLE)
    doc.title(TITLE, size=14)
    _patient_info(doc, data)
    _emergency_contacts(doc)
    _thank_you(doc)
    _medical_screening(doc, data)
    _timeline(doc, data)
    _medications(doc)
    _sedation(doc)
    _seek_help(doc)
    _acknowledgments(doc, data)
    _signature(doc, data)
    return doc.finish()
