"""
Surgical recall sheets: what was placed during a surgery, with photos.

The sheet row is the anchor write (SheetCreationError on failure).
Pictures and child rows are best-effort and reported per item.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app

from frontdesk.services.errors import DataPortError, NotFoundError, SheetCreationError, StorageError
from frontdesk.services.storage_service import upload_image

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = 'surgical-recall-images'

SHEET_FIELDS = (
    'patient_id', 'patient_name', 'surgery_date', 'arch_type', 'upper_surgery_type',
    'lower_surgery_type', 'is_graft_used', 'is_membrane_used', 'status', 'created_by',
)
IMPLANT_FIELDS = (
    'arch_type', 'position', 'implant_brand', 'implant_subtype', 'implant_size',
    'implant_picture_url', 'mua_brand', 'mua_subtype', 'mua_size', 'mua_picture_url',
)


@dataclass
class ItemResult:
    kind: str
    ref: Optional[str]
    saved: bool
    id: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self):
        return {'kind': self.kind, 'ref': self.ref, 'saved': self.saved, 'id': self.id, 'errors': self.errors}


@dataclass
class SurgicalRecallOutcome:
    sheet: dict
    items: List[ItemResult] = field(default_factory=list)

    @property
    def warnings(self):
        return [f"{item.kind} {item.ref or ''}: {'; '.join(item.errors)}".strip()
                for item in self.items if item.errors]

    def to_dict(self):
        return {
            'sheet': self.sheet,
            'items': [item.to_dict() for item in self.items],
            'warnings': self.warnings,
        }


def _bucket():
    return current_app.config.get('SURGICAL_RECALL_BUCKET', DEFAULT_BUCKET)


def _upload(storage, folder, upload, errors):
    """Upload a (filename, bytes, content_type) triple; record failure in ``errors``."""
    if not upload:
        return None
    filename, data, content_type = upload
    try:
        return upload_image(storage, _bucket(), folder, data, filename, content_type)
    except StorageError as e:
        logger.warning("Picture upload to %s failed: %s", folder, e)
        errors.append(f"upload failed: {e.message}")
        return None


def validate_sheet(sheet):
    errors = []
    for key, label in (('patient_id', 'Patient'), ('patient_name', 'Patient name'),
                       ('surgery_date', 'Surgery date'), ('arch_type', 'Arch type')):
        if not sheet.get(key):
            errors.append(f"{label} is required")
    if sheet.get('arch_type') and sheet['arch_type'] not in ('upper', 'lower', 'dual'):
        errors.append("Arch type must be one of: upper, lower, dual")
    return errors


def save_surgical_recall_sheet(sheet, implants, grafts_membranes, files, port, storage):
    """
    Insert the sheet, then upload pictures and insert child rows.

    ``files`` maps a client reference (``implant_picture:<ref>``,
    ``mua_picture:<ref>``, ``graft_membrane:<ref>``) to a
    (filename, bytes, content_type) triple.
    """
    files = files or {}
    row = {k: sheet.get(k) for k in SHEET_FIELDS if k in sheet}
    row.setdefault('status', 'draft')

    try:
        saved_sheet = port.insert('surgical_recall_sheets', row)
    except DataPortError as e:
        logger.error("Error saving surgical recall sheet: %s", e, exc_info=True)
        raise SheetCreationError(f"Failed to save surgical recall sheet: {e.message}") from e

    sheet_id = saved_sheet['id']
    outcome = SurgicalRecallOutcome(sheet=saved_sheet)

    for gm in grafts_membranes or []:
        ref = gm.get('id')
        errors = []
        kind = gm.get('type') or 'graft'
        picture_url = gm.get('picture_url')
        upload = files.get(f"graft_membrane:{ref}")
        if upload:
            picture_url = _upload(storage, f"{kind}/{sheet_id}/{ref}", upload, errors) or picture_url
        try:
            saved = port.insert('surgical_recall_grafts_membranes', {
                'surgical_recall_sheet_id': sheet_id,
                'type': kind,
                'brand_type': gm.get('brand_type') or '',
                'picture_url': picture_url,
            })
            outcome.items.append(ItemResult(kind, ref, True, saved['id'], errors))
        except DataPortError as e:
            logger.warning("Failed to save %s %s on sheet %s: %s", kind, ref, sheet_id, e)
            errors.append(e.message)
            outcome.items.append(ItemResult(kind, ref, False, errors=errors))

    for implant in implants or []:
        ref = implant.get('id')
        errors = []
        data = {k: implant.get(k) for k in IMPLANT_FIELDS}
        data['surgical_recall_sheet_id'] = sheet_id
        upload = files.get(f"implant_picture:{ref}")
        if upload:
            data['implant_picture_url'] = _upload(storage, f"implants/{sheet_id}", upload, errors) \
                or data['implant_picture_url']
        upload = files.get(f"mua_picture:{ref}")
        if upload:
            data['mua_picture_url'] = _upload(storage, f"mua/{sheet_id}", upload, errors) or data['mua_picture_url']
        try:
            saved = port.insert('surgical_recall_implants', data)
            outcome.items.append(ItemResult('implant', ref, True, saved['id'], errors))
        except DataPortError as e:
            logger.warning("Failed to save implant %s on sheet %s: %s", ref, sheet_id, e)
            errors.append(e.message)
            outcome.items.append(ItemResult('implant', ref, False, errors=errors))

    if outcome.warnings:
        logger.warning("Surgical recall sheet %s saved with %d item warning(s)", sheet_id, len(outcome.warnings))
    return outcome


def get_surgical_recall_sheet(sheet_id, port):
    sheet = port.get('surgical_recall_sheets', sheet_id)
    if sheet is None:
        raise NotFoundError('Surgical recall sheet not found')
    sheet['implants'] = port.select('surgical_recall_implants', {'surgical_recall_sheet_id': sheet_id})
    sheet['grafts_membranes'] = port.select('surgical_recall_grafts_membranes', {'surgical_recall_sheet_id': sheet_id})
    return sheet


def list_surgical_recall_sheets(patient_id, port):
    return port.select('surgical_recall_sheets', {'patient_id': patient_id}, order_by='-created_at')


def _delete_image(storage, url):
    path = storage.path_from_public_url(_bucket(), url)
    if not path:
        logger.warning("Could not extract storage path from %s", url)
        return False
    return storage.remove(_bucket(), [path])


def delete_surgical_recall_sheet(sheet_id, port, storage):
    """
    Delete every picture, then the child rows and the sheet.

    Image deletions are all attempted regardless of earlier failures.
    Returns a summary with the number of images that could not be deleted.
    """
    sheet = get_surgical_recall_sheet(sheet_id, port)

    urls = []
    for implant in sheet['implants']:
        urls.extend(u for u in (implant.get('implant_picture_url'), implant.get('mua_picture_url')) if u)
    urls.extend(gm['picture_url'] for gm in sheet['grafts_membranes'] if gm.get('picture_url'))

    failed = 0
    for url in urls:
        try:
            if not _delete_image(storage, url):
                failed += 1
        except Exception as e:
            logger.warning("Image deletion failed for %s: %s", url, e)
            failed += 1
    if failed:
        logger.warning("%d of %d image(s) for sheet %s could not be deleted", failed, len(urls), sheet_id)

    port.delete('surgical_recall_implants', {'surgical_recall_sheet_id': sheet_id})
    port.delete('surgical_recall_grafts_membranes', {'surgical_recall_sheet_id': sheet_id})
    port.delete('surgical_recall_sheets', {'id': sheet_id})
    logger.info("Deleted surgical recall sheet %s", sheet_id)

    return {'id': sheet_id, 'images_total': len(urls), 'images_failed': failed}
