"""
Celery tasks for agreement PDFs
"""
import logging

from flask import current_app

from frontdesk.extensions import celery
from frontdesk.services import agreement_service
from frontdesk.services.storage_service import get_storage, unique_filename

logger = logging.getLogger(__name__)


@celery.task(bind=True, name='tasks.generate_agreement_pdf')
def generate_agreement_pdf(self, kind, form_id):
    """
    Render an agreement form, store it in the agreement PDF bucket and
    record the URL on the form.

    Returns:
        dict: {'success', 'form_id', 'pdf_url'} or {'success': False, 'error'}
    """
    try:
        form = agreement_service.get_form(kind, form_id)
        if not self.request.is_eager:
            self.update_state(state='PROCESSING', meta={'step': 'Rendering PDF'})
        pdf = agreement_service.render_form_pdf(kind, form)

        bucket = current_app.config.get('AGREEMENT_PDF_BUCKET', 'agreement-pdfs')
        path = f"{kind}/{form_id}/{unique_filename('agreement.pdf')}"
        url = get_storage().upload(bucket, path, pdf, 'application/pdf')
        agreement_service.set_pdf_url(kind, form_id, url)

        logger.info("Stored PDF for %s %s at %s", kind, form_id, url)
        return {'success': True, 'form_id': form_id, 'pdf_url': url}

    except Exception as e:
        logger.error(f"Error generating agreement PDF: {e}", exc_info=True)
        return {'success': False, 'form_id': form_id, 'error': str(e)}
