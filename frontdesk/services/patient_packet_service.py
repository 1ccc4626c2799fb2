import logging

logger = logging.getLogger(__name__)


def find_existing_patient_packet(identity, port):
    """
    Return the most recent new_patient_packets row for (first_name,
    last_name, date_of_birth), or None.

    ``identity`` is any mapping with those three keys. DataPortError
    propagates to the caller.
    """
    rows = port.select(
        'new_patient_packets',
        {
            'first_name': identity['first_name'],
            'last_name': identity['last_name'],
            'date_of_birth': identity['date_of_birth'],
        },
        order_by='-created_at',
        limit=1,
    )
    if rows:
        logger.info("Found existing patient packet %s", rows[0]['id'])
        return rows[0]
    logger.info("No patient packet for %s %s", identity['first_name'], identity['last_name'])
    return None
