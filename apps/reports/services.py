"""
Report Services

PHI access logging for report exports. An export that names clients is
only sent once one phi_access_log row per client has been written.
"""
import logging
from uuid import UUID

from django.db import transaction

from apps.core.constants import PHI_FIELD_REPORT_EXPORT
from apps.core.models import PhiAccessLog

logger = logging.getLogger(__name__)

USER_AGENT_MAX_LENGTH = 512


def client_ip(request) -> str | None:
    """First hop of X-Forwarded-For when behind the proxy, else REMOTE_ADDR."""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return request.META.get('REMOTE_ADDR') or None


@transaction.atomic
def record_phi_access(
    *,
    user_id: UUID,
    client_ids,
    access_type: str = 'export',
    field_accessed: str = PHI_FIELD_REPORT_EXPORT,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> int:
    """
    Append one access entry per distinct client id.

    Returns:
        Number of entries written

    Raises:
        DatabaseError: The entries could not be written; the caller must not
            release the PHI
    """
    distinct_ids = list(dict.fromkeys(client_id for client_id in client_ids if client_id))
    if not distinct_ids:
        return 0

    PhiAccessLog.objects.bulk_create([
        PhiAccessLog(
            user_id=user_id,
            client_id=client_id,
            field_accessed=field_accessed,
            access_type=access_type,
            ip_address=ip_address,
            user_agent=(user_agent or '')[:USER_AGENT_MAX_LENGTH] or None,
        )
        for client_id in distinct_ids
    ])
    logger.info(f'Recorded {access_type} of {field_accessed} by {user_id} for {len(distinct_ids)} client(s)')
    return len(distinct_ids)
