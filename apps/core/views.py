"""
Core Views for MediCRM Backend

Public health check used by the deployment platform.
"""
from django.db import DatabaseError, connection
from django.http import JsonResponse
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny

SERVICE_NAME = 'medicrm-backend'


def _database_status() -> str:
    with connection.cursor() as cursor:
        cursor.execute('SELECT 1')
        cursor.fetchone()
    return 'connected'


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """
    GET /api/health

    200 when the database answers, 503 otherwise. The error names only the
    exception class.
    """
    try:
        database = _database_status()
    except DatabaseError as e:
        return JsonResponse(
            {'status': 'unhealthy', 'service': SERVICE_NAME, 'database': f'error: {e.__class__.__name__}'},
            status=503,
        )
    return JsonResponse({'status': 'healthy', 'service': SERVICE_NAME, 'database': database})
