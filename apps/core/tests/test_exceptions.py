"""
Exception Handler Tests

Tests for the consistent error body produced by custom_exception_handler.
"""
from rest_framework import exceptions as drf_exceptions
from rest_framework.views import APIView

from apps.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    custom_exception_handler,
)


class ReportView(APIView):
    pass


def handle(exc):
    return custom_exception_handler(exc, {'view': ReportView()})


class TestCustomExceptionHandler:

    def test_validation_error_with_details(self):
        response = handle(ValidationError('Invalid role', details={'role': 'wizard'}))

        assert response.status_code == 400
        assert response.data == {
            'error': 'ValidationError',
            'message': 'Invalid role',
            'details': {'role': 'wizard'},
        }

    def test_status_codes_by_class(self):
        assert handle(PermissionDeniedError()).status_code == 403
        assert handle(NotFoundError('Member not found')).status_code == 404
        assert handle(ConflictError()).status_code == 409

    def test_details_omitted_when_empty(self):
        response = handle(NotFoundError('Member not found'))

        assert 'details' not in response.data
        assert response.data['message'] == 'Member not found'

    def test_drf_exception_is_standardized(self):
        response = handle(drf_exceptions.NotAuthenticated())

        assert response.status_code == 401
        assert response.data['error'] == 'NotAuthenticated'

    def test_drf_field_errors_flattened(self):
        response = handle(drf_exceptions.ValidationError({'role': ['This field is required.']}))

        assert response.status_code == 400
        assert response.data['message'] == 'role: This field is required.'
        assert 'role' in response.data['details']

    def test_unexpected_error_logs_class_only(self, mocker):
        mock_logger = mocker.patch('apps.core.exceptions.logger')

        response = handle(RuntimeError('agent 123 ssn 000-00-0000'))

        assert response.status_code == 500
        assert response.data['error'] == 'InternalServerError'
        logged = mock_logger.error.call_args.args[0]
        assert 'RuntimeError' in logged
        assert 'ReportView' in logged
        assert '000-00-0000' not in logged
