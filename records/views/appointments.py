"""
Appointment-specific routes mounted next to the generic appointment CRUD
through ``create_router(custom_routes=...)``.
"""
from __future__ import annotations

import logging

from rest_framework.exceptions import PermissionDenied

from records.models import User
from records.responses import success_response
from records.serializers.resources import CancelAppointmentSerializer

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_NOTE = 'Appointment cancelled'


def cancel_appointment(request, handlers, pk):
    """Mark an appointment cancelled, recording the reason in ``notes``.

    Doctors may cancel only their own appointments; admins may cancel any.
    """
    s = CancelAppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    reason = s.validated_data.get('reason') or DEFAULT_CANCEL_NOTE

    service = handlers.service
    appointment = service.get(pk)
    user = request.user
    if user.role == User.ROLE_DOCTOR and appointment.get('doctor_id') != user.pk:
        raise PermissionDenied('Insufficient permissions')

    row = service.update(pk, {'status': 'cancelled', 'notes': reason}, user=user)
    logger.info('Appointment %s cancelled by user %s', pk, user.pk)
    return success_response(row, message='Appointment cancelled successfully')
