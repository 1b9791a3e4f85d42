"""
Tareas asíncronas de Celery para el envío de correos electrónicos.
"""
import logging
from urllib.parse import urlencode

from app.core.celery import celery_app
from app.core.config import settings
from app.modules.email.service import email_service

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_password_reset_code_task(self, user_email: str, user_name: str, code: str):
    """
    Enviar el código de restablecimiento de contraseña.
    """
    context = {
        "user_name": user_name,
        "code": code,
        "expires_minutes": settings.PASSWORD_RESET_CODE_TTL_SECONDS // 60,
        "reset_url": f"{email_service.frontend_url}/reset-password?{urlencode({'email': user_email})}",
    }

    success = email_service.send_template_email(
        to_emails=[user_email],
        subject="Código para restablecer tu contraseña",
        template_name="password_reset_code.html",
        context=context
    )

    if success:
        return {"status": "success", "email": user_email}

    logger.error(f"Password reset email failed for {user_email}")
    if self.request.retries < self.max_retries:
        raise self.retry(countdown=30 * (2 ** self.request.retries))
    return {"status": "failed", "email": user_email}
