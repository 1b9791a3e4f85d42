"""
Módulo de email: envío SMTP con templates y tareas de Celery.
"""

from .service import email_service

__all__ = ['email_service']
