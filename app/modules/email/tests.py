"""
Tests para el envío de correos
"""

import smtplib
from unittest.mock import patch

from app.modules.email.service import EmailService
from app.modules.email.tasks import send_password_reset_code_task


class TestEmailService:

    def test_render_reset_template(self):
        html = EmailService().render_template("password_reset_code.html", {
            "user_name": "Ana García", "code": "482913", "expires_minutes": 15,
            "reset_url": "http://localhost:3000/reset-password?email=ana@comanda.mx",
        })
        assert "482913" in html
        assert "Ana García" in html

    def test_smtp_failure_returns_false(self):
        service = EmailService()
        with patch.object(service, "_create_smtp_connection", side_effect=smtplib.SMTPException("caído")):
            assert service.send_email(["ana@comanda.mx"], "Asunto", html_content="<p>hola</p>") is False


class TestEmailTasks:

    def test_reset_code_task_sends_template(self):
        with patch("app.modules.email.tasks.email_service.send_template_email", return_value=True) as send:
            result = send_password_reset_code_task.apply(args=["ana@comanda.mx", "Ana", "482913"]).get()

        assert result == {"status": "success", "email": "ana@comanda.mx"}
        kwargs = send.call_args.kwargs
        assert kwargs["template_name"] == "password_reset_code.html"
        assert kwargs["context"]["code"] == "482913"

    def test_reset_url_encodes_email(self):
        with patch("app.modules.email.tasks.email_service.send_template_email", return_value=True) as send:
            send_password_reset_code_task.apply(args=["ana+caja@comanda.mx", "Ana", "482913"]).get()

        reset_url = send.call_args.kwargs["context"]["reset_url"]
        assert reset_url.endswith("/reset-password?email=ana%2Bcaja%40comanda.mx")
