from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.core.config import Settings
from app.integrations.classifier import GeminiClassifier
from app.integrations.geocoder import GoogleGeocoder
from app.integrations.mailer import SmtpEmailSender
from app.integrations.twilio_client import TwilioCallGateway, TwilioSmsSender
from app.jobs.verification_retry import RetryScheduler


@dataclass
class Integrations:
    """Process-wide collaborators; tests swap in fakes."""

    classifier: Any
    geocoder: Any
    call_gateway: Any
    sms: Any
    email: Any
    scheduler: RetryScheduler
    production: bool = False
    retry_delay_seconds: int = 600


def build_integrations(settings: Settings) -> Integrations:
    return Integrations(
        classifier=GeminiClassifier(
            settings.classifier_api_key,
            settings.classifier_url,
            timeout=settings.http_timeout_seconds,
        ),
        geocoder=GoogleGeocoder(settings.geocoding_api_key, timeout=settings.http_timeout_seconds),
        call_gateway=TwilioCallGateway(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            settings.twilio_phone_number,
            webhook_base_url=settings.webhook_base_url,
            ring_timeout=settings.ring_timeout_seconds,
            timeout=settings.http_timeout_seconds,
        ),
        sms=TwilioSmsSender(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            settings.twilio_phone_number,
            production=settings.is_production,
            timeout=settings.http_timeout_seconds,
        ),
        email=SmtpEmailSender(
            settings.smtp_host,
            settings.smtp_port,
            settings.smtp_user,
            settings.smtp_password,
        ),
        scheduler=RetryScheduler(),
        production=settings.is_production,
        retry_delay_seconds=settings.retry_delay_seconds,
    )
