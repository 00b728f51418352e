from __future__ import annotations
from fastapi import Request
from ..config import Settings
from ..services.sms import TwilioSMSService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_sms_service(request: Request) -> TwilioSMSService:
    return request.app.state.sms_service
