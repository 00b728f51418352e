from __future__ import annotations

import html

BRAND_NAME = "findMe"
BRAND_TAGLINE = "School Safety & Security Tracking System"

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f4f4f4;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
    <div style="background: linear-gradient(135deg, #0A1929 0%, #1A2F3F 100%); padding: 30px; text-align: center;">
      <h1 style="color: #ffffff; margin: 0; font-size: 28px;">{brand}</h1>
      <p style="color: #ffffff; margin: 10px 0 0 0; font-size: 14px;">{tagline}</p>
    </div>

    <div style="padding: 40px 30px;">
      <h2 style="color: #333333; margin: 0 0 20px 0; font-size: 24px;">Welcome, {name}!</h2>

      <p style="color: #666666; font-size: 16px; line-height: 1.6; margin: 0 0 20px 0;">
        Thank you for registering with S3TS. To complete your registration, please use the verification code below:
      </p>

      <div style="background-color: #f8f9fa; padding: 30px; text-align: center; border-radius: 10px; margin: 30px 0;">
        <div style="font-size: 36px; font-weight: bold; letter-spacing: 10px; color: #0A1929; font-family: 'Courier New', monospace;">
          {code}
        </div>
      </div>

      <div style="background-color: #fff3cd; border-left: 4px solid #ffc107; padding: 15px; margin: 20px 0; border-radius: 4px;">
        <p style="margin: 0; color: #856404; font-size: 14px;">
          <strong>&#9888;&#65039; Important:</strong> This code will expire in {ttl_minutes} minutes.
        </p>
      </div>

      <p style="color: #666666; font-size: 14px; line-height: 1.6; margin: 20px 0 0 0;">
        If you didn't request this code, please ignore this email or contact our support team if you have concerns.
      </p>
    </div>

    <div style="background-color: #f8f9fa; padding: 20px 30px; border-top: 1px solid #e9ecef;">
      <p style="margin: 0; color: #999999; font-size: 12px; text-align: center;">
        &copy; 2024 {brand}. All rights reserved.<br>
        This is an automated message, please do not reply.
      </p>
    </div>
  </div>
</body>
</html>
"""


def build_email_template(name: str, otp_code: str, ttl_minutes: int = 10) -> str:
    """Render the verification email. Pure; name and code are HTML-escaped."""
    return _TEMPLATE.format(
        brand=BRAND_NAME,
        tagline=html.escape(BRAND_TAGLINE),
        name=html.escape(name or ""),
        code=html.escape(otp_code),
        ttl_minutes=ttl_minutes,
    )


def build_sms_message(name: str, otp_code: str, ttl_minutes: int = 10) -> str:
    return (
        f"Hello {name}, your S3TS verification code is: {otp_code}. "
        f"Valid for {ttl_minutes} minutes. Do not share this code."
    )
