# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import html as _html
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class EmailMessage:
    subject: str
    text: str
    html: str


def render_code_email(
    code: str,
    email: str,
    *,
    app_name: str,
    valid_minutes: int,
    resend: bool = False,
) -> EmailMessage:
    if resend:
        subject = f"{app_name} - New verification code"
    else:
        subject = f"Verify your email address - {app_name}"

    text = (
        f"Your {app_name} verification code is {code}.\n\n"
        f"Enter it to finish signing up as {email}. "
        f"The code expires in {valid_minutes} minutes.\n\n"
        "If you didn't request this, you can ignore this email."
    )

    safe_app = _html.escape(app_name)
    safe_email = _html.escape(email)
    body = f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Verify your email - {safe_app}</title></head>
<body style="font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; color: #37352f;">
  <div style="max-width: 480px; margin: 0 auto; padding: 40px 20px;">
    <h1 style="font-size: 24px;">{safe_app}</h1>
    <p>Enter this code to verify <strong>{safe_email}</strong>:</p>
    <p style="font-size: 32px; font-weight: 700; letter-spacing: 8px;">{_html.escape(code)}</p>
    <p>The code expires in {valid_minutes} minutes.</p>
    <p style="color: #787774; font-size: 14px;">If you didn't request this, you can ignore this email.</p>
  </div>
</body>
</html>"""
    return EmailMessage(subject=subject, text=text, html=body)


__all__ = ["EmailMessage", "render_code_email"]
