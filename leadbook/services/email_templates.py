from html import escape

from leadbook.core.config import settings


def _logo_markup(app_name: str, logo_url: str) -> str:
    if logo_url:
        return (
            f'<img src="{escape(logo_url)}" alt="{escape(app_name)} logo" width="36" height="36" '
            'style="display:block;border-radius:6px;" />'
        )

    # Text badge so the header renders even when remote images are blocked
    initials = "".join(word[:1] for word in app_name.split()[:2]).upper() or "LB"
    return f"""
    <div style="width:36px;height:36px;border-radius:8px;background:#1d4ed8;color:#ffffff;font-family:Arial,sans-serif;font-weight:700;font-size:14px;line-height:36px;text-align:center;">
      {escape(initials)}
    </div>
    """


def brand_template(title: str, intro: str, content_html: str, footer_note: str = None, config=settings) -> str:
    app_name = config.APP_NAME
    footer = footer_note or f"This is an automated email from {escape(app_name)}."
    return f"""
  <div style="background:#f3f6fb;padding:24px 12px;font-family:Arial,sans-serif;color:#1f2937;">
    <div style="max-width:560px;margin:0 auto;background:#ffffff;border:1px solid #e5e7eb;border-radius:12px;overflow:hidden;">
      <div style="padding:18px 20px;border-bottom:1px solid #e5e7eb;background:#f8fafc;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0">
          <tr>
            <td style="width:44px;vertical-align:middle;">{_logo_markup(app_name, config.APP_LOGO_URL)}</td>
            <td style="vertical-align:middle;">
              <div style="font-size:18px;font-weight:700;color:#0f172a;">{escape(app_name)}</div>
            </td>
          </tr>
        </table>
      </div>
      <div style="padding:22px 20px;">
        <h2 style="margin:0 0 10px;font-size:20px;color:#0f172a;">{escape(title)}</h2>
        <p style="margin:0 0 16px;font-size:14px;line-height:1.6;color:#374151;">{intro}</p>
        {content_html}
      </div>
      <div style="padding:14px 20px;background:#f8fafc;border-top:1px solid #e5e7eb;">
        <p style="margin:0;font-size:12px;color:#64748b;line-height:1.5;">{footer}</p>
      </div>
    </div>
  </div>
"""


def _otp_block(otp: str) -> str:
    return f"""
  <div style="margin:16px 0 18px;text-align:center;">
    <div style="display:inline-block;padding:12px 16px;border:1px dashed #94a3b8;border-radius:8px;background:#f8fafc;">
      <div style="font-size:12px;color:#64748b;margin-bottom:6px;">One-Time Password</div>
      <div style="font-size:28px;letter-spacing:8px;font-weight:700;color:#0f172a;">{escape(otp)}</div>
    </div>
  </div>
"""


def status_label(status: str) -> str:
    """``"not_received"`` -> ``"Not Received"``."""
    parts = [part for part in (status or "").split("_") if part]
    return " ".join(part[:1].upper() + part[1:] for part in parts) or "N/A"


def _format_date(value) -> str:
    if not value:
        return "N/A"
    return value.strftime("%b %d, %Y, %I:%M %p UTC")


def verification_otp_email(otp: str, expire_minutes: int = 30) -> str:
    return brand_template(
        title="Verify Your Email",
        intro=f"Use the OTP below to complete your registration. The OTP is valid for {expire_minutes} minutes.",
        content_html=_otp_block(otp),
        footer_note="If you did not request this, you can safely ignore this email.",
    )


def reset_password_otp_email(otp: str, expire_minutes: int = 30) -> str:
    return brand_template(
        title="Reset Password Request",
        intro=(
            "We received a request to reset your password. Use the OTP below to continue. "
            f"The OTP is valid for {expire_minutes} minutes."
        ),
        content_html=_otp_block(otp),
        footer_note="If you did not request this password reset, please ignore this email.",
    )


def followup_reminder_email(lead, window_minutes: int = 5) -> str:
    rows = [
        ("Company", lead.company_name or "N/A"),
        ("Contact", lead.contact_number or "N/A"),
        ("Address", lead.address or "N/A"),
        ("Status", status_label(lead.status)),
        ("Follow Up Time", _format_date(lead.follow_up_at)),
        ("Notes", lead.notes or "N/A"),
    ]
    table_rows = "".join(
        f'<tr><td style="padding:6px 0;font-weight:600;width:140px;">{label}</td>'
        f'<td style="padding:6px 0;">{escape(value)}</td></tr>'
        for label, value in rows
    )
    return brand_template(
        title="Follow-up Reminder",
        intro=f"You have a scheduled callback in the next {window_minutes} minutes.",
        content_html=(
            '<table role="presentation" width="100%" cellspacing="0" cellpadding="0" '
            'style="font-size:14px;color:#374151;border-collapse:collapse;">'
            f"{table_rows}</table>"
        ),
    )
