"""
Email templates for Klede waitlist subscribers.

All templates use inline CSS for maximum email client compatibility.
Branded black-on-white with a light grey highlight panel.

Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

import html

# Color constants
BG_PAGE = "#FFFFFF"
BG_HEADER = "#F8F8F8"
TEXT_PRIMARY = "#000000"
TEXT_BODY = "#333333"
TEXT_MUTED = "#999999"
BORDER = "#EEEEEE"


def _base_layout(content: str, recipient: str, app_name: str = "Klede") -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{app_name}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_PAGE}; font-family: 'Helvetica Neue', Arial, sans-serif; line-height: 1.6; color: {TEXT_BODY};">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">
        <tr>
            <td align="center" style="padding: 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%;">
                    <tr>
                        <td align="center" style="padding: 20px 0; background-color: {BG_HEADER};">
                            <span style="font-size: 28px; font-weight: 700; color: {TEXT_PRIMARY}; letter-spacing: 1px;">KLEDE</span>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 30px 20px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 20px; border-top: 1px solid {BORDER};">
                            <p style="color: {TEXT_MUTED}; font-size: 12px; margin: 0;">
                                &copy; {app_name}. All rights reserved.<br>
                                You're receiving this email because you joined the {app_name} waitlist with: {html.escape(recipient)}
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def _highlight(inner: str) -> str:
    """Render the grey highlight panel."""
    return f"""\
<div style="background-color: {BG_HEADER}; padding: 15px; border-radius: 5px; margin: 20px 0;">
    {inner}
</div>"""


def _button(url: str, label: str) -> str:
    """Render a black CTA button."""
    return f"""\
<a href="{url}" target="_blank" style="display: inline-block; background-color: {TEXT_PRIMARY}; color: #FFFFFF; padding: 12px 25px; text-decoration: none; border-radius: 5px; font-weight: 500; margin: 20px 0;">{label}</a>"""


def welcome_email(email: str) -> tuple[str, str, str]:
    """
    Welcome email sent after joining the waitlist.

    Returns:
        (subject, html_body, text_body)
    """
    subject = "Welcome to the Klede Waitlist!"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; margin: 0 0 20px 0;">Welcome to the Klede Waitlist</h1>
<p>Thank you for joining our exclusive waitlist! We're thrilled to have you as part of our growing community.</p>
{_highlight(f"<p>You've successfully registered with: <strong>{html.escape(email)}</strong></p>")}
<p>What to expect next:</p>
<ul>
    <li>Exclusive previews of our upcoming collection</li>
    <li>Early access when we launch</li>
    <li>Special offers for waitlist members only</li>
</ul>
<p>Stay stylish,<br>The Klede Team</p>"""
    html_body = _base_layout(content, email)
    text_body = (
        f"Welcome to the Klede Waitlist\n\n"
        f"Thank you for joining our exclusive waitlist! You've registered with: {email}\n\n"
        f"What to expect next:\n"
        f"- Exclusive previews of our upcoming collection\n"
        f"- Early access when we launch\n"
        f"- Special offers for waitlist members only\n\n"
        f"-- The Klede Team"
    )
    return subject, html_body, text_body


def promotional_email(email: str, message: str = "") -> tuple[str, str, str]:
    """
    Admin-triggered announcement with an optional custom message.

    Returns:
        (subject, html_body, text_body)
    """
    subject = "Special Announcement from Klede"
    message_section = _highlight(f"<p>{html.escape(message)}</p>") if message else ""
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; margin: 0 0 20px 0;">Special Announcement</h1>
<p>Hello from Klede! As a valued member of our waitlist, we wanted to share some exciting news with you.</p>
{message_section}
<p>We appreciate your continued interest in Klede and can't wait to bring you more updates soon.</p>
<p>Best regards,<br>The Klede Team</p>"""
    html_body = _base_layout(content, email)
    text_body = (
        f"Special Announcement\n\n"
        f"Hello from Klede! As a valued member of our waitlist, we wanted to share some exciting news with you.\n\n"
        + (f"{message}\n\n" if message else "")
        + "-- The Klede Team"
    )
    return subject, html_body, text_body


def launch_email(email: str, shop_url: str) -> tuple[str, str, str]:
    """
    Launch announcement sent to the whole waitlist.

    Returns:
        (subject, html_body, text_body)
    """
    subject = "We're Live! Klede Collection Now Available"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; margin: 0 0 20px 0;">We're Live!</h1>
<p>The wait is over! We're thrilled to announce that the Klede collection is now officially available.</p>
{_highlight("<p>As a valued waitlist member, you get <strong>early access</strong> before we open to the general public.</p>")}
{_button(shop_url, "SHOP THE COLLECTION")}
<p>With gratitude,<br>The Klede Team</p>"""
    html_body = _base_layout(content, email)
    text_body = (
        f"We're Live!\n\n"
        f"The Klede collection is now officially available, and as a waitlist member "
        f"you get early access.\n\n"
        f"Shop the collection: {shop_url}\n\n"
        f"-- The Klede Team"
    )
    return subject, html_body, text_body
