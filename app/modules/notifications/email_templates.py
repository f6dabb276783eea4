from html import escape

from app.config.settings import settings
from app.modules.notifications.sms_templates import format_date, type_label

TYPE_COLORS = {
    "itp": "#3B82F6",
    "rca": "#10B981",
    "rovinieta": "#8B5CF6",
}

TYPE_DESCRIPTIONS = {
    "itp": ("inspecția tehnică periodică (ITP)", "inspecția"),
    "rca": ("asigurarea RCA", "asigurarea"),
    "rovinieta": ("taxa de drum (Rovinieta)", "taxa"),
}


def reminder_subject(reminder_type: str, plate: str, days_until: int) -> str:
    return f"Reminder: {type_label(reminder_type)} pentru {plate} expira în {days_until} zile"


def reminder_html(reminder_type: str, plate: str, expiry_date, days_until: int) -> str:
    key = (reminder_type or "itp").lower()
    color = TYPE_COLORS.get(key, TYPE_COLORS["rovinieta"])
    description, action = TYPE_DESCRIPTIONS.get(key, TYPE_DESCRIPTIONS["rovinieta"])
    label = escape(type_label(reminder_type))
    plate = escape(plate)
    is_urgent = days_until <= 3
    expiry_text = "MÂINE" if days_until == 1 else f"în {days_until} zile"
    dashboard_url = f"{settings.app_url}/dashboard"
    unsubscribe_url = f"{settings.app_url}/unsubscribe"

    urgent_banner = ""
    urgent_advice = ""
    if is_urgent:
        urgent_banner = (
            '<div style="background-color: #FEE2E2; border: 2px solid #DC2626; border-radius: 8px; '
            'padding: 16px; margin: 32px 40px 24px;">'
            '<p style="color: #991B1B; font-size: 16px; font-weight: bold; margin: 0; text-align: center;">'
            "ATENȚIE: Expirare iminentă!</p></div>"
        )
        urgent_advice = (
            '<p style="color: #DC2626; font-size: 16px; line-height: 24px; font-weight: bold;">'
            f"Vă recomandăm să programați {action} cât mai curând posibil pentru a evita penalitățile.</p>"
        )

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: Arial, sans-serif; background-color: #f6f9fc; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; padding: 20px;">
    <div style="background-color: {color}; padding: 32px 20px; text-align: center; border-radius: 8px 8px 0 0;">
      <h1 style="color: #ffffff; font-size: 32px; margin: 0;">uitdeITP.ro</h1>
      <p style="color: rgba(255,255,255,0.9); font-size: 14px; margin: 8px 0 0 0;">Reminder {label}</p>
    </div>
    {urgent_banner}
    <div style="padding: 0 40px;">
      <h2 style="color: #1e293b; font-size: 24px; margin: 32px 0 24px;">{label} pentru {plate} expiră {expiry_text}</h2>
      <p style="color: #475569; font-size: 16px; line-height: 24px;">Bună ziua,</p>
      <p style="color: #475569; font-size: 16px; line-height: 24px;">
        Aceasta este o notificare automată că {description} pentru vehiculul cu numărul
        <strong>{plate}</strong> va expira pe data de <strong>{format_date(expiry_date)}</strong>.
      </p>
      {urgent_advice}
      <div style="text-align: center; margin: 32px 0;">
        <a href="{dashboard_url}" style="background-color: {color}; color: #ffffff; padding: 14px 32px; border-radius: 6px; text-decoration: none; font-weight: bold; display: inline-block;">Vizualizează Detalii</a>
      </div>
    </div>
    <hr style="border: none; border-top: 1px solid #e2e8f0; margin: 32px 0;">
    <div style="padding: 0 40px; text-align: center;">
      <p style="color: #94a3b8; font-size: 12px; line-height: 18px;">Acest email a fost trimis automat de platforma <strong>uitdeITP.ro</strong></p>
      <p style="color: #94a3b8; font-size: 12px; line-height: 18px;">Nu dorești să primești aceste notificări? <a href="{unsubscribe_url}" style="color: #3B82F6;">Dezabonare</a></p>
    </div>
  </div>
</body>
</html>"""
