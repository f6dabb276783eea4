"""
Notification models

Table: notification_log (one row per delivery attempt)
- id: UUID (primary key)
- reminder_id: UUID (references reminders.id)
- channel: TEXT ('sms' | 'email')
- status: TEXT ('sent' | 'failed')
- provider: TEXT ('notifyhub' | 'resend' | gateway reported by NotifyHub)
- provider_message_id: TEXT
- estimated_cost: NUMERIC (SMS only)
- error_message: TEXT
- sent_at: TIMESTAMP
- metadata: JSONB (days_until_expiry, error)
"""
