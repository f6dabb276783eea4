# Supabase table: kiosk_stations
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- slug: text (unique, not null) - URL segment of the kiosk, ^[a-z0-9-]+$
- name: text (not null)
- is_active: boolean (not null, default: true) - inactive stations reject kiosk submissions
- logo_url: text (nullable)
- primary_color: text (not null, default: '#3B82F6')
- station_phone: text (nullable) - E.164
- station_address: text (nullable)
- sms_template_5d: text (nullable) - overrides the default SMS for reminders more than 3 days out
- sms_template_3d: text (nullable) - 2-3 days out
- sms_template_1d: text (nullable) - last day
- total_reminders: integer (default: 0) - reminders registered at the station, recounted after each submission
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Templates accept {name}, {plate}, {date}, {station_name}, {station_phone}.
"""
