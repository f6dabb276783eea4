# Supabase tables: user_profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

user_profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null) - synced from auth.users
- full_name: text (nullable)
- phone: text (nullable) - E.164 (+40XXXXXXXXX)
- phone_verified: boolean (default: false)
- role: text (not null, default: 'user') - values: user, station_manager, admin
- station_id: uuid (nullable, references kiosk_stations.id) - set for station managers
- city: text (nullable)
- country: text (default: 'RO')
- prefers_sms: boolean (default: false)
- email_notifications: boolean (default: true)
- sms_notifications: boolean (default: false)
- quiet_hours_enabled: boolean (default: false)
- quiet_hours_start: text (nullable) - "HH:MM", Europe/Bucharest
- quiet_hours_end: text (nullable) - "HH:MM", Europe/Bucharest
- quiet_hours_weekdays_only: boolean (default: false) - weekends exempt
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

RLS: users read/update their own row; admins read all rows.
Note: Authentication data (password, tokens) is stored in auth.users table
managed by Supabase Auth. This table only stores profile information.
"""
