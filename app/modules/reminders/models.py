# Supabase table: reminders
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (foreign key to user_profiles.id, nullable) - null for guest (kiosk) reminders
- guest_name: text (nullable)
- guest_phone: text (nullable) - E.164, required when user_id is null
- plate_number: text (not null) - compact form, e.g. B123ABC
- reminder_type: text (not null, default: 'itp') - values: itp, rca, rovinieta
- expiry_date: date (not null)
- notification_intervals: int[] (not null, default: {7,3,1}) - days before expiry
- notification_channels: jsonb (not null, default: {"sms": true, "email": false})
- next_notification_date: date (nullable) - null once every interval has passed
- status: text (not null, default: 'active') - values: active, completed
- source: text (not null, default: 'web') - values: web, kiosk
- station_id: uuid (foreign key to kiosk_stations.id, nullable)
- consent_given: boolean (default: false)
- consent_timestamp: timestamp (nullable)
- consent_ip: text (nullable)
- opt_out: boolean (default: false)
- opt_out_timestamp: timestamp (nullable)
- deleted_at: timestamp (nullable) - soft delete
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Index: (next_notification_date) WHERE deleted_at IS NULL, for the daily scan.
RLS: admins see all rows, station managers their station's rows, users their own rows.
"""
