"""
Kiosk models

The kiosk has no table of its own. A submission reads `kiosk_stations` by
slug and writes a guest row into `reminders`:

- guest_name, guest_phone (E.164), plate_number
- reminder_type = 'itp', notification_intervals = [7, 3, 1]
- notification_channels = {"sms": true, "email": false}
- source = 'kiosk', station_id
- consent_given, consent_timestamp, consent_ip
"""
