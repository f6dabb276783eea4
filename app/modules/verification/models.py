"""
Phone verification models

Table: phone_verifications
- id: UUID (primary key)
- phone_number: TEXT (E.164)
- verification_code: TEXT (6 digits)
- station_slug: TEXT (nullable, kiosk that requested the code)
- source: TEXT ('kiosk' | 'registration' | 'profile_update')
- expires_at: TIMESTAMP (created_at + 10 minutes)
- attempts: INTEGER (wrong codes entered)
- verified: BOOLEAN
- verified_at: TIMESTAMP
- created_at: TIMESTAMP
"""
