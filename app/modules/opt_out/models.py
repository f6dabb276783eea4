# Supabase table: global_opt_outs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

global_opt_outs:
- phone: text (primary key, E.164 format +40XXXXXXXXX)
- opted_out_at: timestamp (not null)
- deleted_at: timestamp (nullable) - soft delete; a row with deleted_at set is not an active opt-out

reminders rows for a guest phone are flagged on opt-out:
- opt_out: boolean (default false)
- opt_out_timestamp: timestamp (nullable)
"""
