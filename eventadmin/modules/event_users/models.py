# Supabase tables: event_users, event_whitelist
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

event_users:
- client_id: text (not null)
- event_id: text (not null)
- user_id: text (not null) - Supabase Auth user id of the participant
- email: text (not null)
- is_active: boolean (default: true)
- primary key (client_id, event_id, user_id)

event_whitelist:
- id: text (not null) - participant user id when written by reactivation
- client_id: text (not null)
- event_id: text (not null)
- email: text (not null) - the mobile sign-in flow checks access by email
- access_tier: text (default: 'standard')
- company: text (nullable)
- locked_fields: jsonb (nullable)
- added_at: timestamptz
- primary key (client_id, event_id, id)
"""
