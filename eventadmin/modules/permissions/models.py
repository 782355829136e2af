# Supabase table: user_permissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in store.py

"""
Expected Supabase table structure:

user_permissions:
- user_id: text (primary key) - Supabase Auth user id of the principal
- email: text (nullable, lower-cased) - used only for the re-link migration lookup
- role: text (not null) - one of "superadmin", "clientAdmin", "eventAdmin"
- client_ids: text[] (nullable) - null = all clients (superadmin only), {} = none
- event_ids: text[] (nullable) - null = all events in accessible clients
- created_at: timestamptz
- updated_at: timestamptz
- created_by: text (nullable) - user id of the grantor
- updated_by: text (nullable)
- index on (email)
"""
