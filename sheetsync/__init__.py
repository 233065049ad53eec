"""
sheetsync
=========
Google Sheets → Supabase synchronization engine.
"""
