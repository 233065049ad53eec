"""
Load Layer
==========
Write strategies and bookkeeping: transformed records → Supabase tables.
"""
