"""
Flows
=====
Prefect flows: the per-tenant sheet sync and the refresh trigger around it.
"""
