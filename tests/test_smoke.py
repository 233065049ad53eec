"""
Smoke Tests
===========
Basic sanity checks for imports and configuration.
"""


def test_imports():
    """Verify core modules can be imported."""
    from sheetsync import config
    from sheetsync.flows import refresh, sync_sheet

    assert hasattr(config, "get_settings")
    assert hasattr(sync_sheet, "sync_sheet_flow")
    assert hasattr(refresh, "refresh_flow")


def test_settings_loads(settings):
    """Verify settings can be instantiated (uses fixture from conftest.py)."""
    assert settings.supabase_url == "https://test.supabase.co"
    assert settings.environment in ("dev", "prod", "staging")
    assert settings.batch_size > 0
    assert settings.sync_metadata_scope in ("tenant", "global")


def test_private_key_newlines_unescaped():
    from sheetsync.config import Settings

    settings = Settings(google_service_account_private_key="-----BEGIN-----\\nabc\\n-----END-----")
    assert settings.google_service_account_private_key == "-----BEGIN-----\nabc\n-----END-----"


def test_flow_names():
    from sheetsync.flows.refresh import refresh_flow
    from sheetsync.flows.sync_sheet import sync_sheet_flow

    assert sync_sheet_flow.name == "sync-google-sheet"
    assert refresh_flow.name == "refresh-tenant"
