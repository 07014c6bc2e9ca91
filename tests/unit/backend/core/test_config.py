"""
Unit Tests for Configuration Management.

Black box tests against the public interface of config.py.
Tests run against the real project YAML files; secrets come from the
environment set by the root conftest. Failure scenarios use tmp_path to
create controlled filesystems.
"""

import pytest

from notebookweb.backend.core.config import (
    AppConfig,
    Settings,
    find_project_root,
    get_app_config,
    get_oauth_redirect_url,
    get_settings,
    load_yaml_config,
    validate_project_root,
)
from notebookweb.backend.core.config_schema import (
    ApplicationSchema,
    FeaturesSchema,
    LoggingSchema,
    SecuritySchema,
    SupabaseSchema,
)


# =============================================================================
# find_project_root
# =============================================================================


class TestFindProjectRoot:
    """Tests for .project_root marker discovery."""

    def test_finds_root_from_project_directory(self):
        root = find_project_root()
        assert root.is_dir()
        assert (root / ".project_root").exists()

    def test_config_directory_exists_at_root(self):
        root = find_project_root()
        assert (root / "config" / "settings").is_dir()

    def test_raises_outside_project(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(RuntimeError, match="Project root not found"):
            find_project_root()

    def test_validate_exits_outside_project(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit):
            validate_project_root()


# =============================================================================
# load_yaml_config
# =============================================================================


class TestLoadYamlConfig:
    """Tests for YAML loading."""

    def test_loads_application_yaml(self):
        data = load_yaml_config("application.yaml")
        assert data["name"] == "NotebookWeb"

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_yaml_config("does-not-exist.yaml")


# =============================================================================
# AppConfig
# =============================================================================


class TestAppConfig:
    """Tests for typed configuration access."""

    def test_sections_are_typed(self):
        config = AppConfig.load()
        assert isinstance(config.application, ApplicationSchema)
        assert isinstance(config.supabase, SupabaseSchema)
        assert isinstance(config.logging, LoggingSchema)
        assert isinstance(config.features, FeaturesSchema)
        assert isinstance(config.security, SecuritySchema)

    def test_backend_settings(self):
        supabase = get_app_config().supabase
        assert supabase.notes_table == "notes"
        assert supabase.auth.redirect_path == "/auth/callback"
        assert supabase.auth.refresh_margin_seconds >= 0

    def test_browser_context_limits(self):
        browser_context = get_app_config().security.browser_context
        assert browser_context.idle_ttl_seconds > 0
        assert browser_context.max_contexts > 0

    def test_get_app_config_is_cached(self):
        assert get_app_config() is get_app_config()

    def test_unknown_key_is_rejected(self, tmp_path, monkeypatch):
        settings_dir = tmp_path / "config" / "settings"
        settings_dir.mkdir(parents=True)
        (tmp_path / ".project_root").touch()
        (settings_dir / "features.yaml").write_text(
            "auth_password_enabled: true\n"
            "auth_signup_enabled: true\n"
            "api_enabled: true\n"
            "security_startup_checks_enabled: true\n"
            "surprise: true\n"
        )
        monkeypatch.chdir(tmp_path)

        from notebookweb.backend.core.config import _load_validated

        with pytest.raises(ValueError, match="features.yaml"):
            _load_validated(FeaturesSchema, "features.yaml")


# =============================================================================
# Settings
# =============================================================================


class TestSettings:
    """Tests for secrets loading."""

    def test_reads_environment(self):
        settings = get_settings()
        assert isinstance(settings, Settings)
        assert settings.supabase_anon_key == "test-anon-key"
        assert len(settings.session_secret) >= 32

    def test_missing_secret_fails(self, monkeypatch):
        monkeypatch.delenv("SESSION_SECRET")
        get_settings.cache_clear()
        with pytest.raises(ValueError):
            Settings(_env_file=None)


# =============================================================================
# Derived values
# =============================================================================


class TestDerivedUrls:
    """Tests for URL helpers."""

    def test_oauth_redirect_url(self):
        assert get_oauth_redirect_url() == "http://127.0.0.1:8000/auth/callback"
