"""Tests for settings loading and rate-limit keying."""

from unittest.mock import MagicMock

from provisioner.core.config import Settings, _normalise_db_url
from provisioner.core.limiter import _hook_target_key


class TestNormaliseDbUrl:
    def test_plain_postgresql(self) -> None:
        assert _normalise_db_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"

    def test_legacy_postgres(self) -> None:
        assert _normalise_db_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"

    def test_explicit_driver_unchanged(self) -> None:
        url = "postgresql+asyncpg://u:p@h/db"
        assert _normalise_db_url(url) == url

    def test_sqlite_unchanged(self) -> None:
        assert _normalise_db_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in ("UNINSTALL_AFTER_PROVISIONING", "STRICT_CONFIG_VALIDATION", "TEMPLATE_DIR"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.uninstall_after_provisioning is True
        assert settings.strict_config_validation is False
        assert settings.template_dir == ""
        assert settings.github_api_base == "https://api.github.com"

    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", "s3cret")
        monkeypatch.setenv("UNINSTALL_AFTER_PROVISIONING", "false")
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@h/db")

        settings = Settings(_env_file=None)

        assert settings.github_webhook_secret == "s3cret"
        assert settings.uninstall_after_provisioning is False
        assert settings.database_url == "postgresql+asyncpg://u:p@h/db"


class TestHookTargetKey:
    def test_keys_on_hook_target(self) -> None:
        request = MagicMock()
        request.headers = {"X-GitHub-Hook-Installation-Target-ID": "4242"}
        assert _hook_target_key(request) == "hook:4242"

    def test_falls_back_to_client_ip(self) -> None:
        request = MagicMock()
        request.headers = {}
        request.client.host = "10.0.0.1"
        assert _hook_target_key(request) == "10.0.0.1"
