import pytest

from casedash.config import Settings


def test_settings_from_env(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_USER", "dash")
    monkeypatch.setenv("DB_PASS", "pw")
    monkeypatch.setenv("DB_NAME", "casework")
    monkeypatch.setenv("JWT_SECRET", "k" * 40)
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.example, http://b.example")

    settings = Settings.from_env().validate()

    assert settings.port == 8080
    assert settings.db_pool_max_size == 10
    assert settings.jwt_expire_hours == 12
    assert settings.default_role_id == 4
    assert settings.cors_origins == ["http://a.example", "http://b.example"]
    conninfo = settings.conninfo
    assert "host=db.internal" in conninfo
    assert "dbname=casework" in conninfo
    assert "user=dash" in conninfo


def test_database_url_overrides_parts():
    settings = Settings(database_url="postgresql://u:p@h/db", db_host="ignored", jwt_secret="k" * 32)

    assert settings.conninfo == "postgresql://u:p@h/db"


@pytest.mark.parametrize("secret", ["", "too-short"])
def test_validate_requires_strong_secret(secret):
    with pytest.raises(RuntimeError):
        Settings(jwt_secret=secret).validate()


def test_validate_rejects_empty_pool():
    with pytest.raises(RuntimeError):
        Settings(jwt_secret="k" * 32, db_pool_max_size=0).validate()
