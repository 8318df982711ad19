# tests/test_config.py

"""
Tests for settings parsing and enum wire values.
"""

import pytest
from pydantic import ValidationError as SettingsError

from backoffice.core.config import Settings, parse_ttl
from backoffice.core.enums import PermissionKind, UserGender, UserStatus
from backoffice.core.exceptions import ValidationError


@pytest.mark.parametrize("value,seconds", [
    ("3600", 3600),
    ("45s", 45),
    ("30m", 1800),
    ("1h", 3600),
    ("7d", 604800),
])
def test_parse_ttl(value, seconds):
    assert parse_ttl(value) == seconds


def test_parse_ttl_rejects_garbage():
    with pytest.raises(ValueError):
        parse_ttl("soon")


def test_unknown_db_type_rejected():
    with pytest.raises(SettingsError):
        Settings(DB_TYPE="oracle")


def test_postgres_url():
    settings = Settings(
        DB_TYPE="postgres", PGHOST="db", PGPORT=5433, PGDATABASE="bo",
        PGUSER="app", PGPASSWORD="p@ss", PGSSL=None, DATABASE_URL=None,
    )

    assert settings.database_url == "postgresql+psycopg2://app:p%40ss@db:5433/bo"


def test_postgres_ssl_modes():
    lenient = Settings(DB_TYPE="postgres", PGSSL="allow", DATABASE_URL=None)
    strict = Settings(DB_TYPE="postgres", PGSSL="true", DATABASE_URL=None)

    assert lenient.database_url.endswith("?sslmode=require")
    assert strict.database_url.endswith("?sslmode=verify-full")


def test_mysql_url():
    settings = Settings(
        DB_TYPE="MySQL", MYSQL_HOST="m", MYSQL_PORT=3307, MYSQL_DATABASE="bo",
        MYSQL_USER="app", MYSQL_PASSWORD=None, DATABASE_URL=None,
    )

    assert settings.DB_TYPE == "mysql"
    assert settings.database_url == "mysql+pymysql://app@m:3307/bo?charset=utf8mb4"


def test_explicit_database_url_wins():
    settings = Settings(DATABASE_URL="sqlite:///local.db")

    assert settings.database_url == "sqlite:///local.db"


def test_loki_labels():
    settings = Settings(LOKI_LABELS="app=backoffice, env = prod,broken")

    assert settings.loki_labels == {"app": "backoffice", "env": "prod"}


def test_enum_from_wire_is_case_insensitive():
    assert UserStatus.from_wire(" Active ") is UserStatus.active
    assert UserGender.from_wire("FEMALE") is UserGender.female
    assert PermissionKind.from_wire(PermissionKind.can_delete) is PermissionKind.can_delete


def test_enum_from_wire_lists_allowed_values():
    with pytest.raises(ValidationError) as exc_info:
        UserStatus.from_wire("banished")

    assert "active, inactive, pending, suspended" in exc_info.value.message
