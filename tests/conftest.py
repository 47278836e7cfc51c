"""Pytest fixtures for user-aggregator tests."""

import pytest

from user_aggregator.config.settings import Settings, get_settings
from user_aggregator.ingestion.schemas import User


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reload settings from the environment for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        source_urls=["https://api.example.com/users"],
        http_timeout_seconds=5.0,
    )


@pytest.fixture
def randomuser_payload() -> dict:
    """Envelope with nested name objects (randomuser.me shape)."""
    return {
        "results": [
            {
                "gender": "female",
                "name": {"title": "Ms", "first": "Grace", "last": "Hopper"},
                "email": "grace@example.com",
                "id": {"name": "SSN", "value": None},
            }
        ],
        "info": {"seed": "abc", "results": 1, "page": 1, "version": "1.4"},
    }


@pytest.fixture
def flat_array_payload() -> list:
    """Top-level array with snake_case and camelCase records."""
    return [
        {"id": 1, "first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com"},
        {"id": 2, "firstName": "Alan", "lastName": "Turing", "email": "alan@example.com"},
        {"id": 3, "email": "nobody@example.com"},
    ]


@pytest.fixture
def dummyjson_payload() -> dict:
    """Envelope under 'users' with camelCase names (dummyjson.com shape)."""
    return {
        "users": [
            {"id": 1, "firstName": "Emily", "lastName": "Johnson", "email": "emily@x.com"},
            {"id": 2, "firstName": "Michael", "lastName": "Williams", "email": "michael@x.com"},
        ],
        "total": 2,
        "skip": 0,
        "limit": 30,
    }


@pytest.fixture
def reqres_payload() -> dict:
    """Envelope under 'data' with snake_case names (reqres.in shape)."""
    return {
        "page": 1,
        "per_page": 6,
        "data": [
            {"id": 7, "email": "michael.lawson@reqres.in", "first_name": "Michael", "last_name": "Lawson"},
            {"id": 8, "email": "lindsay.ferguson@reqres.in", "first_name": "Lindsay", "last_name": "Ferguson"},
            {"id": 9, "email": "tobias.funke@reqres.in", "first_name": "Tobias", "last_name": "Funke"},
        ],
    }


@pytest.fixture
def sample_users() -> list[User]:
    """Users with values that need CSV quoting."""
    return [
        User(first_name="Ada", last_name="Lovelace", email="ada@example.com", source_id="7"),
        User(first_name="Grace", last_name="Hopper", email="NULL", source_id="https://randomuser.me/api/"),
        User(first_name="Jean, Jr.", last_name='O"Brien', email="jean@example.com", source_id="42"),
        User(first_name="Zoë", last_name="Müller", email="zoe@example.com", source_id="43"),
    ]
