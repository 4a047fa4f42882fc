"""
Hoot API Backend: Settings Tests
=================================

Validators and derived values on hoot_api.config.Settings.
"""

import pytest
from pydantic import ValidationError

from hoot_api.config import (
    COMMENT_POLICY_ANY_USER,
    COMMENT_POLICY_COMMENT_AUTHOR,
    Settings,
)


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestValidators:

    def test_defaults(self):
        s = _settings(comment_edit_policy="any_user")

        assert s.comment_edit_policy == COMMENT_POLICY_ANY_USER
        assert s.rate_limit_window >= 10

    def test_jwt_algorithm_is_normalized(self):
        assert _settings(jwt_algorithm="hs512").jwt_algorithm == "HS512"

    def test_asymmetric_algorithm_is_rejected(self):
        with pytest.raises(ValidationError):
            _settings(jwt_algorithm="RS256")

    def test_comment_policy_is_normalized(self):
        s = _settings(comment_edit_policy="COMMENT_AUTHOR")
        assert s.comment_edit_policy == COMMENT_POLICY_COMMENT_AUTHOR

    def test_unknown_comment_policy_is_rejected(self):
        with pytest.raises(ValidationError):
            _settings(comment_edit_policy="moderators")

    def test_log_level(self):
        assert _settings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            _settings(log_level="LOUD")


class TestDerivedValues:

    def test_cors_origins_list_skips_blanks(self):
        s = _settings(cors_origins="http://a.example, http://b.example,,")
        assert s.cors_origins_list == ["http://a.example", "http://b.example"]

    def test_missing_secret_fails_production_check(self):
        with pytest.raises(ValueError, match="JWT_SECRET"):
            _settings(jwt_secret="").validate_required_for_production()

    def test_configured_secret_passes_production_check(self):
        _settings(jwt_secret="s3cret").validate_required_for_production()
