"""
Unit Tests for Promotion Engine Configuration

Reliability Level: L6 Critical

Tests:
- Defaults and Decimal quantization
- Environment loading with fallback on malformed values
- Fail-closed validation (CFG-001)
- Module-level singleton
"""

from decimal import Decimal

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from promo_services.promotion_config import (
    PromotionEngineConfig,
    get_promotion_config,
    reset_promotion_config,
)
from promo_services.promotion_errors import ConfigurationError

ENV_VARS = [
    "MAX_PROMOTION_DURATION",
    "MIN_PROMOTION_DURATION",
    "PROMOTION_LEAD_TIME",
    "MAX_DISCOUNT_PERCENTAGE",
    "MIN_ROI_THRESHOLD",
    "CLAIM_AUTO_VALIDATION",
    "CLAIM_EVENTS_TOPIC",
    "DEFAULT_CURRENCY",
    "CACHE_CAMPAIGNS_TTL",
    "CACHE_PERFORMANCE_TTL",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_promotion_config()
    yield
    reset_promotion_config()


class TestDefaults:

    def test_business_rule_defaults(self) -> None:
        config = PromotionEngineConfig()
        assert config.max_duration_days == 90
        assert config.min_duration_days == 1
        assert config.lead_time_days == 7
        assert config.max_discount_percentage == Decimal("50.00")
        assert config.min_roi_threshold == Decimal("1.20")
        assert config.auto_validation_threshold == Decimal("1000.00")
        assert config.claim_events_topic == "claim.events"
        assert config.calculation_ttl_seconds == 900
        assert config.forecast_ttl_seconds == 1800

    def test_thresholds_quantized(self) -> None:
        config = PromotionEngineConfig(auto_validation_threshold=Decimal("999.995"))
        assert config.auto_validation_threshold == Decimal("1000.00")

    def test_defaults_validate(self) -> None:
        PromotionEngineConfig().validate()


class TestFromEnvironment:

    def test_reads_variables(self, monkeypatch) -> None:
        monkeypatch.setenv("MAX_PROMOTION_DURATION", "60")
        monkeypatch.setenv("CLAIM_AUTO_VALIDATION", "250")
        monkeypatch.setenv("CLAIM_EVENTS_TOPIC", "claims.v2")
        monkeypatch.setenv("DEFAULT_CURRENCY", "zar")

        config = PromotionEngineConfig.from_environment()

        assert config.max_duration_days == 60
        assert config.auto_validation_threshold == Decimal("250.00")
        assert config.claim_events_topic == "claims.v2"
        assert config.default_currency == "ZAR"

    def test_malformed_values_fall_back(self, monkeypatch) -> None:
        monkeypatch.setenv("PROMOTION_LEAD_TIME", "a week")
        monkeypatch.setenv("MIN_ROI_THRESHOLD", "high")

        config = PromotionEngineConfig.from_environment()

        assert config.lead_time_days == 7
        assert config.min_roi_threshold == Decimal("1.20")

    def test_inconsistent_values_fail_closed(self, monkeypatch) -> None:
        monkeypatch.setenv("MIN_PROMOTION_DURATION", "30")
        monkeypatch.setenv("MAX_PROMOTION_DURATION", "10")

        with pytest.raises(ConfigurationError) as exc_info:
            PromotionEngineConfig.from_environment()
        assert exc_info.value.error_code == "CFG-001"

    def test_validation_can_be_deferred(self, monkeypatch) -> None:
        monkeypatch.setenv("MAX_DISCOUNT_PERCENTAGE", "150")
        config = PromotionEngineConfig.from_environment(validate=False)
        with pytest.raises(ConfigurationError):
            config.validate()


class TestSingleton:

    def test_same_instance_until_reset(self) -> None:
        first = get_promotion_config()
        assert get_promotion_config() is first
        reset_promotion_config()
        assert get_promotion_config() is not first

    def test_to_dict_uses_strings(self) -> None:
        data = get_promotion_config().to_dict()
        assert data["max_discount_percentage"] == "50.00"
        assert data["max_duration_days"] == 90
