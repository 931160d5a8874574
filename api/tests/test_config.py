from decimal import Decimal

import pytest
from pydantic import ValidationError

from bankrec.config import Settings


def make_settings(**overrides):
    return Settings(POSTGRES_URL="sqlite://", **overrides)


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("RECON_APPROVAL_MODE", "RECON_BALANCE_TOLERANCE", "RECON_VARIANCE_THRESHOLD_PERCENT"):
            monkeypatch.delenv(name, raising=False)

        s = make_settings()

        assert s.approval_mode == "optional"
        assert s.balance_tolerance == Decimal("0.01")
        assert s.variance_threshold_percent == Decimal("10")
        assert s.variance_absolute_threshold is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("RECON_APPROVAL_MODE", "required")
        monkeypatch.setenv("RECON_VARIANCE_THRESHOLD_PERCENT", "25")

        s = make_settings()

        assert s.approval_mode == "required"
        assert s.variance_threshold_percent == Decimal("25")

    def test_unknown_approval_mode_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(RECON_APPROVAL_MODE="sometimes")


class TestToleranceFor:
    def test_falls_back_to_global_tolerance(self):
        s = make_settings(RECON_BALANCE_TOLERANCE="0.05")

        assert s.tolerance_for("GHS") == Decimal("0.05")
        assert s.tolerance_for(None) == Decimal("0.05")

    def test_currency_override_from_json(self):
        s = make_settings(RECON_CURRENCY_TOLERANCES='{"bhd": "0.001", "JPY": "1"}')

        assert s.tolerance_for("BHD") == Decimal("0.001")
        assert s.tolerance_for("jpy") == Decimal("1")
        assert s.tolerance_for("USD") == Decimal("0.01")

    def test_blank_map(self):
        s = make_settings(RECON_CURRENCY_TOLERANCES="  ")

        assert s.currency_tolerances == {}
