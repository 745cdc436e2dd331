"""Tests for the combined rules engine score."""

from fincompliance.config import RiskConfig
from fincompliance.screening.rules_engine import evaluate_rules
from tests.conftest import make_transaction


class TestEvaluateRules:
    def test_domestic_low_score(self, config):
        result = evaluate_rules(make_transaction(amount=50000.0, country="India"), config)
        assert result.score == config.jurisdiction_score_low == 10
        assert result.is_high_risk_jurisdiction is False
        assert result.is_structuring is False
        assert result.matched_jurisdiction is None

    def test_high_risk_jurisdiction(self, config):
        result = evaluate_rules(make_transaction(amount=500000.0, country="Cayman"), config)
        assert result.score == config.jurisdiction_score_high == 95
        assert result.is_high_risk_jurisdiction is True
        assert result.matched_jurisdiction == "Cayman"

    def test_structuring_raises_score(self, config):
        result = evaluate_rules(make_transaction(amount=950000.0, country="India"), config)
        assert result.score == config.structuring_score == 85
        assert result.is_structuring is True
        assert result.is_high_risk_jurisdiction is False

    def test_jurisdiction_takes_precedence(self, config):
        result = evaluate_rules(make_transaction(amount=950000.0, country="BVI"), config)
        assert result.score == 95
        assert result.is_high_risk_jurisdiction is True
        assert result.is_structuring is True

    def test_structuring_never_lowers_score(self):
        config = RiskConfig(structuring_score=5, jurisdiction_score_low=20)
        result = evaluate_rules(make_transaction(amount=950000.0), config)
        assert result.score == 20

    def test_pure_function(self, config):
        tx = make_transaction(amount=950000.0, country="Seychelles")
        assert evaluate_rules(tx, config) == evaluate_rules(tx, config)
