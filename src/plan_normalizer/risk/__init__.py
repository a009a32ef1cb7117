"""High-risk change detection driven by YAML/JSON rule manifests."""

from .risk_rules import RiskFinding, RiskRule, RiskRuleError, RiskRuleManager, find_high_risk

__all__ = ["RiskFinding", "RiskRule", "RiskRuleError", "RiskRuleManager", "find_high_risk"]
