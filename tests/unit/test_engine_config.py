"""Unit tests for engine configuration parsing, validation and loading."""

import json
from pathlib import Path
from typing import Any

import pytest

from aumos_use_case_portfolio.adapters.config_file_source import JsonEngineConfigSource
from aumos_use_case_portfolio.core.defaults import DEFAULT_PHASES, DEFAULT_SIZING_CONFIG
from aumos_use_case_portfolio.core.engine_config import (
    EngineConfig,
    engine_config_from_dict,
    validate_engine_config,
)
from aumos_use_case_portfolio.core.errors import ConfigurationError
from aumos_use_case_portfolio.core.kpi_library import DEFAULT_KPI_LIBRARY


def _equal_effort(**overrides: Any) -> dict[str, Any]:
    weights: dict[str, Any] = {
        "data_readiness": 20,
        "technical_complexity": 20,
        "change_impact": 20,
        "model_risk": 20,
        "adoption_readiness": 20,
    }
    weights.update(overrides)
    return weights


class TestEngineConfigFromDict:
    def test_empty_document_uses_defaults(self) -> None:
        config = engine_config_from_dict({})
        assert config.version == "custom"
        assert config.sizing == DEFAULT_SIZING_CONFIG
        assert config.phases == DEFAULT_PHASES
        assert config.kpi_library == DEFAULT_KPI_LIBRARY

    def test_weights_accept_numbers_and_objects(self) -> None:
        config = engine_config_from_dict(
            {
                "version": "2026-q3",
                "weights": {
                    "effort": _equal_effort(adoption_readiness={"weight": 20, "invert": True}),
                    "quadrant_threshold": 3.5,
                },
            }
        )
        assert config.version == "2026-q3"
        assert config.weights.effort["adoption_readiness"].invert
        assert not config.weights.effort["model_risk"].invert
        assert config.weights.quadrant_threshold == 3.5
        assert len(config.weights.impact) == 5

    def test_invalid_weight_sum_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="sum to"):
            engine_config_from_dict({"weights": {"effort": _equal_effort(model_risk=30)}})

    def test_sizing_rules_parsed(self) -> None:
        config = engine_config_from_dict(
            {
                "sizing": {
                    "rules": [
                        {"name": "Big", "condition": {"impact_min": 4}, "target_size": "L", "priority": 10},
                        {"name": "Default", "target_size": "S", "priority": 0},
                    ],
                    "overhead_multiplier": 1.2,
                }
            }
        )
        assert [rule.name for rule in config.sizing.rules] == ["Big", "Default"]
        assert config.sizing.rules[1].condition.is_catch_all
        assert config.sizing.overhead_multiplier == 1.2
        assert config.sizing.role_rates == DEFAULT_SIZING_CONFIG.role_rates

    def test_missing_catch_all_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="catch-all"):
            engine_config_from_dict(
                {
                    "sizing": {
                        "rules": [
                            {"name": "Big", "condition": {"impact_min": 4}, "target_size": "L", "priority": 10}
                        ]
                    }
                }
            )

    def test_phases_and_derivation_parsed(self) -> None:
        config = engine_config_from_dict(
            {
                "phases": [
                    {"phase_id": "build", "name": "Build", "mapped_statuses": ["In-flight"], "priority": 1},
                    {"phase_id": "run", "name": "Run", "mapped_deployments": ["Production"], "priority": 2},
                ],
                "phase_derivation": {"match_order": ["deployment_status"], "fallback": "none"},
            }
        )
        assert [phase.phase_id for phase in config.phases] == ["build", "run"]
        assert config.phase_derivation.match_order == ("deployment_status",)

    def test_kpi_library_parsed(self) -> None:
        config = engine_config_from_dict(
            {
                "kpi_library": [
                    {
                        "kpi_id": "handling_time",
                        "name": "Handling Time",
                        "unit": "%",
                        "direction": "decrease",
                        "applicable_processes": ["Claims Management"],
                        "maturity_rules": [
                            {
                                "level": "advanced",
                                "conditions": {"data_readiness": {"min": 4}},
                                "value_range": {"min": 30, "max": 40},
                                "confidence": "high",
                            },
                            {
                                "level": "foundational",
                                "value_range": {"min": 5, "max": 10},
                                "confidence": "low",
                            },
                        ],
                        "industry_benchmarks": {
                            "Claims Management": {
                                "baseline_value": 30,
                                "baseline_unit": "minutes",
                                "improvement_range": {"min": 10, "max": 40},
                            }
                        },
                    }
                ]
            }
        )
        kpi = config.kpi("handling_time")
        assert kpi is not None
        assert kpi.maturity_rules[0].conditions["data_readiness"].min == 4
        assert kpi.industry_benchmarks["Claims Management"].baseline_value == 30.0
        assert config.kpi("cycle_time_reduction") is None

    def test_empty_maturity_rules_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="maturity rules"):
            engine_config_from_dict(
                {"kpi_library": [{"kpi_id": "k", "name": "K", "maturity_rules": []}]}
            )

    @pytest.mark.parametrize(
        "document",
        [
            {"weights": {"effort": {"model_risk": "heavy"}}},
            {"sizing": {"rules": [{"name": "no target"}]}},
            {"phases": [{"name": "missing id"}]},
            {"phase_derivation": []},
        ],
    )
    def test_malformed_documents_raise_configuration_error(self, document: dict[str, Any]) -> None:
        with pytest.raises(ConfigurationError):
            engine_config_from_dict(document)

    def test_quoted_size_bound_rejected_at_load(self) -> None:
        with pytest.raises(ConfigurationError, match=r"sizing\.rules\.0\.condition\.impact_min"):
            engine_config_from_dict(
                {
                    "sizing": {
                        "rules": [
                            {
                                "name": "Quoted",
                                "condition": {"impact_min": "3.5"},
                                "target_size": "L",
                                "priority": 10,
                            },
                            {"name": "Default", "target_size": "M", "priority": 0},
                        ]
                    }
                }
            )

    def test_quoted_invert_flag_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="invert"):
            engine_config_from_dict(
                {
                    "weights": {
                        "effort": _equal_effort(adoption_readiness={"weight": 20, "invert": "false"})
                    }
                }
            )

    def test_quoted_manual_only_flag_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="manual_only"):
            engine_config_from_dict(
                {"phases": [{"phase_id": "run", "name": "Run", "manual_only": "false"}]}
            )

    def test_boolean_false_flags_stay_false(self) -> None:
        config = engine_config_from_dict(
            {
                "weights": {
                    "effort": _equal_effort(adoption_readiness={"weight": 20, "invert": False})
                },
                "phases": [{"phase_id": "run", "name": "Run", "priority": 1, "manual_only": False}],
            }
        )
        assert not config.weights.effort["adoption_readiness"].invert
        assert not config.phases[0].manual_only

    def test_integer_bounds_become_floats(self) -> None:
        config = engine_config_from_dict(
            {
                "sizing": {
                    "rules": [
                        {"name": "Big", "condition": {"impact_min": 4}, "target_size": "L", "priority": 10},
                        {"name": "Default", "target_size": "M", "priority": 0},
                    ],
                    "role_rates": {"Developer": 400, "Analyst": 350, "PM": 500},
                }
            }
        )
        bound = config.sizing.rules[0].condition.impact_min
        assert isinstance(bound, float)
        assert bound == 4.0
        assert all(isinstance(rate, float) for rate in config.sizing.role_rates.values())

    @pytest.mark.parametrize(
        "document",
        [
            {"sizing": {"role_rates": {"ml_engineer": "700"}}},
            {"sizing": {"benefit_multipliers": {"M": "50000"}}},
            {"sizing": {"benefit_scales_with_impact": "yes"}},
            {"weights": {"effort": _equal_effort(model_risk=True)}},
            {"sizing": {"rules": [{"name": "Huge", "target_size": "XXL", "priority": 0}]}},
            {"phase_derivation": {"fallback": "first"}},
            {
                "kpi_library": [
                    {
                        "kpi_id": "k",
                        "name": "K",
                        "maturity_rules": [
                            {"level": "expert", "value_range": {"min": 1, "max": 2}, "confidence": "low"}
                        ],
                    }
                ]
            },
            {"weights": {"quadrant_treshold": 3}},
            {"colour": "blue"},
        ],
    )
    def test_mistyped_values_and_unknown_keys_rejected(self, document: dict[str, Any]) -> None:
        with pytest.raises(ConfigurationError, match="Malformed engine configuration"):
            engine_config_from_dict(document)


class TestValidateEngineConfig:
    def test_builtin_config_is_valid(self) -> None:
        config = EngineConfig()
        assert validate_engine_config(config) is config


class TestJsonEngineConfigSource:
    def test_no_path_uses_builtin(self) -> None:
        config = JsonEngineConfigSource("").load()
        assert config.version == "builtin"

    def test_reads_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"version": "file-v1"}), encoding="utf-8")
        assert JsonEngineConfigSource(path).load().version == "file-v1"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot read"):
            JsonEngineConfigSource(tmp_path / "absent.json").load()

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "engine.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            JsonEngineConfigSource(path).load()

    def test_non_object_document(self, tmp_path: Path) -> None:
        path = tmp_path / "engine.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="JSON object"):
            JsonEngineConfigSource(path).load()
