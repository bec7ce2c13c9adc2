"""Tests for ebird_effort.config — analysis settings."""

import json

import pytest

from ebird_effort.config import AnalysisConfig, DEFAULT_PROTOCOLS
from ebird_effort.ebird.columns import ColumnMap


class TestDefaults:

    def test_reference_run_settings(self):
        cfg = AnalysisConfig()
        assert cfg.protocols == DEFAULT_PROTOCOLS
        assert (cfg.min_duration, cfg.max_duration) == (5.0, 240.0)
        assert cfg.max_distance_km == 10.0
        assert cfg.rare_species_pct == 5.0
        assert cfg.permutations == 1000
        assert cfg.bootstrap_reps == 1000
        assert cfg.thresholds == (70.0, 80.0, 90.0)
        assert cfg.seed is None


class TestValidation:

    def test_year_order(self):
        with pytest.raises(ValueError, match="year_start"):
            AnalysisConfig(year_start=2020, year_end=2019)

    def test_duration_order(self):
        with pytest.raises(ValueError):
            AnalysisConfig(min_duration=300)

    def test_positive_permutations(self):
        with pytest.raises(ValueError):
            AnalysisConfig(permutations=0)

    def test_unknown_estimator(self):
        with pytest.raises(ValueError, match="estimator"):
            AnalysisConfig(estimator="ace")

    def test_rare_pct_range(self):
        with pytest.raises(ValueError):
            AnalysisConfig(rare_species_pct=150)

    def test_protocols_required(self):
        with pytest.raises(ValueError):
            AnalysisConfig(protocols=())


class TestLoading:

    def test_from_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "locality_id": "L2000000",
            "year_start": 2015,
            "year_end": 2019,
            "protocols": ["Stationary", "Traveling"],
            "seed": 7,
            "columns": "dotted",
        }))
        cfg = AnalysisConfig.from_json(path)
        assert cfg.locality_id == "L2000000"
        assert cfg.protocols == ("Stationary", "Traveling")
        assert cfg.seed == 7
        assert cfg.columns == ColumnMap.dotted()

    def test_column_overrides(self):
        cfg = AnalysisConfig.from_dict({"columns": {"preset": "ebd", "count": "N"}})
        assert cfg.columns.count == "N"
        assert cfg.columns.checklist_id == "SAMPLING EVENT IDENTIFIER"

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown config keys"):
            AnalysisConfig.from_dict({"permutation": 10})

    def test_overrides_skip_none(self):
        cfg = AnalysisConfig(seed=1).with_overrides(seed=None, permutations=50)
        assert cfg.seed == 1
        assert cfg.permutations == 50

    def test_overrides_are_validated(self):
        with pytest.raises(ValueError):
            AnalysisConfig().with_overrides(year_start=2021, year_end=2020)

    def test_to_dict_is_json_serialisable(self):
        d = AnalysisConfig(seed=3).to_dict()
        assert json.loads(json.dumps(d))["columns"]["count"] == "observation_count"
