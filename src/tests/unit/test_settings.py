"""
Unit tests for configuration loading and LaTeX table export.
"""
import pytest
import pandas as pd
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[3]))

from src.utils.academic_tables import dataframe_to_latex, dataframe_to_latex_table
from src.utils.settings import DEFAULT_CONFIG_PATH, config_path, load_config, section


class TestSettings:
    """Test suite for load_config"""

    def test_default_config_resolves_root(self):
        """Test the shipped YAML loads and placeholders are expanded"""
        cfg = load_config(DEFAULT_CONFIG_PATH)
        assert cfg is not None
        assert "${project.root}" not in cfg["paths"]["raw"]
        assert Path(cfg["project"]["root"]).is_absolute()
        assert section(cfg, "cleaning")["on_unparsable"] in {"drop", "raise"}
        assert section(cfg, "analysis")["percentage_chi_square"] is False

    def test_env_override(self, tmp_path, monkeypatch):
        """Test STEAM_EDA_CONFIG points the loader at another file"""
        alt = tmp_path / "alt.yaml"
        alt.write_text("project:\n  root: /srv/steam\npaths:\n  raw: \"${project.root}/raw\"\n",
                       encoding="utf-8")
        monkeypatch.setenv("STEAM_EDA_CONFIG", str(alt))
        assert config_path() == alt.resolve()
        cfg = load_config()
        assert cfg["paths"]["raw"] == str(Path("/srv/steam")) + "/raw"

    def test_unreadable_config_returns_none(self, tmp_path, capsys):
        bad = tmp_path / "bad.yaml"
        bad.write_text("analysis: [unclosed\n", encoding="utf-8")
        assert load_config(bad) is None
        assert load_config(tmp_path / "missing.yaml") is None
        assert "ERROR" in capsys.readouterr().out

    def test_missing_section_is_empty(self):
        assert section(None, "analysis") == {}
        assert section({"analysis": None}, "analysis") == {}


class TestLatexTables:
    """Test suite for the LaTeX exporter"""

    @pytest.fixture
    def table(self):
        return pd.DataFrame({"Estimated owners": ["0 - 20000"], "Positive %": [81.23456]})

    def test_environment_and_escaping(self, table):
        tex = dataframe_to_latex(table, "Owners.", "tab:owners", note="Synthetic.")
        assert tex.startswith("\\begin{table}")
        assert "\\label{tab:owners}" in tex
        assert "Positive \\%" in tex
        assert "81.235" in tex
        assert "Synthetic." in tex

    def test_rejects_non_dataframe(self):
        with pytest.raises(TypeError):
            dataframe_to_latex([1, 2], "x", "tab:x")

    def test_writes_file(self, table, tmp_path):
        path = tmp_path / "nested" / "owners.tex"
        out = dataframe_to_latex_table(table, str(path), "Owners.", "tab:owners")
        assert out == str(path)
        assert path.read_text(encoding="utf-8").endswith("\\end{table}")
