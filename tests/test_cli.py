"""Tests for src.cli.main -- typer commands."""

import json

import openpyxl
import pytest
from typer.testing import CliRunner

from core.providers.base import LLMError, LLMQuotaError
from src.cli.main import app

runner = CliRunner()

MODA_CAFE = ["search", "-p", "istanbul", "-d", "kadikoy", "-n", "moda", "-c", "yeme-icme",
             "-s", "kafe"]


def _line(name):
    return json.dumps({"businessName": name, "address": f"{name} Sok."}, ensure_ascii=False) + "\n"


@pytest.fixture
def patched_provider(monkeypatch, make_provider):
    """Make the CLI build a FakeProvider; returns the list of created providers."""
    created = []

    def factory(scripts):
        def fake_get_provider(provider_name, model=None, api_key=None):
            provider = make_provider(scripts)
            provider.requested = (provider_name, model, api_key)
            created.append(provider)
            return provider

        monkeypatch.setattr("core.providers.registry.get_provider", fake_get_provider)
        return created

    return factory


class TestSearchCommand:
    def test_prints_results_and_saves_history(self, patched_provider):
        patched_provider([[_line("Moda Kahve"), _line("Kafe Pi")]])
        result = runner.invoke(app, MODA_CAFE)
        assert result.exit_code == 0, result.output
        assert "Moda Kahve" in result.output
        assert "2 businesses found" in result.output

        history = runner.invoke(app, ["history"])
        assert "Kafe - İstanbul > Kadıköy > Caferağa (Moda) (2 sonuç)" in history.output

    def test_writes_xlsx(self, patched_provider, tmp_path):
        patched_provider([[_line("Moda Kahve")]])
        out = tmp_path / "sonuc.xlsx"
        result = runner.invoke(app, MODA_CAFE + ["--out", str(out)])
        assert result.exit_code == 0, result.output
        ws = openpyxl.load_workbook(out).active
        assert ws.cell(row=2, column=1).value == "Moda Kahve"

    def test_empty_results_cannot_be_exported(self, patched_provider, tmp_path):
        patched_provider([[]])
        result = runner.invoke(app, MODA_CAFE + ["--out", str(tmp_path / "x.xlsx")])
        assert result.exit_code == 1
        assert "Dışa aktarılacak veri bulunmamaktadır" in result.output

    def test_unknown_district(self, patched_provider):
        created = patched_provider([])
        result = runner.invoke(app, ["search", "-p", "istanbul", "-d", "yok", "-c", "saglik"])
        assert result.exit_code == 1
        assert "Bilinmeyen ilçe" in result.output
        assert created[0].calls == []

    def test_quota_error_exits_with_message(self, patched_provider):
        patched_provider([LLMQuotaError()])
        result = runner.invoke(app, MODA_CAFE)
        assert result.exit_code == 1
        assert "kota" in result.output
        assert "Geçmiş arama yok." in runner.invoke(app, ["history"]).output

    def test_provider_flag_picks_default_model(self, patched_provider):
        created = patched_provider([[]])
        runner.invoke(app, MODA_CAFE + ["--provider", "openai"])
        assert created[0].requested[:2] == ("openai", "gpt-4o")

    def test_config_file(self, patched_provider, tmp_path):
        created = patched_provider([[]])
        cfg = tmp_path / "config.yaml"
        cfg.write_text(
            "max_results_per_task: 5\n"
            "prompts:\n"
            "  system: Kısa cevap ver.\n",
            encoding="utf-8",
        )
        result = runner.invoke(app, MODA_CAFE + ["--config", str(cfg)])
        assert result.exit_code == 0, result.output
        call = created[0].calls[0]
        assert call["system"] == "Kısa cevap ver."
        assert "at most 5 businesses" in call["user"]

    def test_config_json(self, patched_provider, tmp_path):
        created = patched_provider([[]])
        cfg = tmp_path / "config.json"
        cfg.write_text(json.dumps({"model": "gemini-2.5-pro"}), encoding="utf-8")
        runner.invoke(app, MODA_CAFE + ["--config", str(cfg)])
        assert created[0].requested[:2] == ("google", "gemini-2.5-pro")

    def test_config_provider_without_model_uses_its_default(self, patched_provider, tmp_path):
        created = patched_provider([[]])
        cfg = tmp_path / "config.json"
        cfg.write_text(json.dumps({"provider": "openai"}), encoding="utf-8")
        result = runner.invoke(app, MODA_CAFE + ["--config", str(cfg)])
        assert result.exit_code == 0, result.output
        assert created[0].requested[:2] == ("openai", "gpt-4o")

    def test_config_provider_with_model_flag(self, patched_provider, tmp_path):
        created = patched_provider([[]])
        cfg = tmp_path / "config.json"
        cfg.write_text(json.dumps({"provider": "openai"}), encoding="utf-8")
        runner.invoke(app, MODA_CAFE + ["--config", str(cfg), "--model", "gpt-4o-mini"])
        assert created[0].requested[:2] == ("openai", "gpt-4o-mini")

    def test_model_of_another_provider_rejected(self, patched_provider):
        created = patched_provider([[]])
        result = runner.invoke(app, MODA_CAFE + ["--provider", "openai", "--model", "gemini-2.5-pro"])
        assert result.exit_code == 1
        assert "geçersiz model" in result.output
        assert created == []

    @pytest.mark.parametrize("content, suffix", [
        ("[1, 2]", ".json"),
        ("{\"provider\": \"mistral\"}", ".json"),
        ("provider: [yanlış", ".yaml"),
    ])
    def test_bad_config_file(self, patched_provider, tmp_path, content, suffix):
        created = patched_provider([[]])
        cfg = tmp_path / f"config{suffix}"
        cfg.write_text(content, encoding="utf-8")
        result = runner.invoke(app, MODA_CAFE + ["--config", str(cfg)])
        assert result.exit_code == 1
        assert "Hata:" in result.output
        assert created == []

    def test_missing_config_file(self, patched_provider, tmp_path):
        patched_provider([[]])
        result = runner.invoke(app, MODA_CAFE + ["--config", str(tmp_path / "yok.yaml")])
        assert result.exit_code == 1
        assert "Hata:" in result.output

    def test_broken_prompt_template(self, patched_provider, tmp_path):
        created = patched_provider([[_line("Moda Kahve")]])
        cfg = tmp_path / "config.yaml"
        cfg.write_text("prompts:\n  user_template: 'X {bogus}'\n", encoding="utf-8")
        result = runner.invoke(app, MODA_CAFE + ["--config", str(cfg)])
        assert result.exit_code == 1
        assert "İstem şablonu geçersiz" in result.output
        assert created[0].calls == []

    def test_every_task_failing_exits_without_history(self, patched_provider):
        patched_provider([LLMError("GOOGLE_API_KEY ayarlanmamış.", provider="fake")])
        result = runner.invoke(app, MODA_CAFE)
        assert result.exit_code == 1
        assert "GOOGLE_API_KEY" in result.output
        assert "Geçmiş arama yok." in runner.invoke(app, ["history"]).output


class TestLocationsCommand:
    def test_provinces(self):
        result = runner.invoke(app, ["locations"])
        assert result.exit_code == 0
        assert "istanbul\tİstanbul" in result.output

    def test_districts(self):
        result = runner.invoke(app, ["locations", "istanbul"])
        assert "kadikoy\tKadıköy" in result.output

    def test_neighborhoods(self):
        result = runner.invoke(app, ["locations", "istanbul", "kadikoy"])
        assert "moda\tCaferağa (Moda)" in result.output

    def test_unknown_parent(self):
        result = runner.invoke(app, ["locations", "atlantis"])
        assert result.exit_code == 1

    def test_categories(self):
        result = runner.invoke(app, ["locations", "--categories"])
        assert "yeme-icme\tYeme & İçme" in result.output
        assert "  kafe\tKafe" in result.output


class TestHistoryCommand:
    def test_empty(self):
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert "Geçmiş arama yok." in result.output

    def test_clear(self, patched_provider):
        patched_provider([[_line("Moda Kahve")]])
        runner.invoke(app, MODA_CAFE)
        result = runner.invoke(app, ["history", "--clear"])
        assert "Geçmiş temizlendi." in result.output
        assert "Geçmiş arama yok." in runner.invoke(app, ["history"]).output


class TestThemeCommand:
    def test_default(self):
        result = runner.invoke(app, ["theme"])
        assert result.output.strip() == "system (Sistem)"

    def test_cycle_is_persisted(self):
        assert runner.invoke(app, ["theme", "--next"]).output.strip() == "light (Açık Mod)"
        assert runner.invoke(app, ["theme", "--next"]).output.strip() == "dark (Koyu Mod)"
        assert runner.invoke(app, ["theme"]).output.strip() == "dark (Koyu Mod)"


class TestNoStreamFlag:
    def test_uses_generate_json(self, patched_provider):
        created = patched_provider([])
        result = runner.invoke(app, MODA_CAFE + ["--no-stream"])
        assert result.exit_code == 0, result.output
        assert created[0].calls == []
        assert "0 businesses found" in result.output
