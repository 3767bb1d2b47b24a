import pytest

from shared.models.config import RetrievalSettings


class TestHelperConfig:
    def test_string_default_and_strip(self, helper_config, monkeypatch) -> None:
        monkeypatch.delenv("SOME_KEY", raising=False)
        assert helper_config.get_string_val("some_key", default="fallback") == "fallback"

        monkeypatch.setenv("SOME_KEY", "  value ")
        assert helper_config.get_string_val("some_key") == "value"

    def test_missing_required_value_raises(self, helper_config, monkeypatch) -> None:
        monkeypatch.delenv("SOME_KEY", raising=False)
        with pytest.raises(ValueError, match="SOME_KEY"):
            helper_config.get_string_val("SOME_KEY")

    def test_number_parsing(self, helper_config, monkeypatch) -> None:
        monkeypatch.setenv("INT_KEY", "5")
        monkeypatch.setenv("FLOAT_KEY", "0.45")
        monkeypatch.setenv("BAD_KEY", "abc")

        assert helper_config.get_number_val("INT_KEY") == 5
        assert helper_config.get_number_val("FLOAT_KEY") == pytest.approx(0.45)
        with pytest.raises(ValueError, match="not a valid number"):
            helper_config.get_number_val("BAD_KEY")

    def test_list_parsing(self, helper_config, monkeypatch) -> None:
        monkeypatch.setenv("LIST_KEY", "[a, b,,c]")
        assert helper_config.get_list_val("LIST_KEY") == ["a", "b", "c"]

        monkeypatch.setenv("LIST_KEY", "a,b")
        with pytest.raises(ValueError, match="format"):
            helper_config.get_list_val("LIST_KEY")


class TestRetrievalSettings:
    def test_defaults(self, helper_config, monkeypatch) -> None:
        for key in ("ACCESS_REQUIRED_SCOPE", "RETRIEVAL_MIN_SCORE", "RETRIEVAL_TOP_K", "BACKFILL_CONCURRENCY"):
            monkeypatch.delenv(key, raising=False)

        assert helper_config.get_retrieval_settings() == RetrievalSettings(
            required_scope="Files.Read", minimum_score=0.3, top_k=5, backfill_concurrency=5
        )

    def test_reads_environment(self, helper_config, monkeypatch) -> None:
        monkeypatch.setenv("ACCESS_REQUIRED_SCOPE", "Chunks.Read")
        monkeypatch.setenv("RETRIEVAL_MIN_SCORE", "0.5")
        monkeypatch.setenv("RETRIEVAL_TOP_K", "3")
        monkeypatch.setenv("BACKFILL_CONCURRENCY", "2")

        settings = helper_config.get_retrieval_settings()

        assert settings.required_scope == "Chunks.Read"
        assert settings.minimum_score == pytest.approx(0.5)
        assert settings.top_k == 3
        assert settings.backfill_concurrency == 2

    def test_rejects_invalid_top_k(self, helper_config, monkeypatch) -> None:
        monkeypatch.setenv("RETRIEVAL_TOP_K", "0")

        with pytest.raises(ValueError):
            helper_config.get_retrieval_settings()
