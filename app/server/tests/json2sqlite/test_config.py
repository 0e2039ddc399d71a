import pytest

from json2sqlite.config import ConversionConfig
from json2sqlite.exceptions import ConfigurationError


class TestConversionConfig:

    def test_defaults(self):
        config = ConversionConfig()
        assert config.table_name == "data"
        assert config.sample_size == 100
        assert config.batch_size == 1000

    def test_blank_table_name_falls_back_to_default(self):
        assert ConversionConfig(table_name="   ").table_name == "data"
        assert ConversionConfig(table_name="").table_name == "data"

    def test_table_name_is_stripped(self):
        assert ConversionConfig(table_name="  users ").table_name == "users"

    @pytest.mark.parametrize("field", ["sample_size", "batch_size"])
    @pytest.mark.parametrize("value", [0, -1, 1.5, True, "abc", None])
    def test_invalid_sizes(self, field, value):
        with pytest.raises(ConfigurationError) as exc_info:
            ConversionConfig(**{field: value})
        assert field in str(exc_info.value)

    def test_numeric_strings_are_accepted(self):
        config = ConversionConfig(sample_size="10", batch_size=" 20 ")
        assert config.sample_size == 10
        assert config.batch_size == 20

    def test_config_is_immutable(self):
        config = ConversionConfig()
        with pytest.raises(AttributeError):
            config.batch_size = 5

    def test_configuration_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            ConversionConfig(batch_size=0)


class TestConfigFromEnv:

    def test_reads_environment(self):
        environ = {
            "JSON2SQLITE_TABLE_NAME": "events",
            "JSON2SQLITE_SAMPLE_SIZE": "50",
            "JSON2SQLITE_BATCH_SIZE": "500",
        }
        config = ConversionConfig.from_env(environ)
        assert config == ConversionConfig(table_name="events", sample_size=50, batch_size=500)

    def test_overrides_take_precedence(self):
        environ = {"JSON2SQLITE_BATCH_SIZE": "500"}
        config = ConversionConfig.from_env(environ, batch_size=10, sample_size=None)
        assert config.batch_size == 10
        assert config.sample_size == 100

    def test_uses_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("JSON2SQLITE_SAMPLE_SIZE", "7")
        monkeypatch.delenv("JSON2SQLITE_BATCH_SIZE", raising=False)
        monkeypatch.delenv("JSON2SQLITE_TABLE_NAME", raising=False)
        assert ConversionConfig.from_env().sample_size == 7

    def test_invalid_environment_value(self):
        with pytest.raises(ConfigurationError):
            ConversionConfig.from_env({"JSON2SQLITE_SAMPLE_SIZE": "many"})
