import pytest

from conftest import write_config
from theia_client.settings import ConfigError, Settings


def test_values_are_read_from_nested_documents(settings):
    assert settings.websocket_url == "ws://host.test/ws"
    assert settings.post_url == "http://host.test/send"
    assert settings.credentials == ("theia", "secret")
    assert settings.value("Cases") is True
    assert settings.value("UpdateInterval", 3600) == 3600


@pytest.mark.parametrize("missing", ["Auth", "WebSocket", "PostRequest"])
def test_missing_required_key_is_fatal(tmp_path, config_data, missing):
    del config_data[missing]
    settings = Settings(write_config(tmp_path / "config.json", config_data))

    with pytest.raises(ConfigError, match=missing):
        settings.load()


def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        Settings(tmp_path / "absent.json").load()


def test_invalid_json_is_fatal(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding='utf-8')

    with pytest.raises(ConfigError, match="Invalid JSON"):
        Settings(path).load()


def test_load_is_cached_until_reload(config_file, config_data):
    settings = Settings(config_file)
    first = settings.load()

    config_data["WebSocket"] = {"value": "ws://other.test/ws"}
    write_config(config_file, config_data)

    assert settings.load() is first
    assert settings.reload()["WebSocket"]["value"] == "ws://other.test/ws"
    assert settings.websocket_url == "ws://other.test/ws"


def test_failed_reload_keeps_previous_document(config_file):
    settings = Settings(config_file)
    previous = settings.load()
    config_file.write_text("{broken", encoding='utf-8')

    with pytest.raises(ConfigError):
        settings.reload()

    assert settings.load() is previous
