"""Config file loading and saving."""

import json

from talksync import AsyncTalkClient, ClientConfig, load_config, save_config
from tests.fakes import FakeGateway


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / "absent.json")
    assert cfg == ClientConfig()
    assert cfg.batch_size == 50
    assert cfg.room_page_size == 50


def test_save_then_load(tmp_path):
    path = tmp_path / "nested" / "config.json"
    save_config(ClientConfig(auth_token="tok", batch_size=10), path)

    assert json.loads(path.read_text())["auth_token"] == "tok"
    loaded = load_config(path)
    assert loaded.auth_token == "tok"
    assert loaded.batch_size == 10


def test_unreadable_file_falls_back(tmp_path, caplog):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert load_config(path) == ClientConfig()
    assert "Ignoring unreadable config" in caplog.text

    path.write_text(json.dumps({"batch_size": "many"}))
    assert load_config(path).batch_size == 50


def test_client_takes_token_from_config():
    cfg = ClientConfig(auth_token="saved", certificate="c", batch_size=5)
    client = AsyncTalkClient(config=cfg, gateway=FakeGateway())
    assert client.session.auth_token == "saved"
    assert client.session.uses_token_login
