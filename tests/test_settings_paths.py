from pathlib import Path

from flowshare.core import settings


def test_linux_data_dir_with_xdg():
    env = {"XDG_DATA_HOME": "/tmp/xdg"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env=env,
        home=Path("/home/test"),
    )
    assert result == Path("/tmp/xdg") / settings.APP_NAME


def test_linux_data_dir_default_home():
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env={},
        home=Path("/home/test"),
    )
    assert result == Path("/home/test/.local/share") / settings.APP_NAME


def test_macos_data_dir():
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="darwin",
        env={},
        home=Path("/Users/test"),
    )
    expected = Path("/Users/test/Library/Application Support") / settings.APP_NAME
    assert result == expected


def test_windows_data_dir_appdata():
    env = {"APPDATA": "C:/Users/test/AppData/Roaming"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="win32",
        env=env,
        home=Path("C:/Users/test"),
    )
    expected = Path(env["APPDATA"]) / settings.APP_NAME
    assert result == expected


def test_env_override_wins():
    env = {"FLOWSHARE_DATA_DIR": "/srv/flowshare", "XDG_DATA_HOME": "/tmp/xdg"}
    result = settings.get_default_data_dir(settings.APP_NAME, platform="linux", env=env)
    assert result == Path("/srv/flowshare")


def test_runtime_paths_inside_data_dir():
    assert settings.DB_PATH.parent == settings.DATA_DIR
    assert settings.CONFIG_PATH.parent == settings.DATA_DIR
    assert settings.LOG_DIR.parent == settings.DATA_DIR


def test_unwritable_dir_falls_back_to_temp(monkeypatch, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    monkeypatch.setattr(settings.tempfile, "gettempdir", lambda: str(tmp_path / "tmp"))
    result = settings.ensure_writable_dir(blocker / "data", fallback_name="flowshare-data")
    assert result == tmp_path / "tmp" / "flowshare-data"
    assert result.is_dir()
