"""
Tests for startup wiring of the media cloud and the FFmpeg binding.
"""

import cloudinary
import imageio_ffmpeg
import pytest

from src.config.bootstrap import bootstrap, configure_media_cloud, configure_video_binding
from src.config.settings import CLOUDINARY_PLACEHOLDERS, Settings
from src.infrastructure.video import processor

CLOUDINARY_ENV = ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")


@pytest.fixture
def clean_env(monkeypatch):
    for name in CLOUDINARY_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    """Make imageio-ffmpeg report a known executable and restore the binding afterwards."""
    original = processor.get_ffmpeg_path()
    monkeypatch.setattr(
        imageio_ffmpeg,
        "get_ffmpeg_exe",
        lambda: "/opt/imageio/ffmpeg-linux64-v4.2.2",
    )
    yield "/opt/imageio/ffmpeg-linux64-v4.2.2"
    processor.set_ffmpeg_path(original)


class TestMediaCloudConfiguration:

    def test_placeholders_when_unset(self, clean_env, fake_ffmpeg):
        """With no CLOUDINARY_* variables the SDK should get the literal placeholders."""
        settings = Settings(_env_file=None)

        bootstrap(settings)

        config = cloudinary.config()
        assert config.cloud_name == "yourCloudName"
        assert config.api_key == "yourApiKey"
        assert config.api_secret == "yourApiSecret"

    def test_environment_values_are_passed_through(self, monkeypatch, fake_ffmpeg):
        """Configured credentials should reach the SDK exactly as given."""
        monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "lahat")
        monkeypatch.setenv("CLOUDINARY_API_KEY", "123456")
        monkeypatch.setenv("CLOUDINARY_API_SECRET", "s3cr3t")

        bootstrap(Settings(_env_file=None))

        config = cloudinary.config()
        assert config.cloud_name == "lahat"
        assert config.api_key == "123456"
        assert config.api_secret == "s3cr3t"

    def test_configure_media_cloud_returns_what_it_set(self, clean_env):
        """Unset fields should fall back individually, not as a group."""
        settings = Settings(_env_file=None, cloudinary_cloud_name="demo")

        config = configure_media_cloud(settings)

        assert config.cloud_name == "demo"
        assert config.api_key == CLOUDINARY_PLACEHOLDERS["cloudinary_api_key"]

    def test_report_lists_placeholders(self, clean_env, fake_ffmpeg):
        """The report should name each setting still at its placeholder."""
        settings = Settings(_env_file=None, cloudinary_cloud_name="demo")

        report = bootstrap(settings)

        assert report.placeholder_credentials == ["CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"]

    def test_no_placeholders_when_fully_configured(self, fake_ffmpeg):
        """Nothing to warn about once every credential is set."""
        settings = Settings(
            _env_file=None,
            cloudinary_cloud_name="a",
            cloudinary_api_key="b",
            cloudinary_api_secret="c",
        )

        assert bootstrap(settings).placeholder_credentials == []


class TestVideoBinding:

    def test_binding_uses_bundled_executable(self, fake_ffmpeg):
        """The FFmpeg binding should point at the executable imageio-ffmpeg provides."""
        path = configure_video_binding()

        assert path == fake_ffmpeg
        assert processor.get_ffmpeg_path() == fake_ffmpeg

    def test_bootstrap_sets_binding_even_in_mock_mode(self, clean_env, fake_ffmpeg):
        """Mock mode should not skip the FFmpeg path wiring."""
        settings = Settings(_env_file=None, video_processor_mock_mode=True)

        report = bootstrap(settings)

        assert report.ffmpeg_path == fake_ffmpeg
        assert processor.get_ffmpeg_path() == fake_ffmpeg


class TestCreateApp:

    def test_creating_the_app_touches_no_external_service(self, clean_env, fake_ffmpeg, monkeypatch):
        """Building the app should not connect to Snowflake or upload anything."""
        from src.api import dependencies
        from src.infrastructure.media import client as media_client
        from src.main import create_app

        calls = []
        monkeypatch.setattr(
            dependencies,
            "create_snowflake_connection",
            lambda **kwargs: calls.append(("snowflake", kwargs)),
        )
        monkeypatch.setattr(
            media_client.cloudinary.uploader,
            "upload",
            lambda *args, **kwargs: calls.append(("upload", args)),
        )

        app = create_app(Settings(_env_file=None, snowflake_account="acct", snowflake_user="u"))

        assert app.title == "Baho ng Lahat API"
        assert calls == []
        assert processor.get_ffmpeg_path() == fake_ffmpeg
