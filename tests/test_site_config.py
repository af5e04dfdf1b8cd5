from pathlib import Path

import pytest

from site_config import DEFAULT_ORIGIN, ConfigError, SiteConfig


class TestFromEnv:
    def test_defaults_when_unset(self):
        config = SiteConfig.from_env({})
        assert config.origin == DEFAULT_ORIGIN
        assert config.output_dir == Path("public")

    def test_empty_site_url_falls_back(self):
        assert SiteConfig.from_env({"SITE_URL": ""}).origin == DEFAULT_ORIGIN

    def test_trailing_slash_stripped(self):
        config = SiteConfig.from_env({"SITE_URL": "https://www.example.com/"})
        assert config.origin == "https://www.example.com"

    def test_output_dir_override(self):
        config = SiteConfig.from_env({"SITE_OUTPUT_DIR": "dist"})
        assert config.output_dir == Path("dist")

    def test_artifact_paths(self):
        config = SiteConfig(output_dir=Path("dist"))
        assert config.sitemap_path == Path("dist/sitemap.xml")
        assert config.robots_path == Path("dist/robots.txt")


class TestValidate:
    @pytest.mark.parametrize("origin", [
        "https://www.example.com",
        "https://www.gringo787.com",
        "http://localhost:5173",
    ])
    def test_accepts_scheme_and_host(self, origin):
        assert SiteConfig(origin=origin).validate().origin == origin

    @pytest.mark.parametrize("origin", [
        "",
        "www.example.com",
        "ftp://example.com",
        "https://",
        "https://www.example.com/",
        "https://www.example.com/es",
        "https://www.example.com?x=1",
    ])
    def test_rejects_malformed_origin(self, origin):
        with pytest.raises(ConfigError):
            SiteConfig(origin=origin).validate()
