import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

# SITE_URL should be set by the host; falls back to the production domain.
DEFAULT_ORIGIN = "https://www.gringo787.com"
DEFAULT_OUTPUT_DIR = Path("public")

# Root-relative glob patterns kept out of the sitemap:
# the custom 404 page and the post-form thank-you page in any locale.
DEFAULT_EXCLUDED = (
    "404.html",
    "thanks/index.html",
    "*/thanks/index.html",
)


class ConfigError(Exception):
    """Raised when the site configuration cannot be used for a build."""


class BuildError(Exception):
    """Raised when the published output tree is not in a buildable state."""


@dataclass(frozen=True)
class SiteConfig:
    origin: str = DEFAULT_ORIGIN
    output_dir: Path = DEFAULT_OUTPUT_DIR
    excluded: tuple = DEFAULT_EXCLUDED
    changefreq: str = "weekly"

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        origin = (env.get("SITE_URL") or DEFAULT_ORIGIN).strip().rstrip('/')
        output_dir = Path(env.get("SITE_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR)
        return cls(origin=origin, output_dir=output_dir)

    @property
    def sitemap_path(self):
        return self.output_dir / 'sitemap.xml'

    @property
    def robots_path(self):
        return self.output_dir / 'robots.txt'

    def validate(self):
        """
        Checks the origin is an absolute scheme+host URL:
        no path, query, fragment or trailing slash.
        """
        parsed = urlparse(self.origin)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigError(f"Site origin is not an absolute http(s) URL: '{self.origin}'")
        if parsed.path or parsed.params or parsed.query or parsed.fragment:
            raise ConfigError(f"Site origin must be scheme and host only: '{self.origin}'")
        return self
