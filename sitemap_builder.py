import os
import sys
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from xml.sax.saxutils import escape

from console import log
from site_config import SiteConfig, ConfigError, BuildError

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass(frozen=True)
class PageURL:
    path: str
    priority: float
    changefreq: str = "weekly"


@dataclass(frozen=True)
class BuildResult:
    pages: tuple
    robots_updated: bool


def page_url(rel_path):
    """
    Turns a path relative to the output root into a site URL path:
    1. Normalizes separators to '/'.
    2. Prefixes with '/'.
    3. Collapses a trailing '/index.html' to '/'.
    """
    url = '/' + rel_path.replace('\\', '/').lstrip('/')
    if url.endswith('/index.html'):
        url = url[:-len('index.html')]
    return url


def priority_for(path):
    # Only the literal root is the homepage; '/es/' falls through to the default.
    if path == '/':
        return 1.0
    if path.startswith(('/contact', '/es/contacto')):
        return 0.9
    if path.startswith(('/services', '/es/servicios')):
        return 0.8
    return 0.7


def robots_txt(origin):
    return f"User-agent: *\nAllow: /\nSitemap: {origin}/sitemap.xml\n"


def sitemap_xml(origin, records):
    xml_content = ['<?xml version="1.0" encoding="UTF-8"?>']
    xml_content.append(f'<urlset xmlns="{SITEMAP_NS}">')

    for record in records:
        xml_content.append('  <url>')
        xml_content.append(f"    <loc>{escape(origin + record.path)}</loc>")
        xml_content.append(f"    <changefreq>{record.changefreq}</changefreq>")
        xml_content.append(f"    <priority>{record.priority:.1f}</priority>")
        xml_content.append('  </url>')

    xml_content.append('</urlset>')
    return '\n'.join(xml_content) + '\n'


def _raise_walk_error(error):
    raise error


class SitemapBuilder:
    def __init__(self, config=None):
        self.config = config or SiteConfig()

    def run(self):
        print("🚀 Updating sitemap and robots...")
        self.config.validate()
        pages = self.collect_pages()
        records = self.build_records(pages)
        self.write_sitemap(records)
        robots_updated = self.reconcile_robots()
        print("✅ Sitemap and robots updated.")
        return BuildResult(pages=tuple(records), robots_updated=robots_updated)

    def is_excluded(self, rel_path):
        return any(fnmatchcase(rel_path, pattern) for pattern in self.config.excluded)

    def collect_pages(self):
        print("Phase 1: Scanning published pages...")
        root = self.config.output_dir
        if not root.is_dir():
            raise BuildError(f"Output directory not found: {root}")

        pages = []
        # Unreadable subdirectories abort the scan instead of being skipped
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
            dirnames.sort()
            for filename in filenames:
                if not filename.endswith('.html'):
                    continue
                rel_path = (Path(dirpath) / filename).relative_to(root).as_posix()
                if self.is_excluded(rel_path):
                    continue
                pages.append(rel_path)
        pages.sort()

        print(f"   - Found {len(pages)} pages.")
        return pages

    def build_records(self, rel_paths):
        records = []
        for rel_path in rel_paths:
            path = page_url(rel_path)
            records.append(PageURL(
                path=path,
                priority=priority_for(path),
                changefreq=self.config.changefreq,
            ))

        # Root first, then stable path order
        records.sort(key=lambda r: (r.path != '/', r.path))
        return records

    def write_sitemap(self, records):
        print("Phase 2: Generating Sitemap...")
        sitemap_path = self.config.sitemap_path
        with open(sitemap_path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(sitemap_xml(self.config.origin, records))
        print(f"   - Sitemap generated with {len(records)} URLs at {sitemap_path}.")

    def reconcile_robots(self):
        print("Phase 3: Checking robots.txt...")
        robots_path = self.config.robots_path
        desired = robots_txt(self.config.origin)

        current = ''
        if robots_path.exists():
            with open(robots_path, 'r', encoding='utf-8', errors='replace') as f:
                current = f.read()

        if current.strip() == desired.strip():
            print("   - robots.txt already up to date.")
            return False

        with open(robots_path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(desired)
        print(f"   - robots.txt rewritten for {self.config.origin}.")
        return True


def main():
    config = SiteConfig.from_env()
    try:
        SitemapBuilder(config).run()
    except (ConfigError, BuildError) as e:
        log('ERROR', str(e))
        sys.exit(1)
    except OSError as e:
        if e.filename is not None:
            log('ERROR', f"Filesystem error on '{e.filename}': {e.strerror or e}")
        else:
            log('ERROR', f"Filesystem error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
