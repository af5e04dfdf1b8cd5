import argparse
import sys
import concurrent.futures
import xml.etree.ElementTree as ET
from collections import defaultdict
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from colorama import Fore, Style

from console import log
from site_config import SiteConfig, ConfigError, BuildError
from sitemap_builder import SITEMAP_NS, page_url

EXTERNAL_PREFIXES = ('http:', 'https:', '//', 'data:')


def referenced_assets(soup):
    """Returns stylesheet hrefs and script srcs referenced by a parsed page."""
    refs = []
    for link in soup.find_all('link', rel='stylesheet'):
        refs.append(link.get('href'))
    for script in soup.find_all('script', src=True):
        refs.append(script.get('src'))
    return [r.strip() for r in refs if r and r.strip()]


def is_noindex(soup):
    meta = soup.find('meta', attrs={'name': 'robots'})
    if not meta:
        return False
    return 'noindex' in meta.get('content', '').lower()


class BuildAudit:
    def __init__(self, config=None, check_external=False):
        self.config = config or SiteConfig()
        self.root_dir = self.config.output_dir
        self.origin_host = urlparse(self.config.origin).netloc
        self.check_external = check_external
        self.files_to_audit = []
        self.external_links = set()
        self.noindex_pages = []
        self.issues = []  # List of dicts: {'file': str, 'type': str, 'msg': str, 'level': str}

    def collect_files(self):
        if not self.root_dir.is_dir():
            raise BuildError(f"Output directory not found: {self.root_dir}")

        self.files_to_audit = [p for p in sorted(self.root_dir.rglob('*.html')) if p.is_file()]
        log('INFO', f"Found {len(self.files_to_audit)} HTML files to audit.")

    def resolve_asset(self, page, ref):
        """
        Resolves an asset reference to a local file path.
        Returns None for external references.
        """
        if ref.lower().startswith(EXTERNAL_PREFIXES):
            return None

        # Remove query params and anchors
        clean_ref = ref.split('#')[0].split('?')[0]
        if not clean_ref:
            return None

        if clean_ref.startswith('/'):
            return self.root_dir / clean_ref.lstrip('/')
        return page.parent / clean_ref

    def audit_file(self, page):
        rel_path = page.relative_to(self.root_dir).as_posix()
        with open(page, 'r', encoding='utf-8', errors='ignore') as f:
            soup = BeautifulSoup(f, 'html.parser')

        for ref in referenced_assets(soup):
            target = self.resolve_asset(page, ref)
            if target is not None and not target.is_file():
                self.add_issue(rel_path, 'missing_asset', 'ERROR',
                               f"{ref} referenced but not found in {self.root_dir}.")

        for a in soup.find_all('a', href=True):
            href = a['href'].strip()
            if href.startswith(('http://', 'https://')) and urlparse(href).netloc != self.origin_host:
                self.external_links.add(href)

        if is_noindex(soup):
            self.noindex_pages.append(rel_path)

    def sitemap_urls(self):
        tree = ET.parse(self.config.sitemap_path)
        namespaces = {'ns': SITEMAP_NS}
        urls = set()
        for url in tree.getroot().findall('ns:url', namespaces):
            loc = url.find('ns:loc', namespaces)
            if loc is not None and loc.text:
                urls.add(loc.text.strip())
        return urls

    def check_sitemap(self):
        if not self.config.sitemap_path.is_file():
            self.add_issue('sitemap.xml', 'missing_sitemap', 'WARN', "sitemap.xml not found. Run the sitemap build first.")
            return

        listed = self.sitemap_urls()
        for rel_path in self.noindex_pages:
            url = self.config.origin + page_url(rel_path)
            if url in listed:
                self.add_issue(rel_path, 'noindex_in_sitemap', 'ERROR',
                               f"Page is marked noindex but listed in sitemap as {url}.")

    def check_external_links(self):
        log('INFO', f"Checking {len(self.external_links)} external links...")

        def check_link(url):
            try:
                headers = {'User-Agent': 'Mozilla/5.0 (compatible; SiteBuildAudit/1.0)'}
                response = requests.head(url, headers=headers, timeout=5, allow_redirects=True)
                if response.status_code >= 400:
                    return url, response.status_code
            except requests.RequestException:
                return url, 'Connection Error'
            return None

        with concurrent.futures.ThreadPoolExecutor(max_workers=10) as executor:
            futures = [executor.submit(check_link, url) for url in sorted(self.external_links)]
            for future in concurrent.futures.as_completed(futures):
                result = future.result()
                if result:
                    url, status = result
                    self.add_issue('external', 'dead_link_external', 'WARN', f"External dead link: {url} (Status: {status})")

    def add_issue(self, file_name, type_code, level, msg):
        self.issues.append({
            'file': file_name,
            'type': type_code,
            'level': level,
            'msg': msg
        })

    @property
    def errors(self):
        return [i for i in self.issues if i['level'] == 'ERROR']

    def print_report(self):
        print("\n" + "=" * 50)
        print("BUILD AUDIT REPORT")
        print("=" * 50 + "\n")

        issues_by_file = defaultdict(list)
        for issue in self.issues:
            issues_by_file[issue['file']].append(issue)

        for file_name in sorted(issues_by_file.keys()):
            print(f"{Fore.CYAN}File: {file_name}{Style.RESET_ALL}")
            for issue in issues_by_file[file_name]:
                color = Fore.RED if issue['level'] == 'ERROR' else Fore.YELLOW
                print(f"  {color}[{issue['level']}] {issue['msg']}{Style.RESET_ALL}")
            print("")

        if self.errors:
            log('ERROR', f"{len(self.errors)} blocking issue(s) found.")
        elif self.issues:
            log('WARN', f"{len(self.issues)} warning(s), no blocking issues.")
        else:
            log('SUCCESS', "All referenced CSS/JS assets exist and the sitemap is clean.")

    def run(self):
        self.config.validate()
        self.collect_files()

        log('INFO', "Starting local file audit...")
        for page in self.files_to_audit:
            self.audit_file(page)

        self.check_sitemap()

        if self.check_external and self.external_links:
            self.check_external_links()

        return self.issues


def main(argv=None):
    parser = argparse.ArgumentParser(description="Audit the published site output before deploy.")
    parser.add_argument('--external', action='store_true', help="also check external links over HTTP")
    args = parser.parse_args(argv)

    audit = BuildAudit(SiteConfig.from_env(), check_external=args.external)
    try:
        audit.run()
    except (ConfigError, BuildError) as e:
        log('ERROR', str(e))
        sys.exit(1)
    except ET.ParseError as e:
        log('ERROR', f"Could not parse {audit.config.sitemap_path}: {e}")
        sys.exit(1)

    audit.print_report()
    if audit.errors:
        sys.exit(1)


if __name__ == '__main__':
    main()
