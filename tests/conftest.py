import pytest

from site_config import SiteConfig

PAGE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  {head}
</head>
<body>{body}</body>
</html>
"""


def write_page(root, rel_path, title="Page", head="", body=""):
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(PAGE.format(title=title, head=head, body=body), encoding="utf-8")
    return path


@pytest.fixture
def public_dir(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest.fixture
def site(public_dir):
    """A published landscaping site with both locales, a 404 and a thank-you page."""
    for rel_path in (
        "index.html",
        "about/index.html",
        "services/index.html",
        "contact/index.html",
        "gallery/index.html",
        "es/index.html",
        "es/servicios/index.html",
        "es/contacto/index.html",
    ):
        write_page(public_dir, rel_path)
    noindex = '<meta name="robots" content="noindex" />'
    write_page(public_dir, "thanks/index.html", title="Thanks", head=noindex)
    write_page(public_dir, "404.html", title="Not found", head=noindex)
    return public_dir


@pytest.fixture
def config(public_dir):
    return SiteConfig(origin="https://www.example.com", output_dir=public_dir)
