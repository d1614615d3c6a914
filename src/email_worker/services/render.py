"""Back-in-stock email rendering."""

from pathlib import Path
from urllib.parse import quote, urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"
ENV = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html",)),
)

BACK_IN_STOCK_SUBJECT = "Back in stock!"


def product_url(shop_domain: str, product_id: str | None, variant_id: str | None = None) -> str:
    """Storefront link for a product, preselecting the variant when known.

    Without a product id the link falls back to the storefront root.
    """
    base = f"https://{shop_domain.strip('/')}"
    if not product_id:
        return f"{base}/"
    url = f"{base}/products/{quote(product_id, safe='')}"
    if variant_id:
        url += "?" + urlencode({"variant": variant_id})
    return url


def render_back_in_stock(shop_domain: str, url: str) -> tuple[str, str]:
    """Return (subject, html) for a back-in-stock notification."""
    template = ENV.get_template("back_in_stock.html")
    html = template.render(product_url=url, shop_domain=shop_domain)
    return BACK_IN_STOCK_SUBJECT, html
