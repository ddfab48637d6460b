"""
HTML flattening for order-confirmation emails.
"""

import re

from bs4 import BeautifulSoup


def html_to_text(html: str) -> str:
    """
    Converts an HTML email body into line-oriented plain text.

    Table cells and block elements end up on their own lines so that
    "Label: value" rows survive for the regex extractors.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()

    text = soup.get_text("\n")
    lines = [re.sub(r'[ \t\xa0]+', ' ', line).strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)
