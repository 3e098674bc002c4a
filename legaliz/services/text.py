from typing import Optional

from bs4 import BeautifulSoup


def strip_markup(value) -> Optional[str]:
    """Remove HTML/XML tags from free text and trim it. None stays None.

    Script and style bodies are dropped with their tags. A bare ``<`` that does
    not open a tag ("value < 10000") is ordinary text and is kept.
    """
    if value is None:
        return None
    soup = BeautifulSoup(str(value), "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return soup.get_text().strip()


def clean_fields(data: dict, fields) -> dict:
    out = dict(data)
    for f in fields:
        if f in out:
            out[f] = strip_markup(out[f])
    return out
