"""Pattern-based price and license inference from title and snippet text."""

import re
from typing import NamedTuple, Optional

from assetscout.state.models import AnnotatedRecord, ClassifiedRecord, PriceTag


class Tags(NamedTuple):
    """Inferred attributes of a page. Heuristic, never authoritative."""

    price_tag: PriceTag
    license_tag: Optional[str]


class TagRules(NamedTuple):
    """Regex rules used by the tagger."""

    free: tuple[re.Pattern, ...]
    paid: tuple[re.Pattern, ...]
    licenses: tuple[tuple[str, re.Pattern], ...]  # checked in order


DEFAULT_TAG_RULES = TagRules(
    free=(
        re.compile(r"\bfree\b"),
        re.compile(r"pay\s*what\s*you\s*want"),
    ),
    paid=(
        re.compile(r"\$\d+"),
        re.compile(r"\d+(\.\d{1,2})?\s*usd"),
        re.compile(r"\bpaid\b"),
    ),
    licenses=(
        ("CC0", re.compile(r"\bcc0\b|creative\s*commons\s*zero")),
        ("MIT", re.compile(r"\bmit\b")),
        ("GPL", re.compile(r"\bgpl\b")),
        ("Commercial Use", re.compile(r"\bcommercial\s+use\b")),
    ),
)


def infer_price(text: str, rules: TagRules = DEFAULT_TAG_RULES) -> PriceTag:
    """Free wins over paid: pay-what-you-want pages are still free."""
    if any(pattern.search(text) for pattern in rules.free):
        return PriceTag.FREE
    if any(pattern.search(text) for pattern in rules.paid):
        return PriceTag.PAID
    return PriceTag.UNKNOWN


def infer_license(text: str, rules: TagRules = DEFAULT_TAG_RULES) -> Optional[str]:
    for name, pattern in rules.licenses:
        if pattern.search(text):
            return name
    return None


def tag(title: str, snippet: str, rules: TagRules = DEFAULT_TAG_RULES) -> Tags:
    """Infer price tier and license from title and snippet."""
    text = f"{title or ''} {snippet or ''}".lower()
    return Tags(price_tag=infer_price(text, rules), license_tag=infer_license(text, rules))


def tag_record(record: ClassifiedRecord, rules: TagRules = DEFAULT_TAG_RULES) -> AnnotatedRecord:
    """Build an annotated record from a classified one."""
    tags = tag(record.title, record.snippet, rules)
    return AnnotatedRecord(
        **record.model_dump(),
        price_tag=tags.price_tag,
        license_tag=tags.license_tag,
    )
