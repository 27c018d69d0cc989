from typing import Any, Iterable, List, Optional

from reading_room.core.constants import DEFAULT_LINK_ORDER
from reading_room.schemas.generation import ContentLinkOut


def link_from_model(row: Any) -> ContentLinkOut:
    return ContentLinkOut(
        link_id=row.link_id,
        title=row.link_title or "",
        url=row.link_url or "",
        summary=row.url_summary,
        description=row.link_description,
        is_active=bool(row.is_active),
        order=row.link_order,
    )


def select_available_links(
    links: Iterable[ContentLinkOut], sent_urls: Optional[Iterable[str]]
) -> List[ContentLinkOut]:
    """Return active links whose URL has not been sent, ordered by ``order``.

    URL comparison is exact.  Links without an order sort last; ties keep
    their input order.
    """
    sent = set(sent_urls or [])
    available = [link for link in links if link.is_active and link.url not in sent]
    return sorted(
        available,
        key=lambda link: DEFAULT_LINK_ORDER if link.order is None else link.order,
    )
