from reading_room.schemas.generation import ContentLinkOut
from reading_room.services.content_links import select_available_links


def _link(url, order=None, active=True):
    return ContentLinkOut(title=url, url=url, order=order, is_active=active)


class TestSelectAvailableLinks:
    def test_sent_and_inactive_links_are_excluded(self):
        links = [
            _link("https://a.test", 1),
            _link("https://b.test", 2, active=False),
            _link("https://c.test", 3),
        ]

        available = select_available_links(links, ["https://a.test"])

        assert [link.url for link in available] == ["https://c.test"]

    def test_ordered_by_order_with_unordered_last(self):
        links = [
            _link("https://none.test"),
            _link("https://two.test", 2),
            _link("https://one.test", 1),
        ]

        available = select_available_links(links, None)

        assert [link.url for link in available] == [
            "https://one.test",
            "https://two.test",
            "https://none.test",
        ]

    def test_ties_keep_input_order(self):
        links = [_link("https://x.test", 5), _link("https://y.test", 5)]

        available = select_available_links(links, [])

        assert [link.url for link in available] == ["https://x.test", "https://y.test"]

    def test_url_comparison_is_exact(self):
        links = [_link("https://a.test/page")]

        available = select_available_links(links, ["https://a.test/page/"])

        assert len(available) == 1
