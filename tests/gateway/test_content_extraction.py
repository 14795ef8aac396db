from __future__ import annotations

import pytest

from gateway.services.content import ContentFetchError, extract_text, fetch_article_content

PAGE = """
<html>
  <head><script>var tracking = 1;</script></head>
  <body>
    <nav><p>Home | World | Sports</p></nav>
    <article>
      <h1>Headline</h1>
      <p>First paragraph of the story.</p>
      <p>   </p>
      <p>Second <b>paragraph</b>.</p>
    </article>
    <footer><p>Copyright</p></footer>
  </body>
</html>
"""


def test_extract_text_prefers_article_paragraphs():
    text = extract_text(PAGE)

    assert text == "First paragraph of the story.\n\nSecond paragraph ."
    assert "tracking" not in text
    assert "Copyright" not in text


def test_extract_text_falls_back_to_body_text():
    assert extract_text("<html><body><div>Only a div</div></body></html>") == "Only a div"


def test_fetch_article_content_uses_fetcher():
    seen = []

    def _fetcher(url: str) -> str:
        seen.append(url)
        return PAGE

    text = fetch_article_content("https://ex.com/story", fetcher=_fetcher)

    assert seen == ["https://ex.com/story"]
    assert text.startswith("First paragraph")


def test_fetch_article_content_rejects_non_http():
    with pytest.raises(ContentFetchError):
        fetch_article_content("file:///etc/passwd", fetcher=lambda _u: PAGE)


def test_fetch_article_content_rejects_empty_page():
    with pytest.raises(ContentFetchError, match="No readable content"):
        fetch_article_content("https://ex.com/empty", fetcher=lambda _u: "<html><body></body></html>")
