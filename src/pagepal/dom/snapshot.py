"""
Live page snapshots.

``SNAPSHOT_SCRIPT`` clones the rendered document in-page and stamps what
only the layout engine knows onto the clone: computed out-of-flow position
(``data-pagepal-position``) and ``hidden`` for elements not displayed. The
returned HTML is parsed like any other page, so selectors, sanitization and
the walker see the same tree shape for live and static pages.
"""

from dataclasses import replace

from pagepal.dom.soup import PageDocument, parse_html

# Elements deeper than maxDepth keep their attributes but lose their children
SNAPSHOT_SCRIPT = """
(maxDepth) => {
    const OUT_OF_FLOW = new Set(['fixed', 'absolute', 'sticky']);
    const root = document.documentElement;
    if (!root) {
        return '';
    }

    const live = [root, ...root.querySelectorAll('*')];
    const clone = root.cloneNode(true);
    const copies = [clone, ...clone.querySelectorAll('*')];
    const depths = new Map([[root, 1]]);

    live.forEach((el, i) => {
        const copy = copies[i];
        const depth = el === root ? 1 : depths.get(el.parentElement) + 1;
        depths.set(el, depth);

        const style = window.getComputedStyle(el);
        if (style && OUT_OF_FLOW.has(style.position)) {
            copy.setAttribute('data-pagepal-position', style.position);
        }
        if (style && style.display === 'none') {
            copy.setAttribute('hidden', '');
        }
        if (depth >= maxDepth) {
            copy.replaceChildren();
        }
    });

    clone.querySelectorAll('script, style, noscript, template').forEach(el => el.remove());
    return clone.outerHTML;
}
"""


def parse_snapshot(html: str, url: str = "", title: str | None = None) -> PageDocument:
    """
    Build a page document from ``SNAPSHOT_SCRIPT`` output.

    Args:
        html: Serialized document
        url: Page URL
        title: Title reported by the browser (the ``<title>`` text when None)

    Returns:
        PageDocument for the snapshot
    """
    document = parse_html(html, url)
    if title is None or title == document.title:
        return document
    return replace(document, title=title)
