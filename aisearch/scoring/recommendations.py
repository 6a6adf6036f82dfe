"""
Recommendation Templates

Static why/fix/example copy for every sub-metric, plus personalization
from the per-call DiagnosticContext (the page's own title, URL, domain
and headings) and page-type specific tips.
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import urlparse

from aisearch.models import DiagnosticContext, Pillar, Recommendation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommendationTemplate:
    """Static copy for one metric."""
    why: str
    fix: str
    before: Optional[str] = None
    after: Optional[str] = None

    @property
    def example(self) -> Optional[Dict[str, str]]:
        if self.before is None or self.after is None:
            return None
        return {"before": self.before, "after": self.after}


T = RecommendationTemplate

# =============================================================================
# TEMPLATES
# =============================================================================

TEMPLATES: Mapping[str, RecommendationTemplate] = MappingProxyType({
    # RETRIEVAL
    "ttfb": T(
        why="AI crawlers deprioritize slow pages. A server response under 200ms gets fetched more often.",
        fix="Put a CDN in front of the site, cache rendered HTML and avoid per-request database work on public pages.",
        before="Server response time: 850ms",
        after="Server response time: 180ms with CDN\nCache-Control: public, max-age=3600",
    ),
    "paywall": T(
        why="Content behind a paywall or login cannot be read, so it cannot be cited.",
        fix="Expose a free preview of at least 300 words, or publish summary pages for premium content.",
        before='<div class="paywall-blocked">Subscribe to read more...</div>',
        after='<article>\n  <div class="free-preview">First 300 words visible...</div>\n'
              '  <div class="paywall">Subscribe for full article</div>\n</article>',
    ),
    "main_content": T(
        why="Crawlers need to separate the article from navigation, ads and boilerplate.",
        fix="Wrap the primary content in <main> or <article> and keep sidebars and ads outside it. "
            "Aim for 70%+ of page text inside that container.",
        before='<div class="content">Article here...</div>',
        after="<main>\n  <article>\n    <h1>Article Title</h1>\n    <p>Content here...</p>\n  </article>\n</main>",
    ),
    "html_size": T(
        why="Crawlers give up on documents above 2MB of HTML.",
        fix="Move inline CSS and JavaScript to external files and lazy-load comments and long listings.",
        before="Page size: 3.5MB (with 500 comments loaded)",
        after="Page size: 850KB (comments load on demand)",
    ),
    "llms_txt_file": T(
        why="An /llms.txt file tells AI crawlers what the site is about and where the important content lives.",
        fix="Publish /llms.txt at the domain root with a short site summary and links to key pages.",
        before="No llms.txt file found",
        after="# Example\n\n> What this site covers, in one paragraph.\n\n## Key pages\n- [Docs](https://example.com/docs)",
    ),

    # FACT_DENSITY
    "unique_facts": T(
        why="Specific numbers, dates and names make a page the primary source an answer engine quotes.",
        fix="Replace vague claims with concrete figures, dates and named sources.",
        before="Many users prefer our product",
        after="73% of 1,200 surveyed users prefer our product (2024 Customer Survey)",
    ),
    "data_markup": T(
        why="Tables and lists let machines extract facts without guessing at sentence structure.",
        fix="Turn comparisons into tables, feature runs into lists and glossaries into definition lists.",
        before="Product A costs $99 and has 5GB storage. Product B costs $199 with 50GB.",
        after="<table>\n  <tr><th>Product</th><th>Price</th><th>Storage</th></tr>\n"
              "  <tr><td>A</td><td>$99</td><td>5GB</td></tr>\n"
              "  <tr><td>B</td><td>$199</td><td>50GB</td></tr>\n</table>",
    ),
    "citations": T(
        why="Links to primary sources are a credibility signal.",
        fix="Link at least two claims to research papers, official statistics or standards bodies, "
            "with descriptive anchor text.",
        before="Studies show this works [click here]",
        after='A <a href="https://doi.org/10.1000/example">2024 study of 3,000 users</a> found...',
    ),
    "deduplication": T(
        why="Repeated paragraphs dilute what a page is about.",
        fix="Keep each point once. Consolidate repeated disclaimers and refer back instead of copy-pasting.",
        before="Important: Check warranty... [same text repeated 5 times]",
        after='Important: Check warranty... [appears once]\n\nLater: "See warranty information above"',
    ),
    "direct_answers": T(
        why="Answer engines lift the sentences right after a heading. A direct answer there gets quoted.",
        fix="Open every H2/H3 section with a one or two sentence answer before elaborating.",
        before="<h2>What is AI Search?</h2>\n<p>Let me tell you a story about how I discovered...</p>",
        after="<h2>What is AI Search?</h2>\n<p>AI search uses language models to answer questions directly "
              "instead of returning a list of links.</p>",
    ),

    # STRUCTURE
    "heading_frequency": T(
        why="Headings are how crawlers segment a page into topics.",
        fix="Add an H2 or H3 at least every 300 words, phrased as the question the section answers.",
        before="<h2>Overview</h2>\n[1000 words of text]",
        after="<h2>What is AI Search?</h2>\n[200 words]\n<h3>How Does It Work?</h3>\n[200 words]",
    ),
    "heading_depth": T(
        why="Deep heading nesting is hard to map onto a topic outline.",
        fix="Use H1 for the title, H2 for sections and H3 for subsections only.",
        before="H1 > H2 > H3 > H4 > H5 > H6",
        after="H1 (Page Title) > H2 (Main Topics) > H3 (Subtopics)",
    ),
    "structured_data": T(
        why="FAQPage, HowTo and Dataset markup hands answer engines pre-structured content.",
        fix="Add JSON-LD for Q&A sections (FAQPage), tutorials (HowTo) or data tables (Dataset).",
        before='<div class="faq">Q: What is...? A: It is...</div>',
        after='<script type="application/ld+json">\n{"@context": "https://schema.org", "@type": "FAQPage", '
              '"mainEntity": [{"@type": "Question", "name": "What is...?", '
              '"acceptedAnswer": {"@type": "Answer", "text": "It is..."}}]}\n</script>',
    ),
    "feed_presence": T(
        why="An RSS or Atom feed is how crawlers learn about new content quickly.",
        fix="Publish a feed and advertise it with a <link rel=\"alternate\"> tag in the page head.",
        before="No RSS feed found",
        after='<link rel="alternate" type="application/rss+xml" href="/rss.xml" title="RSS Feed">',
    ),
    "listicle_format": T(
        why="Numbered list articles are among the most cited formats in AI answers.",
        fix="Structure the content as a numbered list with a number in the title and 3+ substantial items.",
        before="AI Search Optimization Guide",
        after="10 Essential AI Search Optimization Strategies",
    ),
    "comparison_tables": T(
        why="Comparisons in table form are easy to extract and quote.",
        fix="Where a heading compares options, back it with an HTML table with header cells.",
        before="<h2>Plan A vs Plan B</h2>\n<p>Plan A is better at X while Plan B excels at Y...</p>",
        after="<h2>Plan A vs Plan B</h2>\n<table>\n  <tr><th>Feature</th><th>Plan A</th><th>Plan B</th></tr>\n"
              "  <tr><td>Storage</td><td>5GB</td><td>50GB</td></tr>\n</table>",
    ),
    "semantic_url": T(
        why="Readable URLs tell crawlers what a page is about before they fetch it.",
        fix="Use a descriptive slug built from the page's main keywords instead of IDs or parameters.",
        before="/blog/post-123",
        after="/blog/ai-search-optimization-guide",
    ),

    # TRUST
    "author_bio": T(
        why="Clear authorship with credentials is a trust signal.",
        fix="Show the author's name and relevant expertise, and mark it up as a schema.org Person.",
        before="By Admin",
        after="By Dr. Jane Smith, PhD in Computer Science, 10 years in AI research",
    ),
    "nap_consistency": T(
        why="A visible business name, address and phone number signals a legitimate organization.",
        fix="Put name, address and phone in the footer or link an imprint page, matching your other listings.",
        before="Contact us: info@company.com",
        after="TechCorp Inc.\n123 Main St, Suite 100\nSan Francisco, CA 94105\n(555) 123-4567",
    ),
    "license": T(
        why="Without clear reuse rights, content is less likely to be quoted.",
        fix="Declare an open license such as CC BY 4.0 in a license meta tag and in the footer.",
        before="© 2024 All rights reserved",
        after='<link rel="license" href="https://creativecommons.org/licenses/by/4.0/">\n'
              "Content licensed under CC BY 4.0",
    ),

    # RECENCY
    "last_modified": T(
        why="Fresh content is preferred; pages without a recent date look stale.",
        fix="Review content at least every 90 days, show a visible 'Last updated' date and send a Last-Modified header.",
        before="Published: January 2022",
        after="Published: January 2022 | Last updated: March 2024\nLast-Modified: Fri, 15 Mar 2024 10:00:00 GMT",
    ),
    "stable_canonical": T(
        why="URL parameters split one page into many variants.",
        fix="Add a canonical link to the clean URL, without session IDs or non-tracking parameters.",
        before="example.com/article?id=123&session=abc",
        after='<link rel="canonical" href="https://example.com/ai-search-guide">',
    ),
})

GENERIC_TEMPLATE = T(
    why="This signal affects how well AI search engines can read and cite the page.",
    fix="Review this check and bring it in line with the guidance for the pillar.",
)


# =============================================================================
# PAGE-TYPE TIPS
# =============================================================================

PAGE_TYPE_TIPS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "homepage": {
        "structured_data": "On a homepage, Organization schema establishes the brand identity.",
        "unique_facts": "Homepages need trust figures such as customer counts or years in business.",
        "main_content": "State what you do within the first 100 words.",
    },
    "blog": {
        "last_modified": "Show both publish and update dates on every post.",
        "author_bio": "Posts need clear author attribution with credentials.",
        "direct_answers": "Open each post with a short answer or summary, then elaborate.",
        "structured_data": "BlogPosting schema helps crawlers understand the post structure.",
    },
    "product": {
        "structured_data": "Product schema with price, availability and reviews matters for shopping queries.",
        "unique_facts": "List every specification: dimensions, weight, materials, compatibility.",
        "comparison_tables": "Compare the product against alternatives in a table.",
    },
    "category": {
        "main_content": "Keep product grids and filters inside <main>.",
        "semantic_url": "Category URLs should read like /electronics/laptops, not /cat/123.",
        "html_size": "Paginate or lazy-load listings to keep the document small.",
    },
    "documentation": {
        "direct_answers": "Start each section with one sentence saying what it does.",
        "structured_data": "Use HowTo or TechArticle schema for step-by-step instructions.",
        "llms_txt_file": "For docs, llms.txt tells crawlers how to navigate the reference.",
    },
    "about": {
        "author_bio": "Introduce the team with names, roles and expertise.",
        "nap_consistency": "Name, address and phone must match every other listing.",
    },
    "contact": {
        "nap_consistency": "The contact page is where complete NAP details matter most.",
    },
    "search": {
        "main_content": "Keep results inside <main> so crawlers can tell them from filters.",
    },
})
# Articles share the blog tips
PAGE_TYPE_TIPS = MappingProxyType({**PAGE_TYPE_TIPS, "article": PAGE_TYPE_TIPS["blog"]})


# =============================================================================
# PERSONALIZED EXAMPLES
# =============================================================================


def listicle_title(title: str) -> str:
    """Rewrite a title as a numbered list title."""
    clean = re.sub(r"^\d+\s+", "", title).strip()
    clean = re.sub(r"[\s\-–—]\d+\s+", " ", clean).strip() or "AI Search Optimization"
    lowered = clean.lower()
    if "guide" in lowered:
        return f"10 Essential {clean}"
    if "tips" in lowered or "ways" in lowered:
        return f"10 {clean}"
    if "best" in lowered:
        return f"Top 10 {clean}"
    return f"10 Key {clean} Strategies"


def slugify(text: str, max_length: int = 60) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", text.lower())
    slug = re.sub(r"[\s-]+", "-", slug).strip("-")
    return slug[:max_length].rstrip("-")


def semantic_url(url: str, title: str) -> str:
    """Suggested URL: same origin and section, slug from the title."""
    parsed = urlparse(url)
    parts = [p for p in parsed.path.split("/") if p and not p.isdigit() and len(p) > 2]
    base = "/".join(parts[:-1])
    path = "/".join(p for p in (base, slugify(title)) if p)
    return f"{parsed.scheme}://{parsed.netloc}/{path}"


def direct_answer(heading: str, opening: str) -> str:
    """A one-sentence answer lead for a heading."""
    lowered = heading.lower()
    subject = re.sub(r"\?", "", heading).strip()
    snippet = opening[:100].rstrip() if opening else "..."
    if lowered.startswith("what is") or lowered.startswith("what are"):
        subject = re.sub(r"^what (is|are)\s+", "", subject, flags=re.IGNORECASE)
        return f"{subject} is {snippet}"
    if lowered.startswith("how to"):
        rest = re.sub(r"^how to\s+", "", subject, flags=re.IGNORECASE)
        return f"To {rest}, start by {snippet}"
    if lowered.startswith("why"):
        return f"This matters because {snippet}"
    return f"{subject}: {snippet}"


def _personalize_ttfb(ctx: DiagnosticContext) -> Optional[Dict[str, str]]:
    if ctx.ttfb_ms is None:
        return None
    source = "field p75" if ctx.ttfb_source and ctx.ttfb_source.value == "field" else "measured"
    return {
        "before": f"Server response time: {int(ctx.ttfb_ms)}ms ({source})",
        "after": "Server response time: under 200ms with CDN\nCache-Control: public, max-age=3600",
    }


def _personalize_html_size(ctx: DiagnosticContext) -> Optional[Dict[str, str]]:
    if not ctx.html_size_bytes:
        return None
    return {
        "before": f"Page size: {ctx.html_size_bytes / 1024 / 1024:.2f}MB",
        "after": "Page size: under 2MB (inline assets externalized, listings lazy-loaded)",
    }


def _personalize_main_content(ctx: DiagnosticContext) -> Optional[Dict[str, str]]:
    if not ctx.main_content_selector:
        return None
    return {
        "before": f"{round(ctx.main_content_ratio * 100)}% of page text inside {ctx.main_content_selector}",
        "after": "70%+ of page text inside <main>",
    }


def _personalize_llms_txt(ctx: DiagnosticContext) -> Optional[Dict[str, str]]:
    if not ctx.domain:
        return None
    name = ctx.domain.split(".")[0].capitalize()
    return {
        "before": f"https://{ctx.domain}/llms.txt returns 404",
        "after": f"# {name}\n\n> {ctx.page_title or 'What this site covers'}\n\n"
                 f"## Key pages\n- [Home](https://{ctx.domain}/)\n- [Sitemap](https://{ctx.domain}/sitemap.xml)",
    }


def _personalize_listicle(ctx: DiagnosticContext) -> Optional[Dict[str, str]]:
    if not ctx.page_title:
        return None
    return {"before": ctx.page_title, "after": listicle_title(ctx.page_title)}


def _personalize_semantic_url(ctx: DiagnosticContext) -> Optional[Dict[str, str]]:
    if not ctx.page_title or not ctx.url:
        return None
    return {"before": ctx.url, "after": semantic_url(ctx.url, ctx.page_title)}


def _personalize_direct_answers(ctx: DiagnosticContext) -> Optional[Dict[str, str]]:
    if not ctx.unanswered_headings:
        return None
    heading = ctx.unanswered_headings[0]
    return {
        "before": f"<h2>{heading}</h2>\n<p>{(ctx.first_paragraph or '...')[:80]}</p>",
        "after": f"<h2>{heading}</h2>\n<p>{direct_answer(heading, ctx.first_paragraph)}</p>",
    }


def _personalize_comparison(ctx: DiagnosticContext) -> Optional[Dict[str, str]]:
    if not ctx.comparison_headings:
        return None
    heading = ctx.comparison_headings[0]
    return {
        "before": f"<h2>{heading}</h2>\n<p>...</p>",
        "after": f"<h2>{heading}</h2>\n<table>\n  <tr><th>Feature</th><th>Option A</th><th>Option B</th></tr>\n</table>",
    }


PERSONALIZERS: Mapping[str, Callable[[DiagnosticContext], Optional[Dict[str, str]]]] = MappingProxyType({
    "ttfb": _personalize_ttfb,
    "html_size": _personalize_html_size,
    "main_content": _personalize_main_content,
    "llms_txt_file": _personalize_llms_txt,
    "listicle_format": _personalize_listicle,
    "semantic_url": _personalize_semantic_url,
    "direct_answers": _personalize_direct_answers,
    "comparison_tables": _personalize_comparison,
})


# =============================================================================
# STORE
# =============================================================================


class RecommendationTemplateStore:
    """
    Read-only lookup of recommendation copy by metric name.

    Usage:
        store = RecommendationTemplateStore()
        rec = store.build("ttfb", Pillar.RETRIEVAL, gain=7, context=ctx, page_type="blog")
    """

    def __init__(self, templates: Mapping[str, RecommendationTemplate] = TEMPLATES):
        self._templates = MappingProxyType(dict(templates))

    def get(self, metric: str) -> RecommendationTemplate:
        template = self._templates.get(metric)
        if template is None:
            logger.warning(f"No recommendation template for metric {metric}, using generic copy")
            return GENERIC_TEMPLATE
        return template

    def __contains__(self, metric: str) -> bool:
        return metric in self._templates

    def build(
        self,
        metric: str,
        pillar: Pillar,
        gain: int,
        context: Optional[DiagnosticContext] = None,
        page_type: Optional[str] = None,
    ) -> Recommendation:
        template = self.get(metric)
        example = template.example

        if context is not None and metric in PERSONALIZERS:
            try:
                example = PERSONALIZERS[metric](context) or example
            except Exception as e:
                logger.warning(f"Could not personalize {metric} example: {e}")

        fix = template.fix
        tip = PAGE_TYPE_TIPS.get(str(getattr(page_type, "value", page_type) or ""), {}).get(metric)
        if tip:
            fix = f"{fix} {tip}"

        return Recommendation(
            metric=metric,
            pillar=pillar,
            why=template.why,
            fix=fix,
            gain=gain,
            example=example,
        )
