"""System prompts chosen by the kind of website being read."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class WebsiteType:
    type: str
    patterns: Sequence[str]
    system_prompt: str


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on the provided "
    "webpage content. Give concise and accurate answers based solely on the "
    "information in the content provided. If the answer cannot be found in the "
    "content, state that clearly."
)

GENERAL = WebsiteType("general", (), DEFAULT_SYSTEM_PROMPT)

# Minimum number of pattern hits in content+URL to pick a type.
MIN_PATTERN_MATCHES = 3

WEBSITE_TYPES: List[WebsiteType] = [
    WebsiteType(
        "linkedin",
        ("linkedin.com", "recruiter", "job", "profile", "hiring", "resume", "skills",
         "experience", "recommendation", "endorsement", "career", "employment"),
        "You are a helpful assistant specializing in professional networking and "
        "career advice. The user is viewing a LinkedIn page which may contain profile "
        "information, job listings, or professional content. Help them extract "
        "relevant professional insights, evaluate job opportunities, understand career "
        "paths, or analyze professional profiles.",
    ),
    WebsiteType(
        "github",
        ("github.com", "repository", "commit", "pull request", "issue", "branch",
         "fork", "merge", "code", "developer", "programming", "software"),
        "You are a helpful assistant specializing in software development. The user "
        "is viewing a GitHub page which may contain code repositories, issues, pull "
        "requests, or technical documentation. Explain code functionality, identify "
        "patterns, suggest improvements, or summarize technical information.",
    ),
    WebsiteType(
        "stackoverflow",
        ("stackoverflow.com", "question", "answer", "programming", "code", "error",
         "debug", "function", "library", "api", "solution", "problem"),
        "You are a helpful assistant specializing in technical problem-solving. The "
        "user is viewing a Stack Overflow page with programming questions and answers. "
        "Help them understand the solutions provided, explain technical concepts, or "
        "summarize the key points from different answers.",
    ),
    WebsiteType(
        "news",
        ("news", "article", "journalist", "reporter", "publish", "editor", "headline",
         "breaking", "report", "media", "press", "coverage"),
        "You are a helpful assistant analyzing news content. The user is viewing a "
        "news article or publication. Help them understand the key points, identify "
        "potential biases, summarize the main story, or provide context about the "
        "topics covered.",
    ),
    WebsiteType(
        "shopping",
        ("product", "price", "shop", "buy", "purchase", "cart", "checkout", "discount",
         "retail", "store", "ecommerce", "shipping", "order"),
        "You are a helpful assistant for online shopping. The user is viewing a "
        "product page or e-commerce site. Help them understand product features, "
        "compare options, evaluate prices, or identify key considerations for their "
        "purchase decision.",
    ),
    WebsiteType(
        "documentation",
        ("docs", "documentation", "guide", "tutorial", "manual", "reference", "api",
         "function", "method", "class", "library", "framework"),
        "You are a helpful assistant specializing in technical documentation. The "
        "user is viewing technical documentation, API references, or guides. Explain "
        "the concepts, implementation details, or usage examples and help them apply "
        "the information to their needs.",
    ),
    WebsiteType(
        "academic",
        ("research", "study", "paper", "journal", "publication", "experiment",
         "methodology", "findings", "conclusion", "hypothesis", "theory", "data",
         "analysis", "scholar"),
        "You are a helpful assistant specializing in academic content. The user is "
        "viewing a research paper, journal article, or academic publication. Help them "
        "understand the methodology, key findings, or theoretical implications while "
        "maintaining scientific accuracy.",
    ),
    WebsiteType(
        "social_media",
        ("post", "tweet", "share", "like", "follow", "comment", "friend", "feed",
         "social", "profile", "status", "update"),
        "You are a helpful assistant analyzing social media content. The user is "
        "viewing posts, comments, or profiles. Help them understand the context of "
        "conversations and extract the key points from discussions.",
    ),
    WebsiteType(
        "video",
        ("video", "youtube", "stream", "watch", "view", "channel", "subscribe",
         "creator", "content", "episode"),
        "You are a helpful assistant specializing in video content. The user is "
        "viewing a video platform or video description page. Extract the most relevant "
        "details about the video, its creator and related content.",
    ),
]


def detect_website_type(content: str, url: str) -> WebsiteType:
    """First type with enough pattern hits, or whose name appears in the URL."""
    url = url or ""
    haystack = f"{content or ''} {url}".lower()
    lowered_url = url.lower()
    for website in WEBSITE_TYPES:
        matches = sum(1 for pattern in website.patterns if pattern in haystack)
        if matches >= MIN_PATTERN_MATCHES or website.type in lowered_url:
            return website
    return GENERAL
