"""Constants and thresholds for content extraction."""

# Text length thresholds
MIN_CONTENT_LENGTH = 300
MIN_DENSITY_BLOCK_LENGTH = 100
MAX_TITLE_LENGTH = 200
MAX_AUTHOR_LENGTH = 100

# Quality score weights
SCORE_TEXT_BASE = 40          # text > MIN_CONTENT_LENGTH
SCORE_TEXT_LONG = 20          # text > 1000
SCORE_TEXT_VERY_LONG = 10     # text > 2000
SCORE_TITLE = 15              # title > 10 chars
SCORE_AUTHOR = 5
SCORE_DATE = 5
SCORE_IMAGE = 10              # at least one image
SCORE_MANY_IMAGES = 5         # more than two images
SCORE_DESCRIPTION = 5         # description > 50 chars

TEXT_LONG_LENGTH = 1000
TEXT_VERY_LONG_LENGTH = 2000
MIN_SCORED_TITLE_LENGTH = 10
MIN_SCORED_DESCRIPTION_LENGTH = 50

# Selector lists
TITLE_SELECTORS = [
    'h1.headline', 'h1.title', 'h1.article-title', 'h1.post-title',
    'h1.entry-title', 'h1', '.headline', '.article-headline', 'title',
]

AUTHOR_SELECTORS = [
    '.author-name', '.byline-author', '.article-author', '.post-author',
    '[rel="author"]', '[itemprop="author"]', '.author', '.byline',
]

DATE_SELECTORS = [
    'time[datetime]', '[itemprop="datePublished"]', '.publish-date',
    '.published-date', '.article-date', '.post-date', '.entry-date', '.date',
]

CONTENT_SELECTORS = [
    'article .article-body',
    'article .story-body',
    'article .post-content',
    'article .entry-content',
    '.article-content',
    '.article-body',
    '.story-content',
    '.post-body',
    '.content-body',
    '[data-module="ArticleBody"]',
    '.RichTextStoryBody',
    '.ArticleBody-articleBody',
    '.story-body__inner',
    '.article-wrap .article-body',
    '[itemprop="articleBody"]',
]

BROAD_CONTENT_SELECTORS = ['article', '.main-content', '#content', '.content', 'main']

DENSITY_CONTAINER_TAGS = ['div', 'article', 'section', 'main']

IMAGE_FALLBACK_SELECTORS = [
    'article img', '.article img', '.content img', '.post img',
    '.entry-content img', '.story-body img', '.article-body img',
    '.post-content img', '.ArticleBody img', '.ArticleBody-articleBody img',
    '[data-module="ArticleBody"] img', 'main img',
]

IMAGE_SOURCE_ATTRIBUTES = ['src', 'data-src', 'data-lazy-src', 'data-original']

DECORATIVE_IMAGE_MARKERS = ['1x1', 'pixel', 'spacer', 'logo', 'icon']

# Pattern-only validation, used when network checks are disabled
IMAGE_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.webp', '.gif', '.avif', '.svg']

INVALID_IMAGE_PATTERNS = [
    '1x1', 'pixel', 'spacer', 'blank', 'transparent',
    'tracking', 'analytics', 'beacon', 'counter',
]

TRUSTED_IMAGE_HOSTS = [
    'imgur.com', 'cloudinary.com', 'amazonaws.com', 'googleusercontent.com',
    'fbcdn.net', 'twimg.com', 'ytimg.com', 'staticflickr.com',
    'unsplash.com', 'pexels.com',
]
