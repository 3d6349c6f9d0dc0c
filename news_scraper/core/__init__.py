"""Core infrastructure: exceptions, HTTP client, shared crawl state."""
