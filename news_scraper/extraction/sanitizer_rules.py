"""
Pattern rules for HTML and text sanitization.

Rules are plain data evaluated in list order. Add site-specific boilerplate
by appending to the relevant group and bumping RULES_VERSION.
"""

import re
from dataclasses import dataclass
from typing import List, Pattern

RULES_VERSION = "2024.3"


@dataclass(frozen=True)
class SanitizerRule:
    name: str
    pattern: Pattern
    replacement: str = ''

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def rule(name: str, pattern: str, replacement: str = '', flags: int = 0) -> SanitizerRule:
    return SanitizerRule(name=name, pattern=re.compile(pattern, flags), replacement=replacement)


# ---------------------------------------------------------------------------
# Raw HTML (applied before parsing)
# ---------------------------------------------------------------------------

HTML_PRE_RULES: List[SanitizerRule] = [
    rule('comments', r'<!--.*?(?:-->|$)', flags=re.DOTALL),
    rule('script-blocks', r'<script\b[^<]*(?:(?!</script\s*>)<[^<]*)*</script\s*>', flags=re.IGNORECASE),
    rule('style-blocks', r'<style\b[^<]*(?:(?!</style\s*>)<[^<]*)*</style\s*>', flags=re.IGNORECASE),
    rule('noscript-blocks', r'<noscript\b[^<]*(?:(?!</noscript\s*>)<[^<]*)*</noscript\s*>', flags=re.IGNORECASE),
    rule('event-handlers', r'\s+on[a-z]+\s*=\s*(?:"[^"]*"|\'[^\']*\')', flags=re.IGNORECASE),
    rule('javascript-urls', r'\s+href\s*=\s*(?:"\s*javascript:[^"]*"|\'\s*javascript:[^\']*\')', flags=re.IGNORECASE),
]

# Elements dropped wholesale after parsing
HTML_DENYLIST_SELECTORS: List[str] = [
    'nav', 'header', 'footer', 'aside', 'iframe', 'template',
    '.advertisement', '.ad', '.ads', '.social', '.share',
    '.comments', '.comment', '.related', '.sidebar',
    '.newsletter', '.subscribe', '.popup', '.modal',
    '.cookie', '.gdpr', '.consent', '.privacy',
    '[class*="ad-"]', '[id*="ad-"]', '[class*="ads-"]',
    '[class*="advertisement"]', '[class*="sponsored"]',
    '[id*="cookie"]', '[class*="cookie-banner"]', '#onetrust-consent-sdk',
    '.tracking', '.analytics', '.gtm', '.facebook-pixel',
    '.sdc-site-au', '.oddschecker', '.teads', '.mpu',
    '[data-module*="ad"]', '[data-module*="Ad"]',
    '[data-testid*="ad"]', '[data-testid*="Ad"]',
    '[onclick]', '[onload]', '[data-track]', '[data-analytics]',
]

# Text inside an element that marks it as leaked script or an embed placeholder
SCRIPT_TEXT_MARKERS: List[Pattern] = [
    re.compile(r'document\.currentScript'),
    re.compile(r'\bwindow\.[A-Za-z_$][\w$]*\s*(?:=|\(|\.)'),
    re.compile(r'\bvar\s+[A-Za-z_$][\w$]*\s*='),
    re.compile(r'\bfunction\s*\('),
    re.compile(r'oddscheckerJs|sdc\.checkConsent'),
    re.compile(r'Enable Cookies'),
    re.compile(r'This content is provided by [^,]+, which may be using cookies'),
]

# ---------------------------------------------------------------------------
# Plain text (applied in group order)
# ---------------------------------------------------------------------------

SCRIPT_BLOCK_RULES: List[SanitizerRule] = [
    rule('current-script-config', r'document\.currentScript\.parentNode\.config\s*=\s*\{[\s\S]*?\}\s*(?=[A-Z]|$)'),
    rule('function-assignment', r'var\s+\w+\s*=\s*function\s*\([^)]*\)\s*\{[\s\S]*?\};\s*(?:\([^)]*\)\s*\(\s*\)\s*;)?'),
    rule('window-object', r'window\.\w+\s*=\s*\{[\s\S]*?\};\s*'),
    rule('document-write', r'document\.write\([^)]*\)[\s\S]*?(?=\s[A-Z]|$)'),
    rule('css-data-attribute', r'\.\w+\[data-\w+="[^"]*"\]\[data-\w+="[^"]*"\]\{[^}]*\}'),
]

SCRIPT_FRAGMENT_RULES: List[SanitizerRule] = [
    rule('current-script', r'document\.currentScript[^}]*\}'),
    rule('var-declaration', r'var\s+\w+\s*=\s*[^;]*;'),
    rule('iife', r'\(\s*function\s*\([^)]*\)\s*\{[^}]*\}\s*\)\s*\([^)]*\)\s*;'),
    rule('function-literal', r'function\s*\([^)]*\)\s*\{[^}]*\}'),
    rule('window-statement', r'window\.\w+[^;]*;'),
    rule('tracking-calls', r'(?:oddscheckerJs|window\.sdc\.checkConsent|window\.ocEnv)[^;]*;'),
    rule('document-call', r'document\.\w+\([^)]*\)'),
    rule('json-object', r'\{\s*"[^"]*":\s*"[^"]*"[^}]*\}'),
    rule('css-rule', r'\.[\w-]+\{[^}]*\}'),
]

COOKIE_CONSENT_RULES: List[SanitizerRule] = [
    rule('embed-provider', r'This content is provided by [^,]*, which may be using cookies[^.]*\.(?:[^.]*\.)?'),
    rule('permission-request', r'To show you this content, we need your permission to use cookies\.[^.]*\.'),
    rule('amend-preferences', r'You can use the buttons below to amend your preferences to enable [^.]* cookies[^.]*\.'),
    rule('privacy-options', r'You can change your settings at any time via the Privacy Options\.[^.]*\.'),
    rule('unverified-consent', r'Unfortunately we have been unable to verify if you have consented to [^.]* cookies[^.]*\.'),
    rule('session-only', r'To view this content you can use the button below to allow [^.]* cookies for this session only\.'),
    rule('enable-cookies-buttons', r'Enable Cookies Allow Cookies Once'),
]

AD_BOILERPLATE_RULES: List[SanitizerRule] = [
    rule('accessible-player', r'Please use Chrome browser for a more accessible video player'),
    rule('got-sky', r'Got Sky\? Watch your EFL team on the Sky Sports app'),
    rule('not-got-sky', r'Not got Sky\? Stream your EFL team with no contract'),
    rule('efl-team', r'Watch your EFL team at least \d+ times in \d+/\d+ with Sky Sports\+'),
    rule('championship', r'Watch EVERY SINGLE Championship fixture[^.]*\.'),
    rule('super-6', r'SUPER 6 RETURNS[^.]*\.'),
    rule('around-sky', r'Around Sky Other Sports[^.]*$'),
    rule('upgrade-sky', r'Upgrade to Sky Sports[^.]*$'),
    rule('now-access', r'Get instant access to Sky Sports with NOW'),
    rule('accafreeze', r'ACCAFREEZE WITH SKY BET[^.]*\.'),
    rule('accafreeze-detail', r'AccaFreeze lets you lock in one winning leg[^.]*\.'),
    rule('ad-content', r'Ad content \|[^|]*\|'),
    rule('streaming-guide', r'All you need to know - Streaming[^|]*\|'),
    rule('download-app', r'Download the Sky Sports App \| Get Sky Sports'),
]

ARTIFACT_RULES: List[SanitizerRule] = [
    rule('json-residue', r'\s*\{\s*"[^"]*":\s*"[^"]*"[^}]*\}\s*', ' '),
    rule('css-residue', r'[.#][\w-]+\s*\{[^}]*\}\s*'),
    rule('standalone-number', r'^[ \t]*\d+[ \t]*$', flags=re.MULTILINE),
]

TEXT_RULE_GROUPS = [
    ('script-blocks', SCRIPT_BLOCK_RULES),
    ('script-fragments', SCRIPT_FRAGMENT_RULES),
    ('cookie-consent', COOKIE_CONSENT_RULES),
    ('ad-boilerplate', AD_BOILERPLATE_RULES),
    ('artifacts', ARTIFACT_RULES),
]
