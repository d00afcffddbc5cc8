"""In-page script payloads for HTML, CSS, element and scroll extraction.

Each payload is a JavaScript arrow function applied to a single JSON-encoded
argument object. Caller selectors are checked against an allow-list before they
are embedded; anything outside it is dropped, never escaped.
"""

import json
import re
from typing import Any

from browserlens.browser.views import CSSCaptureOptions, HTMLCaptureOptions, ScrollOptions

# Alphanumerics, whitespace and the CSS selector punctuation we accept
_SAFE_SELECTOR = re.compile(r'''[a-zA-Z0-9\s\-_#.\[\]:(),>+~*="']+''')

MAX_ELEMENTS_PER_SELECTOR = 10
MAX_TEXT_LENGTH = 200

# A smooth scroll is reported once it ends, or after this long at the latest
SCROLL_SETTLE_TIMEOUT_MS = 1000
# Animation frames the position must hold still before a smooth scroll counts as ended
SCROLL_SETTLE_FRAMES = 5

# Computed values skipped by basic (non-computed) CSS extraction
UNINTERESTING_CSS_VALUES = ('auto', 'normal', 'none', '0px', 'transparent', 'rgba(0, 0, 0, 0)')

INHERITED_CSS_PROPERTIES = ('color', 'font-family', 'font-size', 'line-height', 'text-align')

ELEMENT_STYLE_PROPERTIES = (
    'display', 'position', 'top', 'left', 'right', 'bottom',
    'width', 'height', 'margin', 'padding', 'border',
    'color', 'background-color', 'font-family', 'font-size',
    'text-align', 'line-height', 'opacity', 'z-index',
    'transform', 'transition', 'box-shadow', 'border-radius',
)


def is_safe_selector(selector: str) -> bool:
    return bool(selector) and _SAFE_SELECTOR.fullmatch(selector) is not None


def sanitize_selectors(selectors: list[str] | None) -> list[str]:
    """Drop selectors containing characters outside the allow-list."""
    if not selectors:
        return []
    return [selector for selector in selectors if isinstance(selector, str) and is_safe_selector(selector)]


def _invoke(function_source: str, args: dict[str, Any]) -> str:
    return f'({function_source})({json.dumps(args)})'


DOCUMENT_HTML_JS = 'document.documentElement.outerHTML'

SELECTED_HTML_JS = """(args) => {
    const elements = [];
    args.selectors.forEach(selector => {
        try {
            document.querySelectorAll(selector).forEach(node => elements.push(node.outerHTML));
        } catch (e) {
            console.warn('Invalid selector:', selector);
        }
    });
    return elements.join('\\n');
}"""

STRIPPED_HTML_JS = """(args) => {
    const clone = document.documentElement.cloneNode(true);
    if (!args.includeScripts) {
        clone.querySelectorAll('script').forEach(script => script.remove());
    }
    if (!args.includeStyles) {
        clone.querySelectorAll('style, link[rel="stylesheet"]').forEach(style => style.remove());
        clone.querySelectorAll('[style]').forEach(el => el.removeAttribute('style'));
    }
    return '<!DOCTYPE html>\\n' + clone.outerHTML;
}"""

CSS_EXTRACTION_JS = """(args) => {
    const cssRules = [];
    args.selectors.forEach(selector => {
        try {
            const elements = document.querySelectorAll(selector);
            if (elements.length === 0) {
                cssRules.push(`/* No elements found for selector: ${selector} */`);
                return;
            }
            const element = elements[0];
            const computedStyle = window.getComputedStyle(element);
            const rules = [];
            for (let i = 0; i < computedStyle.length; i++) {
                const property = computedStyle[i];
                const value = computedStyle.getPropertyValue(property);
                const priority = computedStyle.getPropertyPriority(property);
                if (!value || value === 'initial' || value === 'inherit') {
                    continue;
                }
                if (!args.includeComputed && args.uninteresting.includes(value)) {
                    continue;
                }
                rules.push(`  ${property}: ${value}${priority ? ' !' + priority : ''};`);
            }
            if (args.includeInherited) {
                let parent = element.parentElement;
                while (parent && parent !== document.body) {
                    const parentStyle = window.getComputedStyle(parent);
                    rules.push(`  /* Inherited from parent ${parent.tagName.toLowerCase()} */`);
                    args.inheritedProperties.forEach(prop => {
                        const value = parentStyle.getPropertyValue(prop);
                        if (value && value !== 'initial') {
                            rules.push(`  ${prop}: ${value}; /* inherited */`);
                        }
                    });
                    parent = parent.parentElement;
                }
            }
            if (rules.length > 0) {
                cssRules.push(`${selector} {\\n${rules.join('\\n')}\\n}`);
            } else {
                cssRules.push(`${selector} {\\n  /* No significant styles found */\\n}`);
            }
        } catch (e) {
            cssRules.push(`/* Error processing selector ${selector}: ${e.message} */`);
        }
    });
    return cssRules.join('\\n\\n');
}"""

ELEMENT_EXTRACTION_JS = """(args) => {
    const elementsInfo = [];
    args.selectors.forEach(selector => {
        try {
            const elements = document.querySelectorAll(selector);
            if (elements.length === 0) {
                elementsInfo.push({selector, tagName: null, textContent: null, error: 'No elements found for selector'});
                return;
            }
            const maxElements = Math.min(elements.length, args.maxElements);
            for (let i = 0; i < maxElements; i++) {
                const element = elements[i];
                try {
                    const computedStyle = window.getComputedStyle(element);
                    const rect = element.getBoundingClientRect();
                    const styles = {};
                    args.styleProperties.forEach(prop => {
                        const value = computedStyle.getPropertyValue(prop);
                        if (value && value !== 'initial' && value !== 'auto' && value !== 'none') {
                            styles[prop] = value;
                        }
                    });
                    const attributes = {};
                    for (let j = 0; j < element.attributes.length; j++) {
                        const attr = element.attributes[j];
                        attributes[attr.name] = attr.value;
                    }
                    let textContent = (element.textContent || '').trim();
                    if (textContent.length > args.maxTextLength) {
                        textContent = textContent.substring(0, args.maxTextLength) + '...';
                    }
                    elementsInfo.push({
                        selector: elements.length === 1 ? selector : `${selector}:nth-child(${i + 1})`,
                        tagName: element.tagName.toLowerCase(),
                        textContent: textContent || null,
                        styles,
                        attributes,
                        boundingBox: {
                            x: Math.round(rect.x),
                            y: Math.round(rect.y),
                            width: Math.round(rect.width),
                            height: Math.round(rect.height)
                        },
                        isVisible: rect.width > 0 && rect.height > 0 &&
                            computedStyle.visibility !== 'hidden' &&
                            computedStyle.display !== 'none',
                        scrollPosition: {scrollTop: element.scrollTop, scrollLeft: element.scrollLeft}
                    });
                } catch (e) {
                    elementsInfo.push({selector, tagName: null, textContent: null, error: `Error processing element: ${e.message}`});
                }
            }
        } catch (e) {
            elementsInfo.push({selector, tagName: null, textContent: null, error: `Error processing selector: ${e.message}`});
        }
    });
    return elementsInfo;
}"""

SCROLL_JS = """(args) => {
    const behavior = args.smooth ? 'smooth' : 'instant';
    const position = () => ({success: true, scrollX: window.scrollX, scrollY: window.scrollY});
    switch (args.scrollType) {
        case 'pixels':
            window.scrollBy({left: args.x, top: args.y, behavior});
            break;
        case 'coordinates':
            window.scrollTo({left: args.x, top: args.y, behavior});
            break;
        case 'viewport':
            window.scrollBy({left: 0, top: args.direction * window.innerHeight, behavior});
            break;
        case 'element': {
            const element = document.querySelector(args.selector);
            if (!element) {
                return {success: false, error: `No element found for selector: ${args.selector}`};
            }
            element.scrollIntoView({behavior, block: 'center'});
            break;
        }
        case 'top':
            window.scrollTo({left: window.scrollX, top: 0, behavior});
            break;
        case 'bottom':
            window.scrollTo({left: window.scrollX, top: document.documentElement.scrollHeight, behavior});
            break;
        default:
            return {success: false, error: `Unknown scroll type: ${args.scrollType}`};
    }
    if (!args.smooth) {
        return position();
    }
    // Smooth scrolling animates; report where it stops, not where it started
    return new Promise((resolve) => {
        let done = false;
        let lastX = window.scrollX;
        let lastY = window.scrollY;
        let stableFrames = 0;
        const finish = () => {
            if (done) return;
            done = true;
            window.removeEventListener('scrollend', finish);
            resolve(position());
        };
        const poll = () => {
            if (done) return;
            if (window.scrollX === lastX && window.scrollY === lastY) {
                stableFrames += 1;
            } else {
                stableFrames = 0;
                lastX = window.scrollX;
                lastY = window.scrollY;
            }
            if (stableFrames >= args.settleFrames) {
                finish();
            } else {
                requestAnimationFrame(poll);
            }
        };
        window.addEventListener('scrollend', finish, {once: true});
        requestAnimationFrame(poll);
        setTimeout(finish, args.settleTimeout);
    });
}"""



def build_html_script(options: HTMLCaptureOptions) -> str:
    """Pick one of the three HTML extraction modes, in priority order.

    1. selectors given: concatenated ``outerHTML`` of every match
    2. scripts or styles excluded: stripped clone with a doctype prefix
    3. otherwise: the live document element verbatim
    """
    if options.selectors:
        return _invoke(SELECTED_HTML_JS, {'selectors': sanitize_selectors(options.selectors)})
    if not options.include_scripts or not options.include_styles:
        return _invoke(
            STRIPPED_HTML_JS,
            {'includeScripts': options.include_scripts, 'includeStyles': options.include_styles},
        )
    return DOCUMENT_HTML_JS


def build_css_script(options: CSSCaptureOptions) -> str:
    return _invoke(
        CSS_EXTRACTION_JS,
        {
            'selectors': sanitize_selectors(options.selectors),
            'includeComputed': options.include_computed,
            'includeInherited': options.include_inherited,
            'uninteresting': list(UNINTERESTING_CSS_VALUES),
            'inheritedProperties': list(INHERITED_CSS_PROPERTIES),
        },
    )


def build_elements_script(selectors: list[str]) -> str:
    return _invoke(
        ELEMENT_EXTRACTION_JS,
        {
            'selectors': sanitize_selectors(selectors),
            'maxElements': MAX_ELEMENTS_PER_SELECTOR,
            'maxTextLength': MAX_TEXT_LENGTH,
            'styleProperties': list(ELEMENT_STYLE_PROPERTIES),
        },
    )


def build_scroll_script(options: ScrollOptions) -> str:
    """Build the scroll payload. ``viewport`` pages up when ``y`` is negative.

    A smooth scroll returns a promise that settles once scrolling stops, so the
    payload must be evaluated with ``awaitPromise``.
    """
    y = options.y or 0
    return _invoke(
        SCROLL_JS,
        {
            'scrollType': options.scroll_type,
            'x': options.x or 0,
            'y': y,
            'direction': -1 if y < 0 else 1,
            'selector': options.selector if options.selector and is_safe_selector(options.selector) else None,
            'smooth': options.smooth,
            'settleTimeout': SCROLL_SETTLE_TIMEOUT_MS,
            'settleFrames': SCROLL_SETTLE_FRAMES,
        },
    )
