"""DevTools Protocol enrichment for captured elements."""

import logging
from typing import Any, Dict, Optional

from playwright.async_api import BrowserContext, CDPSession, Page

from .models.element import AdvancedMetadata

logger = logging.getLogger(__name__)

# Computed style property -> AdvancedMetadata field
STYLE_FIELDS = {
    "z-index": "zIndex",
    "opacity": "opacity",
    "display": "display",
    "visibility": "visibility",
    "color": "color",
    "font-family": "font",
    "pointer-events": "pointerEvents",
    "cursor": "cursor",
    "background-color": "backgroundColor",
}

# Page-side details resolved by selector in a single round trip
_PAGE_DETAILS = """
(selector) => {
  const out = { boundingBox: null, domDepth: 0, dataAttributes: {}, frameworkType: 'Unknown' };
  try {
    if (window.getAllAngularTestabilities || window.ng) out.frameworkType = 'Angular';
    else if (window.__REACT_DEVTOOLS_GLOBAL_HOOK__ || document.querySelector('[data-reactroot]')) out.frameworkType = 'React';
    else if (window.Vue || window.__VUE__) out.frameworkType = 'Vue';
    else out.frameworkType = 'HTML';
  } catch (e) {}
  const el = document.querySelector(selector);
  if (!el) return out;
  const rect = el.getBoundingClientRect();
  out.boundingBox = { x: rect.x, y: rect.y, width: rect.width, height: rect.height };
  let node = el;
  while (node.parentElement) { out.domDepth += 1; node = node.parentElement; }
  for (const attr of el.attributes) {
    if (attr.name.startsWith('data-') || attr.name.startsWith('qa-') || attr.name.startsWith('ng-')) {
      out.dataAttributes[attr.name] = attr.value;
    }
  }
  return out;
}
"""


async def open_cdp_session(context: BrowserContext, page: Page) -> CDPSession:
    """Open a DevTools session for the page with DOM and CSS domains enabled."""
    client = await context.new_cdp_session(page)
    await client.send("DOM.enable")
    await client.send("CSS.enable")
    return client


async def _optional(client: CDPSession, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """Send a command whose failure only drops that piece of metadata."""
    try:
        return await client.send(method, params)
    except Exception as e:
        logger.debug(f"{method} failed: {e}")
        return {}


async def get_advanced_metadata(
    page: Page, client: CDPSession, selector: str
) -> Optional[AdvancedMetadata]:
    """
    Collect styles, accessibility, listeners and layout for one element.

    Returns None when there is no selector or it matches nothing. Never
    raises: failures are reported through ``AdvancedMetadata.error``.
    """
    if not selector or not isinstance(selector, str):
        return None
    try:
        document = await client.send("DOM.getDocument", {"depth": -1})
        found = await client.send(
            "DOM.querySelector",
            {"nodeId": document["root"]["nodeId"], "selector": selector},
        )
        node_id = found.get("nodeId")
        if not node_id:
            return None

        styles: Dict[str, str] = {}
        computed = await _optional(client, "CSS.getComputedStyleForNode", {"nodeId": node_id})
        for prop in computed.get("computedStyle") or []:
            styles[prop.get("name")] = prop.get("value")

        ax = await _optional(client, "Accessibility.getPartialAXTree", {"nodeId": node_id})
        ax_nodes = ax.get("nodes") or []
        ax_node = ax_nodes[0] if ax_nodes else {}

        listener_types = []
        resolved = await _optional(client, "DOM.resolveNode", {"nodeId": node_id})
        object_id = (resolved.get("object") or {}).get("objectId")
        if object_id:
            listeners = await _optional(
                client, "DOMDebugger.getEventListeners", {"objectId": object_id}
            )
            listener_types = [item.get("type") for item in listeners.get("listeners") or []]

        details = await page.evaluate(_PAGE_DETAILS, selector)

        fields = {
            field: styles.get(prop) or None for prop, field in STYLE_FIELDS.items()
        }
        return AdvancedMetadata(
            **fields,
            ariaRole=(ax_node.get("role") or {}).get("value") or None,
            ariaName=(ax_node.get("name") or {}).get("value") or None,
            listeners=[t for t in listener_types if t],
            boundingBox=details.get("boundingBox"),
            domDepth=details.get("domDepth") or 0,
            dataAttributes=details.get("dataAttributes") or {},
            frameworkType=details.get("frameworkType"),
        )
    except Exception as e:
        return AdvancedMetadata(error=str(e))
