"""In-page instrumentation assets.

The capture script is assembled from small JavaScript modules that share one
IIFE scope once concatenated:

- selectors.js: CSS path (unique / descriptive) and absolute XPath synthesis
- classifier.js: visibility, interactability, framework and shadow-host helpers
- filters.js: tag / .class / #id / [attr=value] fragment matching on live nodes
- serializer.js: element record construction
- capture.js: install guard, modifier-click capture and the scan entry point
"""

from functools import lru_cache
from importlib import resources

# Must match the constants in capture.js
INSTALL_FLAG = "__locatorInstalled"
BINDING_NAME = "__locatorSend"
SCAN_FUNCTION = "__locatorScanAll"
CONSOLE_PREFIX = "ELEMENT_CAPTURED:"

LIBRARY_PLACEHOLDER = "/*@@LOCATOR_LIBRARY@@*/"
LIBRARY_MODULES = ("selectors.js", "classifier.js", "filters.js", "serializer.js")

# Evaluated with [filterCsv, mode]; null means the script is not installed yet
SCAN_EXPRESSION = (
    "([filters, mode]) => (typeof window.%s === 'function' ? window.%s(filters, mode) : null)"
    % (SCAN_FUNCTION, SCAN_FUNCTION)
)


def read_script(name: str) -> str:
    """Read one bundled JavaScript module."""
    return resources.files(__package__).joinpath(name).read_text(encoding="utf-8")


@lru_cache(maxsize=1)
def capture_script() -> str:
    """Return the full, self-installing capture script."""
    library = "\n".join(read_script(name) for name in LIBRARY_MODULES)
    template = read_script("capture.js")
    if LIBRARY_PLACEHOLDER not in template:
        raise RuntimeError("capture.js is missing the library placeholder")
    return template.replace(LIBRARY_PLACEHOLDER, library).strip()


__all__ = [
    "BINDING_NAME",
    "CONSOLE_PREFIX",
    "INSTALL_FLAG",
    "SCAN_EXPRESSION",
    "SCAN_FUNCTION",
    "capture_script",
    "read_script",
]
