"""Prompt templates for turning a captured element into an AI coding request."""

import json
from typing import Dict, Tuple

from .models.element import ElementRecord

_SELENIUM = {
    "action": (
        "You are writing a Selenium WebDriver (Java) test step.\n"
        "Given this element:\n{json}\n\n"
        "Write a single Java step that interacts with the element (click/type)\n"
        "and includes a short verification. Return only the Java code."
    ),
    "assertion": (
        "You are writing a Selenium WebDriver (Java) assertion.\n"
        "Given this element:\n{json}\n\n"
        "Write a Java assertion verifying visibility or expected state.\n"
        "Return only the assertion code."
    ),
    "locator": (
        "You are an automation expert using Selenium WebDriver (Java).\n"
        "Generate the most stable locator (By.id, By.name, By.cssSelector, or By.xpath).\n\n"
        "Element details:\n{json}\n\n"
        "Return only the Java locator statement "
        "(e.g. driver.findElement(By.cssSelector(...)));"
    ),
}

_PLAYWRIGHT = {
    "action": (
        "You are writing an automation step in Playwright (TypeScript/JavaScript).\n"
        "Given this element:\n{json}\n\n"
        "Write one Playwright line that interacts with the element (click/type)\n"
        "and includes a simple verification. Return only the Playwright code."
    ),
    "assertion": (
        "You are writing an assertion in Playwright (TypeScript/JavaScript).\n"
        "Given this element:\n{json}\n\n"
        "Write an assertion checking visibility or expected text/value.\n"
        "Return only the Playwright assertion code."
    ),
    "locator": (
        "You are an automation expert using Microsoft Playwright (TypeScript/JavaScript).\n"
        "Generate the most stable Playwright locator using page.getByRole, "
        "page.getByTestId, or page.locator.\n\n"
        "Element details:\n{json}\n\n"
        "Return only the Playwright locator statement (e.g. page.getByTestId(...));"
    ),
}

_CYPRESS = {
    "action": (
        "You are writing an automation step using Cypress (JavaScript).\n"
        "Given this element:\n{json}\n\n"
        "Write a single Cypress command (e.g. cy.get(...).click()) that interacts "
        "with the element\nand includes a simple verification. Return only the Cypress code."
    ),
    "assertion": (
        "You are writing an assertion in Cypress (JavaScript).\n"
        "Given this element:\n{json}\n\n"
        "Write a Cypress assertion validating visibility or expected state.\n"
        "Return only the assertion line (e.g. cy.get(...).should('be.visible'))."
    ),
    "locator": (
        "You are an automation expert using Cypress (JavaScript).\n"
        "Generate the most stable Cypress locator using cy.get(), cy.contains(), "
        "or custom selectors.\n\n"
        "Element details:\n{json}\n\n"
        "Return only the Cypress locator statement (e.g. cy.get('[data-test=\"login\"]'))."
    ),
}

_ROBOT = {
    "action": (
        "You are writing a Robot Framework keyword test step.\n"
        "Given this element:\n{json}\n\n"
        "Write a single Robot Framework line using SeleniumLibrary syntax "
        "(e.g. Click Element, Input Text)\n"
        "that interacts with the element. Return only the test step line."
    ),
    "assertion": (
        "You are writing a Robot Framework assertion keyword.\n"
        "Given this element:\n{json}\n\n"
        "Write a single assertion validating that the element is visible or "
        "contains expected text.\nReturn only the Robot Framework line."
    ),
    "locator": (
        "You are an automation expert using Robot Framework (SeleniumLibrary).\n"
        "Generate the most stable locator (id=, name=, css=, xpath=).\n\n"
        "Element details:\n{json}\n\n"
        "Return only the locator string (e.g. xpath=//button[@id=\"login\"])."
    ),
}

_BDD = {
    "action": (
        "You are writing a Cucumber (BDD) Gherkin step for automation.\n"
        "Given this element:\n{json}\n\n"
        "Write a single \"When\" or \"Then\" step describing an action that "
        "interacts with the element.\n"
        "Return only the Gherkin step text (not implementation)."
    ),
    "assertion": (
        "You are writing a Cucumber (BDD) Gherkin assertion step.\n"
        "Given this element:\n{json}\n\n"
        "Write a \"Then\" step verifying visibility or expected state of the element.\n"
        "Return only the Gherkin step text."
    ),
    "locator": (
        "You are an automation expert writing BDD (Cucumber) test steps.\n"
        "Generate a human-readable Gherkin step describing how to locate or "
        "interact with this element.\n\n"
        "Element details:\n{json}\n\n"
        "Return only the Gherkin step."
    ),
}

_CUSTOM = {
    "action": (
        "You are writing an automation step for a **custom framework**.\n"
        "The user defines elements in this style:\n\n{example}\n\n"
        "Given this element:\n{json}\n\n"
        "Write a single test step that interacts with this element (click/type)\n"
        "and includes a brief verification following the same coding pattern.\n"
        "Return only the code."
    ),
    "assertion": (
        "You are writing an assertion for a **custom framework**.\n"
        "The user defines elements in this style:\n\n{example}\n\n"
        "Given this element:\n{json}\n\n"
        "Write an assertion that validates visibility or expected state using the same style.\n"
        "Return only the assertion code."
    ),
    "locator": (
        "You are an automation engineer using a **custom test framework**.\n"
        "The user defines elements in this style:\n\n{example}\n\n"
        "Given this element:\n{json}\n\n"
        "Generate the most stable locator or element definition consistent with that style.\n"
        "Return only the code."
    ),
}

_GENERIC = (
    "You are an automation engineer writing tests in {framework}.\n"
    "Given this element:\n{json}\n\n"
    "Generate a robust locator or action step for this framework.\n"
    "Return only the code."
)

TEMPLATES: Dict[str, Dict[str, str]] = {
    "selenium": _SELENIUM,
    "playwright": _PLAYWRIGHT,
    "cypress": _CYPRESS,
    "robot": _ROBOT,
    "bdd": _BDD,
}

SUPPORTED_FRAMEWORKS: Tuple[str, ...] = tuple(TEMPLATES) + ("custom",)


def build_prompt(
    record: ElementRecord,
    framework: str = "playwright",
    prompt_kind: str = "locator",
    custom_example: str = "",
) -> str:
    """
    Render the prompt for one record.

    ``custom`` uses the caller's example snippet; without one it falls back
    to the generic template. Unknown kinds are treated as ``locator``.
    """
    payload = json.dumps(record.to_output(), indent=2, ensure_ascii=False)
    framework = (framework or "").strip().lower()
    kind = prompt_kind if prompt_kind in ("locator", "action", "assertion") else "locator"

    if framework == "custom" and custom_example:
        return _CUSTOM[kind].format(example=custom_example, json=payload)

    templates = TEMPLATES.get(framework)
    if templates is None:
        return _GENERIC.format(framework=framework or "a generic framework", json=payload)
    return templates[kind].format(json=payload)
