"""Locator Extractor - capture page elements and synthesize stable locators."""

__version__ = "0.1.0"
