"""Tests for capture script assembly."""

from locator_extractor.scripts import (
    BINDING_NAME,
    CONSOLE_PREFIX,
    INSTALL_FLAG,
    LIBRARY_MODULES,
    LIBRARY_PLACEHOLDER,
    SCAN_EXPRESSION,
    SCAN_FUNCTION,
    capture_script,
    read_script,
)


def test_library_is_inlined_into_capture_iife():
    script = capture_script()
    assert LIBRARY_PLACEHOLDER not in script
    assert script.startswith("(function () {")
    assert script.endswith("})()")
    for name in LIBRARY_MODULES:
        assert read_script(name).strip() in script


def test_python_constants_match_script():
    script = capture_script()
    assert f"window.{INSTALL_FLAG}" in script
    assert f"'{BINDING_NAME}'" in script
    assert f"'{CONSOLE_PREFIX}'" in script
    assert f"window.{SCAN_FUNCTION} = function" in script


def test_install_guard_precedes_listener_registration():
    script = capture_script()
    guard = script.index(f"if (window.{INSTALL_FLAG}) return;")
    listener = script.index("document.addEventListener('click'")
    assert guard < listener


def test_scan_expression_tolerates_missing_install():
    assert SCAN_EXPRESSION.startswith("([filters, mode]) =>")
    assert f"typeof window.{SCAN_FUNCTION} === 'function'" in SCAN_EXPRESSION
    assert SCAN_EXPRESSION.endswith(": null)")


def test_capture_script_is_cached():
    assert capture_script() is capture_script()
