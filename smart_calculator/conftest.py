import pytest

from smart_calculator.main import Calculator


class ScriptedSession:
    """Stands in for a PromptSession: hands out scripted lines, raising any exception found in the script."""

    def __init__(self, lines):
        self.lines = list(lines)
        self.prompts = []

    def prompt(self, message):
        self.prompts.append(message)
        if not self.lines:
            raise EOFError()
        item = self.lines.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def calculator():
    return Calculator()


@pytest.fixture
def scripted_session():
    return ScriptedSession


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        print(f"TEST: {item.name} - {'PASSED' if report.passed else 'FAILED'}")
