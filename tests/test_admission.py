import time

import pytest

from dream_interpreter.admission import DREAMS_SCOPE, INTERPRET_SCOPE, AdmissionController
from dream_interpreter.config import Settings
from dream_interpreter.errors import AdmissionRejected


def test_request_over_threshold_is_rejected():
    controller = AdmissionController({INTERPRET_SCOPE: "3 per 1 hour"})

    for _ in range(3):
        controller.check(INTERPRET_SCOPE, "10.0.0.1")

    with pytest.raises(AdmissionRejected) as exc_info:
        controller.check(INTERPRET_SCOPE, "10.0.0.1")
    assert exc_info.value.scope == INTERPRET_SCOPE


def test_clients_have_independent_windows():
    controller = AdmissionController({INTERPRET_SCOPE: "1 per 1 hour"})

    controller.check(INTERPRET_SCOPE, "10.0.0.1")
    controller.check(INTERPRET_SCOPE, "10.0.0.2")

    with pytest.raises(AdmissionRejected):
        controller.check(INTERPRET_SCOPE, "10.0.0.1")


def test_scopes_are_counted_separately():
    controller = AdmissionController({INTERPRET_SCOPE: "1 per 1 hour", DREAMS_SCOPE: "1 per 1 hour"})

    controller.check(INTERPRET_SCOPE, "10.0.0.1")
    controller.check(DREAMS_SCOPE, "10.0.0.1")
    assert controller.remaining(INTERPRET_SCOPE, "10.0.0.1") == 0


def test_unknown_scope_is_not_limited():
    controller = AdmissionController({})
    for _ in range(100):
        controller.check("anything", "10.0.0.1")


def test_next_window_admits_again():
    controller = AdmissionController({INTERPRET_SCOPE: "2 per 1 second"})
    controller.check(INTERPRET_SCOPE, "10.0.0.1")
    controller.check(INTERPRET_SCOPE, "10.0.0.1")

    time.sleep(1.1)

    controller.check(INTERPRET_SCOPE, "10.0.0.1")


def test_defaults_come_from_settings():
    controller = AdmissionController.from_settings(Settings())
    assert controller.remaining(INTERPRET_SCOPE, "fresh-client") == 20
    assert controller.remaining(DREAMS_SCOPE, "fresh-client") == 50
