"""Shared BDD fixtures and step definitions for input decisions."""

from datetime import date

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from pack_input.decision.configuration import InputConfiguration
from pack_input.decision.pipeline import InputDecisionPipeline
from pack_input.exceptions import PackInputError
from pack_input.protocol.messages import InputRequest, Pack
from pack_input.response.profile import ResponseProfile


class Outcome:
    """What happened when a request went through the pipeline."""

    def __init__(self, request):
        self.request = request
        self.response = None
        self.error = None

    def pack(self, scan_code):
        packs = self.response.packs if self.response is not None else self.request.packs
        return next(pack for pack in packs if pack.scan_code == scan_code)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def settings():
    return {}


@pytest.fixture()
def profile():
    return ResponseProfile.create(name="Counter")


def _run(request, settings, profile, articles, today):
    outcome = Outcome(request)
    pipeline = InputDecisionPipeline(
        InputConfiguration(**settings),
        articles=articles,
        profile=profile,
        today=today,
    )
    try:
        outcome.response = pipeline.process(request)
    except PackInputError as exc:
        outcome.error = exc
    return outcome


def _packs(codes):
    return [Pack(scan_code=code.strip(), index=i) for i, code in enumerate(codes.split(","))]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("the operator enables {option:w}"))
def _(settings, option):
    settings[option] = True


@given(parsers.cfparse("the operator disables {option:w}"))
def _(settings, option):
    settings[option] = False


@given(parsers.cfparse('the operator sets {option:w} to "{value}"'))
def _(settings, option, value):
    settings[option] = value


@given(parsers.cfparse("the operator mirrors {message_type:w}.{field_name:w} from the request"))
def _(profile, message_type, field_name):
    profile.set_policy(message_type, field_name, "MirrorInput")


@given(parsers.cfparse('the operator sets {message_type:w}.{field_name:w} to "{raw_value}"'))
def _(profile, message_type, field_name, raw_value):
    profile.set_policy(message_type, field_name, "Custom", raw_value)


@given(parsers.cfparse("the operator leaves out {message_type:w}.{field_name:w}"))
def _(profile, message_type, field_name):
    profile.deselect(message_type, field_name)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('a stock return with packs "{codes}" is requested'), target_fixture="outcome")
def _(settings, profile, articles, today, codes):
    request = InputRequest(id="req-bdd", source=100, destination=999, packs=_packs(codes))
    return _run(request, settings, profile, articles, today)


@when(parsers.cfparse('a delivery "{number}" with packs "{codes}" is requested'), target_fixture="outcome")
def _(settings, profile, articles, today, number, codes):
    request = InputRequest(id="req-bdd", source=100, destination=999, delivery_number=number, packs=_packs(codes))
    return _run(request, settings, profile, articles, today)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('pack "{scan_code}" is handled as {kind:w}'))
def _(outcome, scan_code, kind):
    assert outcome.pack(scan_code).handling.kind.value == kind


@then(parsers.cfparse('pack "{scan_code}" is rejected with message "{message}"'))
def _(outcome, scan_code, message):
    handling = outcome.pack(scan_code).handling
    assert handling.kind.value == "Rejected"
    assert handling.message == message


@then(parsers.cfparse('pack "{scan_code}" has handling message "{message}"'))
def _(outcome, scan_code, message):
    assert outcome.pack(scan_code).handling.message == message


@then(parsers.cfparse('pack "{scan_code}" has {field_name:w} "{value}"'))
def _(outcome, scan_code, field_name, value):
    assert getattr(outcome.pack(scan_code), field_name) == value


@then(parsers.cfparse('pack "{scan_code}" has no {field_name:w}'))
def _(outcome, scan_code, field_name):
    assert getattr(outcome.pack(scan_code), field_name) is None


@then(parsers.cfparse('pack "{scan_code}" expires on {day}'))
def _(outcome, scan_code, day):
    assert outcome.pack(scan_code).expiry_date == date.fromisoformat(day)


@then(parsers.cfparse('the article of pack "{scan_code}" has {field_name:w} "{value}"'))
def _(outcome, scan_code, field_name, value):
    assert getattr(outcome.pack(scan_code).article, field_name) == value


@then("the response is a new delivery")
def _(outcome):
    assert outcome.response.is_new_delivery is True


@then("the request is finished")
def _(outcome):
    assert outcome.request.is_finished is True


@then("the request is not finished")
def _(outcome):
    assert outcome.request.is_finished is False


@then("the request fails with a conversion error")
def _(outcome):
    assert outcome.response is None
    assert outcome.error is not None
    assert outcome.error.field_name == "sub_item_quantity"


@then(parsers.cfparse("leaving out {message_type:w}.{field_name:w} fails with a validation error"))
def _(profile, message_type, field_name):
    with pytest.raises(ValidationError):
        profile.deselect(message_type, field_name)
