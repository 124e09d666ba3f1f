"""Tests for form composition from object types."""

import asyncio

import pytest

from pip_platform.errors import FormSubmissionError, NotFoundError
from pip_platform.form import PIPForm, data_from_payload, schema_from_payload


class TestPayloadShapes:
    def test_ui_schema_preferred_over_ui(self):
        schema = schema_from_payload({"schema": {"type": "object"}, "ui": {"old": 1}, "uiSchema": {"new": 1}})
        assert schema.ui_schema == {"new": 1}

    def test_legacy_ui_key(self):
        schema = schema_from_payload({"page-title": "About you", "schema": {}, "ui": {"old": 1}})
        assert schema.ui_schema == {"old": 1}
        assert schema.title == "About you"

    def test_missing_ui_hints_default_to_empty(self):
        assert schema_from_payload({"schema": {}}).ui_schema == {}

    def test_wrapped_data_splits_extra(self):
        data = data_from_payload({"data": {"a": 1}, "extra": "x"})
        assert data.model_dump(by_alias=True) == {"data": {"a": 1}, "extraData": {"extra": "x"}}

    def test_flat_data_has_no_extra(self):
        data = data_from_payload({"a": 1})
        assert data.data == {"a": 1}
        assert data.extra_data == {}


@pytest.fixture
def form_pip(in_memory_pip):
    pip = in_memory_pip(
        {
            "intake": ["intake-i18n-strings", "intake-data-store"],
            "intake-i18n-strings": [],
            "intake-data-store": [],
        }
    )
    return pip


async def _seed(pip, slug, payload):
    await pip.update_object(pip.types[slug], payload, "seed")


@pytest.mark.asyncio
async def test_form_merges_schema_translations_and_data(form_pip):
    await _seed(form_pip, "intake", {"page-title": "Intake", "schema": {"type": "object"}, "uiSchema": {"a": {}}})
    await _seed(form_pip, "intake-i18n-strings", {"en": {"title": "Intake"}})
    await _seed(form_pip, "intake-data-store", {"data": {"a": 1}, "extra": "x"})

    response = await PIPForm("intake", form_pip, "jwt").form()

    assert response.title == "Intake"
    assert response.json_schema == {"type": "object"}
    assert response.ui_schema == {"a": {}}
    assert response.translations == {"en": {"title": "Intake"}}
    assert response.data == {"a": 1}
    assert response.extra_data == {"extra": "x"}


@pytest.mark.asyncio
async def test_translations_from_i18n_child(form_pip):
    await _seed(form_pip, "intake-i18n-strings", {"fr": {"title": "Accueil"}})
    form = PIPForm("intake", form_pip, "jwt")
    children = [form_pip.types["intake-i18n-strings"], form_pip.types["intake-data-store"]]

    assert await form.get_form_translations(children) == {"fr": {"title": "Accueil"}}


@pytest.mark.asyncio
async def test_missing_optional_children_degrade_to_empty(in_memory_pip):
    pip = in_memory_pip({"bare": []})
    await pip.update_object(pip.types["bare"], {"schema": {"type": "object"}}, "seed")

    response = await PIPForm("bare", pip, "jwt").form()

    assert response.translations == {}
    assert response.data == {}
    assert response.extra_data == {}


@pytest.mark.asyncio
async def test_child_failure_fails_whole_form(form_pip):
    await _seed(form_pip, "intake", {"schema": {}})
    # No data seeded for the i18n child: its latest lookup fails.
    await _seed(form_pip, "intake-data-store", {"a": 1})

    with pytest.raises(NotFoundError):
        await PIPForm("intake", form_pip, "jwt").form()


@pytest.mark.asyncio
async def test_children_are_fetched_concurrently(in_memory_pip):
    pip = in_memory_pip({"f": ["f-i18n", "f-data"], "f-i18n": [], "f-data": []})
    original = pip.get_object_type
    in_flight = {"now": 0, "max": 0}

    async def _slow_get_object_type(key, jwt):
        in_flight["now"] += 1
        in_flight["max"] = max(in_flight["max"], in_flight["now"])
        await asyncio.sleep(0)
        in_flight["now"] -= 1
        return await original(key, jwt)

    pip.get_object_type = _slow_get_object_type
    for slug, payload in (("f", {"schema": {}}), ("f-i18n", {}), ("f-data", {})):
        await pip.update_object(pip.types[slug], payload, "seed")

    await PIPForm("f", pip, "jwt").form()

    assert in_flight["max"] >= 2


@pytest.mark.asyncio
async def test_submit_wraps_data_with_extra(form_pip):
    obj = await PIPForm("intake", form_pip, "jwt").submit({"a": 1}, {"extra": "x"})

    assert obj.data == {"extra": "x", "data": {"a": 1}}
    stored = await form_pip.get_latest_object_for_type("intake-data-store", "jwt")
    assert data_from_payload(stored.data).model_dump(by_alias=True) == {
        "data": {"a": 1},
        "extraData": {"extra": "x"},
    }


@pytest.mark.asyncio
async def test_submit_without_data_child_raises(in_memory_pip):
    pip = in_memory_pip({"bare": []})

    with pytest.raises(FormSubmissionError, match="form_id: bare"):
        await PIPForm("bare", pip, "jwt").submit({"a": 1})
